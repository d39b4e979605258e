"""Facts about the machine and process running procview."""

import ctypes
import os
import platform
from dataclasses import dataclass
from pathlib import Path


@dataclass(slots=True, frozen=True)
class HostEnvironment:
    """Snapshot of the host facts the inventory depends on."""

    is_64bit_os: bool
    is_elevated: bool
    system_dir: Path
    windows_dir: Path

    @classmethod
    def detect(cls) -> "HostEnvironment":
        """Detect the facts of the current host."""
        windows_dir = Path(os.environ.get("SystemRoot") or os.environ.get("WINDIR") or r"C:\Windows")
        return cls(
            is_64bit_os=_is_64bit_os(),
            is_elevated=_is_elevated(),
            system_dir=windows_dir / "System32",
            windows_dir=windows_dir,
        )


def _is_64bit_os() -> bool:
    # A 32-bit Python on 64-bit Windows reports the OS architecture here
    if os.environ.get("PROCESSOR_ARCHITEW6432"):
        return True
    return platform.machine().lower() in ("amd64", "x86_64", "arm64", "aarch64")


def _is_elevated() -> bool:
    if platform.system() == "Windows":
        try:
            return bool(ctypes.windll.shell32.IsUserAnAdmin())
        except (AttributeError, OSError):
            return False
    return os.geteuid() == 0
