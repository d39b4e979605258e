"""Shared fixtures for procview tests."""

import stat
import sys
from collections.abc import Callable
from pathlib import Path

import pytest

from procview.host import HostEnvironment
from procview.icons import IconCache, IconResolver
from procview.models import Icon

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="helpers are shell scripts")

DEFAULT_ICON = Icon(source="<test-default>")


class CountingLoader:
    """Icon loader that records every path it is asked to load."""

    def __init__(self, fail: bool = False) -> None:
        self.calls: list[str] = []
        self.fail = fail

    def __call__(self, path: str) -> Icon | None:
        self.calls.append(path)
        if self.fail:
            return None
        return Icon(source=path, handle=len(self.calls))


@pytest.fixture
def loader() -> CountingLoader:
    return CountingLoader()


@pytest.fixture
def host(tmp_path: Path) -> HostEnvironment:
    windows_dir = tmp_path / "Windows"
    system_dir = windows_dir / "System32"
    system_dir.mkdir(parents=True)
    return HostEnvironment(
        is_64bit_os=True,
        is_elevated=False,
        system_dir=system_dir,
        windows_dir=windows_dir,
    )


@pytest.fixture
def icons(host: HostEnvironment, loader: CountingLoader) -> IconResolver:
    return IconResolver(
        IconCache(),
        system_dir=host.system_dir,
        windows_dir=host.windows_dir,
        loader=loader,
        default_icon=DEFAULT_ICON,
    )


@pytest.fixture
def install_dir(tmp_path: Path) -> Path:
    path = tmp_path / "install"
    path.mkdir()
    return path


@pytest.fixture
def write_helper(install_dir: Path) -> Callable[..., Path]:
    """Create an executable helper script printing the given lines."""

    def _write(name: str, lines: list[str], *, stderr: str = "", sleep: float = 0, exit_code: int = 0) -> Path:
        script = ["#!/bin/sh"]
        if sleep:
            script.append(f"sleep {sleep}")
        if stderr:
            script.append(f"echo '{stderr}' >&2")
        script.append("cat <<'EOF'")
        script.extend(lines)
        script.append("EOF")
        script.append(f"exit {exit_code}")

        path = install_dir / name
        path.write_text("\n".join(script) + "\n")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _write


def make_line(
    pid: int,
    name: str = "notepad.exe",
    path: str = "",
    bitness: str = "64",
    integrity: int = 0x2000,
    user: str = "alice",
    injected: bool = False,
    service: bool = False,
    helper: bool = False,
    hidden: bool = False,
) -> str:
    """Build one inspector output line."""
    flags = ["1" if flag else "0" for flag in (injected, service, helper, hidden)]
    return "|".join([str(pid), name, path, bitness, str(integrity), user, *flags])
