"""Configuration for procview."""

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from procview.errors import ConfigError

ENV_PREFIX = "PROCVIEW_"


def _default_install_dir() -> Path:
    """Directory of the running program, where the helper executables are shipped."""
    return Path(sys.argv[0] or ".").resolve().parent


@dataclass(slots=True, frozen=True)
class InventoryConfig:
    """Settings for locating and running the inspector helpers."""

    install_dir: Path = field(default_factory=_default_install_dir)
    helper32_name: str = "Helper32.exe"
    helper64_name: str = "Helper64.exe"
    timeout: float | None = 30.0  # Seconds per inspector; None waits forever
    concurrent: bool = False
    poll_rate: float = 5.0
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "InventoryConfig":
        """
        Build a config from PROCVIEW_* environment variables.

        Args:
            environ: Mapping to read from. Defaults to os.environ.

        Raises:
            ConfigError: If a variable holds a value that cannot be used.
        """
        env = os.environ if environ is None else environ
        kwargs: dict[str, object] = {}

        install_dir = env.get(f"{ENV_PREFIX}INSTALL_DIR")
        if install_dir:
            kwargs["install_dir"] = Path(install_dir)

        timeout = env.get(f"{ENV_PREFIX}HELPER_TIMEOUT")
        if timeout:
            if timeout.lower() == "none":
                kwargs["timeout"] = None
            else:
                kwargs["timeout"] = _positive_float("HELPER_TIMEOUT", timeout)

        concurrent = env.get(f"{ENV_PREFIX}CONCURRENT")
        if concurrent:
            kwargs["concurrent"] = _flag("CONCURRENT", concurrent)

        poll_rate = env.get(f"{ENV_PREFIX}POLL_RATE")
        if poll_rate:
            kwargs["poll_rate"] = _positive_float("POLL_RATE", poll_rate)

        log_level = env.get(f"{ENV_PREFIX}LOG_LEVEL")
        if log_level:
            kwargs["log_level"] = log_level.upper()

        return cls(**kwargs)


def _positive_float(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ConfigError(f"{ENV_PREFIX}{name} must be positive, got {raw!r}")
    return value


def _flag(name: str, raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"{ENV_PREFIX}{name} must be a boolean, got {raw!r}")
