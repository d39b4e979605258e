"""Icon lookup and caching for process executables."""

import ctypes
import os
import platform
import threading
from collections.abc import Callable
from pathlib import Path

from procview.log import get_logger
from procview.models import Icon

logger = get_logger(__name__)

IconLoader = Callable[[str], Icon | None]

PLACEHOLDER_ICON = Icon(source="<default>")


def load_file_icon(path: str) -> Icon | None:
    """
    Load the icon of an executable file.

    On Windows the first icon resource is extracted with ExtractIconW.
    Elsewhere any readable regular file yields a path-backed icon.
    Returns None if no icon could be loaded.
    """
    if platform.system() == "Windows":
        try:
            handle = ctypes.windll.shell32.ExtractIconW(0, path, 0)
        except (AttributeError, OSError):
            return None
        # ExtractIconW returns 1 for "not an executable file"
        if not handle or handle == 1:
            return None
        return Icon(source=path, handle=handle)

    if os.path.isfile(path) and os.access(path, os.R_OK):
        return Icon(source=path)
    return None


class IconCache:
    """
    Process-wide mapping from executable path to its loaded icon.

    Keys are compared case-insensitively. Entries are never evicted.
    Safe to share between threads: concurrent misses on the same path may
    load the icon twice, the last load wins.
    """

    def __init__(self) -> None:
        self._icons: dict[str, Icon] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._icons)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, str):
            return False
        with self._lock:
            return path.lower() in self._icons

    def get(self, path: str) -> Icon | None:
        """Return the cached icon for a path, if any."""
        with self._lock:
            return self._icons.get(path.lower())

    def get_or_load(self, path: str, loader: IconLoader) -> Icon | None:
        """
        Return the cached icon for a path, loading and caching it on a miss.

        Failed loads (loader returns None) are not cached.
        """
        key = path.lower()
        with self._lock:
            cached = self._icons.get(key)
        if cached is not None:
            return cached

        icon = loader(path)
        if icon is None:
            return None

        with self._lock:
            self._icons[key] = icon
        return icon


class IconResolver:
    """Resolve the icon to display for a process record."""

    def __init__(
        self,
        cache: IconCache,
        system_dir: Path,
        windows_dir: Path,
        loader: IconLoader = load_file_icon,
        default_icon: Icon | None = None,
    ) -> None:
        """
        Initialize the IconResolver.

        Args:
            cache: Shared icon cache.
            system_dir: Directory searched first for executables without a path.
            windows_dir: Directory searched second.
            loader: Function loading an icon from a file path.
            default_icon: Icon used when nothing else is found. Defaults to the
                icon of svchost.exe in the system directory.
        """
        self._cache = cache
        self._search_dirs = (system_dir, windows_dir)
        self._loader = loader
        self._default_icon = default_icon

    @property
    def default_icon(self) -> Icon:
        """The fallback icon, loaded on first use."""
        if self._default_icon is None:
            svchost = str(self._search_dirs[0] / "svchost.exe")
            self._default_icon = self._loader(svchost) or PLACEHOLDER_ICON
        return self._default_icon

    def find_executable(self, file_name: str) -> str | None:
        """Look for a file in the system directory, then the Windows directory."""
        for directory in self._search_dirs:
            candidate = directory / file_name
            if candidate.is_file():
                return str(candidate)
        return None

    def resolve(self, file_name: str, full_path: str) -> Icon:
        """
        Get the icon for an executable.

        Args:
            file_name: Executable file name, used when the full path is unknown.
            full_path: Absolute path of the executable, or "" if unknown.
        """
        path = full_path or (self.find_executable(file_name) if file_name else None)
        if not path:
            return self.default_icon

        icon = self._cache.get_or_load(path, self._loader)
        if icon is None:
            logger.debug("icon_load_failed", path=path)
            return self.default_icon
        return icon
