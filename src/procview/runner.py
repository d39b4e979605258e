"""Invocation of the architecture-specific inspector helpers."""

import subprocess
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import psutil

from procview.config import InventoryConfig
from procview.log import get_logger

logger = get_logger(__name__)

LIST_ARGUMENT = "-list"


class InspectorRunner:
    """
    Runs the 32-bit and 64-bit inspector helpers and captures their output.

    A helper that is missing, fails to start or times out is skipped; the
    remaining helpers still run.
    """

    def __init__(self, config: InventoryConfig, is_64bit_os: bool) -> None:
        """
        Initialize the InspectorRunner.

        Args:
            config: Install directory, helper names and timeout.
            is_64bit_os: Whether the 64-bit helper should be attempted.
        """
        self._config = config
        self._is_64bit_os = is_64bit_os

    def helper_paths(self) -> list[Path]:
        """Helpers to attempt for the host, 32-bit first."""
        names = [self._config.helper32_name]
        if self._is_64bit_os:
            names.append(self._config.helper64_name)
        return [self._config.install_dir / name for name in names]

    def available_helpers(self) -> list[Path]:
        """Helpers that exist on disk."""
        available = []
        for path in self.helper_paths():
            if path.is_file():
                available.append(path)
            else:
                logger.debug("inspector_missing", path=str(path))
        return available

    def iter_outputs(self, helpers: list[Path] | None = None) -> Iterator[str]:
        """Lazily run each helper (default: the available ones) and yield its captured output."""
        if helpers is None:
            helpers = self.available_helpers()
        for path in helpers:
            output = self.run_helper(path)
            if output is not None:
                yield output

    def collect_outputs(self, helpers: list[Path] | None = None) -> list[str]:
        """
        Run the helpers and return their outputs in invocation order.

        Args:
            helpers: Helpers to attempt. Defaults to the available ones.

        With ``concurrent`` enabled the helpers run on a thread pool and are
        joined before returning.
        """
        if helpers is None:
            helpers = self.available_helpers()
        if not self._config.concurrent:
            return list(self.iter_outputs(helpers))

        if not helpers:
            return []
        with ThreadPoolExecutor(max_workers=len(helpers), thread_name_prefix="Inspector") as pool:
            results = list(pool.map(self.run_helper, helpers))
        return [output for output in results if output is not None]

    def run_helper(self, path: Path) -> str | None:
        """
        Run one helper with ``-list`` and return its stdout.

        Returns None if the helper could not be started or did not finish in time.
        """
        try:
            proc = psutil.Popen(
                [str(path), LIST_ARGUMENT],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                errors="replace",
            )
        except OSError as exc:
            logger.warning("inspector_launch_failed", path=str(path), error=str(exc))
            return None

        try:
            stdout, _ = proc.communicate(timeout=self._config.timeout)
        except subprocess.TimeoutExpired:
            logger.warning("inspector_timed_out", path=str(path), timeout=self._config.timeout)
            _kill_tree(proc)
            return None
        except (OSError, psutil.Error) as exc:
            logger.warning("inspector_read_failed", path=str(path), error=str(exc))
            _kill_tree(proc)
            return None

        if proc.returncode != 0:
            logger.info("inspector_exit_status", path=str(path), returncode=proc.returncode)
        return stdout


def _kill_tree(proc: psutil.Popen) -> None:
    """Kill a helper and anything it spawned, then reap it."""
    try:
        children = proc.children(recursive=True)
    except psutil.Error:
        children = []
    for child in children:
        try:
            child.kill()
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied:
            logger.warning("inspector_child_kill_denied", pid=child.pid)
    try:
        proc.kill()
    except psutil.NoSuchProcess:
        pass
    proc.communicate()
