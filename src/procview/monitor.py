"""Background refresh of the process inventory."""

import threading
from collections.abc import Callable
from dataclasses import dataclass
from queue import Queue

from procview.errors import ProcviewError
from procview.inventory import get_processes
from procview.log import get_logger
from procview.models import Inventory

logger = get_logger(__name__)


@dataclass(slots=True)
class InventorySnapshot:
    """Result of one inventory refresh."""

    processes: Inventory
    error: ProcviewError | None = None


class InventoryMonitor:
    """
    Rebuilds the process inventory periodically.

    Runs in a separate daemon thread and pushes snapshots to a thread-safe Queue.
    A failed refresh is logged and pushed as a snapshot carrying the error;
    polling continues.
    """

    def __init__(
        self,
        update_queue: Queue[InventorySnapshot],
        poll_rate: float = 5.0,
        collect: Callable[[], Inventory] = get_processes,
    ) -> None:
        """
        Initialize the InventoryMonitor.

        Args:
            update_queue: Thread-safe queue to push snapshots to.
            poll_rate: How often to refresh (in seconds). Default 5.0s.
            collect: Function producing the inventory.
        """
        self._queue = update_queue
        self._poll_rate = poll_rate
        self._collect = collect
        self._stop_event = threading.Event()
        self._refresh_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.last_error: ProcviewError | None = None

    @property
    def poll_rate(self) -> float:
        """Get the current poll rate."""
        return self._poll_rate

    @poll_rate.setter
    def poll_rate(self, value: float) -> None:
        """Set the poll rate."""
        self._poll_rate = max(0.5, value)  # Each refresh spawns the helpers

    @property
    def is_running(self) -> bool:
        """Check if the monitor thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the monitoring thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop,
            daemon=True,
            name="InventoryMonitor",
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the monitoring thread.

        Args:
            timeout: How long to wait for thread to stop (seconds).
        """
        self._stop_event.set()
        self._refresh_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def refresh(self) -> None:
        """Request an immediate refresh instead of waiting for the next poll."""
        self._refresh_event.set()

    def collect_snapshot(self) -> InventorySnapshot:
        """Build one snapshot, capturing a procview error instead of raising it."""
        try:
            processes = self._collect()
        except ProcviewError as exc:
            logger.error("inventory_refresh_failed", error=str(exc))
            self.last_error = exc
            return InventorySnapshot(processes=(), error=exc)
        self.last_error = None
        return InventorySnapshot(processes=processes)

    def _poll_loop(self) -> None:
        """Main polling loop running in the background thread."""
        while not self._stop_event.is_set():
            try:
                self._queue.put(self.collect_snapshot())
            except Exception:
                # Keep the loop running, e.g. when host detection fails
                logger.exception("inventory_refresh_crashed")

            # Wait for poll_rate seconds, a refresh request or a stop request
            self._refresh_event.wait(timeout=self._poll_rate)
            self._refresh_event.clear()
