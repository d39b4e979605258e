"""procview - Main Textual application."""

from enum import Enum
from queue import Empty, Queue

from textual.app import App, ComposeResult
from textual.containers import Container
from textual.widgets import DataTable, Footer, Static

from procview.config import InventoryConfig
from procview.errors import ConfigError
from procview.inventory import get_processes
from procview.log import configure_logging
from procview.models import Bitness, IntegrityLevel, Inventory, ProcessRecord
from procview.monitor import InventoryMonitor, InventorySnapshot


class SortKey(Enum):
    """Sort keys for the process table."""

    NAME = "name"
    PID = "pid"
    USER = "user"
    INTEGRITY = "integrity"


def format_bitness(bitness: Bitness) -> str:
    return {Bitness.X86: "32-bit", Bitness.X64: "64-bit"}.get(bitness, "")


def format_flags(proc: ProcessRecord) -> str:
    """Short markers for the r77 attributes of a process."""
    flags = []
    if proc.is_injected:
        flags.append("injected")
    if proc.is_r77_service:
        flags.append("service")
    if proc.is_helper:
        flags.append("helper")
    if proc.is_hidden_by_id:
        flags.append("hidden")
    return ",".join(flags)


class InventorySummary(Static):
    """Header widget showing inventory counts."""

    DEFAULT_CSS = """
    InventorySummary {
        height: auto;
        padding: 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize InventorySummary."""
        super().__init__("Loading processes...", *args, **kwargs)
        self._total: int = 0
        self._injected: int = 0
        self._injectable: int = 0

    def update_summary(self, processes: Inventory) -> None:
        """Update the counts from an inventory."""
        self._total = len(processes)
        self._injected = sum(1 for proc in processes if proc.is_injected)
        self._injectable = sum(1 for proc in processes if proc.can_inject)
        self.update(
            f"Processes: {self._total}   "
            f"Injected: {self._injected}   "
            f"Injectable: {self._injectable}"
        )


class ProcessTable(Container):
    """Container for the process data table."""

    DEFAULT_CSS = """
    ProcessTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize ProcessTable."""
        super().__init__(*args, **kwargs)
        self._current_pids: set[int] = set()
        self._sort_key: SortKey = SortKey.NAME

    @property
    def sort_key(self) -> SortKey:
        """Get current sort key."""
        return self._sort_key

    def cycle_sort(self) -> SortKey:
        """Cycle to the next sort key and return it."""
        keys = list(SortKey)
        current_index = keys.index(self._sort_key)
        self._sort_key = keys[(current_index + 1) % len(keys)]
        return self._sort_key

    def compose(self) -> ComposeResult:
        """Compose the process table."""
        yield DataTable(id="process-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#process-table", DataTable)
        table.cursor_type = "row"

        table.add_column("Name", key="name")
        table.add_column("PID", key="pid", width=8)
        table.add_column("Arch", key="bitness", width=7)
        table.add_column("Integrity", key="integrity", width=18)
        table.add_column("User", key="user", width=24)
        table.add_column("Inject", key="inject", width=6)
        table.add_column("Flags", key="flags")

    def update_processes(self, processes: Inventory) -> None:
        """Replace the table contents with a new inventory."""
        table = self.query_one("#process-table", DataTable)
        table.clear()
        for proc in self._sort_processes(processes):
            table.add_row(*self._row(proc), key=str(proc.pid))
        self._current_pids = {proc.pid for proc in processes}

    def _sort_processes(self, processes: Inventory) -> list[ProcessRecord]:
        """Sort processes based on the current sort key."""
        if self._sort_key is SortKey.NAME:
            return list(processes)  # Inventory order
        key_func = {
            SortKey.PID: lambda p: p.pid,
            SortKey.USER: lambda p: ((p.user or "").lower(), p.pid),
            SortKey.INTEGRITY: lambda p: (
                p.integrity_level.value if isinstance(p.integrity_level, IntegrityLevel) else -1,
                p.pid,
            ),
        }
        return sorted(processes, key=key_func[self._sort_key])

    @staticmethod
    def _row(proc: ProcessRecord) -> tuple[str, ...]:
        integrity = proc.integrity_level
        return (
            proc.name,
            str(proc.pid),
            format_bitness(proc.bitness),
            str(integrity) if isinstance(integrity, IntegrityLevel) else "",
            proc.user or "",
            "yes" if proc.can_inject else "",
            format_flags(proc),
        )


class ProcviewApp(App):
    """Main procview application."""

    TITLE = "procview"
    SUB_TITLE = "r77 Process Inventory"

    CSS = """
    Screen {
        layout: vertical;
    }

    #summary {
        dock: top;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("f5", "refresh", "Refresh"),
        ("f6", "sort", "Sort"),
    ]

    def __init__(self, config: InventoryConfig | None = None) -> None:
        """Initialize the ProcviewApp."""
        super().__init__()
        self._inventory_config = config or InventoryConfig()
        self._processes: Inventory = ()
        self._update_queue: Queue[InventorySnapshot] = Queue()
        self._monitor = InventoryMonitor(
            self._update_queue,
            poll_rate=self._inventory_config.poll_rate,
            collect=lambda: get_processes(self._inventory_config),
        )

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield InventorySummary(id="summary")
        yield ProcessTable()
        yield Footer()

    def on_mount(self) -> None:
        """Start the inventory monitor when the app is mounted."""
        self._monitor.start()
        self.set_interval(0.5, self._check_for_updates)

    def _check_for_updates(self) -> None:
        """Check the queue for new inventories and refresh the UI."""
        snapshot = None
        while True:
            try:
                snapshot = self._update_queue.get_nowait()
            except Empty:
                break

        if snapshot is not None:
            self.apply_snapshot(snapshot)

    def apply_snapshot(self, snapshot: InventorySnapshot) -> None:
        """Show a snapshot; a failed refresh keeps the previous inventory."""
        if snapshot.error is not None:
            self.notify(str(snapshot.error), title="Refresh failed", severity="error")
            return

        self._processes = snapshot.processes
        self.query_one("#summary", InventorySummary).update_summary(snapshot.processes)
        self.query_one(ProcessTable).update_processes(snapshot.processes)

    def action_refresh(self) -> None:
        """Handle refresh action - rebuild the inventory now."""
        self._monitor.refresh()

    def action_sort(self) -> None:
        """Handle sort action - cycle through sort keys."""
        process_table = self.query_one(ProcessTable)
        new_sort_key = process_table.cycle_sort()
        process_table.update_processes(self._processes)
        self.notify(f"Sort: {new_sort_key.value.upper()}")

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        self._monitor.stop()
        self.exit()


def main() -> None:
    """Entry point for procview application."""
    try:
        config = InventoryConfig.from_env()
    except ConfigError as exc:
        raise SystemExit(f"procview: {exc}") from None
    configure_logging(config.log_level)
    app = ProcviewApp(config)
    app.run()


if __name__ == "__main__":
    main()
