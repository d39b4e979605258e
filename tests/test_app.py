"""Tests for procview application."""

import pytest

from procview.app import (
    InventorySummary,
    ProcessTable,
    ProcviewApp,
    SortKey,
    format_bitness,
    format_flags,
)
from procview.config import InventoryConfig
from procview.errors import InspectorOutputError
from procview.models import UNKNOWN, Bitness, IntegrityLevel, ProcessRecord
from procview.monitor import InventorySnapshot

PROCESSES = (
    ProcessRecord(
        pid=200,
        name="chrome.exe",
        bitness=Bitness.X64,
        integrity_level=IntegrityLevel(0x1000),
        user="bob",
        is_injected=True,
        can_inject=True,
    ),
    ProcessRecord(
        pid=100,
        name="notepad.exe",
        bitness=Bitness.X86,
        integrity_level=IntegrityLevel(0x3000),
        user="alice",
    ),
    ProcessRecord(
        pid=300,
        name="wininit.exe",
        bitness=Bitness.UNKNOWN,
        integrity_level=UNKNOWN,
        user=None,
    ),
)


@pytest.fixture
def config(tmp_path) -> InventoryConfig:
    return InventoryConfig(install_dir=tmp_path, poll_rate=60.0)


def test_format_bitness():
    assert format_bitness(Bitness.X86) == "32-bit"
    assert format_bitness(Bitness.X64) == "64-bit"
    assert format_bitness(Bitness.UNKNOWN) == ""


def test_format_flags():
    assert format_flags(PROCESSES[0]) == "injected"
    assert format_flags(PROCESSES[1]) == ""
    record = ProcessRecord(
        pid=1,
        name="x",
        bitness=Bitness.X64,
        integrity_level=UNKNOWN,
        user=None,
        is_r77_service=True,
        is_helper=True,
        is_hidden_by_id=True,
    )
    assert format_flags(record) == "service,helper,hidden"


class TestSortKey:
    """Tests for SortKey enum."""

    def test_sort_key_members(self):
        assert list(SortKey) == [SortKey.NAME, SortKey.PID, SortKey.USER, SortKey.INTEGRITY]


@pytest.mark.asyncio
async def test_app_creation(config):
    """Test ProcviewApp can be instantiated."""
    app = ProcviewApp(config)
    assert app.title == "procview"
    assert app._monitor is not None
    assert app._monitor.poll_rate == 60.0


@pytest.mark.asyncio
async def test_app_compose(config):
    app = ProcviewApp(config)
    async with app.run_test() as pilot:
        assert pilot.app.query_one("#summary") is not None
        assert pilot.app.query_one("#process-table") is not None


@pytest.mark.asyncio
async def test_app_quit_binding(config):
    app = ProcviewApp(config)
    async with app.run_test() as pilot:
        await pilot.press("q")
        assert pilot.app._exit
        assert not app._monitor.is_running


@pytest.mark.asyncio
async def test_apply_snapshot_fills_table(config):
    app = ProcviewApp(config)
    async with app.run_test() as pilot:
        app.apply_snapshot(InventorySnapshot(processes=PROCESSES))
        await pilot.pause()

        table = pilot.app.query_one(ProcessTable)
        assert table._current_pids == {100, 200, 300}

        summary = pilot.app.query_one("#summary", InventorySummary)
        assert summary._total == 3
        assert summary._injected == 1
        assert summary._injectable == 1


@pytest.mark.asyncio
async def test_failed_snapshot_keeps_previous_inventory(config):
    app = ProcviewApp(config)
    async with app.run_test() as pilot:
        app.apply_snapshot(InventorySnapshot(processes=PROCESSES))
        app.apply_snapshot(InventorySnapshot(processes=(), error=InspectorOutputError("x", 1)))
        await pilot.pause()

        assert pilot.app.query_one(ProcessTable)._current_pids == {100, 200, 300}


@pytest.mark.asyncio
async def test_process_table_replaces_rows(config):
    app = ProcviewApp(config)
    async with app.run_test() as pilot:
        table = pilot.app.query_one(ProcessTable)
        table.update_processes(PROCESSES)
        table.update_processes(PROCESSES[1:])

        assert table._current_pids == {100, 300}
        assert pilot.app.query_one("#process-table").row_count == 2


@pytest.mark.asyncio
async def test_app_sort_binding(config):
    app = ProcviewApp(config)
    async with app.run_test() as pilot:
        table = pilot.app.query_one(ProcessTable)
        assert table.sort_key == SortKey.NAME

        await pilot.press("f6")
        assert table.sort_key == SortKey.PID


@pytest.mark.asyncio
async def test_process_table_sorting(config):
    app = ProcviewApp(config)
    async with app.run_test() as pilot:
        table = pilot.app.query_one(ProcessTable)

        assert [p.pid for p in table._sort_processes(PROCESSES)] == [200, 100, 300]
        table.cycle_sort()
        assert [p.pid for p in table._sort_processes(PROCESSES)] == [100, 200, 300]
        table.cycle_sort()
        assert [p.pid for p in table._sort_processes(PROCESSES)] == [300, 100, 200]
        table.cycle_sort()
        assert [p.pid for p in table._sort_processes(PROCESSES)] == [300, 200, 100]
        table.cycle_sort()
        assert table.sort_key == SortKey.NAME


@pytest.mark.asyncio
async def test_app_receives_empty_inventory_without_helpers(config):
    """No helpers in the install directory: the monitor still delivers an empty inventory."""
    app = ProcviewApp(config)
    async with app.run_test() as pilot:
        await pilot.pause(1.5)

        assert app._monitor.is_running
        summary = pilot.app.query_one("#summary", InventorySummary)
        assert summary._total == 0
        assert app._monitor.last_error is None
