"""
Merge the partial process lists of the 32-bit and 64-bit inspectors.

Each inspector only sees the full attribute set of processes matching its
own bitness, so every process is reported once per inspector. The passes
below reduce those reports to one record per process ID.
"""

from collections.abc import Iterable, Sequence

from procview.icons import IconResolver
from procview.log import get_logger
from procview.models import Inventory, ProcessRecord
from procview.parser import parse_output

logger = get_logger(__name__)

# "System Idle Process" and "System"
RESERVED_PIDS = frozenset({0, 4})


def parse_outputs(
    outputs: Iterable[str],
    *,
    icons: IconResolver,
    host_elevated: bool,
) -> list[ProcessRecord]:
    """Parse all inspector outputs, keeping inspector invocation order."""
    records: list[ProcessRecord] = []
    for text in outputs:
        records.extend(parse_output(text, icons=icons, host_elevated=host_elevated))
    return records


def discard_reserved(records: Iterable[ProcessRecord]) -> list[ProcessRecord]:
    return [record for record in records if record.pid not in RESERVED_PIDS]


def group_by_pid(records: Iterable[ProcessRecord]) -> dict[int, list[ProcessRecord]]:
    """Group records by process ID, in first-seen order."""
    groups: dict[int, list[ProcessRecord]] = {}
    for record in records:
        groups.setdefault(record.pid, []).append(record)
    return groups


def complete_groups(
    groups: dict[int, list[ProcessRecord]],
    expected: int,
) -> dict[int, list[ProcessRecord]]:
    """
    Keep only processes reported by every inspector.

    A process seen by just one of two inspectors either started or exited
    between the two runs, and its attributes cannot be trusted.
    """
    return {pid: group for pid, group in groups.items() if len(group) == expected}


def select_representative(group: Sequence[ProcessRecord]) -> ProcessRecord:
    """
    Pick the record that represents a process.

    An inspector of the wrong bitness cannot detect injection, so a record
    with injected/service/helper evidence wins. Ties go to the first record
    in inspector invocation order.
    """
    for record in group:
        if record.has_r77_evidence:
            return record
    return group[0]


def sort_inventory(records: Iterable[ProcessRecord]) -> Inventory:
    """Sort by upper-cased name (ordinal), then by process ID."""
    return tuple(sorted(records, key=lambda p: (p.name.upper(), p.pid)))


def correlate(
    outputs: Sequence[str],
    *,
    icons: IconResolver,
    host_elevated: bool,
    expected: int | None = None,
) -> Inventory:
    """
    Build the process inventory from the raw outputs of the inspectors.

    Args:
        outputs: Captured stdout of each inspector that ran successfully.
        icons: Resolver used to attach icons to records.
        host_elevated: Whether the host process runs elevated.
        expected: Number of helpers that were attempted; a process needs
            that many reports to survive. Defaults to the number of outputs.

    Raises:
        InspectorOutputError: If any output line is malformed.
    """
    if expected is None:
        expected = len(outputs)

    records = discard_reserved(parse_outputs(outputs, icons=icons, host_elevated=host_elevated))
    groups = group_by_pid(records)
    complete = complete_groups(groups, expected)
    inventory = sort_inventory(select_representative(group) for group in complete.values())

    logger.debug(
        "correlated",
        inspectors=len(outputs),
        records=len(records),
        groups=len(groups),
        survivors=len(inventory),
    )
    return inventory
