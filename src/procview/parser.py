"""Parsing of inspector output lines into process records."""

import re

from procview.errors import InspectorOutputError
from procview.icons import IconResolver
from procview.models import (
    UNKNOWN,
    Bitness,
    Integrity,
    IntegrityLevel,
    IntegrityTier,
    ProcessRecord,
)

FIELD_SEPARATOR = "|"
FIELD_COUNT = 10

# Only CR, LF and CRLF end a line; names may contain other separators such as \x0c or \u2028
LINE_BREAK = re.compile(r"\r\n|\r|\n")


def split_lines(text: str) -> list[str]:
    """Split inspector output into lines, dropping blank ones."""
    return [line for line in LINE_BREAK.split(text) if line.strip()]


def parse_bitness(tag: str) -> Bitness:
    """Map the "32"/"64" tag to a Bitness; anything else is unknown."""
    if tag == "32":
        return Bitness.X86
    if tag == "64":
        return Bitness.X64
    return Bitness.UNKNOWN


def parse_integrity(raw: str) -> Integrity:
    """Parse an integrity level RID; -1 or garbage means unknown."""
    try:
        value = int(raw)
    except ValueError:
        return UNKNOWN
    if value == -1:
        return UNKNOWN
    return IntegrityLevel(value)


def parse_flag(raw: str) -> bool:
    return raw == "1"


def parse_pid(raw: str) -> int:
    # Unparsable IDs become 0 and are dropped with the other reserved IDs
    try:
        return int(raw)
    except ValueError:
        return 0


def compute_can_inject(bitness: Bitness, integrity: Integrity, host_elevated: bool) -> bool:
    """
    Whether code can be injected into a process.

    Requires known bitness and integrity level, and either an elevated host
    or a target at Medium integrity or below.
    """
    match integrity:
        case IntegrityLevel() if bitness.is_known:
            return host_elevated or integrity <= IntegrityTier.MEDIUM
        case _:
            return False


def parse_line(line: str, *, icons: IconResolver, host_elevated: bool) -> ProcessRecord:
    """
    Parse one line of inspector output.

    Layout: pid|name|full path|bitness|integrity|user|injected|r77 service|helper|hidden by id

    Raises:
        InspectorOutputError: If the line does not have exactly 10 fields.
    """
    fields = line.split(FIELD_SEPARATOR)
    if len(fields) != FIELD_COUNT:
        raise InspectorOutputError(line, len(fields))

    pid, name, full_path, bitness_tag, integrity_raw, user, injected, service, helper, hidden = fields

    bitness = parse_bitness(bitness_tag)
    integrity = parse_integrity(integrity_raw)

    return ProcessRecord(
        pid=parse_pid(pid),
        name=name,
        bitness=bitness,
        integrity_level=integrity,
        user=user or None,
        icon=icons.resolve(name, full_path),
        is_injected=parse_flag(injected),
        is_r77_service=parse_flag(service),
        is_helper=parse_flag(helper),
        is_hidden_by_id=parse_flag(hidden),
        can_inject=compute_can_inject(bitness, integrity, host_elevated),
    )


def parse_output(text: str, *, icons: IconResolver, host_elevated: bool) -> list[ProcessRecord]:
    """Parse the complete output of one inspector."""
    return [
        parse_line(line, icons=icons, host_elevated=host_elevated)
        for line in split_lines(text)
    ]
