"""Exceptions raised by procview."""


class ProcviewError(Exception):
    """Base class for procview errors."""


class InspectorOutputError(ProcviewError, ValueError):
    """An inspector printed a line that does not follow the 10-field layout."""

    def __init__(self, line: str, field_count: int) -> None:
        super().__init__(
            f"expected 10 '|'-separated fields, got {field_count}: {line!r}"
        )
        self.line = line
        self.field_count = field_count


class ConfigError(ProcviewError):
    """Invalid configuration value."""
