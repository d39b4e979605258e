"""Data models for procview."""

from dataclasses import dataclass, field
from enum import Enum, IntEnum


class Unknown(Enum):
    """Marker for a value the inspector could not determine."""

    UNKNOWN = "unknown"

    def __repr__(self) -> str:
        return "UNKNOWN"


UNKNOWN = Unknown.UNKNOWN


class Bitness(Enum):
    """Architecture of a process as reported by an inspector."""

    X86 = "32"
    X64 = "64"
    UNKNOWN = "?"

    @property
    def is_known(self) -> bool:
        return self is not Bitness.UNKNOWN


class IntegrityTier(IntEnum):
    """Windows mandatory integrity levels (label RIDs)."""

    UNTRUSTED = 0x0000
    LOW = 0x1000
    MEDIUM = 0x2000
    MEDIUM_PLUS = 0x2100
    HIGH = 0x3000
    SYSTEM = 0x4000
    PROTECTED = 0x5000


@dataclass(slots=True, frozen=True)
class IntegrityLevel:
    """A known integrity level, keeping the raw value reported by the inspector."""

    value: int

    @property
    def tier(self) -> IntegrityTier:
        """The highest tier that does not exceed the raw value."""
        tier = IntegrityTier.UNTRUSTED
        for candidate in IntegrityTier:
            if candidate <= self.value:
                tier = candidate
        return tier

    def __lt__(self, other: object) -> bool:
        if isinstance(other, IntegrityLevel):
            return self.value < other.value
        if isinstance(other, int):
            return self.value < other
        return NotImplemented

    def __le__(self, other: object) -> bool:
        if isinstance(other, IntegrityLevel):
            return self.value <= other.value
        if isinstance(other, int):
            return self.value <= other
        return NotImplemented

    def __str__(self) -> str:
        try:
            return IntegrityTier(self.value).name.replace("_", " ").title()
        except ValueError:
            return f"{self.tier.name.title()} (0x{self.value:04X})"


Integrity = IntegrityLevel | Unknown


@dataclass(slots=True, frozen=True)
class Icon:
    """Handle to an icon loaded from an executable file."""

    source: str
    handle: int | None = None


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Immutable attributes of one process as seen by one inspector."""

    pid: int
    name: str
    bitness: Bitness
    integrity_level: Integrity
    user: str | None
    icon: Icon | None = field(default=None, compare=False, repr=False)
    is_injected: bool = False
    is_r77_service: bool = False
    is_helper: bool = False
    is_hidden_by_id: bool = False
    can_inject: bool = False

    @property
    def has_r77_evidence(self) -> bool:
        """Whether the inspector saw this process injected, as the service, or as a helper."""
        return self.is_injected or self.is_r77_service or self.is_helper


Inventory = tuple[ProcessRecord, ...]
