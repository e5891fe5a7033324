"""Core data model: decoded values, recurrence kinds, mapping entries, schema and output records."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class RecurrenceKind(str, Enum):
    """Period after which a statistic register resets on the device."""

    DAILY = "Daily"
    MONTHLY = "Monthly"


@dataclass(frozen=True)
class Text:
    value: str

    def canonical_text(self) -> str:
        return self.value


@dataclass(frozen=True)
class Integer:
    value: int

    def canonical_text(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Real:
    value: float

    def canonical_text(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Boolean:
    value: bool

    def canonical_text(self) -> str:
        return str(self.value).lower()


# Closed set of decoded values; every consumer handles all four variants.
DecodedValue = Text | Integer | Real | Boolean


@dataclass(frozen=True)
class EnumOption:
    """One key -> label pair of an enum table."""

    key: str
    label: str


@dataclass(frozen=True)
class MappingEntry:
    """
    How to read and decode one value. start_address is 1-based as authored in the schema.
    Entries produced by statistic expansion carry recurrence_kind and recurrence_index (day of month).
    """

    name: str
    start_address: int
    type_tag: str
    word_count: int = 1
    precision: float | None = None
    enum_table: tuple[EnumOption, ...] | None = None
    recurrence_kind: RecurrenceKind | None = None
    recurrence_index: int | None = None

    def __post_init__(self) -> None:
        if not 1 <= self.start_address <= 65_536:
            raise ValueError(f"start_address must be in 1..65536, got {self.start_address}")
        if self.word_count < 1:
            raise ValueError(f"word_count must be >= 1, got {self.word_count}")
        if self.precision is not None and self.enum_table is not None:
            raise ValueError(f"{self.name!r}: precision and value_enum are mutually exclusive")


@dataclass(frozen=True)
class RecurringMappingEntry:
    """A counter that resets every period; expanded into one MappingEntry per elapsed period."""

    name: str
    base_address: int
    type_tag: str
    recurrence_kind: RecurrenceKind
    word_count: int = 1
    precision: float | None = None

    def __post_init__(self) -> None:
        if not 1 <= self.base_address <= 65_536:
            raise ValueError(f"base_address must be in 1..65536, got {self.base_address}")
        if self.word_count < 1:
            raise ValueError(f"word_count must be >= 1, got {self.word_count}")


@dataclass(frozen=True)
class Schema:
    """Immutable register schema for one device."""

    device_slug: str
    mappings: tuple[MappingEntry, ...] = ()
    statistic_mappings: tuple[RecurringMappingEntry, ...] = ()


@dataclass(frozen=True)
class OutputRecord:
    """One point for the time-series sink. timestamp None means the sink assigns 'now'."""

    measurement_name: str
    tags: dict[str, str]
    field_name: str
    field_value: DecodedValue
    timestamp: datetime | None = None


@dataclass(frozen=True)
class EntryFailure:
    """A per-entry failure recorded during a cycle."""

    entry: MappingEntry
    error: Exception


@dataclass
class CycleReport:
    """Outcome of one poll cycle."""

    records: list[OutputRecord] = field(default_factory=list)
    failures: list[EntryFailure] = field(default_factory=list)
    skipped: list[MappingEntry] = field(default_factory=list)
    sink_error: Exception | None = None
