"""pysolaris-modbus: poll Modbus input registers, decode them by schema, and write points to InfluxDB 2."""

__version__ = "0.1.0"

from .client import SolarisModbusClient
from .codec import decode
from .errors import (
    ConfigError,
    DecodeError,
    NoEnumMatchError,
    RefineError,
    SinkError,
    SolarisModbusError,
    TransportError,
    UnimplementedRecurrenceError,
    UnknownTypeError,
    UnsupportedForPrecisionError,
    WrongWordCountError,
)
from .normalize import normalize_name
from .orchestrator import CycleOrchestrator
from .refine import refine
from .schema import load_schema, parse_schema
from .statistics import expand
from .types import (
    Boolean,
    CycleReport,
    DecodedValue,
    EnumOption,
    Integer,
    MappingEntry,
    OutputRecord,
    Real,
    RecurrenceKind,
    RecurringMappingEntry,
    Schema,
    Text,
)

__all__ = [
    "__version__",
    "SolarisModbusClient",
    "CycleOrchestrator",
    "decode",
    "refine",
    "expand",
    "normalize_name",
    "load_schema",
    "parse_schema",
    "ConfigError",
    "DecodeError",
    "NoEnumMatchError",
    "RefineError",
    "SinkError",
    "SolarisModbusError",
    "TransportError",
    "UnimplementedRecurrenceError",
    "UnknownTypeError",
    "UnsupportedForPrecisionError",
    "WrongWordCountError",
    "Boolean",
    "CycleReport",
    "DecodedValue",
    "EnumOption",
    "Integer",
    "MappingEntry",
    "OutputRecord",
    "Real",
    "RecurrenceKind",
    "RecurringMappingEntry",
    "Schema",
    "Text",
]
