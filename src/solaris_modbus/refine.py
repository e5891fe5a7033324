"""Apply a mapping entry's precision or enum table to a decoded value."""

import math

from .errors import NoEnumMatchError, UnsupportedForPrecisionError
from .types import Boolean, DecodedValue, EnumOption, Integer, MappingEntry, Real, Text


def apply_precision(value: DecodedValue, precision: float) -> Real:
    """
    Scale an Integer by precision and truncate toward zero at two decimals.
    Not re-entrant: scaling an already scaled value again is only stable for precision 1.
    """
    if not isinstance(value, Integer):
        raise UnsupportedForPrecisionError(value)
    return Real(math.trunc(float(value.value) * precision * 100) / 100)


def resolve_enum(value: DecodedValue, table: tuple[EnumOption, ...]) -> Text:
    """Look up the value's canonical text in the enum table; raise NoEnumMatchError on a miss."""
    if not isinstance(value, (Text, Integer, Real, Boolean)):
        raise TypeError(f"Unsupported decoded value: {value!r}")
    key = value.canonical_text()
    for option in table:
        if option.key == key:
            return Text(option.label)
    raise NoEnumMatchError(key)


def refine(value: DecodedValue, entry: MappingEntry) -> DecodedValue:
    """Apply at most one of precision scaling or enum resolution; otherwise return value unchanged."""
    if entry.precision is not None:
        return apply_precision(value, entry.precision)
    if entry.enum_table is not None:
        return resolve_enum(value, entry.enum_table)
    return value
