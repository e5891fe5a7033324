"""Schema: load a device's register mappings from YAML, validate once, and keep them immutable."""

import logging
from pathlib import Path
from typing import Any

import yaml

from .codec import TYPE_TAGS
from .errors import ConfigError
from .normalize import normalize_name
from .types import EnumOption, MappingEntry, RecurrenceKind, RecurringMappingEntry, Schema

logger = logging.getLogger(__name__)

# Highest day of month a statistic register block can be indexed by
_MAX_DAYS = 31


def _require_int(raw: dict[str, Any], key: str, where: str, default: int | None = None) -> int:
    value = raw.get(key, default)
    if value is None:
        raise ConfigError(f"{where}: missing {key!r}")
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{where}: {key!r} must be an integer, got {value!r}")
    return value


def _optional_float(raw: dict[str, Any], key: str, where: str) -> float | None:
    value = raw.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{where}: {key!r} must be a number, got {value!r}")
    return float(value)


def _require_str(raw: dict[str, Any], key: str, where: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{where}: {key!r} must be a non-empty string")
    return value


def _require_name(raw: dict[str, Any], where: str) -> str:
    name = _require_str(raw, "name", where)
    normalize_name(name)
    return name


def _scalar_text(value: Any) -> str:
    """Text form of a YAML scalar, matching the canonical text of decoded values."""
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


def _parse_recurrence(value: Any, where: str) -> RecurrenceKind | None:
    if value is None:
        return None
    try:
        return RecurrenceKind(value)
    except ValueError:
        allowed = ", ".join(k.value for k in RecurrenceKind)
        raise ConfigError(f"{where}: unknown statistic_type {value!r} (expected one of {allowed})") from None


def _parse_enum(value: Any, where: str) -> tuple[EnumOption, ...] | None:
    if value is None:
        return None
    if not isinstance(value, list) or not value:
        raise ConfigError(f"{where}: value_enum must be a non-empty list of {{key, value}} items")
    options: list[EnumOption] = []
    for item in value:
        if not isinstance(item, dict) or "key" not in item or "value" not in item:
            raise ConfigError(f"{where}: value_enum items need 'key' and 'value', got {item!r}")
        options.append(EnumOption(key=_scalar_text(item["key"]), label=_scalar_text(item["value"])))
    return tuple(options)


def _check_type_tag(type_tag: str, where: str) -> None:
    # Unknown tags are reported per entry at decode time; flag them early so typos are visible.
    if type_tag not in TYPE_TAGS:
        logger.warning("%s: data_type %r has no conversion; reads will be skipped", where, type_tag)


def _parse_mapping(raw: Any, index: int) -> MappingEntry:
    """Build a MappingEntry from a schema document item."""
    if not isinstance(raw, dict):
        raise ConfigError(f"mappings[{index}] must be a mapping, got {type(raw).__name__}")
    name = _require_name(raw, f"mappings[{index}]")
    where = f"mapping {name!r}"
    precision = _optional_float(raw, "precision", where)
    enum_table = _parse_enum(raw.get("value_enum"), where)
    if precision is not None and enum_table is not None:
        raise ConfigError(f"{where}: precision and value_enum are mutually exclusive")
    pointer = raw.get("statistic_pointer")
    if pointer is not None:
        pointer = _require_int(raw, "statistic_pointer", where)
        if not 1 <= pointer <= _MAX_DAYS:
            raise ConfigError(f"{where}: statistic_pointer must be a day of month, got {pointer}")
    type_tag = _require_str(raw, "data_type", where)
    _check_type_tag(type_tag, where)
    try:
        return MappingEntry(
            name=name,
            start_address=_require_int(raw, "register_address", where),
            type_tag=type_tag,
            word_count=_require_int(raw, "length", where, default=1),
            precision=precision,
            enum_table=enum_table,
            recurrence_kind=_parse_recurrence(raw.get("statistic_type"), where),
            recurrence_index=pointer,
        )
    except ValueError as e:
        raise ConfigError(f"{where}: {e}") from None


def _parse_statistic_mapping(raw: Any, index: int) -> RecurringMappingEntry:
    """Build a RecurringMappingEntry from a schema document item."""
    if not isinstance(raw, dict):
        raise ConfigError(f"statistic_mappings[{index}] must be a mapping, got {type(raw).__name__}")
    name = _require_name(raw, f"statistic_mappings[{index}]")
    where = f"statistic mapping {name!r}"
    if "value_enum" in raw:
        raise ConfigError(f"{where}: value_enum is not supported on statistic mappings")
    kind = _parse_recurrence(raw.get("statistic_type"), where)
    if kind is None:
        raise ConfigError(f"{where}: missing 'statistic_type'")
    base = _require_int(raw, "register_address", where)
    if base + _MAX_DAYS - 1 > 65_536:
        raise ConfigError(f"{where}: register block starting at {base} runs past address 65536")
    type_tag = _require_str(raw, "data_type", where)
    _check_type_tag(type_tag, where)
    try:
        return RecurringMappingEntry(
            name=name,
            base_address=base,
            type_tag=type_tag,
            recurrence_kind=kind,
            word_count=_require_int(raw, "length", where, default=1),
            precision=_optional_float(raw, "precision", where),
        )
    except ValueError as e:
        raise ConfigError(f"{where}: {e}") from None


def parse_schema(data: Any, source: str | None = None) -> Schema:
    """Validate a parsed schema document and return the immutable Schema."""
    try:
        if not isinstance(data, dict):
            raise ConfigError("schema document must be a mapping")
        slug = _require_str(data, "inverter_slug", "schema")
        normalize_name(slug)
        mappings = data.get("mappings")
        statistics = data.get("statistic_mappings")
        mappings = [] if mappings is None else mappings
        statistics = [] if statistics is None else statistics
        if not isinstance(mappings, list) or not isinstance(statistics, list):
            raise ConfigError("'mappings' and 'statistic_mappings' must be lists")
        schema = Schema(
            device_slug=slug,
            mappings=tuple(_parse_mapping(m, i) for i, m in enumerate(mappings)),
            statistic_mappings=tuple(_parse_statistic_mapping(m, i) for i, m in enumerate(statistics)),
        )
    except ConfigError as e:
        if source is not None and e.source is None:
            raise ConfigError(str(e), source=source) from None
        raise
    logger.debug(
        "Schema %s loaded: %d mappings, %d statistic mappings",
        slug,
        len(schema.mappings),
        len(schema.statistic_mappings),
    )
    return schema


def load_schema(path: str | Path) -> Schema:
    """Read and validate a YAML schema document. Raises ConfigError when it cannot be used."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigError("schema file not found", source=str(path)) from None
    except OSError as e:
        raise ConfigError(f"could not open schema file: {e}", source=str(path)) from e
    except yaml.YAMLError as e:
        raise ConfigError(f"could not parse YAML: {e}", source=str(path)) from e
    return parse_schema(data, source=str(path))
