"""Tests for schema loading and validation."""

from pathlib import Path

import pytest

from solaris_modbus import load_schema, parse_schema
from solaris_modbus.errors import ConfigError
from solaris_modbus.types import EnumOption, MappingEntry, RecurrenceKind, RecurringMappingEntry

EXAMPLE_SCHEMA = Path(__file__).resolve().parent.parent / "examples" / "schema.yaml"


def test_parse_schema_mappings() -> None:
    schema = parse_schema(
        {
            "inverter_slug": "Solis S5",
            "mappings": [
                {"name": "AC Voltage", "register_address": 5, "data_type": "u16", "precision": 0.1},
                {
                    "name": "Status",
                    "register_address": 6,
                    "data_type": "u16",
                    "value_enum": [{"key": 0, "value": "Waiting"}, {"key": "3", "value": "Generating"}],
                },
            ],
        }
    )
    assert schema.device_slug == "Solis S5"
    assert schema.mappings[0] == MappingEntry("AC Voltage", 5, "u16", word_count=1, precision=0.1)
    assert schema.mappings[1].enum_table == (EnumOption("0", "Waiting"), EnumOption("3", "Generating"))
    assert schema.statistic_mappings == ()


def test_parse_schema_statistic_mappings() -> None:
    schema = parse_schema(
        {
            "inverter_slug": "dev",
            "statistic_mappings": [
                {
                    "name": "Energy Daily",
                    "register_address": 3100,
                    "length": 2,
                    "data_type": "u32",
                    "precision": 0.1,
                    "statistic_type": "Daily",
                }
            ],
        }
    )
    assert schema.statistic_mappings == (
        RecurringMappingEntry("Energy Daily", 3100, "u32", RecurrenceKind.DAILY, word_count=2, precision=0.1),
    )


def test_mapping_statistic_fields() -> None:
    schema = parse_schema(
        {
            "inverter_slug": "dev",
            "mappings": [
                {
                    "name": "Energy Day 3",
                    "register_address": 3102,
                    "data_type": "u16",
                    "statistic_type": "Daily",
                    "statistic_pointer": 3,
                }
            ],
        }
    )
    assert schema.mappings[0].recurrence_kind == RecurrenceKind.DAILY
    assert schema.mappings[0].recurrence_index == 3


def test_precision_and_enum_rejected() -> None:
    with pytest.raises(ConfigError, match="mutually exclusive"):
        parse_schema(
            {
                "inverter_slug": "dev",
                "mappings": [
                    {
                        "name": "Status",
                        "register_address": 1,
                        "data_type": "u16",
                        "precision": 0.1,
                        "value_enum": [{"key": "0", "value": "Off"}],
                    }
                ],
            }
        )


@pytest.mark.parametrize(
    "mapping",
    [
        {"register_address": 1, "data_type": "u16"},
        {"name": "x", "data_type": "u16"},
        {"name": "x", "register_address": 1},
        {"name": "x", "register_address": 0, "data_type": "u16"},
        {"name": "x", "register_address": "1", "data_type": "u16"},
        {"name": "x", "register_address": 1, "length": 0, "data_type": "u16"},
        {"name": "x", "register_address": 1, "data_type": "u16", "precision": "high"},
        {"name": "x", "register_address": 1, "data_type": "u16", "statistic_type": "Hourly"},
        {"name": "x", "register_address": 1, "data_type": "u16", "statistic_pointer": 32},
        {"name": "x", "register_address": 1, "data_type": "u16", "value_enum": []},
        {"name": "x", "register_address": 1, "data_type": "u16", "value_enum": [{"key": "0"}]},
        {"name": "!!", "register_address": 1, "data_type": "u16"},
    ],
)
def test_malformed_mapping_rejected(mapping: dict) -> None:
    with pytest.raises(ConfigError):
        parse_schema({"inverter_slug": "dev", "mappings": [mapping]})


@pytest.mark.parametrize(
    "statistic",
    [
        {"name": "x", "register_address": 1, "data_type": "u16"},
        {"name": "x", "register_address": 1, "data_type": "u16", "statistic_type": "Daily", "value_enum": []},
        {"name": "x", "register_address": 65530, "data_type": "u16", "statistic_type": "Daily"},
    ],
)
def test_malformed_statistic_mapping_rejected(statistic: dict) -> None:
    with pytest.raises(ConfigError):
        parse_schema({"inverter_slug": "dev", "statistic_mappings": [statistic]})


def test_monthly_statistic_is_accepted_at_load() -> None:
    schema = parse_schema(
        {
            "inverter_slug": "dev",
            "statistic_mappings": [
                {"name": "m", "register_address": 10, "data_type": "u32", "length": 2, "statistic_type": "Monthly"}
            ],
        }
    )
    assert schema.statistic_mappings[0].recurrence_kind == RecurrenceKind.MONTHLY


@pytest.mark.parametrize("document", [None, [], {"mappings": []}, {"inverter_slug": "dev", "mappings": {}}])
def test_malformed_document_rejected(document) -> None:
    with pytest.raises(ConfigError):
        parse_schema(document)


def test_unknown_type_tag_is_loaded() -> None:
    schema = parse_schema(
        {"inverter_slug": "dev", "mappings": [{"name": "x", "register_address": 1, "data_type": "float"}]}
    )
    assert schema.mappings[0].type_tag == "float"


def test_load_schema_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "schema.yaml"
    path.write_text(
        "inverter_slug: dev\n"
        "mappings:\n"
        "  - name: Voltage\n"
        "    register_address: 5\n"
        "    data_type: u16\n"
        "    precision: 0.1\n",
        encoding="utf-8",
    )
    schema = load_schema(path)
    assert schema.mappings == (MappingEntry("Voltage", 5, "u16", precision=0.1),)


def test_load_schema_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_schema(tmp_path / "missing.yaml")


def test_load_schema_invalid_yaml(tmp_path: Path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text("inverter_slug: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="could not parse YAML"):
        load_schema(path)


def test_load_schema_error_names_source(tmp_path: Path) -> None:
    path = tmp_path / "schema.yaml"
    path.write_text("inverter_slug: dev\nmappings:\n  - name: x\n", encoding="utf-8")
    with pytest.raises(ConfigError) as exc_info:
        load_schema(path)
    assert exc_info.value.source == str(path)


def test_example_schema_loads() -> None:
    schema = load_schema(EXAMPLE_SCHEMA)
    assert schema.device_slug == "Solis S5"
    assert len(schema.mappings) > 0
    assert schema.statistic_mappings[0].recurrence_kind == RecurrenceKind.DAILY
