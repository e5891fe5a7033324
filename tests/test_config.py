"""Tests for run configuration loading, file fallback and environment overrides."""

from pathlib import Path

import pytest

from solaris_modbus.config import AppConfig, find_config_file, load_config, parse_config, redacted
from solaris_modbus.errors import ConfigError

EXAMPLE_CONFIG = Path(__file__).resolve().parent.parent / "examples" / "config.yaml.dist"

CONFIG_YAML = """\
inverter:
  inverter_address: 10.0.0.5
  inverter_port: 5020
  tcp_connect_timeout: 2
  tcp_read_timeout: 3
  inverter_modbus_uid: 7
influxdb2:
  uri: http://influx:8086
  org: home
  bucket: solar
  token: secret
solaris:
  read_frequency: 15
"""


@pytest.fixture
def document() -> dict:
    return {
        "inverter": {"inverter_address": "10.0.0.5"},
        "influxdb2": {"uri": "http://influx:8086", "org": "home", "bucket": "solar", "token": "secret"},
        "solaris": {"read_frequency": 15},
    }


def test_load_config_from_path(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")
    config = load_config(path, environ={})
    assert isinstance(config, AppConfig)
    assert config.inverter.inverter_address == "10.0.0.5"
    assert config.inverter.inverter_port == 5020
    assert config.inverter.tcp_connect_timeout == 2
    assert config.inverter.tcp_read_timeout == 3
    assert config.inverter.inverter_modbus_uid == 7
    assert config.influxdb2.bucket == "solar"
    assert config.solaris.read_frequency == 15


def test_defaults_for_optional_keys(document: dict) -> None:
    config = parse_config(document, environ={})
    assert config.inverter.inverter_port == 502
    assert config.inverter.inverter_modbus_uid == 1


def test_env_overrides(document: dict) -> None:
    config = parse_config(
        document,
        environ={
            "SOLARIS_INVERTER_ADDRESS": "10.0.0.9",
            "SOLARIS_INVERTER_PORT": "1502",
            "SOLARIS_INFLUXDB2_TOKEN": "from-env",
            "SOLARIS_READ_FREQUENCY": "60",
        },
    )
    assert config.inverter.inverter_address == "10.0.0.9"
    assert config.inverter.inverter_port == 1502
    assert config.influxdb2.token == "from-env"
    assert config.solaris.read_frequency == 60


def test_unparsable_env_override_keeps_file_value(document: dict) -> None:
    config = parse_config(document, environ={"SOLARIS_READ_FREQUENCY": "often"})
    assert config.solaris.read_frequency == 15


def test_env_overrides_from_process_environment(document: dict, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SOLARIS_INFLUXDB2_BUCKET", "other")
    config = parse_config(document)
    assert config.influxdb2.bucket == "other"


@pytest.mark.parametrize(
    ("section", "key", "value"),
    [
        ("solaris", "read_frequency", 0),
        ("solaris", "read_frequency", "30"),
        ("inverter", "inverter_port", 70000),
        ("inverter", "inverter_modbus_uid", 300),
        ("inverter", "tcp_read_timeout", True),
    ],
)
def test_invalid_values_rejected(document: dict, section: str, key: str, value) -> None:
    document[section][key] = value
    with pytest.raises(ConfigError):
        parse_config(document, environ={})


def test_missing_section_rejected(document: dict) -> None:
    del document["influxdb2"]
    with pytest.raises(ConfigError, match="influxdb2"):
        parse_config(document, environ={})


def test_incomplete_section_rejected(document: dict) -> None:
    del document["influxdb2"]["token"]
    with pytest.raises(ConfigError, match="incomplete"):
        parse_config(document, environ={})


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "nope.yaml", environ={})


def test_find_config_file_prefers_config_yaml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config.yaml.dist").write_text(CONFIG_YAML, encoding="utf-8")
    assert find_config_file() == Path("config.yaml.dist")
    (tmp_path / "config.yaml").write_text(CONFIG_YAML, encoding="utf-8")
    assert find_config_file() == Path("config.yaml")
    assert find_config_file(tmp_path / "x.yaml") == tmp_path / "x.yaml"


def test_redacted_masks_token(document: dict) -> None:
    out = redacted(parse_config(document, environ={}))
    assert out["influxdb2"]["token"] == "***"
    assert out["inverter"]["inverter_address"] == "10.0.0.5"


def test_example_config_loads() -> None:
    config = load_config(EXAMPLE_CONFIG, environ={})
    assert config.solaris.read_frequency > 0
