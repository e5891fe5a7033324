"""Run configuration: YAML file with config.yaml -> config.yaml.dist fallback and SOLARIS_* env overrides."""

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILES = ("config.yaml", "config.yaml.dist")


@dataclass(frozen=True)
class InverterSettings:
    """Modbus TCP endpoint of the device."""

    inverter_address: str
    inverter_port: int = 502
    tcp_connect_timeout: int = 5
    tcp_read_timeout: int = 5
    inverter_modbus_uid: int = 1


@dataclass(frozen=True)
class Influxdb2Settings:
    """InfluxDB 2 connection and target bucket."""

    uri: str
    org: str
    bucket: str
    token: str


@dataclass(frozen=True)
class SolarisSettings:
    """Collector loop settings; read_frequency is the wait between cycles in whole seconds."""

    read_frequency: int = 30


@dataclass(frozen=True)
class AppConfig:
    inverter: InverterSettings
    influxdb2: Influxdb2Settings
    solaris: SolarisSettings


# env var -> (section, key)
_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "SOLARIS_INVERTER_ADDRESS": ("inverter", "inverter_address"),
    "SOLARIS_INVERTER_PORT": ("inverter", "inverter_port"),
    "SOLARIS_INVERTER_TCP_READ_TIMEOUT": ("inverter", "tcp_read_timeout"),
    "SOLARIS_INVERTER_TCP_CONNECT_TIMEOUT": ("inverter", "tcp_connect_timeout"),
    "SOLARIS_INVERTER_MODBUS_UID": ("inverter", "inverter_modbus_uid"),
    "SOLARIS_INFLUXDB2_URI": ("influxdb2", "uri"),
    "SOLARIS_INFLUXDB2_ORG": ("influxdb2", "org"),
    "SOLARIS_INFLUXDB2_BUCKET": ("influxdb2", "bucket"),
    "SOLARIS_INFLUXDB2_TOKEN": ("influxdb2", "token"),
    "SOLARIS_READ_FREQUENCY": ("solaris", "read_frequency"),
}

_SECTIONS: dict[str, type] = {
    "inverter": InverterSettings,
    "influxdb2": Influxdb2Settings,
    "solaris": SolarisSettings,
}


def find_config_file(path: str | Path | None = None) -> Path:
    """Return the explicit path, else config.yaml, else config.yaml.dist (in the working directory)."""
    if path is not None:
        return Path(path)
    for name in DEFAULT_CONFIG_FILES:
        candidate = Path(name)
        if candidate.is_file():
            return candidate
    return Path(DEFAULT_CONFIG_FILES[-1])


def _build_section(name: str, raw: Any, source: str) -> Any:
    cls = _SECTIONS[name]
    if not isinstance(raw, dict):
        raise ConfigError(f"section {name!r} is missing or not a mapping", source=source)
    kwargs: dict[str, Any] = {}
    for f in fields(cls):
        if f.name not in raw:
            continue
        value = raw[f.name]
        expected = int if f.type in (int, "int") else str
        if expected is int and (isinstance(value, bool) or not isinstance(value, int)):
            raise ConfigError(f"{name}.{f.name} must be an integer, got {value!r}", source=source)
        if expected is str:
            value = str(value)
        kwargs[f.name] = value
    try:
        return cls(**kwargs)
    except TypeError as e:
        raise ConfigError(f"section {name!r} is incomplete: {e}", source=source) from None


def _parse_env_value(name: str, raw: str, current: Any) -> Any:
    """Parse an override to the type of the current value; keep the current value if it does not parse."""
    logger.debug("Found %s env with value %s", name, "***" if "TOKEN" in name else raw)
    if isinstance(current, int):
        try:
            return int(raw.strip())
        except ValueError:
            logger.warning("Ignoring %s=%r: not an integer", name, raw)
            return current
    return raw


def apply_env_overrides(config: AppConfig, environ: dict[str, str] | None = None) -> AppConfig:
    """Return config with SOLARIS_* environment variables applied."""
    env = os.environ if environ is None else environ
    for var, (section, key) in _ENV_OVERRIDES.items():
        if var not in env:
            continue
        current_section = getattr(config, section)
        value = _parse_env_value(var, env[var], getattr(current_section, key))
        config = replace(config, **{section: replace(current_section, **{key: value})})
    return config


def _validate(config: AppConfig, source: str) -> None:
    if config.solaris.read_frequency <= 0:
        raise ConfigError(
            f"solaris.read_frequency must be positive, got {config.solaris.read_frequency}", source=source
        )
    if not 0 < config.inverter.inverter_port <= 65535:
        raise ConfigError(f"inverter.inverter_port out of range: {config.inverter.inverter_port}", source=source)
    if not 0 <= config.inverter.inverter_modbus_uid <= 255:
        raise ConfigError(
            f"inverter.inverter_modbus_uid out of range: {config.inverter.inverter_modbus_uid}", source=source
        )


def parse_config(data: Any, source: str = "<config>", environ: dict[str, str] | None = None) -> AppConfig:
    """Build AppConfig from a parsed document, apply env overrides and validate."""
    if not isinstance(data, dict):
        raise ConfigError("configuration document must be a mapping", source=source)
    config = AppConfig(
        inverter=_build_section("inverter", data.get("inverter"), source),
        influxdb2=_build_section("influxdb2", data.get("influxdb2"), source),
        solaris=_build_section("solaris", data.get("solaris", {}), source),
    )
    config = apply_env_overrides(config, environ)
    _validate(config, source)
    logger.debug("final config from %s: %s", source, redacted(config))
    return config


def load_config(path: str | Path | None = None, environ: dict[str, str] | None = None) -> AppConfig:
    """Load the run configuration. Raises ConfigError when the file is missing or malformed."""
    config_file = find_config_file(path)
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigError("configuration file not found", source=str(config_file)) from None
    except OSError as e:
        raise ConfigError(f"could not open configuration file: {e}", source=str(config_file)) from e
    except yaml.YAMLError as e:
        raise ConfigError(f"could not parse YAML: {e}", source=str(config_file)) from e
    return parse_config(data, source=str(config_file), environ=environ)


def redacted(config: AppConfig) -> dict[str, dict[str, Any]]:
    """Config as nested dicts with the InfluxDB token masked, for logging and display."""
    out: dict[str, dict[str, Any]] = {}
    for name in _SECTIONS:
        section = getattr(config, name)
        out[name] = {f.name: getattr(section, f.name) for f in fields(section)}
    out["influxdb2"]["token"] = "***"
    return out
