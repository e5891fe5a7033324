#!/usr/bin/env python3
"""Command-line interface for pysolaris-modbus using Typer."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer
from typing_extensions import Annotated

from . import __version__  # type: ignore
from .client import SolarisModbusClient, open_client
from .codec import TYPE_TAGS, decode
from .config import load_config
from .errors import (
    ConfigError,
    DecodeError,
    RefineError,
    TransportError,
    UnimplementedRecurrenceError,
)
from .orchestrator import CycleOrchestrator, local_now
from .refine import refine
from .schema import load_schema
from .sink import InfluxSink, field_value
from .statistics import expand, historical_timestamp, seconds_until_midnight
from .types import DecodedValue, MappingEntry

app = typer.Typer(
    name="solaris",
    help="Poll Modbus input registers, decode them by schema and write them to InfluxDB 2.",
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Shared options and helpers
# ============================================================================

SchemaArgument = Annotated[
    Path,
    typer.Argument(help="YAML schema describing the device's registers"),
]
ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help="Run configuration (default: config.yaml, then config.yaml.dist)",
        envvar="SOLARIS_CONFIG",
    ),
]
HostOption = Annotated[
    Optional[str],
    typer.Option("--host", "-h", help="Device hostname or IP address", envvar="SOLARIS_INVERTER_ADDRESS"),
]
PortOption = Annotated[
    int,
    typer.Option("--port", "-p", help="Modbus TCP port", envvar="SOLARIS_INVERTER_PORT"),
]
UnitIdOption = Annotated[
    int,
    typer.Option("--unit-id", "-u", help="Modbus unit ID", envvar="SOLARIS_INVERTER_MODBUS_UID"),
]
TimeoutOption = Annotated[
    float,
    typer.Option("--timeout", "-t", help="Connect and read timeout in seconds", envvar="SOLARIS_INVERTER_TCP_READ_TIMEOUT"),
]
TypeOption = Annotated[
    str,
    typer.Option("--type", help=f"Data type: {', '.join(sorted(TYPE_TAGS))}"),
]
PrecisionOption = Annotated[
    Optional[float],
    typer.Option("--precision", help="Scale integer values by this factor (two decimals, truncated)"),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable debug logging"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Output as JSON"),
]


def setup_logging(verbose: bool, level: int = logging.WARNING) -> None:
    """Configure logging based on verbose flag."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def parse_word(value: str) -> int:
    """Parse a register word from decimal or 0x hex text, validating the 16-bit range."""
    v = value.strip()
    if v.lower().startswith("0x"):
        num = int(v, 16)
    else:
        num = int(v)
    if not (0 <= num <= 65535):
        raise ValueError(f"Register word out of range 0..65535: {num}")
    return num


def decode_and_refine(words: list[int], type_tag: str, precision: Optional[float]) -> DecodedValue:
    """Decode words and apply an optional precision, as a schema entry would."""
    value = decode(words, type_tag)
    if precision is None:
        return value
    entry = MappingEntry(
        name="value", start_address=1, type_tag=type_tag, word_count=max(len(words), 1), precision=precision
    )
    return refine(value, entry)


def _fail(message: str, code: int) -> typer.Exit:
    typer.echo(f"Error: {message}", err=True)
    return typer.Exit(code)


# ============================================================================
# Commands
# ============================================================================


@app.command()
def run(
    schema: SchemaArgument,
    config: ConfigOption = None,
    once: Annotated[bool, typer.Option("--once", help="Run a single cycle and exit")] = False,
    verbose: VerboseOption = False,
) -> None:
    """
    Run the collector: every read_frequency seconds read all schema registers and write them to InfluxDB.

    Per-register failures are logged and skipped; the loop runs until interrupted.
    Use --once to run a single cycle (exit code 3 if the InfluxDB write failed).
    """
    setup_logging(verbose, level=logging.INFO)

    try:
        device_schema = load_schema(schema)
        app_config = load_config(config)
        inverter = app_config.inverter
        influx = app_config.influxdb2

        with InfluxSink(uri=influx.uri, org=influx.org, token=influx.token, bucket=influx.bucket) as sink:
            orchestrator = CycleOrchestrator(
                device_schema,
                open_reader=lambda: open_client(inverter),
                sink=sink,
                device_address=inverter.inverter_address,
                interval_s=app_config.solaris.read_frequency,
            )
            if once:
                report = orchestrator.run_cycle()
            else:
                orchestrator.run_forever()
                return

        typer.echo(
            f"OK: {len(report.records)} record(s), {len(report.failures)} failure(s), "
            f"{len(report.skipped)} skipped"
        )
        if report.sink_error is not None:
            raise _fail(f"InfluxDB write failed: {report.sink_error}", 3)
    except ConfigError as e:
        raise _fail(f"Invalid configuration: {e}", 2)
    except UnimplementedRecurrenceError as e:
        raise _fail(str(e), 2)
    except KeyboardInterrupt:
        typer.echo("\nStopped by user", err=True)
        raise typer.Exit(0)
    except typer.Exit:
        raise
    except Exception as e:
        typer.echo(f"Error: Unexpected error: {e}", err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        raise typer.Exit(4)


@app.command()
def read(
    address: Annotated[int, typer.Argument(help="1-based register address as written in the schema")],
    count: Annotated[int, typer.Option("--count", "-n", help="Number of registers to read")] = 1,
    type_tag: TypeOption = "u16",
    precision: PrecisionOption = None,
    host: HostOption = None,
    port: PortOption = 502,
    unit_id: UnitIdOption = 1,
    timeout: TimeoutOption = 5.0,
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """
    Read and decode input registers once.

    The address is 1-based like schema register_address values; register address-1 is requested.
    """
    setup_logging(verbose)

    if not host:
        raise _fail("--host is required for this command", 2)
    if address < 1 or count < 1:
        raise _fail("address and count must be >= 1", 2)

    try:
        client = SolarisModbusClient(
            host=host, port=port, unit_id=unit_id, connect_timeout=timeout, read_timeout=timeout
        )
        with client:
            words = client.read_registers(address - 1, count)
        value = decode_and_refine(words, type_tag, precision)

        if json_output:
            typer.echo(json.dumps({"address": address, "words": words, "value": field_value(value)}))
        else:
            typer.echo(value.canonical_text())
    except (DecodeError, RefineError) as e:
        raise _fail(str(e), 2)
    except TransportError as e:
        raise _fail(f"Connection/Modbus error: {e}", 3)
    except Exception as e:
        typer.echo(f"Error: Unexpected error: {e}", err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        raise typer.Exit(4)


@app.command(name="decode")
def decode_words(
    words: Annotated[list[str], typer.Argument(help="Register words, decimal or 0x hex")],
    type_tag: TypeOption = "u16",
    precision: PrecisionOption = None,
    json_output: JsonOption = False,
) -> None:
    """
    Decode register words offline, exactly as a cycle would.

    Does not require a connection.
    """
    try:
        parsed = [parse_word(w) for w in words]
    except ValueError as e:
        raise _fail(f"Invalid register word: {e}", 2)

    try:
        value = decode_and_refine(parsed, type_tag, precision)
    except (DecodeError, RefineError) as e:
        raise _fail(str(e), 2)

    if json_output:
        typer.echo(json.dumps({"type": type_tag, "value": field_value(value)}))
    else:
        typer.echo(value.canonical_text())


@app.command(name="expand")
def expand_statistics(
    schema: SchemaArgument,
    at: Annotated[
        Optional[str],
        typer.Option("--at", help="Evaluate at this ISO datetime instead of now (local time if naive)"),
    ] = None,
    json_output: JsonOption = False,
) -> None:
    """
    Show the registers and timestamps a cycle would read for statistic mappings.

    Does not require a connection.
    """
    try:
        device_schema = load_schema(schema)
    except ConfigError as e:
        raise _fail(f"Invalid configuration: {e}", 2)

    if at is None:
        now = local_now()
    else:
        try:
            now = datetime.fromisoformat(at)
        except ValueError:
            raise _fail(f"Invalid datetime: {at!r}", 2)

    out: dict[str, list[dict[str, Any]]] = {}
    try:
        for statistic in device_schema.statistic_mappings:
            out[statistic.name] = [
                {
                    "register_address": entry.start_address,
                    "day": entry.recurrence_index,
                    "timestamp": historical_timestamp(now, entry.recurrence_index).isoformat(),
                }
                for entry in expand(statistic, now)
            ]
    except UnimplementedRecurrenceError as e:
        raise _fail(str(e), 2)

    if json_output:
        typer.echo(json.dumps(out, indent=2))
        return
    typer.echo(f"At {now.isoformat()} ({seconds_until_midnight(now):.0f} s until midnight)")
    for name, entries in out.items():
        if not entries:
            typer.echo(f"{name}: skipped (too close to midnight)")
            continue
        typer.echo(f"{name}:")
        for item in entries:
            typer.echo(f"  {item['register_address']:>6}  day {item['day']:>2}  {item['timestamp']}")


@app.command()
def info(
    schema: Annotated[Optional[Path], typer.Argument(help="Optional schema to summarize")] = None,
    json_output: JsonOption = False,
) -> None:
    """
    Show package version and, with a schema, a summary of its mappings.
    """
    info_data: dict[str, Any] = {"version": __version__}

    if schema is not None:
        try:
            device_schema = load_schema(schema)
        except ConfigError as e:
            raise _fail(f"Invalid configuration: {e}", 2)
        info_data["schema"] = {
            "device": device_schema.device_slug,
            "mappings": len(device_schema.mappings),
            "statistic_mappings": len(device_schema.statistic_mappings),
        }

    if json_output:
        typer.echo(json.dumps(info_data, indent=2))
    else:
        typer.echo(f"pysolaris-modbus version: {info_data['version']}")
        if "schema" in info_data:
            s = info_data["schema"]
            typer.echo(f"Device: {s['device']}")
            typer.echo(f"Mappings: {s['mappings']}")
            typer.echo(f"Statistic mappings: {s['statistic_mappings']}")


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"pysolaris-modbus {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=version_callback, is_eager=True, help="Show version and exit"),
    ] = None,
) -> None:
    """solaris - Modbus register collector for InfluxDB 2."""
    pass


if __name__ == "__main__":
    app()
