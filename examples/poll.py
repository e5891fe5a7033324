#!/usr/bin/env python3
"""Example: run collector cycles from Python and print each cycle's records; graceful shutdown on Ctrl+C."""

import sys

from solaris_modbus import CycleOrchestrator, load_schema
from solaris_modbus.client import open_client
from solaris_modbus.config import load_config
from solaris_modbus.errors import ConfigError, UnimplementedRecurrenceError
from solaris_modbus.sink import InfluxSink


def main() -> None:
    schema_path = "examples/schema.yaml"
    config_path = "examples/config.yaml.dist"  # change to your config.yaml

    try:
        schema = load_schema(schema_path)
        config = load_config(config_path)
        influx = config.influxdb2
        with InfluxSink(uri=influx.uri, org=influx.org, token=influx.token, bucket=influx.bucket) as sink:
            orchestrator = CycleOrchestrator(
                schema,
                open_reader=lambda: open_client(config.inverter),
                sink=sink,
                device_address=config.inverter.inverter_address,
                interval_s=config.solaris.read_frequency,
            )
            print(f"Polling {config.inverter.inverter_address} every {orchestrator.interval_s}s (Ctrl+C to stop)...")
            for report in orchestrator.poll_iter():
                for record in report.records:
                    print(record.field_name, record.field_value.canonical_text(), record.timestamp or "")
                for failure in report.failures:
                    print(f"failed: {failure.entry.name}: {failure.error}", file=sys.stderr)
    except KeyboardInterrupt:
        print("\nStopped.")
    except (ConfigError, UnimplementedRecurrenceError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
