"""InfluxSink: write a cycle's OutputRecords to an InfluxDB 2 bucket in one batch."""

import logging
from collections.abc import Sequence
from typing import Any

from influxdb_client import InfluxDBClient, Point, WritePrecision
from influxdb_client.client.write_api import SYNCHRONOUS

from .errors import SinkError
from .types import Boolean, DecodedValue, Integer, OutputRecord, Real, Text

logger = logging.getLogger(__name__)


def field_value(value: DecodedValue) -> str | int | float | bool:
    """Plain Python value of a decoded value, as written to the field."""
    if isinstance(value, (Text, Integer, Real, Boolean)):
        return value.value
    raise TypeError(f"Unsupported decoded value: {value!r}")


def to_point(record: OutputRecord) -> Point:
    """Build an InfluxDB point: measurement, tags in order, one field, optional time."""
    point = Point(record.measurement_name)
    for key, tag_value in record.tags.items():
        point = point.tag(key, tag_value)
    point = point.field(record.field_name, field_value(record.field_value))
    if record.timestamp is not None:
        point = point.time(record.timestamp, WritePrecision.S)
    return point


class InfluxSink:
    """Synchronous InfluxDB 2 writer; each write() is one request, never retried."""

    def __init__(self, uri: str, org: str, token: str, bucket: str) -> None:
        self._uri = uri
        self._org = org
        self._bucket = bucket
        self._client = InfluxDBClient(url=uri, token=token, org=org)
        self._write_api = self._client.write_api(write_options=SYNCHRONOUS)

    @property
    def bucket(self) -> str:
        return self._bucket

    def write(self, records: Sequence[OutputRecord]) -> None:
        """Write all records to the bucket; raise SinkError if the batch is rejected."""
        points = [to_point(r) for r in records]
        try:
            self._write_api.write(bucket=self._bucket, org=self._org, record=points)
        except Exception as e:
            raise SinkError(f"Write of {len(points)} point(s) to {self._uri} failed: {e}", cause=e) from e
        logger.debug("Wrote %d point(s) to bucket %s", len(points), self._bucket)

    def close(self) -> None:
        try:
            self._write_api.close()
            self._client.close()
        except Exception as e:
            logger.warning("Error closing InfluxDB client: %s", e)

    def __enter__(self) -> "InfluxSink":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
