"""CycleOrchestrator: expand, read, decode, refine and submit one batch per cycle, then wait."""

import logging
import time
from collections.abc import Callable, Iterator, Sequence
from datetime import datetime
from typing import Protocol

from .codec import decode
from .errors import DecodeError, RefineError, SinkError, TransportError
from .normalize import normalize_name
from .refine import refine
from .statistics import day_has_elapsed, expand, historical_timestamp
from .types import CycleReport, EntryFailure, Integer, MappingEntry, OutputRecord, Schema

logger = logging.getLogger(__name__)


class RegisterReader(Protocol):
    """An open device connection for one cycle."""

    def read_registers(self, address: int, count: int) -> list[int]: ...

    def close(self) -> None: ...


class RecordSink(Protocol):
    def write(self, records: Sequence[OutputRecord]) -> None: ...


def local_now() -> datetime:
    """Current local wall-clock time, naive; record timestamps resolve their own offset."""
    return datetime.now()


class CycleOrchestrator:
    """
    Runs poll cycles against one device. Entries are processed strictly in schema order;
    any per-entry failure is logged and recorded, never aborting the cycle.
    """

    def __init__(
        self,
        schema: Schema,
        open_reader: Callable[[], RegisterReader],
        sink: RecordSink,
        device_address: str,
        interval_s: int,
        clock: Callable[[], datetime] = local_now,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if interval_s <= 0:
            raise ValueError(f"interval_s must be positive, got {interval_s}")
        self._schema = schema
        self._open_reader = open_reader
        self._sink = sink
        self._interval_s = interval_s
        self._clock = clock
        self._sleep = sleep
        self._measurement = normalize_name(schema.device_slug)
        self._tags = {"inverter": schema.device_slug, "ip_address": device_address}

    @property
    def interval_s(self) -> int:
        return self._interval_s

    def work_list(self, now: datetime) -> list[MappingEntry]:
        """Schema mappings followed by this cycle's expansion of every statistic mapping."""
        entries = list(self._schema.mappings)
        for statistic in self._schema.statistic_mappings:
            entries.extend(expand(statistic, now))
        return entries

    def _build_record(
        self, entry: MappingEntry, words: list[int], now: datetime, report: CycleReport
    ) -> OutputRecord | None:
        try:
            decoded = decode(words, entry.type_tag)
        except DecodeError as e:
            logger.error("Register %s (%d) could not be decoded: %s", entry.name, entry.start_address, e)
            report.failures.append(EntryFailure(entry, e))
            return None

        # Statistic registers read as zero right after a device reset; never let that overwrite history
        if entry.recurrence_kind is not None and isinstance(decoded, Integer) and decoded.value == 0:
            logger.debug("Skipping zero statistic %s at address %d", entry.name, entry.start_address)
            report.skipped.append(entry)
            return None

        try:
            value = refine(decoded, entry)
        except RefineError as e:
            logger.error("Register %s (%d) could not be refined: %s", entry.name, entry.start_address, e)
            report.failures.append(EntryFailure(entry, e))
            return None

        logger.debug(
            "Register name %s has been read as type %s with value %s",
            entry.name,
            entry.type_tag,
            value.canonical_text(),
        )
        timestamp = None
        if entry.recurrence_index is not None:
            timestamp = historical_timestamp(now, entry.recurrence_index)
        return OutputRecord(
            measurement_name=self._measurement,
            tags=dict(self._tags),
            field_name=normalize_name(entry.name),
            field_value=value,
            timestamp=timestamp,
        )

    def _read_all(self, entries: list[MappingEntry], now: datetime, report: CycleReport) -> None:
        try:
            reader = self._open_reader()
        except TransportError as e:
            logger.error("Could not connect to device: %s", e)
            report.failures.extend(EntryFailure(entry, e) for entry in entries)
            return
        try:
            for entry in entries:
                if entry.recurrence_index is not None and not day_has_elapsed(now, entry.recurrence_index):
                    logger.debug(
                        "Skipping %s: day %d has not elapsed this month", entry.name, entry.recurrence_index
                    )
                    report.skipped.append(entry)
                    continue
                try:
                    words = reader.read_registers(entry.start_address - 1, entry.word_count)
                except TransportError as e:
                    logger.error(
                        "Could not read register at address %d (-1): %s", entry.start_address, e
                    )
                    report.failures.append(EntryFailure(entry, e))
                    continue
                record = self._build_record(entry, words, now, report)
                if record is not None:
                    report.records.append(record)
        finally:
            reader.close()

    def run_cycle(self) -> CycleReport:
        """Run one poll cycle and submit its records. UnimplementedRecurrenceError propagates."""
        now = self._clock()
        entries = self.work_list(now)
        report = CycleReport()
        self._read_all(entries, now, report)

        if report.records:
            try:
                self._sink.write(report.records)
            except SinkError as e:
                logger.error("%s", e)
                report.sink_error = e
        else:
            logger.warning("No records to write this cycle")

        logger.info(
            "Cycle done: %d record(s), %d failure(s), %d skipped",
            len(report.records),
            len(report.failures),
            len(report.skipped),
        )
        return report

    def poll_iter(self) -> Iterator[CycleReport]:
        """Yield one CycleReport per cycle indefinitely, waiting interval_s between cycles."""
        while True:
            yield self.run_cycle()
            logger.debug("finished cycle. Waiting for %d seconds ...", self._interval_s)
            self._sleep(self._interval_s)

    def run_forever(self) -> None:
        """Poll until the process is terminated."""
        for _ in self.poll_iter():
            pass
