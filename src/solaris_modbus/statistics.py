"""Expand recurring statistic mappings into one dated MappingEntry per elapsed day."""

import logging
from datetime import date, datetime, time, timedelta

from .errors import UnimplementedRecurrenceError
from .types import MappingEntry, RecurrenceKind, RecurringMappingEntry

logger = logging.getLogger(__name__)

# Do not read statistic registers this close to midnight: the device resets its counters then
ROLLOVER_GUARD_S = 30


def _local_midnight(now: datetime, day: date) -> datetime:
    """Midnight starting day, in now's zone, with the UTC offset in force on that date."""
    midnight = datetime.combine(day, time.min)
    if now.tzinfo is None:
        # Naive values are system local time; astimezone resolves that date's offset
        return midnight.astimezone()
    return midnight.replace(tzinfo=now.tzinfo)


def seconds_until_midnight(now: datetime) -> float:
    """Seconds from now until the next local midnight (in now's timezone)."""
    return _local_midnight(now, now.date() + timedelta(days=1)).timestamp() - now.timestamp()


def day_has_elapsed(now: datetime, day: int) -> bool:
    """True if day is a day of now's month up to and including today."""
    return 1 <= day <= now.day


def historical_timestamp(now: datetime, day: int) -> datetime:
    """
    Local midnight of the given day of now's month, always timezone-aware.

    The offset is resolved for that date, so days before a DST switch keep their own offset.
    Raises ValueError if the month has no such day.
    """
    return _local_midnight(now, date(now.year, now.month, day))


def expand(entry: RecurringMappingEntry, now: datetime) -> list[MappingEntry]:
    """
    Return one MappingEntry per day of the current month up to and including today.

    Day N reads base_address + N - 1 and carries recurrence_index N, so its record can be dated
    at midnight of that day. Returns an empty list within ROLLOVER_GUARD_S of midnight.
    Raises UnimplementedRecurrenceError for anything but daily statistics.
    """
    if entry.recurrence_kind != RecurrenceKind.DAILY:
        raise UnimplementedRecurrenceError(entry.recurrence_kind)

    remaining = seconds_until_midnight(now)
    if remaining < ROLLOVER_GUARD_S:
        logger.debug(
            "Skipping statistic %s: %.0f s until midnight rollover", entry.name, remaining
        )
        return []

    return [
        MappingEntry(
            name=entry.name,
            start_address=entry.base_address + day - 1,
            type_tag=entry.type_tag,
            word_count=entry.word_count,
            precision=entry.precision,
            recurrence_kind=entry.recurrence_kind,
            recurrence_index=day,
        )
        for day in range(1, now.day + 1)
    ]
