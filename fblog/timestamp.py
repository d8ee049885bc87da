"""Epoch timestamp normalization.

Producers emit epoch values in seconds or milliseconds without saying
which. Both readings are tried and the one closer to the current time wins.
"""

import re
from datetime import datetime, timedelta, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")
ONE_MILLISECOND = timedelta(milliseconds=1)


def _from_offset(**kwargs) -> datetime | None:
    try:
        return EPOCH + timedelta(**kwargs)
    except OverflowError:
        return None


def format_iso8601(dt: datetime) -> str:
    """Render dt as UTC ISO-8601 with millisecond precision and a Z suffix."""
    return f"{dt.year:04d}" + dt.strftime("-%m-%dT%H:%M:%S") + f".{dt.microsecond // 1000:03d}Z"


def timestamp_to_iso8601(timestamp: int, now: datetime | None = None) -> str | None:
    """Pick the seconds or milliseconds reading of timestamp closest to now."""
    now = now or datetime.now(timezone.utc)
    as_seconds = _from_offset(seconds=timestamp)
    as_millis = _from_offset(milliseconds=timestamp)

    if as_seconds is not None and as_millis is not None:
        diff_seconds = abs(now - as_seconds) // ONE_MILLISECOND
        diff_millis = abs(now - as_millis) // ONE_MILLISECOND
        winner = as_seconds if diff_seconds <= diff_millis else as_millis
        return format_iso8601(winner)
    if as_seconds is not None:
        return format_iso8601(as_seconds)
    if as_millis is not None:
        return format_iso8601(as_millis)
    return None


def try_convert_timestamp(value: str, now: datetime | None = None) -> str:
    """Return value as ISO-8601 if it is an integer epoch, otherwise unchanged."""
    if not value or not INTEGER_PATTERN.fullmatch(value):
        return value
    converted = timestamp_to_iso8601(int(value), now)
    return converted if converted is not None else value
