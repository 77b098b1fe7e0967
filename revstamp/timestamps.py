"""RFC 3339 parsing and epoch-millisecond rendering."""

from __future__ import annotations

import datetime as dt
import re

_RFC3339_PATTERN = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})[Tt ](?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d+))?(?P<offset>[Zz]|[+-]\d{2}:\d{2})$"
)

_EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.UTC)
_ONE_SECOND = dt.timedelta(seconds=1)
_ONE_MILLISECOND = dt.timedelta(milliseconds=1)

# datetime keeps microseconds; extra fractional digits are dropped
_MAX_FRACTION_DIGITS = 6

_LEAP_SECOND = ":60"


class TimestampParseError(ValueError):
    """Raised when a string is not a valid RFC 3339 timestamp."""

    def __init__(self, raw: str) -> None:
        """Initialise with the offending input."""
        self.raw = raw
        super().__init__(f"Not an RFC 3339 timestamp: {raw!r}")


def parse_rfc3339(value: str) -> dt.datetime:
    """Parse ``value`` as an RFC 3339 timestamp and return it in UTC.

    Raises
    ------
    TimestampParseError
        If the string is not a complete RFC 3339 date-time with an offset.

    """
    match = _RFC3339_PATTERN.match(value.strip())
    if match is None:
        raise TimestampParseError(value)

    fraction = match["fraction"]
    offset = match["offset"]
    clock = match["time"]
    if clock.endswith(_LEAP_SECOND):
        # datetime has no second 60; a leap second counts as the one before it
        clock = clock.removesuffix(_LEAP_SECOND) + ":59"
    text = f"{match['date']}T{clock}"
    if fraction:
        digits = fraction[:_MAX_FRACTION_DIGITS].ljust(_MAX_FRACTION_DIGITS, "0")
        text = f"{text}.{digits}"
    text += "+00:00" if offset in {"Z", "z"} else offset
    try:
        parsed = dt.datetime.fromisoformat(text)
    except ValueError as exc:
        raise TimestampParseError(value) from exc
    return parsed.astimezone(dt.UTC)


def _split_epoch(moment: dt.datetime) -> tuple[int, int]:
    delta = moment - _EPOCH
    seconds = delta // _ONE_SECOND
    millis = (delta - seconds * _ONE_SECOND) // _ONE_MILLISECOND
    return seconds, millis


def epoch_seconds_as_millis(moment: dt.datetime) -> str:
    """Render ``moment`` as ``"<epoch-seconds>000"``, discarding sub-seconds."""
    seconds, _ = _split_epoch(moment)
    return f"{seconds}000"


def epoch_millis(moment: dt.datetime) -> str:
    """Render ``moment`` as ``"<epoch-seconds><millis:03d>"``."""
    seconds, millis = _split_epoch(moment)
    return f"{seconds}{millis:03d}"


__all__ = [
    "TimestampParseError",
    "epoch_millis",
    "epoch_seconds_as_millis",
    "parse_rfc3339",
]
