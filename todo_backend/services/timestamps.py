"""
Reminder timestamp codec.

Wire form is RFC 3339 as in the protobuf JSON mapping ("2024-01-01T00:00:00Z",
up to nine fractional digits, any UTC offset). Storage form is naive UTC text
"YYYY-MM-DD HH:MM:SS.ffffff". Conversion is exact at microsecond precision:
anything finer is rejected, never truncated.

Both directions raise TimestampError; the caller decides whether that is the
client's fault (write path) or ours (read path).
"""
from __future__ import annotations

import re
import datetime as dt
from typing import Union

UTC = dt.timezone.utc
MIN_TS = dt.datetime(1, 1, 1, tzinfo=UTC)
MAX_TS = dt.datetime(9999, 12, 31, 23, 59, 59, 999999, tzinfo=UTC)

_TS_RE = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})[Tt ](?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<frac>\d{1,9}))?"
    r"(?P<tz>[Zz]|[+-]\d{2}:\d{2})?\Z"
)

WireValue = Union[str, dt.datetime, None]


class TimestampError(ValueError):
    pass


def _parse(text: str, require_offset: bool) -> dt.datetime:
    m = _TS_RE.match(text)
    if not m:
        raise TimestampError(f"'{text}' is not an RFC 3339 timestamp")

    nanos = int((m.group("frac") or "0").ljust(9, "0"))
    if nanos % 1000:
        raise TimestampError(f"'{text}' has sub-microsecond precision")

    tz = m.group("tz")
    if tz is None:
        if require_offset:
            raise TimestampError(f"'{text}' has no UTC offset")
        tzinfo = UTC
    elif tz in ("Z", "z"):
        tzinfo = UTC
    else:
        hh, mm = int(tz[1:3]), int(tz[4:6])
        if hh > 23 or mm > 59:
            raise TimestampError(f"'{text}' has an invalid UTC offset")
        offset = dt.timedelta(hours=hh, minutes=mm)
        tzinfo = dt.timezone(-offset if tz[0] == "-" else offset)

    try:
        year, month, day = (int(p) for p in m.group("date").split("-"))
        hour, minute, second = (int(p) for p in m.group("time").split(":"))
        parsed = dt.datetime(year, month, day, hour, minute, second, nanos // 1000, tzinfo=tzinfo)
        return parsed.astimezone(UTC)
    except (ValueError, OverflowError) as e:
        raise TimestampError(f"'{text}' is out of range: {e}") from e


def _check_range(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None or value.utcoffset() is None:
        raise TimestampError(f"'{value.isoformat()}' has no timezone")
    try:
        value = value.astimezone(UTC)
    except OverflowError as e:
        raise TimestampError(f"'{value.isoformat()}' is out of range") from e
    if not MIN_TS <= value <= MAX_TS:
        raise TimestampError(f"'{value.isoformat()}' is out of range")
    return value


def parse_wire(value: WireValue) -> dt.datetime | None:
    """Wire value -> aware UTC datetime (None stays None)."""
    if value is None:
        return None
    if isinstance(value, dt.datetime):
        return _check_range(value)
    if isinstance(value, str):
        return _check_range(_parse(value, require_offset=True))
    raise TimestampError(f"unsupported timestamp type: {type(value).__name__}")


def format_wire(value: dt.datetime | None) -> str | None:
    """Aware datetime -> RFC 3339 UTC text with 0, 3 or 6 fractional digits."""
    if value is None:
        return None
    value = value.astimezone(UTC)
    base = value.replace(microsecond=0, tzinfo=None).isoformat(timespec="seconds")
    us = value.microsecond
    if us == 0:
        return base + "Z"
    if us % 1000 == 0:
        return f"{base}.{us // 1000:03d}Z"
    return f"{base}.{us:06d}Z"


def to_storage(value: WireValue) -> str | None:
    """Write path: wire value -> storage text."""
    parsed = parse_wire(value)
    if parsed is None:
        return None
    return parsed.replace(tzinfo=None).isoformat(sep=" ", timespec="microseconds")


def from_storage(raw) -> str | None:
    """Read path: stored value -> wire text. Offset-less stored values are UTC."""
    if raw is None:
        return None
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("ascii")
        except UnicodeDecodeError as e:
            raise TimestampError("stored value is not text") from e
    if not isinstance(raw, str):
        raise TimestampError(f"unsupported stored type: {type(raw).__name__}")
    return format_wire(_parse(raw, require_offset=False))
