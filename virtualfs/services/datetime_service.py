"""Datetime handling: lax input -> strict, UTC-normalized storage format."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pendulum

# Strict storage format: YYYY-MM-DD HH:MM:SS.ffffff+0000
STRICT_FORMAT = "%Y-%m-%d %H:%M:%S.%f%z"

# Finest modification-time resolution the store can keep.
PRECISION = timedelta(microseconds=1)


def parse_datetime(value: str | datetime, default_tz: str = "UTC") -> datetime:
    """Parse a lax datetime string into a timezone-aware datetime.

    Accepts various formats:
    - 2026-02-02 22:21:29.975359+00
    - 2026-02-02 22:21:29+00
    - 2026-02-02 22:21
    - 2026-02-02
    - ISO 8601 variants with T separator

    Missing timezone defaults to default_tz.
    Missing time components default to zeros.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            tz = pendulum.timezone(default_tz)
            value = value.replace(tzinfo=tz)  # type: ignore[arg-type]
        return value

    value_str = value.strip()

    parsed = pendulum.parse(value_str, tz=default_tz, strict=False)
    if not isinstance(parsed, pendulum.DateTime):
        # pendulum.parse returns Date for date-only strings
        parsed = pendulum.datetime(
            parsed.year, parsed.month, parsed.day, tz=default_tz  # type: ignore[union-attr]
        )
    return parsed  # type: ignore[return-value]


def to_utc(dt: datetime) -> datetime:
    """Return dt as an aware UTC datetime. Naive values are taken to be UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_mod_time(dt: datetime) -> str:
    """Format a modification time for storage.

    Output: YYYY-MM-DD HH:MM:SS.ffffff+0000, always in UTC so that string
    equality matches instant equality.
    """
    return to_utc(dt).strftime(STRICT_FORMAT)


def parse_mod_time(value: str) -> datetime:
    """Parse a value written by format_mod_time."""
    return datetime.strptime(value, STRICT_FORMAT).astimezone(timezone.utc)


def now_utc() -> datetime:
    """Return the current UTC datetime."""
    return datetime.now(timezone.utc)
