from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DD" -> midnight of that day
    - "YYYY-MM-DDTHH:MM" (naive) is interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    # Accept trailing Z
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)

    # Normalize to UTC-naive
    if dt.tzinfo is None:
        # interpret naive as UTC
        return dt.replace(tzinfo=None)

    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def is_date_only(value: Optional[str]) -> bool:
    return bool(value) and len(value.strip()) == 10


def parse_range_end(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an inclusive upper bound.

    A bare date ("2024-01-03") covers the whole day, so it maps to
    23:59:59.999999 of that day.
    """
    dt = parse_iso_datetime(value)
    if dt is not None and is_date_only(value):
        return end_of_day(dt.date())
    return dt


def parse_report_date(value: Optional[str]) -> Optional[date]:
    """Parse a YYYY-MM-DD report date."""
    if value is None or not value.strip():
        return None
    return date.fromisoformat(value.strip()[:10])


def start_of_day(d: date) -> datetime:
    return datetime.combine(d, time.min)


def end_of_day(d: date) -> datetime:
    return datetime.combine(d, time.max)


def start_of_month(now: datetime) -> datetime:
    return datetime(now.year, now.month, 1)


def days_ago(now: datetime, days: int) -> datetime:
    return now - timedelta(days=days)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


def parse_date_range(start: Optional[str], end: Optional[str]) -> tuple[Optional[datetime], Optional[datetime]]:
    """
    Parse ?startDate=&endDate= query values.

    Raises ValueError with a client-facing message on malformed input.
    """
    try:
        return parse_iso_datetime(start), parse_range_end(end)
    except ValueError:
        raise ValueError("startDate and endDate must be ISO-8601 dates")
