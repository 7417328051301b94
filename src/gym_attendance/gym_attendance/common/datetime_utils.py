from __future__ import annotations

from datetime import date, datetime, timezone

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse an ISO-8601 date (or datetime) into the canonical UTC calendar day.

    ``2024-03-05`` maps to itself. A datetime is converted to UTC first, so
    ``2024-03-05T23:30:00-03:00`` is the 6th. Naive datetimes are taken as UTC.
    """
    if isinstance(value, datetime):
        return normalize_day(value)
    if isinstance(value, date):
        return value

    v = (value or "").strip() if isinstance(value, str) else ""
    if not v:
        raise ValidationError("Date is required (YYYY-MM-DD)")

    try:
        if len(v) == 10:
            return datetime.strptime(v, "%Y-%m-%d").date()
        if v.endswith(("Z", "z")):
            v = v[:-1] + "+00:00"
        return normalize_day(datetime.fromisoformat(v))
    except ValueError:
        raise ValidationError(f"Invalid date: {value!r} (expected ISO-8601)")


def normalize_day(value: date | datetime) -> date:
    """Collapse a date or datetime to its UTC calendar day."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def now_utc() -> datetime:
    """Current UTC time, naive (MySQL DATETIME has no zone).

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)
