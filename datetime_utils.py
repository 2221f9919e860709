from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional, Union


UTC = timezone.utc

BR_DATE_FORMAT = "%d/%m/%Y"
BR_TIME_FORMAT = "%H:%M"
BR_TIMESTAMP_FORMAT = "%d/%m/%Y %H:%M:%S"


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_iso_utc(dt: Optional[datetime]) -> Optional[str]:
    """Serialize ``dt`` as ISO 8601 in UTC with milliseconds and a ``Z`` suffix."""

    value = ensure_utc(dt)
    if value is None:
        return None
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(s: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 string and return a timezone-aware UTC datetime."""

    if not s:
        return None
    value = s.strip()
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(value)
    except ValueError:
        return None
    return ensure_utc(dt)


def format_br_date(value: Union[date, datetime]) -> str:
    return value.strftime(BR_DATE_FORMAT)


def format_br_time(value: datetime) -> str:
    return value.strftime(BR_TIME_FORMAT)


def format_br_timestamp(value: datetime) -> str:
    return value.strftime(BR_TIMESTAMP_FORMAT)


def parse_br_date(value: Optional[str]) -> Optional[date]:
    """Parse ``dd/mm/yyyy`` (or ISO ``yyyy-mm-dd``) into a ``date``."""

    if not value:
        return None
    text = value.strip()
    for fmt in (BR_DATE_FORMAT, "%Y-%m-%d"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


__all__ = [
    "UTC",
    "ensure_utc",
    "format_br_date",
    "format_br_time",
    "format_br_timestamp",
    "parse_br_date",
    "parse_iso",
    "to_iso_utc",
    "utc_now",
]
