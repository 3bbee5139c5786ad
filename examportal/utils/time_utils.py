# examportal/utils/time_utils.py

from datetime import date, datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (SQLite drops tzinfo) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_date(value: datetime) -> date:
    return as_utc(value).date()


def elapsed_seconds(started_at: datetime, finished_at: datetime) -> int:
    delta = as_utc(finished_at) - as_utc(started_at)
    return max(int(delta.total_seconds() // 1), 0)
