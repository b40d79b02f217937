from datetime import datetime, timezone
from zoneinfo import ZoneInfo
from .config import settings


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def now_local() -> datetime:
    return now_utc().astimezone(ZoneInfo(settings.timezone))


def wall_clock(dt: datetime) -> datetime:
    """Drop tzinfo so windows compare against the local wall clock."""
    return dt.replace(tzinfo=None)


def weekday_index(dt: datetime) -> int:
    """Weekday with 0=Sunday .. 6=Saturday."""
    return dt.isoweekday() % 7
