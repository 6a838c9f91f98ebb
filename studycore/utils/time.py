import math
from datetime import date, datetime, timedelta

SECONDS_PER_DAY = 24 * 3600


def local_time(dt: datetime, tz=None) -> datetime:
    if tz is not None and dt.tzinfo is not None:
        return dt.astimezone(tz)
    return dt


def local_day(dt: datetime, tz=None) -> date:
    """Calendar day of ``dt``, in ``tz`` when both are timezone-aware."""
    return local_time(dt, tz).date()


def elapsed_days(later: datetime, earlier: datetime) -> float:
    return (later - earlier).total_seconds() / SECONDS_PER_DAY


def round_half_up(value: float) -> int:
    # round() is banker's rounding; intervals round .5 upwards
    return int(math.floor(value + 0.5))


def add_days(dt: datetime, days: int, tz=None) -> datetime:
    """Add calendar days, keeping the wall-clock time in ``tz`` across DST changes."""
    if tz is None or dt.tzinfo is None:
        return dt + timedelta(days=days)
    # Aware arithmetic on a zoned datetime moves the wall clock, not the instant
    return (dt.astimezone(tz) + timedelta(days=days)).astimezone(dt.tzinfo)


def to_local_iso(dt, tz=None):
    return dt.astimezone(tz).isoformat() if tz is not None else dt.isoformat()
