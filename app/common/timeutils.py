"""
Wall-clock helpers.

Due and payment dates are stored as naive datetimes expressed in
settings.TIMEZONE; every "today" boundary is computed in that same zone.
"""
import calendar
from datetime import date, datetime, time
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from app.core.config import settings

END_OF_DAY = time(23, 59, 59, 999999)


def app_timezone() -> ZoneInfo:
    try:
        return ZoneInfo(settings.TIMEZONE)
    except KeyError:
        raise ValueError(f"Unknown timezone: {settings.TIMEZONE}")


def now_local() -> datetime:
    """Current time in the application timezone (aware)."""
    return datetime.now(app_timezone())


def to_wall_clock(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a date/datetime to the naive wall-clock form used in storage.

    Aware datetimes are converted to the application timezone first; plain
    dates mean midnight of that day.
    """
    if value is None:
        return None
    if not isinstance(value, datetime):
        if isinstance(value, date):
            return datetime.combine(value, time.min)
        raise TypeError(f"Expected date or datetime, got {type(value).__name__}")
    if value.tzinfo is not None:
        value = value.astimezone(app_timezone())
    return value.replace(tzinfo=None)


def day_bounds(moment: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """First and last instant of the day containing `moment` (naive wall clock)."""
    local = to_wall_clock(moment or now_local())
    day = local.date()
    return datetime.combine(day, time.min), datetime.combine(day, END_OF_DAY)


def start_of_day(moment: Optional[datetime] = None) -> datetime:
    return day_bounds(moment)[0]


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    last_day = calendar.monthrange(year, month)[1]
    return (
        datetime(year, month, 1),
        datetime.combine(date(year, month, last_day), END_OF_DAY),
    )


def year_bounds(year: int) -> Tuple[datetime, datetime]:
    return datetime(year, 1, 1), datetime.combine(date(year, 12, 31), END_OF_DAY)
