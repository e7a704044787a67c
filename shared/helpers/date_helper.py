from datetime import date, datetime, timedelta
from typing import Tuple
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from shared.core.config import settings

BUDDHIST_ERA_OFFSET = 543


def local_now() -> datetime:
    """Current wall-clock time in APP_TIMEZONE, returned naive."""
    return datetime.now(ZoneInfo(settings.APP_TIMEZONE)).replace(tzinfo=None)


def local_today() -> date:
    return local_now().date()


def first_day_of_month(value: date) -> date:
    return value.replace(day=1)


def first_day_of_next_month(value: date) -> date:
    return first_day_of_month(value) + relativedelta(months=1)


def add_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def days_between(start: date, end: date) -> int:
    """Whole calendar days from start to end (negative when end is earlier)."""
    return (end - start).days


def to_buddhist_year(year: int) -> int:
    return year + BUDDHIST_ERA_OFFSET


def year_bounds(year: int) -> Tuple[datetime, datetime]:
    """[Jan 1 00:00, Jan 1 00:00 of the following year) for a Gregorian year."""
    return datetime(year, 1, 1), datetime(year + 1, 1, 1)


def day_bounds(value: date) -> Tuple[datetime, datetime]:
    start = datetime.combine(value, datetime.min.time())
    return start, start + timedelta(days=1)
