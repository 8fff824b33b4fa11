"""Date manipulation utilities"""

import calendar
from datetime import date, timedelta
from dateutil.relativedelta import relativedelta


def last_day_of_month(year: int, month: int) -> int:
    """Number of days in the given month (handles leap years)"""
    return calendar.monthrange(year, month)[1]


def month_start(year: int, month: int) -> date:
    """First day of a month, where month may fall outside 1..12 (rolls the year)"""
    return date(year, 1, 1) + relativedelta(months=month - 1)


def date_at(year: int, month: int, day: int) -> date:
    """
    Build a date with calendar overflow.

    Out-of-range months roll the year and days past the month end roll into
    the following month, so date_at(2026, 2, 30) == date(2026, 3, 2).
    """
    return month_start(year, month) + timedelta(days=day - 1)


def clamped_date(year: int, month: int, day: int) -> date:
    """Build a date, clamping the day to the last day of the (normalized) month"""
    first = month_start(year, month)
    return first.replace(day=min(day, last_day_of_month(first.year, first.month)))


def add_months(from_date: date, months: int) -> date:
    """Shift a date by whole months, clamping to the target month's last day"""
    return from_date + relativedelta(months=months)
