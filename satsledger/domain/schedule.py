"""Monthly catch-up: which months still need their deduction applied"""

from datetime import date
from typing import List, Optional

from satsledger.domain.models import MonthToProcess
from satsledger.utils.date_utils import last_day_of_month, month_start


def _month_entry(year: int, month: int, payment_day: int) -> MonthToProcess:
    pay_day = min(payment_day, last_day_of_month(year, month))
    return MonthToProcess(
        year_month=f"{year}-{month:02d}",
        date_str=f"{year}-{month:02d}-{pay_day:02d}",
    )


def is_processed(year_month_str: str, last_processed_year_month: Optional[str]) -> bool:
    """True when the marker is at or past the month (YYYY-MM sorts chronologically)"""
    return last_processed_year_month is not None and last_processed_year_month >= year_month_str


def get_months_to_process(
    payment_day: int,
    last_processed_year_month: Optional[str],
    today: date,
) -> List[MonthToProcess]:
    """
    Months whose payment day has passed and that were not yet processed.

    Returns at most two entries, previous month first:
    - the previous month, unless the marker already covers it (its payment
      day is necessarily behind us);
    - the current month, once today reaches its payment day (clamped to the
      month's last day) and the marker does not cover it.

    Months older than the previous one are never returned. A run after a gap
    of two or more months catches up only the previous and current month.
    """
    results: List[MonthToProcess] = []

    prev = month_start(today.year, today.month - 1)
    previous = _month_entry(prev.year, prev.month, payment_day)
    if not is_processed(previous.year_month, last_processed_year_month):
        results.append(previous)

    current = _month_entry(today.year, today.month, payment_day)
    current_pay_day = min(payment_day, last_day_of_month(today.year, today.month))
    if today.day >= current_pay_day and not is_processed(current.year_month, last_processed_year_month):
        results.append(current)

    return results
