"""Billing window resolution for a card's statement cycle"""

from datetime import date
from typing import Callable, Optional, Sequence

from satsledger.domain.billing_rules import LAST_DAY, BillingOffset, BillingRule, get_billing_rule
from satsledger.domain.models import BillingWindow, Card
from satsledger.utils.date_utils import clamped_date, date_at, month_start

WindowResolver = Callable[[Card, date], Optional[BillingWindow]]


def apply_billing_rule(rule: BillingRule, payment_month: date) -> BillingWindow:
    """
    Turn a relative rule into concrete dates for the given payment month.

    Start days past the month end roll into the next month (Feb 30 -> Mar 2),
    which keeps consecutive windows contiguous. An end day of 31 is the last
    day of the resolved month.
    """
    start = rule.start
    end = rule.end
    start_date = date_at(payment_month.year, payment_month.month + start.month_offset, start.day)

    if end.day == LAST_DAY:
        end_date = clamped_date(payment_month.year, payment_month.month + end.month_offset, LAST_DAY)
    else:
        end_date = date_at(payment_month.year, payment_month.month + end.month_offset, end.day)

    return BillingWindow(start_date=start_date, end_date=end_date)


def resolve_billing_period(company_id: str, payment_day: int, payment_month: date) -> Optional[BillingWindow]:
    """
    Window from the company's rule table.

    Returns None when the company or payment day has no rule; that is an
    expected state and callers fall back to the card's stored billing days.
    """
    rule = get_billing_rule(company_id, payment_day)
    if rule is None:
        return None
    return apply_billing_rule(rule, payment_month)


def pending_payment_month(payment_day: int, target_date: date) -> date:
    """
    Month of the payment the target date's spending will be billed to next.

    The payment day itself already belongs to the next cycle.
    """
    if target_date.day < payment_day:
        return target_date
    return month_start(target_date.year, target_date.month + 1)


def resolve_fallback_billing_period(
    payment_day: int,
    billing_start_day: int,
    billing_end_day: int,
    target_date: date,
) -> BillingWindow:
    """
    Window from the card's stored billing days.

    Before the payment day: two months ago (start day) ~ last month (end day).
    On or after it: the same window shifted one month later.
    """
    rule = BillingRule(BillingOffset(-2, billing_start_day), BillingOffset(-1, billing_end_day))
    return apply_billing_rule(rule, pending_payment_month(payment_day, target_date))


def _company_rule_window(card: Card, payment_month: date) -> Optional[BillingWindow]:
    return resolve_billing_period(card.company, card.payment_day, payment_month)


def _stored_days_window(card: Card, payment_month: date) -> Optional[BillingWindow]:
    if not (card.billing_start_day and card.billing_end_day):
        return None
    rule = BillingRule(BillingOffset(-2, card.billing_start_day), BillingOffset(-1, card.billing_end_day))
    return apply_billing_rule(rule, payment_month)


# Tried in order, first non-None window wins
DEFAULT_WINDOW_RESOLVERS: Sequence[WindowResolver] = (_company_rule_window, _stored_days_window)


def resolve_card_billing_window(
    card: Card,
    target_date: date,
    resolvers: Sequence[WindowResolver] = DEFAULT_WINDOW_RESOLVERS,
) -> Optional[BillingWindow]:
    """Window of the card's pending payment as seen from target_date"""
    if not card.payment_day:
        return None

    payment_month = pending_payment_month(card.payment_day, target_date)
    for resolver in resolvers:
        window = resolver(card, payment_month)
        if window is not None:
            return window
    return None


def next_payment_date(payment_day: int, today: date) -> date:
    """This month's payment day if not yet past (today counts), else next month's"""
    if today.day <= payment_day:
        return date_at(today.year, today.month, payment_day)
    return date_at(today.year, today.month + 1, payment_day)


def days_until_payment(payment_day: Optional[int], today: date) -> Optional[int]:
    """Whole days until the next payment day; 0 on the payment day itself"""
    if not payment_day:
        return None
    return (next_payment_date(payment_day, today) - today).days
