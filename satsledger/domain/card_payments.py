"""
Card payment aggregation - what each credit card will charge on its payment day.

Totals are reported in KRW and in sats. The sats total mixes two valuations:
lump-sum spending uses the sats value stored on each record when it was
entered, while pending installments are valued at the current BTC/KRW rate.
"""

from dataclasses import replace
from datetime import date
from typing import Iterable, List, Optional

from satsledger.domain.billing_periods import days_until_payment, next_payment_date, resolve_card_billing_window
from satsledger.domain.models import Card, CardPaymentCycles, Expense, Installment, PaymentSummary
from satsledger.utils.date_utils import add_months
from satsledger.utils.money import krw_to_sats

UNKNOWN_DAYS_UNTIL_PAYMENT = 999


def _is_lump_sum_card_expense(expense: Expense, card_id: str) -> bool:
    if expense.payment_method != "card" or expense.card_id != card_id:
        return False
    # Installment purchases are billed through their Installment record
    return not (expense.installment_months and expense.installment_months > 1)


def calculate_card_payment(
    card: Card,
    expenses: Iterable[Expense],
    installments: Iterable[Installment],
    target_date: date,
    btc_krw: Optional[float] = None,
) -> PaymentSummary:
    """
    Payment due for the card's pending cycle as seen from target_date.

    Cards without a payment day or stored billing days get a zeroed summary.

    Args:
        card: Card to aggregate
        expenses: Full ledger; filtered to this card's lump-sum spending
        installments: All installments; filtered to this card's active ones
        target_date: Reference date ("today")
        btc_krw: Current BTC/KRW rate used to value installments in sats
    """
    summary = PaymentSummary(
        card_id=card.id,
        card_name=card.name,
        payment_day=card.payment_day,
        days_until_payment=days_until_payment(card.payment_day, target_date),
    )

    if not (card.payment_day and card.billing_start_day and card.billing_end_day):
        return summary

    window = resolve_card_billing_window(card, target_date)
    if window is None:
        return summary

    summary.billing_period_start = window.start_date
    summary.billing_period_end = window.end_date

    # 1. Lump-sum spending inside the window, sats as stored at record time
    card_expenses = [
        e
        for e in expenses
        if _is_lump_sum_card_expense(e, card.id) and window.start_date <= e.date <= window.end_date
    ]
    summary.period_expenses = sum(e.amount for e in card_expenses)
    summary.period_expenses_sats = sum(e.sats_equivalent or 0 for e in card_expenses)

    # 2. Monthly payments of the card's active installments, sats at today's rate
    card_installments = [i for i in installments if i.card_id == card.id and i.status == "active"]
    summary.installment_payments = sum(i.monthly_payment for i in card_installments)
    summary.installment_count = len(card_installments)
    if btc_krw and summary.installment_payments > 0:
        summary.installment_payments_sats = krw_to_sats(summary.installment_payments, btc_krw)

    # 3. Totals
    summary.total_payment = summary.period_expenses + summary.installment_payments
    summary.total_payment_sats = summary.period_expenses_sats + summary.installment_payments_sats

    return summary


def calculate_card_payment_cycles(
    card: Card,
    expenses: Iterable[Expense],
    installments: Iterable[Installment],
    target_date: date,
    btc_krw: Optional[float] = None,
) -> CardPaymentCycles:
    """Pending payment plus the one after it, both counted from target_date"""
    expenses = list(expenses)
    installments = list(installments)

    current = calculate_card_payment(card, expenses, installments, target_date, btc_krw)
    upcoming = calculate_card_payment(card, expenses, installments, add_months(target_date, 1), btc_krw)

    if card.payment_day:
        following = add_months(next_payment_date(card.payment_day, target_date), 1)
        upcoming = replace(upcoming, days_until_payment=(following - target_date).days)

    return CardPaymentCycles(current=current, next=upcoming)


def calculate_all_cards_payment(
    cards: Iterable[Card],
    expenses: Iterable[Expense],
    installments: Iterable[Installment],
    target_date: date,
    btc_krw: Optional[float] = None,
) -> List[CardPaymentCycles]:
    """
    Payment cycles for every credit card with a payment day.

    Only cards owing something this cycle or next are returned, soonest
    payment first (unknown days sort last).
    """
    expenses = list(expenses)
    installments = list(installments)

    cycles = [
        calculate_card_payment_cycles(card, expenses, installments, target_date, btc_krw)
        for card in cards
        if card.type == "credit" and card.payment_day
    ]
    due = [c for c in cycles if c.current.total_payment > 0 or c.next.total_payment > 0]

    def sort_key(c: CardPaymentCycles) -> int:
        days = c.current.days_until_payment
        return UNKNOWN_DAYS_UNTIL_PAYMENT if days is None else days

    return sorted(due, key=sort_key)


def get_cards_with_payment_day(cards: Iterable[Card], day: int) -> List[Card]:
    return [c for c in cards if c.payment_day == day]
