"""Unit tests for card payment aggregation"""

from datetime import date
from satsledger.domain.card_payments import (
    calculate_all_cards_payment,
    calculate_card_payment,
    calculate_card_payment_cycles,
    get_cards_with_payment_day,
)
from satsledger.domain.models import Card, Expense


BTC_KRW = 50_000_000


def test_current_cycle_totals(shinhan_card, sample_expenses, sample_installments):
    """February card spending plus the active installment's monthly payment"""
    summary = calculate_card_payment(shinhan_card, sample_expenses, sample_installments, date(2026, 3, 10), BTC_KRW)

    assert summary.billing_period_start == date(2026, 2, 1)
    assert summary.billing_period_end == date(2026, 2, 28)
    assert summary.period_expenses == 50000
    assert summary.installment_payments == 100000
    assert summary.installment_count == 1
    assert summary.total_payment == 150000
    assert summary.days_until_payment == 4


def test_mixed_sats_valuation(shinhan_card, sample_expenses, sample_installments):
    """Lump sums keep their record-time sats; installments use today's rate"""
    summary = calculate_card_payment(shinhan_card, sample_expenses, sample_installments, date(2026, 3, 10), BTC_KRW)

    assert summary.period_expenses_sats == 550
    assert summary.installment_payments_sats == 200000
    assert summary.total_payment_sats == 200550


def test_installment_sats_zero_without_rate(shinhan_card, sample_expenses, sample_installments):
    summary = calculate_card_payment(shinhan_card, sample_expenses, sample_installments, date(2026, 3, 10))

    assert summary.installment_payments_sats == 0
    assert summary.total_payment_sats == 550
    assert summary.total_payment == 150000


def test_payment_day_belongs_to_next_cycle(shinhan_card, sample_expenses, sample_installments):
    """On the 14th the pending payment is April's, covering March"""
    summary = calculate_card_payment(shinhan_card, sample_expenses, sample_installments, date(2026, 3, 14))

    assert summary.billing_period_start == date(2026, 3, 1)
    assert summary.billing_period_end == date(2026, 3, 31)
    assert summary.period_expenses == 5000
    assert summary.days_until_payment == 0


def test_zeroed_summary_without_billing_days(sample_expenses, sample_installments):
    card = Card(id="card_shinhan", name="No days", company="shinhan", type="credit", payment_day=14)

    summary = calculate_card_payment(card, sample_expenses, sample_installments, date(2026, 3, 10), BTC_KRW)

    assert summary.total_payment == 0
    assert summary.total_payment_sats == 0
    assert summary.billing_period_start is None
    assert summary.days_until_payment == 4


def test_payment_cycles_next(shinhan_card, sample_expenses, sample_installments):
    cycles = calculate_card_payment_cycles(
        shinhan_card, sample_expenses, sample_installments, date(2026, 3, 10), BTC_KRW
    )

    assert cycles.current.total_payment == 150000
    assert cycles.next.billing_period_start == date(2026, 3, 1)
    assert cycles.next.billing_period_end == date(2026, 3, 31)
    assert cycles.next.total_payment == 105000
    # 2026-03-10 -> 2026-04-14
    assert cycles.next.days_until_payment == 35


def test_all_cards_filtered_and_sorted(shinhan_card, sample_expenses, sample_installments):
    early = Card(
        id="card_early", name="Early", company="shinhan", type="credit",
        payment_day=5, billing_start_day=22, billing_end_day=21,
    )
    idle = Card(
        id="card_idle", name="Idle", company="shinhan", type="credit",
        payment_day=20, billing_start_day=7, billing_end_day=6,
    )
    debit = Card(id="card_other", name="Debit", company="shinhan", type="debit", payment_day=14)
    expenses = sample_expenses + [
        Expense(
            id="exp_early",
            date=date(2026, 3, 1),
            amount=10000,
            currency="KRW",
            payment_method="card",
            card_id="card_early",
        ),
    ]

    result = calculate_all_cards_payment(
        [early, idle, debit, shinhan_card], expenses, sample_installments, date(2026, 3, 10), BTC_KRW
    )

    # Shinhan pays in 4 days, Early on 2026-04-05; Idle owes nothing, debit cards are skipped
    assert [c.current.card_id for c in result] == ["card_shinhan", "card_early"]
    assert result[1].current.total_payment == 10000
    assert result[1].current.days_until_payment == 26


def test_all_cards_empty_when_nothing_due(shinhan_card):
    assert calculate_all_cards_payment([shinhan_card], [], [], date(2026, 3, 10)) == []


def test_cards_with_payment_day(shinhan_card):
    other = Card(id="c2", name="Other", company="hana", type="credit", payment_day=25)
    assert get_cards_with_payment_day([shinhan_card, other], 25) == [other]
    assert get_cards_with_payment_day([shinhan_card, other], 1) == []
