"""Unit tests for valuing records saved while the price API was down"""

from dataclasses import replace
from datetime import date
from satsledger.domain.models import Expense
from satsledger.domain.price_sync import sync_pending_prices
from satsledger.utils.money import krw_to_sats


class FakeLedger:
    def __init__(self, expenses):
        self.expenses = {e.id: e for e in expenses}

    def list_unpriced_expenses(self):
        return [e for e in self.expenses.values() if e.needs_price_sync]

    def set_expense_price(self, expense_id, btc_krw):
        expense = self.expenses[expense_id]
        sats = krw_to_sats(expense.amount, btc_krw) if expense.currency == "KRW" else expense.amount
        self.expenses[expense_id] = replace(
            expense, btc_krw_at_time=int(btc_krw), sats_equivalent=sats, needs_price_sync=False
        )
        return self.expenses[expense_id]


def unpriced(expense_id, day, amount=50_000):
    return Expense(
        id=expense_id,
        date=day,
        amount=amount,
        currency="KRW",
        payment_method="bank",
        needs_price_sync=True,
    )


async def test_records_valued_at_their_own_day(price_client):
    price_client.history = {date(2026, 3, 1): 50_000_000, date(2026, 3, 2): 100_000_000}
    ledger = FakeLedger([unpriced("a", date(2026, 3, 1)), unpriced("b", date(2026, 3, 2))])

    result = await sync_pending_prices(ledger, price_client)

    assert result.synced == 2
    assert result.pending == 0
    assert ledger.expenses["a"].sats_equivalent == 100_000
    assert ledger.expenses["b"].sats_equivalent == 50_000
    assert not ledger.expenses["a"].needs_price_sync


async def test_one_lookup_per_day(price_client):
    price_client.history = {date(2026, 3, 1): 50_000_000}
    ledger = FakeLedger([unpriced("a", date(2026, 3, 1)), unpriced("b", date(2026, 3, 1), 25_000)])

    result = await sync_pending_prices(ledger, price_client)

    assert result.synced == 2
    assert price_client.history_calls == [date(2026, 3, 1)]
    assert ledger.expenses["b"].sats_equivalent == 50_000


async def test_failed_lookup_stays_flagged(price_client):
    """A day the API cannot price is retried next time; other days still sync"""
    price_client.history = {date(2026, 3, 2): 50_000_000}
    ledger = FakeLedger([unpriced("a", date(2026, 3, 1)), unpriced("b", date(2026, 3, 2))])

    result = await sync_pending_prices(ledger, price_client)

    assert result.synced == 1
    assert result.pending == 1
    assert ledger.expenses["a"].needs_price_sync
    assert ledger.expenses["a"].sats_equivalent is None
    assert ledger.expenses["b"].sats_equivalent == 100_000


async def test_sats_record_keeps_its_amount(price_client):
    price_client.history = {date(2026, 3, 1): 50_000_000}
    record = replace(unpriced("a", date(2026, 3, 1), 21_000), currency="SATS", sats_equivalent=21_000)
    ledger = FakeLedger([record])

    await sync_pending_prices(ledger, price_client)

    assert ledger.expenses["a"].sats_equivalent == 21_000
    assert ledger.expenses["a"].btc_krw_at_time == 50_000_000


async def test_nothing_pending(price_client):
    result = await sync_pending_prices(FakeLedger([]), price_client)

    assert (result.synced, result.pending) == (0, 0)
    assert price_client.history_calls == []
