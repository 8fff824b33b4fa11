"""
Offline price sync.

Records saved while the price API was unreachable carry needs_price_sync and
no sats value. Each is valued at its own day's close; a failed lookup leaves
the record flagged for the next sync.
"""

import logging
from datetime import date
from typing import Dict, List, Protocol

from satsledger.domain.exceptions import PriceAPIError
from satsledger.domain.models import Expense, PriceSyncResult
from satsledger.infrastructure.observability.metrics import price_fetch_failures_counter

logger = logging.getLogger(__name__)


class HistoricalPriceSource(Protocol):
    async def get_historical_btc_krw(self, on: date) -> float: ...


class UnpricedLedger(Protocol):
    def list_unpriced_expenses(self) -> List[Expense]: ...

    def set_expense_price(self, expense_id: str, btc_krw: float) -> Expense: ...


async def sync_pending_prices(ledger: UnpricedLedger, prices: HistoricalPriceSource) -> PriceSyncResult:
    result = PriceSyncResult()
    # One lookup per day
    rates: Dict[date, float] = {}

    for expense in ledger.list_unpriced_expenses():
        if expense.date not in rates:
            try:
                rates[expense.date] = await prices.get_historical_btc_krw(expense.date)
            except PriceAPIError as e:
                price_fetch_failures_counter.inc()
                logger.warning(f"Price sync failed for {expense.date.isoformat()}, retrying later: {e}")
                result.pending += 1
                continue

        ledger.set_expense_price(expense.id, rates[expense.date])
        result.synced += 1

    if result.synced or result.pending:
        logger.info(f"Price sync: {result.synced} synced, {result.pending} pending")
    return result
