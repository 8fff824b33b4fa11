"""GET /v1/cards/payments - upcoming card payments"""

from dataclasses import asdict
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from satsledger.api.v1.schemas import CardPaymentsResponse, CardPaymentCyclesSchema
from satsledger.api.dependencies import fetch_btc_krw, get_price_client
from satsledger.infrastructure.database.session import get_db
from satsledger.infrastructure.database.repositories import CardRepository, DebtRepository, LedgerRepository
from satsledger.infrastructure.clients.price import PriceClient
from satsledger.domain.card_payments import calculate_all_cards_payment

router = APIRouter()


@router.get("/cards/payments", response_model=CardPaymentsResponse)
async def get_card_payments(
    target_date: Optional[date] = Query(None, description="Reference date, defaults to today"),
    db: Session = Depends(get_db),
    price_client: PriceClient = Depends(get_price_client),
):
    """
    Amount due per credit card for this payment and the next one.

    Installments are valued in sats at the current rate; without a rate
    their sats value is 0.
    """
    target = target_date or date.today()
    btc_krw = await fetch_btc_krw(price_client)

    cycles = calculate_all_cards_payment(
        CardRepository(db).list_cards(),
        LedgerRepository(db).list_expenses(),
        DebtRepository(db).list_installments(),
        target,
        btc_krw,
    )

    return CardPaymentsResponse(
        target_date=target,
        btc_krw=btc_krw,
        cards=[CardPaymentCyclesSchema.model_validate(asdict(c)) for c in cycles],
    )
