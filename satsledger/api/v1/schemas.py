"""Pydantic schemas for API responses"""

from pydantic import BaseModel
from datetime import date
from typing import List, Optional


class PaymentSummarySchema(BaseModel):
    """One card's amount due for a single payment cycle"""

    card_id: str
    card_name: str
    payment_day: Optional[int] = None
    period_expenses: int
    period_expenses_sats: int
    installment_payments: int
    installment_payments_sats: int
    installment_count: int
    total_payment: int
    total_payment_sats: int
    billing_period_start: Optional[date] = None
    billing_period_end: Optional[date] = None
    days_until_payment: Optional[int] = None


class CardPaymentCyclesSchema(BaseModel):
    current: PaymentSummarySchema
    next: PaymentSummarySchema


class CardPaymentsResponse(BaseModel):
    """Response for GET /v1/cards/payments"""

    target_date: date
    btc_krw: Optional[float] = None
    cards: List[CardPaymentCyclesSchema]


class BalanceWarningSchema(BaseModel):
    asset_name: str
    requested: int
    actual: int


class DeductionResultSchema(BaseModel):
    processed: int
    skipped: int
    errors: List[str]
    warnings: List[BalanceWarningSchema] = []


class DeductionRunResponse(BaseModel):
    """Response for POST /v1/deductions/run"""

    cards: DeductionResultSchema
    loans: DeductionResultSchema
    installments: DeductionResultSchema


class PriceSyncResponse(BaseModel):
    """Response for POST /v1/prices/sync"""

    synced: int
    pending: int
