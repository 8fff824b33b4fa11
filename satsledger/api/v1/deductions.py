"""POST /v1/deductions/run - apply due card, loan and installment deductions"""

import time
import logging
from dataclasses import asdict
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from satsledger.api.v1.schemas import DeductionRunResponse
from satsledger.api.dependencies import fetch_btc_krw, get_encryption_key, get_price_client, get_request_id
from satsledger.infrastructure.database.session import SessionLocal, get_db
from satsledger.infrastructure.database.repositories import (
    AssetRepository,
    CardRepository,
    DebtRepository,
    DeductionMarkerRepository,
    LedgerRepository,
)
from satsledger.infrastructure.clients.price import PriceClient
from satsledger.domain.deductions import AutoDeductionService
from satsledger.domain.exceptions import AuthRequiredError
from satsledger.domain.price_sync import sync_pending_prices

router = APIRouter()


def build_deduction_service(db: Session, encryption_key: Optional[str]) -> AutoDeductionService:
    """Wire the deduction service to the SQL stores of one session"""
    return AutoDeductionService(
        cards=CardRepository(db),
        ledger=LedgerRepository(db),
        debts=DebtRepository(db),
        assets=AssetRepository(db),
        markers=DeductionMarkerRepository(db),
        encryption_key=lambda: encryption_key,
    )


async def run_launch_deductions() -> None:
    """
    Apply due deductions once at startup, then value records saved offline.

    A locked store skips the run. Errors are logged and never stop startup.
    """
    db = SessionLocal()
    try:
        service = build_deduction_service(db, get_encryption_key())
        try:
            service.require_encryption_key()
        except AuthRequiredError:
            logging.warning("Launch deductions skipped: store is locked")
            return

        price_client = PriceClient()
        service.btc_krw = await fetch_btc_krw(price_client)
        service.process_all_auto_deductions()

        # Still offline: leave flagged records for the next launch
        if service.btc_krw is not None:
            await sync_pending_prices(LedgerRepository(db), price_client)

    except Exception as e:
        logging.error(f"Launch deductions failed: {e}")
    finally:
        db.close()


@router.post("/deductions/run", response_model=DeductionRunResponse)
async def run_deductions(
    request: Request,
    db: Session = Depends(get_db),
    price_client: PriceClient = Depends(get_price_client),
    encryption_key: Optional[str] = Depends(get_encryption_key),
):
    """
    Run the deduction job on demand.

    Flow:
    1. Refuse when the stores are locked
    2. Fetch the current BTC/KRW rate (best effort)
    3. Cards, then loans, then installments
    4. Return per-phase counts, errors and balance warnings
    """
    start_time = time.time()
    request_id = get_request_id(request)

    service = build_deduction_service(db, encryption_key)

    try:
        service.require_encryption_key()
    except AuthRequiredError as e:
        logging.warning(f"Deduction run refused: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=401, detail=str(e))

    service.btc_krw = await fetch_btc_krw(price_client)
    report = service.process_all_auto_deductions()

    logging.info(
        "Deduction run completed",
        extra={"request_id": request_id, "duration_ms": (time.time() - start_time) * 1000},
    )
    return DeductionRunResponse.model_validate(asdict(report))
