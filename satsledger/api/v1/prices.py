"""POST /v1/prices/sync - value records saved while offline"""

import logging
from dataclasses import asdict
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from satsledger.api.v1.schemas import PriceSyncResponse
from satsledger.api.dependencies import get_encryption_key, get_price_client, get_request_id
from satsledger.infrastructure.database.session import get_db
from satsledger.infrastructure.database.repositories import LedgerRepository
from satsledger.infrastructure.clients.price import PriceClient
from satsledger.domain.deductions import AUTH_REQUIRED_MESSAGE
from satsledger.domain.price_sync import sync_pending_prices

router = APIRouter()


@router.post("/prices/sync", response_model=PriceSyncResponse)
async def sync_prices(
    request: Request,
    db: Session = Depends(get_db),
    price_client: PriceClient = Depends(get_price_client),
    encryption_key: Optional[str] = Depends(get_encryption_key),
):
    """Value every record flagged needs_price_sync at the close of its own day"""
    request_id = get_request_id(request)

    if not encryption_key:
        logging.warning("Price sync refused: store is locked", extra={"request_id": request_id})
        raise HTTPException(status_code=401, detail=AUTH_REQUIRED_MESSAGE)

    result = await sync_pending_prices(LedgerRepository(db), price_client)
    logging.info(
        "Price sync completed",
        extra={"request_id": request_id, "synced": result.synced, "pending": result.pending},
    )
    return PriceSyncResponse.model_validate(asdict(result))
