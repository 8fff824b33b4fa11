"""Dependency injection for FastAPI endpoints"""

import logging
from typing import Optional
from fastapi import Request
from satsledger.config import settings
from satsledger.domain.exceptions import PriceAPIError
from satsledger.infrastructure.clients.price import PriceClient
from satsledger.infrastructure.observability.metrics import price_fetch_failures_counter


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_price_client() -> PriceClient:
    """Provide BTC price client instance"""
    return PriceClient()


def get_encryption_key() -> Optional[str]:
    """Key that unlocks the local stores, if the user has unlocked them"""
    return settings.encryption_key


async def fetch_btc_krw(price_client: PriceClient) -> Optional[float]:
    """Current BTC/KRW rate, or None when the price API is unavailable"""
    try:
        return await price_client.get_current_btc_krw()
    except PriceAPIError as e:
        price_fetch_failures_counter.inc()
        logging.warning(f"BTC price unavailable, sats valuation skipped: {e}")
        return None
