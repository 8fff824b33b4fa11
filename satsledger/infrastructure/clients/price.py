"""Upbit HTTP client for BTC/KRW prices"""

import httpx
from datetime import date
from satsledger.domain.exceptions import PriceAPIError
from satsledger.config import settings


class PriceClient:
    """Client for the Upbit public quotation API"""

    def __init__(self, base_url: str | None = None, timeout: float | None = None, market: str | None = None):
        self.base_url = base_url or settings.price_api_base
        self.timeout = timeout or settings.http_timeout_seconds
        self.market = market or settings.price_market

    async def _get(self, path: str, params: dict) -> list:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.get(f"{self.base_url}{path}", params=params)
                response.raise_for_status()
                return response.json()

            except httpx.TimeoutException as e:
                raise PriceAPIError(f"Price API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise PriceAPIError(f"Price API error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise PriceAPIError(f"Price API unreachable: {e}") from e
            except ValueError as e:
                raise PriceAPIError(f"Invalid price data: {e}") from e

    async def get_current_btc_krw(self) -> float:
        """
        Latest BTC/KRW trade price.

        Raises:
            PriceAPIError: On timeout, HTTP errors, or invalid response
        """
        data = await self._get("/ticker", {"markets": self.market})
        try:
            return float(data[0]["trade_price"])
        except (IndexError, KeyError, TypeError, ValueError) as e:
            raise PriceAPIError(f"Invalid ticker data: {e}") from e

    async def get_historical_btc_krw(self, on: date) -> float:
        """
        Daily close for the given date.

        Raises:
            PriceAPIError: When the API fails or has no candle for the date
        """
        data = await self._get(
            "/candles/days",
            {"market": self.market, "to": f"{on.isoformat()}T23:59:59", "count": 1},
        )
        if not data:
            raise PriceAPIError(f"No price data for {on.isoformat()}")
        try:
            return float(data[0]["trade_price"])
        except (KeyError, TypeError, ValueError) as e:
            raise PriceAPIError(f"Invalid candle data: {e}") from e
