"""Unit tests for the Upbit price client"""

import httpx
import pytest
from datetime import date
from unittest.mock import AsyncMock, patch
from satsledger.domain.exceptions import PriceAPIError
from satsledger.infrastructure.clients.price import PriceClient
from satsledger.utils.money import krw_to_sats, round_half_up, sats_to_krw


async def test_current_price_parsed():
    client = PriceClient(base_url="https://price.test/v1")
    with patch.object(PriceClient, "_get", AsyncMock(return_value=[{"trade_price": 95_000_000.0}])) as mock_get:
        assert await client.get_current_btc_krw() == 95_000_000.0
    mock_get.assert_awaited_once_with("/ticker", {"markets": "KRW-BTC"})


async def test_historical_price_requests_day_close():
    client = PriceClient(base_url="https://price.test/v1")
    with patch.object(PriceClient, "_get", AsyncMock(return_value=[{"trade_price": 80_000_000}])) as mock_get:
        assert await client.get_historical_btc_krw(date(2026, 2, 1)) == 80_000_000.0
    mock_get.assert_awaited_once_with(
        "/candles/days", {"market": "KRW-BTC", "to": "2026-02-01T23:59:59", "count": 1}
    )


async def test_historical_price_missing():
    client = PriceClient()
    with patch.object(PriceClient, "_get", AsyncMock(return_value=[])):
        with pytest.raises(PriceAPIError):
            await client.get_historical_btc_krw(date(2026, 2, 1))


async def test_malformed_ticker():
    client = PriceClient()
    with patch.object(PriceClient, "_get", AsyncMock(return_value=[{"price": 1}])):
        with pytest.raises(PriceAPIError):
            await client.get_current_btc_krw()


async def test_timeout_raises_price_error():
    client = PriceClient(timeout=0.1)
    with patch("httpx.AsyncClient.get", AsyncMock(side_effect=httpx.ConnectTimeout("timed out"))):
        with pytest.raises(PriceAPIError, match="timeout"):
            await client.get_current_btc_krw()


def test_sats_conversions():
    assert krw_to_sats(100_000, 50_000_000) == 200_000
    assert krw_to_sats(100_000, 0) == 0
    assert sats_to_krw(200_000, 50_000_000) == 100_000
    assert round_half_up(2.5) == 3
    assert round_half_up(-2.5) == -3
