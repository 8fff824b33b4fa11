"""Pytest fixtures for testing"""

import pytest
from datetime import date
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from satsledger.api.main import create_app
from satsledger.api.dependencies import get_encryption_key, get_price_client
from satsledger.infrastructure.database.models import Base
from satsledger.infrastructure.database.session import get_db
from satsledger.domain.exceptions import PriceAPIError
from satsledger.domain.models import Card, Expense, Installment


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

BTC_KRW = 50_000_000


class FakePriceClient:
    """Stands in for the Upbit client; fails when no rate is set"""

    def __init__(self, btc_krw=BTC_KRW):
        self.btc_krw = btc_krw
        # Daily closes by date; a missing day fails like an empty candle response
        self.history = {}
        self.history_calls = []

    async def get_current_btc_krw(self) -> float:
        if self.btc_krw is None:
            raise PriceAPIError("Price API unreachable")
        return float(self.btc_krw)

    async def get_historical_btc_krw(self, on: date) -> float:
        self.history_calls.append(on)
        if on not in self.history:
            raise PriceAPIError(f"No price data for {on.isoformat()}")
        return float(self.history[on])


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def price_client() -> FakePriceClient:
    return FakePriceClient()


@pytest.fixture
def client(db: Session, price_client: FakePriceClient) -> TestClient:
    """Create FastAPI test client with test database, fake prices and an unlocked store"""
    app = create_app(create_tables=False)

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_price_client] = lambda: price_client
    app.dependency_overrides[get_encryption_key] = lambda: "test-key"
    return TestClient(app)


@pytest.fixture
def shinhan_card() -> Card:
    """Shinhan credit card paid on the 14th, covering the previous calendar month"""
    return Card(
        id="card_shinhan",
        name="Shinhan Deep Dream",
        company="shinhan",
        type="credit",
        payment_day=14,
        billing_start_day=1,
        billing_end_day=31,
        linked_asset_id="asset_checking",
    )


@pytest.fixture
def sample_expenses() -> list[Expense]:
    """February and March spending on the Shinhan card plus unrelated records"""
    return [
        Expense(
            id="exp_coffee",
            date=date(2026, 2, 5),
            amount=30000,
            currency="KRW",
            payment_method="card",
            card_id="card_shinhan",
            sats_equivalent=300,
        ),
        Expense(
            id="exp_groceries",
            date=date(2026, 2, 20),
            amount=20000,
            currency="KRW",
            payment_method="card",
            card_id="card_shinhan",
            sats_equivalent=250,
        ),
        Expense(
            id="exp_march",
            date=date(2026, 3, 2),
            amount=5000,
            currency="KRW",
            payment_method="card",
            card_id="card_shinhan",
            sats_equivalent=60,
        ),
        # Billed through its Installment record instead
        Expense(
            id="exp_laptop",
            date=date(2026, 2, 10),
            amount=600000,
            currency="KRW",
            payment_method="card",
            card_id="card_shinhan",
            installment_months=6,
            sats_equivalent=7000,
        ),
        Expense(
            id="exp_cash",
            date=date(2026, 2, 11),
            amount=8000,
            currency="KRW",
            payment_method="cash",
            card_id="card_shinhan",
        ),
        Expense(
            id="exp_other_card",
            date=date(2026, 2, 12),
            amount=9000,
            currency="KRW",
            payment_method="card",
            card_id="card_other",
        ),
    ]


@pytest.fixture
def sample_installments() -> list[Installment]:
    return [
        Installment(
            id="inst_laptop",
            card_id="card_shinhan",
            store_name="Electronics Mart",
            total_amount=600000,
            months=6,
            monthly_payment=100000,
            paid_months=1,
            remaining_amount=500000,
            start_date=date(2026, 2, 10),
        ),
        Installment(
            id="inst_done",
            card_id="card_shinhan",
            store_name="Furniture",
            total_amount=300000,
            months=3,
            monthly_payment=100000,
            paid_months=3,
            remaining_amount=0,
            start_date=date(2025, 10, 1),
            status="completed",
        ),
    ]
