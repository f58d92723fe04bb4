"""Pytest configuration and fixtures."""
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import gastos.models  # noqa: F401  (registers tables)
from gastos.api.dependencies import get_normalizer
from gastos.core.exceptions import RateProviderError
from gastos.db.base import Base
from gastos.db.session import get_db
from gastos.main import app
from gastos.schemas.expense import ExpenseRecord
from gastos.services.fx_service import CurrencyNormalizer, RateCache


class FakeClock:
    """Manually advanced clock returning epoch seconds."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeProvider:
    """Rate provider backed by a dict; unknown pairs fail like a provider outage."""

    def __init__(self, rates=None):
        self.rates = dict(rates or {})
        self.calls = []

    def fetch_rate(self, from_currency, to_currency):
        self.calls.append((from_currency, to_currency))
        try:
            return self.rates[(from_currency, to_currency)]
        except KeyError:
            raise RateProviderError(f"no rate for {from_currency}->{to_currency}")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def provider():
    return FakeProvider({
        ("USD", "ARS"): Decimal("1000"),
        ("ARS", "USD"): Decimal("0.001"),
        ("EUR", "USD"): Decimal("1.10"),
    })


@pytest.fixture
def normalizer(provider, clock):
    return CurrencyNormalizer(provider, cache=RateCache(ttl_seconds=3600, clock=clock), clock=clock)


@pytest.fixture
def db_session():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def client(db_session, normalizer):
    """API client wired to the in-memory database and the fake rate provider."""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_normalizer] = lambda: normalizer
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_expense():
    """Build normalized expense records for the pure computations."""
    counter = {"n": 0}

    def _make(payer_id, amount, participants=None, category=None,
              timestamp_millis=None, created_at_millis=1_700_000_000_000,
              is_fallback_rate=False):
        counter["n"] += 1
        amount = Decimal(str(amount))
        return ExpenseRecord(
            id=f"e{counter['n']}",
            payer_id=payer_id,
            amount=amount,
            currency="ARS",
            base_currency="ARS",
            normalized_amount=amount,
            participant_ids=participants or [payer_id],
            category=category,
            timestamp_millis=timestamp_millis,
            created_at_millis=created_at_millis,
            is_fallback_rate=is_fallback_rate,
        )

    return _make
