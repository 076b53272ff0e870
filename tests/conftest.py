"""
Pytest configuration and fixtures for trade ledger tests.

This module provides:
- In-memory SQLite database fixtures
- Draft factory helpers for each trade kind
- Deterministic and failing market data providers
- Ledger store, valuation and CSV fixtures
- FastAPI test client wired to the test database
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import pytest
from sqlalchemy import create_engine, StaticPool
from sqlalchemy.orm import sessionmaker, Session
from fastapi.testclient import TestClient

from tradeledger.main import app
from tradeledger.api import deps
from tradeledger.repositories.sqlalchemy.database import Base, reset_database
# Import ORM models to register them with Base before creating tables
from tradeledger.repositories.sqlalchemy import orm_models  # noqa: F401
from tradeledger.repositories.sqlalchemy import SqlAlchemyLedgerRepository
from tradeledger.providers.stub_provider import StubMarketDataProvider
from tradeledger.services import LedgerStore, MarketDataService, ValuationService
from tradeledger.csv import CsvImporter, CsvExporter
from tradeledger.domain.models import Position, TradeDraft, TradeKind, TradeRecord
from tradeledger.domain.views import Quote, DividendInfo
from tradeledger.core.timezone import EASTERN_TZ
from tradeledger.config.settings import Settings, reset_settings, set_settings


# =============================================================================
# TIMEZONE HELPERS
# =============================================================================


def eastern_datetime(
    year: int,
    month: int,
    day: int,
    hour: int = 10,
    minute: int = 0,
    second: int = 0,
) -> datetime:
    """Create a localized datetime in US/Eastern timezone."""
    return EASTERN_TZ.localize(datetime(year, month, day, hour, minute, second))


@pytest.fixture
def fixed_now() -> datetime:
    """Fixed 'now' timestamp for deterministic tests."""
    return eastern_datetime(2024, 6, 15, 14, 30, 0)


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="function")
def test_engine():
    """Create test database engine with shared in-memory SQLite."""
    # Reset settings for clean state
    reset_settings()

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def test_session(test_engine) -> Session:
    """Create test database session."""
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


# =============================================================================
# REPOSITORY FIXTURES
# =============================================================================


@pytest.fixture
def ledger_repo(test_session) -> SqlAlchemyLedgerRepository:
    """Provide test LedgerRepository."""
    return SqlAlchemyLedgerRepository(test_session)


# =============================================================================
# MARKET DATA FIXTURES
# =============================================================================


class DeterministicMarketProvider:
    """
    Deterministic market data provider for testing.

    Provides fixed quotes and dividends with no randomness; counts calls.
    """

    FIXED_QUOTES = {
        "AAPL": (Decimal("185.50"), Decimal("184.25")),
        "MSFT": (Decimal("378.25"), Decimal("376.80")),
        "2330": (Decimal("600.00"), Decimal("595.00")),
    }

    FIXED_DIVIDENDS = {
        "AAPL": (Decimal("3.00"), Decimal("0")),
        "2330": (Decimal("12.00"), Decimal("0.05")),
    }

    def __init__(self, as_of: Optional[datetime] = None):
        self._as_of = as_of or eastern_datetime(2024, 6, 15, 16, 0, 0)
        self.quote_calls = 0
        self.dividend_calls = 0

    def get_quotes(self, symbols: list[str]) -> dict[str, Quote]:
        """Return deterministic quotes for requested symbols."""
        self.quote_calls += 1
        result = {}
        for symbol in symbols:
            upper_symbol = symbol.upper()
            if upper_symbol in self.FIXED_QUOTES:
                last_price, prev_close = self.FIXED_QUOTES[upper_symbol]
                result[upper_symbol] = Quote(
                    symbol=upper_symbol,
                    last_price=last_price,
                    prev_close=prev_close,
                    as_of=self._as_of,
                    name=f"{upper_symbol} Corp",
                )
        return result

    def get_dividend_info(self, symbols: list[str]) -> dict[str, DividendInfo]:
        """Return deterministic dividend info for requested symbols."""
        self.dividend_calls += 1
        result = {}
        for symbol in symbols:
            upper_symbol = symbol.upper()
            if upper_symbol in self.FIXED_DIVIDENDS:
                cash, stock = self.FIXED_DIVIDENDS[upper_symbol]
                result[upper_symbol] = DividendInfo(
                    symbol=upper_symbol,
                    cash_dividend_per_share=cash,
                    stock_dividend_per_share=stock,
                )
        return result


class FailingMarketProvider:
    """Market provider that always raises an exception."""

    def get_quotes(self, symbols: list[str]) -> dict[str, Quote]:
        raise ConnectionError("Network unavailable")

    def get_dividend_info(self, symbols: list[str]) -> dict[str, DividendInfo]:
        raise ConnectionError("Network unavailable")


@pytest.fixture
def deterministic_provider(fixed_now) -> DeterministicMarketProvider:
    """Provide deterministic market data provider."""
    return DeterministicMarketProvider(as_of=fixed_now)


@pytest.fixture
def failing_provider() -> FailingMarketProvider:
    """Provide a market provider that always fails."""
    return FailingMarketProvider()


@pytest.fixture
def market_provider() -> StubMarketDataProvider:
    """Provide stub MarketDataProvider with fixed seed."""
    return StubMarketDataProvider(seed=42)


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def market_data_service(deterministic_provider) -> MarketDataService:
    """Provide test MarketDataService with deterministic provider."""
    return MarketDataService(
        provider=deterministic_provider,
        cache_ttl_seconds=60,
        fetch_timeout_seconds=5,
    )


@pytest.fixture
def valuation_service(market_data_service) -> ValuationService:
    """Provide test ValuationService."""
    return ValuationService(market_data_service)


@pytest.fixture
def ledger_store(ledger_repo, valuation_service) -> LedgerStore:
    """Provide test LedgerStore backed by the in-memory database."""
    return LedgerStore(repository=ledger_repo, valuation_service=valuation_service)


@pytest.fixture
def csv_importer(ledger_store) -> CsvImporter:
    """Provide test CsvImporter with default settings."""
    return CsvImporter(ledger_store, settings=Settings())


@pytest.fixture
def csv_exporter(ledger_store) -> CsvExporter:
    """Provide test CsvExporter."""
    return CsvExporter(ledger_store)


# =============================================================================
# PRESET DATA FIXTURES
# =============================================================================


@pytest.fixture
def aapl_ledger(ledger_store) -> tuple[LedgerStore, dict[str, TradeRecord]]:
    """
    Ledger after the reference AAPL sequence:
    BUY 100 @150 fee 10, BUY 100 @170 fee 10, SELL 50 @180 fee 5 tax 3.
    """
    trades = {
        "buy1": ledger_store.add_trade(buy_draft("AAPL", "100", "150", fee="10", day=1)),
        "buy2": ledger_store.add_trade(buy_draft("AAPL", "100", "170", fee="10", day=2)),
        "sell": ledger_store.add_trade(
            sell_draft("AAPL", "50", "180", fee="5", tax="3", day=3)
        ),
    }
    return ledger_store, trades


# =============================================================================
# API TEST CLIENT FIXTURE
# =============================================================================


@pytest.fixture
def client(test_session, valuation_service, tmp_path) -> TestClient:
    """Provide FastAPI test client with test database and deterministic quotes."""
    set_settings(Settings(data_dir=tmp_path))
    reset_database()
    deps.reset_dependencies()

    store = LedgerStore(
        repository=SqlAlchemyLedgerRepository(test_session),
        valuation_service=valuation_service,
    )
    app.dependency_overrides[deps.get_ledger_store] = lambda: store
    app.dependency_overrides[deps.get_valuation_service] = lambda: valuation_service
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    deps.reset_dependencies()
    reset_database()
    reset_settings()


# =============================================================================
# HELPER FUNCTIONS (exported for use in tests)
# =============================================================================


def assert_decimal_equal(
    actual: Decimal,
    expected: Decimal,
    tolerance: Decimal = Decimal("0.01"),
) -> None:
    """Assert two Decimals are equal within tolerance."""
    diff = abs(actual - expected)
    assert diff <= tolerance, f"Expected {expected}, got {actual} (diff={diff})"


def trade_day(day: int, month: int = 1, year: int = 2024) -> date:
    """Calendar date helper for trade dates."""
    return date(year, month, day)


def make_draft(
    kind: TradeKind,
    symbol: str,
    shares: str = "0",
    price: str = "0",
    fee: str = "0",
    tax: str = "0",
    day: int = 1,
    notes: str = "",
) -> TradeDraft:
    """Helper to create a TradeDraft of any kind."""
    return TradeDraft(
        trade_date=trade_day(day),
        symbol=symbol,
        kind=kind,
        shares=Decimal(shares),
        price=Decimal(price),
        fee=Decimal(fee),
        tax=Decimal(tax),
        notes=notes,
    )


def buy_draft(symbol: str, shares: str, price: str, fee: str = "0", day: int = 1) -> TradeDraft:
    """Helper to create BUY draft."""
    return make_draft(TradeKind.BUY, symbol, shares, price, fee=fee, day=day)


def sell_draft(
    symbol: str,
    shares: str,
    price: str,
    fee: str = "0",
    tax: str = "0",
    day: int = 1,
) -> TradeDraft:
    """Helper to create SELL draft."""
    return make_draft(TradeKind.SELL, symbol, shares, price, fee=fee, tax=tax, day=day)


def dividend_draft(symbol: str, per_share: str, day: int = 1) -> TradeDraft:
    """Helper to create CASH_DIVIDEND draft."""
    return make_draft(TradeKind.CASH_DIVIDEND, symbol, price=per_share, day=day)


def make_record(
    kind: TradeKind,
    symbol: str,
    shares: str = "0",
    price: str = "0",
    fee: str = "0",
    tax: str = "0",
    day: int = 1,
    trade_id: Optional[str] = None,
) -> TradeRecord:
    """Helper to create an unbooked TradeRecord for engine tests."""
    return TradeRecord(
        trade_id=trade_id or f"t-{kind.value.lower()}-{day}",
        trade_date=trade_day(day),
        symbol=symbol,
        kind=kind,
        shares=Decimal(shares),
        price=Decimal(price),
        fee=Decimal(fee),
        tax=Decimal(tax),
    )


def position(symbol: str, shares: str, avg_cost: str) -> Position:
    """Helper to create a Position."""
    return Position(symbol=symbol, shares=Decimal(shares), avg_cost=Decimal(avg_cost))
