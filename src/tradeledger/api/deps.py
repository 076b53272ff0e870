"""Dependency injection for FastAPI."""

from typing import Optional

from fastapi import Depends

from tradeledger.config.settings import get_settings
from tradeledger.csv import CsvImporter, CsvExporter
from tradeledger.providers import (
    MarketDataProvider,
    StubMarketDataProvider,
    YahooFinanceProvider,
)
from tradeledger.repositories.sqlalchemy import SqlAlchemyLedgerRepository, get_session
from tradeledger.services import LedgerStore, MarketDataService, ValuationService

# Process-wide instances: the store owns the ledger snapshot and its lock
_market_data_service: Optional[MarketDataService] = None
_ledger_store: Optional[LedgerStore] = None


def get_market_provider() -> MarketDataProvider:
    """Provide the MarketDataProvider selected in settings."""
    if get_settings().market_data_provider == "yahoo":
        return YahooFinanceProvider()
    return StubMarketDataProvider()


def get_market_data_service() -> MarketDataService:
    """Provide the shared MarketDataService (keeps the quote cache warm)."""
    global _market_data_service
    if _market_data_service is None:
        settings = get_settings()
        _market_data_service = MarketDataService(
            provider=get_market_provider(),
            cache_ttl_seconds=settings.quote_cache_ttl_seconds,
            fetch_timeout_seconds=settings.quote_fetch_timeout_seconds,
        )
    return _market_data_service


def get_valuation_service(
    market_data_service: MarketDataService = Depends(get_market_data_service),
) -> ValuationService:
    """Provide ValuationService instance."""
    return ValuationService(market_data_service)


def get_ledger_store() -> LedgerStore:
    """Provide the shared LedgerStore, loading the ledger on first use."""
    global _ledger_store
    if _ledger_store is None:
        _ledger_store = LedgerStore(
            repository=SqlAlchemyLedgerRepository(get_session()),
            valuation_service=ValuationService(get_market_data_service()),
        )
    return _ledger_store


def reset_dependencies() -> None:
    """Drop shared instances (after reconfiguring settings or the database)."""
    global _market_data_service, _ledger_store
    _market_data_service = None
    _ledger_store = None


def get_csv_importer(store: LedgerStore = Depends(get_ledger_store)) -> CsvImporter:
    """Provide CsvImporter instance."""
    return CsvImporter(store)


def get_csv_exporter(store: LedgerStore = Depends(get_ledger_store)) -> CsvExporter:
    """Provide CsvExporter instance."""
    return CsvExporter(store)
