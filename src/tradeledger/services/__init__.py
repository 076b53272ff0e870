"""Service layer - business logic orchestration."""

from tradeledger.services.ledger_store import LedgerStore
from tradeledger.services.market_data_service import MarketDataService
from tradeledger.services.valuation_service import ValuationService

__all__ = [
    "LedgerStore",
    "MarketDataService",
    "ValuationService",
]
