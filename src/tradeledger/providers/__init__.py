"""Market data providers module."""

from tradeledger.providers.market_data_provider import MarketDataProvider
from tradeledger.providers.stub_provider import StubMarketDataProvider
from tradeledger.providers.yahoo_provider import YahooFinanceProvider

__all__ = [
    "MarketDataProvider",
    "StubMarketDataProvider",
    "YahooFinanceProvider",
]
