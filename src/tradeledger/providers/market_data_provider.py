"""Market data provider protocol."""

from typing import Protocol

from tradeledger.domain.views import Quote, DividendInfo


class MarketDataProvider(Protocol):
    """
    Protocol for market data providers.

    Implementations may fail or be slow; callers go through MarketDataService,
    which applies caching and a fetch timeout.
    """

    def get_quotes(self, symbols: list[str]) -> dict[str, Quote]:
        """
        Fetch quotes for multiple symbols.

        Returns dict mapping symbol -> Quote. Missing symbols are omitted.
        """
        ...

    def get_dividend_info(self, symbols: list[str]) -> dict[str, DividendInfo]:
        """
        Fetch the latest announced per-share distributions.

        Returns dict mapping symbol -> DividendInfo. Missing symbols are omitted.
        """
        ...
