"""
Unit tests for MarketDataService.

Tests cover:
- Quote and dividend retrieval
- TTL caching with an injected clock
- Forced refresh
- Stale fallback on provider failure and timeout
- Stub provider determinism
"""

import logging
import threading
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from tradeledger.services import MarketDataService
from tradeledger.domain.views import Quote
from tradeledger.providers.stub_provider import StubMarketDataProvider

from tests.conftest import (
    DeterministicMarketProvider,
    FailingMarketProvider,
    eastern_datetime,
)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# =============================================================================
# BASIC RETRIEVAL TESTS
# =============================================================================


class TestGetQuotes:
    """Tests for basic quote retrieval."""

    def test_get_quotes_returns_quote_data(self, deterministic_provider):
        """
        GIVEN a market data provider with an AAPL quote
        WHEN I call get_quotes(["AAPL"])
        THEN the result contains last_price, prev_close and as_of
        """
        service = MarketDataService(provider=deterministic_provider, cache_ttl_seconds=60)

        quotes = service.get_quotes(["AAPL"])

        quote = quotes["AAPL"]
        assert quote.last_price == Decimal("185.50")
        assert quote.prev_close == Decimal("184.25")
        assert quote.as_of is not None

    def test_empty_list_returns_empty_dict(self, deterministic_provider):
        service = MarketDataService(provider=deterministic_provider)

        assert service.get_quotes([]) == {}
        assert deterministic_provider.quote_calls == 0

    def test_symbols_are_normalized(self, deterministic_provider):
        service = MarketDataService(provider=deterministic_provider)

        quotes = service.get_quotes([" aapl", "msft "])

        assert set(quotes) == {"AAPL", "MSFT"}

    def test_unknown_symbol_is_missing(self, deterministic_provider):
        service = MarketDataService(provider=deterministic_provider)

        quotes = service.get_quotes(["AAPL", "ZZZZ"])

        assert "ZZZZ" not in quotes
        assert "AAPL" in quotes

    def test_dividend_info(self, deterministic_provider):
        service = MarketDataService(provider=deterministic_provider)

        info = service.get_dividend_info(["2330", "MSFT"])

        assert info["2330"].cash_dividend_per_share == Decimal("12.00")
        assert info["2330"].stock_dividend_per_share == Decimal("0.05")
        assert "MSFT" not in info


# =============================================================================
# CACHE TESTS
# =============================================================================


class TestCache:
    """Tests for TTL caching and invalidation."""

    def test_cached_within_ttl(self, deterministic_provider, clock):
        """
        GIVEN a 60 second TTL
        WHEN the same symbol is requested twice within 30 seconds
        THEN the provider is called once
        """
        service = MarketDataService(deterministic_provider, cache_ttl_seconds=60, clock=clock)

        service.get_quotes(["AAPL"])
        clock.advance(30)
        service.get_quotes(["AAPL"])

        assert deterministic_provider.quote_calls == 1

    def test_refetched_after_ttl(self, deterministic_provider, clock):
        service = MarketDataService(deterministic_provider, cache_ttl_seconds=60, clock=clock)

        service.get_quotes(["AAPL"])
        clock.advance(61)
        service.get_quotes(["AAPL"])

        assert deterministic_provider.quote_calls == 2

    def test_only_missing_symbols_are_fetched(self, clock):
        provider = MagicMock()
        provider.get_quotes.side_effect = lambda symbols: {
            s: Quote(symbol=s, last_price=Decimal("1")) for s in symbols
        }
        service = MarketDataService(provider, cache_ttl_seconds=60, clock=clock)

        service.get_quotes(["AAPL"])
        service.get_quotes(["AAPL", "MSFT"])

        assert provider.get_quotes.call_args_list[1].args[0] == ["MSFT"]

    def test_refresh_ignores_ttl(self, deterministic_provider, clock):
        service = MarketDataService(deterministic_provider, cache_ttl_seconds=60, clock=clock)
        service.get_quotes(["AAPL"])
        service.get_dividend_info(["AAPL"])

        service.refresh(["aapl"])
        service.get_quotes(["AAPL"])
        service.get_dividend_info(["AAPL"])

        assert deterministic_provider.quote_calls == 2
        assert deterministic_provider.dividend_calls == 2

    def test_refresh_of_no_symbols(self, deterministic_provider):
        service = MarketDataService(deterministic_provider)

        service.refresh(["", "  "])

        assert deterministic_provider.quote_calls == 0


# =============================================================================
# DEGRADATION TESTS
# =============================================================================


class TestDegradation:
    """Tests for provider failures and timeouts."""

    def test_failing_provider_returns_empty(self, failing_provider: FailingMarketProvider, caplog):
        """
        GIVEN a provider that raises
        WHEN quotes are requested with nothing cached
        THEN an empty result is returned and a warning is logged
        """
        service = MarketDataService(provider=failing_provider)

        with caplog.at_level(logging.WARNING):
            quotes = service.get_quotes(["AAPL"])

        assert quotes == {}
        assert "Network unavailable" in caplog.text

    def test_stale_entry_served_on_failure(self, clock):
        """
        GIVEN a cached AAPL quote that has expired
        WHEN the provider fails on refresh
        THEN the stale quote is returned
        """
        stale = Quote(symbol="AAPL", last_price=Decimal("185.50"), as_of=eastern_datetime(2024, 6, 14))
        provider = MagicMock()
        provider.get_quotes.side_effect = [{"AAPL": stale}, ConnectionError("down")]
        service = MarketDataService(provider, cache_ttl_seconds=60, clock=clock)

        service.get_quotes(["AAPL"])
        clock.advance(120)
        quotes = service.get_quotes(["AAPL"])

        assert quotes["AAPL"] is stale
        assert provider.get_quotes.call_count == 2

    def test_partial_result_keeps_stale_for_missing(self, clock):
        provider = MagicMock()
        provider.get_quotes.side_effect = [
            {
                "AAPL": Quote(symbol="AAPL", last_price=Decimal("1")),
                "MSFT": Quote(symbol="MSFT", last_price=Decimal("2")),
            },
            {"AAPL": Quote(symbol="AAPL", last_price=Decimal("3"))},
        ]
        service = MarketDataService(provider, cache_ttl_seconds=60, clock=clock)

        service.get_quotes(["AAPL", "MSFT"])
        clock.advance(61)
        quotes = service.get_quotes(["AAPL", "MSFT"])

        assert quotes["AAPL"].last_price == Decimal("3")
        assert quotes["MSFT"].last_price == Decimal("2")

    def test_failed_refresh_keeps_cached_entry(self, clock, caplog):
        """
        GIVEN a cached AAPL quote
        WHEN a refresh fails and the TTL later expires with the provider still down
        THEN the cached quote is still served
        """
        stale = Quote(symbol="AAPL", last_price=Decimal("185.50"), as_of=eastern_datetime(2024, 6, 14))
        provider = MagicMock()
        provider.get_quotes.side_effect = [
            {"AAPL": stale},
            ConnectionError("down"),
            ConnectionError("down"),
        ]
        provider.get_dividend_info.return_value = {}
        service = MarketDataService(provider, cache_ttl_seconds=60, clock=clock)
        service.get_quotes(["AAPL"])

        with caplog.at_level(logging.WARNING):
            service.refresh(["AAPL"])
        clock.advance(120)
        quotes = service.get_quotes(["AAPL"])

        assert quotes["AAPL"] is stale
        assert provider.get_quotes.call_count == 3
        assert "Failed to refresh quotes" in caplog.text

    def test_slow_refresh_shares_one_timeout(self, clock, caplog):
        release = threading.Event()

        class SlowProvider(DeterministicMarketProvider):
            def get_quotes(self, symbols):
                release.wait(5)
                return super().get_quotes(symbols)

            def get_dividend_info(self, symbols):
                release.wait(5)
                return super().get_dividend_info(symbols)

        provider = SlowProvider()
        service = MarketDataService(provider, fetch_timeout_seconds=0.05, clock=clock)

        try:
            with caplog.at_level(logging.WARNING):
                service.refresh(["AAPL"])
        finally:
            release.set()

        assert "Timed out refreshing quotes" in caplog.text
        assert "Timed out refreshing dividend info" in caplog.text

    def test_slow_provider_times_out(self, caplog):
        release = threading.Event()

        class SlowProvider(DeterministicMarketProvider):
            def get_quotes(self, symbols):
                release.wait(5)
                return super().get_quotes(symbols)

        service = MarketDataService(SlowProvider(), fetch_timeout_seconds=0.05)

        try:
            with caplog.at_level(logging.WARNING):
                quotes = service.get_quotes(["AAPL"])
        finally:
            release.set()

        assert quotes == {}
        assert "Timed out" in caplog.text


# =============================================================================
# STUB PROVIDER TESTS
# =============================================================================


class TestStubProvider:
    """Tests for the offline stub provider."""

    def test_known_symbol_has_fixed_price(self):
        provider = StubMarketDataProvider(seed=1)

        first = provider.get_quotes(["AAPL"])["AAPL"]
        second = StubMarketDataProvider(seed=2).get_quotes(["AAPL"])["AAPL"]

        assert first.last_price == second.last_price
        assert first.name

    def test_unknown_symbol_is_seeded(self):
        a = StubMarketDataProvider(seed=42).get_quotes(["ZZZZ"])["ZZZZ"]
        b = StubMarketDataProvider(seed=42).get_quotes(["ZZZZ"])["ZZZZ"]

        assert a.last_price == b.last_price
        assert a.last_price > 0
