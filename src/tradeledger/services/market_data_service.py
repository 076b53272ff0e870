"""Market data service for quotes and dividend info."""

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FuturesTimeoutError, wait
from typing import Callable, TypeVar

from tradeledger.domain.views import Quote, DividendInfo
from tradeledger.providers.market_data_provider import MarketDataProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 120
DEFAULT_FETCH_TIMEOUT_SECONDS = 10.0


class MarketDataService:
    """
    Service for fetching market data (quotes, dividend info).

    Wraps a provider with a per-symbol TTL cache and a fetch timeout. On
    timeout or provider failure, stale cached entries are returned and
    symbols never fetched are simply missing from the result.
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        cache_ttl_seconds: float = DEFAULT_TTL_SECONDS,
        fetch_timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._provider = provider
        self._ttl = cache_ttl_seconds
        self._fetch_timeout = fetch_timeout_seconds
        self._clock = clock
        # symbol -> (value, cached_at)
        self._quote_cache: dict[str, tuple[Quote, float]] = {}
        self._dividend_cache: dict[str, tuple[DividendInfo, float]] = {}

    def get_quotes(self, symbols: list[str]) -> dict[str, Quote]:
        """Return quotes for symbols, using cached entries within TTL."""
        return self._get_cached(symbols, self._quote_cache, self._provider.get_quotes, "quotes")

    def get_dividend_info(self, symbols: list[str]) -> dict[str, DividendInfo]:
        """Return dividend info for symbols, using cached entries within TTL."""
        return self._get_cached(
            symbols, self._dividend_cache, self._provider.get_dividend_info, "dividend info"
        )

    def refresh(self, symbols: list[str]) -> None:
        """
        Refetch quotes and dividend info for symbols, ignoring the TTL.

        Both fetches run concurrently under one timeout. Symbols the provider
        does not return keep their previous cache entries.
        """
        keys = _normalize(symbols)
        if not keys:
            return

        executor = ThreadPoolExecutor(max_workers=2)
        try:
            quotes = executor.submit(self._provider.get_quotes, keys)
            dividends = executor.submit(self._provider.get_dividend_info, keys)
            done, _ = wait([quotes, dividends], timeout=self._fetch_timeout)
            fetched_at = self._clock()
            self._store_refreshed(quotes, quotes in done, keys, self._quote_cache, fetched_at, "quotes")
            self._store_refreshed(
                dividends, dividends in done, keys, self._dividend_cache, fetched_at, "dividend info"
            )
        finally:
            executor.shutdown(wait=False)

    def _get_cached(
        self,
        symbols: list[str],
        cache: dict[str, tuple[T, float]],
        fetch: Callable[[list[str]], dict[str, T]],
        label: str,
    ) -> dict[str, T]:
        keys = _normalize(symbols)
        if not keys:
            return {}

        now = self._clock()
        result: dict[str, T] = {}
        to_fetch: list[str] = []
        for key in keys:
            cached = cache.get(key)
            if cached is not None and now - cached[1] <= self._ttl:
                result[key] = cached[0]
            else:
                to_fetch.append(key)

        if to_fetch:
            fetched = self._fetch_with_timeout(fetch, to_fetch, label)
            fetched_at = self._clock()
            for key in to_fetch:
                if key in fetched:
                    cache[key] = (fetched[key], fetched_at)
                    result[key] = fetched[key]
                elif key in cache:
                    # Graceful degradation: serve the stale entry
                    result[key] = cache[key][0]

        return result

    def _store_refreshed(
        self,
        future: Future,
        finished: bool,
        keys: list[str],
        cache: dict[str, tuple[T, float]],
        fetched_at: float,
        label: str,
    ) -> None:
        if not finished:
            logger.warning("Timed out refreshing %s for %s", label, ", ".join(keys))
            return
        try:
            fetched = future.result() or {}
        except Exception as exc:
            logger.warning("Failed to refresh %s for %s: %s", label, ", ".join(keys), exc)
            return
        for key in keys:
            if key in fetched:
                cache[key] = (fetched[key], fetched_at)

    def _fetch_with_timeout(
        self,
        fetch: Callable[[list[str]], dict[str, T]],
        symbols: list[str],
        label: str,
    ) -> dict[str, T]:
        executor = ThreadPoolExecutor(max_workers=1)
        try:
            future = executor.submit(fetch, symbols)
            return future.result(timeout=self._fetch_timeout) or {}
        except FuturesTimeoutError:
            logger.warning("Timed out fetching %s for %s", label, ", ".join(symbols))
            return {}
        except Exception as exc:
            logger.warning("Failed to fetch %s for %s: %s", label, ", ".join(symbols), exc)
            return {}
        finally:
            executor.shutdown(wait=False)


def _normalize(symbols: list[str]) -> list[str]:
    return [s.strip().upper() for s in symbols if s and s.strip()]
