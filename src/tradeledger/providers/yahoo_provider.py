"""
Yahoo Finance market data provider (via yfinance).

Per-symbol failures are swallowed and the symbol is omitted from the result;
timeouts and caching are handled by MarketDataService.
"""

import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from tradeledger.core.timezone import EASTERN_TZ, now_eastern
from tradeledger.domain.views import Quote, DividendInfo

logger = logging.getLogger(__name__)


# Lazy import so tests can patch before import
def _get_yf():
    import yfinance as yf
    return yf


def _to_price(value) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(str(value)).quantize(Decimal("0.01"))
    except (InvalidOperation, TypeError, ValueError):
        return None


def _epoch_to_date(value) -> Optional[date]:
    if not value:
        return None
    try:
        return datetime.fromtimestamp(int(value), EASTERN_TZ).date()
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def _safe_quote_for_symbol(symbol: str, tickers_obj) -> Optional[Quote]:
    """Build a Quote from a yfinance Tickers object; None on any error."""
    try:
        ticker = tickers_obj.tickers.get(symbol)
        if ticker is None:
            return None
        info = ticker.info
        if not isinstance(info, dict):
            return None
        # Price: currentPrice preferred, then regularMarketPrice
        price = _to_price(info.get("currentPrice") or info.get("regularMarketPrice"))
        if price is None:
            return None
        prev_close = _to_price(
            info.get("previousClose") or info.get("regularMarketPreviousClose")
        )
        name = (info.get("longName") or info.get("shortName") or "").strip() or symbol
        return Quote(
            symbol=symbol,
            last_price=price,
            prev_close=prev_close,
            as_of=now_eastern(),
            name=name,
        )
    except Exception as exc:
        logger.debug("Quote lookup failed for %s: %s", symbol, exc)
        return None


def _latest_stock_distribution(ticker) -> tuple[Decimal, Optional[date]]:
    """
    Extra shares per held share from the most recent split, if it grew the
    share count (stock dividends are reported as splits, e.g. 1.05).
    """
    splits = ticker.splits
    if splits is None or len(splits) == 0:
        return Decimal("0"), None
    ratio = Decimal(str(splits.iloc[-1]))
    if ratio <= 1:
        return Decimal("0"), None
    return ratio - 1, splits.index[-1].date()


def _safe_dividend_for_symbol(symbol: str, tickers_obj) -> Optional[DividendInfo]:
    """Build a DividendInfo from a yfinance Tickers object; None on any error."""
    try:
        ticker = tickers_obj.tickers.get(symbol)
        if ticker is None:
            return None
        info = ticker.info
        if not isinstance(info, dict):
            return None
        cash = info.get("lastDividendValue")
        if cash is None:
            cash = info.get("dividendRate")
        stock, ex_right_date = _latest_stock_distribution(ticker)
        return DividendInfo(
            symbol=symbol,
            cash_dividend_per_share=Decimal(str(cash)) if cash is not None else Decimal("0"),
            stock_dividend_per_share=stock,
            ex_dividend_date=_epoch_to_date(info.get("exDividendDate")),
            ex_right_date=ex_right_date,
            name=(info.get("longName") or info.get("shortName") or "").strip() or None,
        )
    except Exception as exc:
        logger.debug("Dividend lookup failed for %s: %s", symbol, exc)
        return None


class YahooFinanceProvider:
    """Fetches quotes and dividend info from Yahoo Finance."""

    def get_quotes(self, symbols: list[str]) -> dict[str, Quote]:
        """Fetch quotes; symbols without a usable price are omitted."""
        if not symbols:
            return {}
        yf = _get_yf()
        tickers = yf.Tickers(" ".join(symbols))
        result: dict[str, Quote] = {}
        for symbol in symbols:
            quote = _safe_quote_for_symbol(symbol, tickers)
            if quote is not None:
                result[symbol] = quote
        return result

    def get_dividend_info(self, symbols: list[str]) -> dict[str, DividendInfo]:
        """Fetch dividend info; symbols that fail are omitted."""
        if not symbols:
            return {}
        yf = _get_yf()
        tickers = yf.Tickers(" ".join(symbols))
        result: dict[str, DividendInfo] = {}
        for symbol in symbols:
            info = _safe_dividend_for_symbol(symbol, tickers)
            if info is not None:
                result[symbol] = info
        return result
