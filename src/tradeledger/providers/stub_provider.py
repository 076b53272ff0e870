"""Stub market data provider for offline/testing use."""

import random
from datetime import date
from decimal import Decimal

from tradeledger.core.timezone import now_eastern
from tradeledger.domain.views import Quote, DividendInfo


# Deterministic fake prices for common symbols: (last, prev_close, name)
_STUB_PRICES: dict[str, tuple[Decimal, Decimal, str]] = {
    "AAPL": (Decimal("185.50"), Decimal("184.25"), "Apple Inc."),
    "MSFT": (Decimal("378.25"), Decimal("376.80"), "Microsoft Corporation"),
    "NVDA": (Decimal("485.25"), Decimal("482.50"), "NVIDIA Corporation"),
    "SPY": (Decimal("485.25"), Decimal("484.10"), "SPDR S&P 500 ETF Trust"),
    "2330": (Decimal("580.00"), Decimal("575.00"), "TSMC"),
    "2884": (Decimal("27.50"), Decimal("27.35"), "E.SUN FHC"),
    "0056": (Decimal("36.80"), Decimal("36.75"), "Yuanta Taiwan High Dividend"),
}

# Deterministic distributions: (cash per share, stock shares per share, ex-dividend date)
_STUB_DIVIDENDS: dict[str, tuple[Decimal, Decimal, date]] = {
    "AAPL": (Decimal("0.96"), Decimal("0"), date(2024, 5, 10)),
    "MSFT": (Decimal("3.00"), Decimal("0"), date(2024, 5, 15)),
    "SPY": (Decimal("6.50"), Decimal("0"), date(2024, 6, 21)),
    "2330": (Decimal("14.00"), Decimal("0"), date(2024, 6, 13)),
    "2884": (Decimal("0.71"), Decimal("0.071"), date(2024, 7, 18)),
    "0056": (Decimal("2.80"), Decimal("0"), date(2024, 7, 16)),
}


class StubMarketDataProvider:
    """
    Stub provider with deterministic fake data for offline operation.

    Uses predefined prices for known symbols and seeded random prices for
    unknown ones. Dividend info exists only for known symbols.
    """

    def __init__(self, seed: int = 42):
        self._rng = random.Random(seed)

    def get_quotes(self, symbols: list[str]) -> dict[str, Quote]:
        """Return stub quotes for requested symbols."""
        as_of = now_eastern()
        result: dict[str, Quote] = {}

        for symbol in symbols:
            upper_symbol = symbol.upper()
            if upper_symbol in _STUB_PRICES:
                last_price, prev_close, name = _STUB_PRICES[upper_symbol]
            else:
                base_price = Decimal(str(50 + self._rng.random() * 200))
                last_price = base_price.quantize(Decimal("0.01"))
                change_pct = Decimal(str((self._rng.random() - 0.5) * 0.04))
                prev_close = (last_price / (1 + change_pct)).quantize(Decimal("0.01"))
                name = upper_symbol

            result[upper_symbol] = Quote(
                symbol=upper_symbol,
                last_price=last_price,
                prev_close=prev_close,
                as_of=as_of,
                name=name,
            )

        return result

    def get_dividend_info(self, symbols: list[str]) -> dict[str, DividendInfo]:
        """Return stub distributions for known symbols."""
        result: dict[str, DividendInfo] = {}
        for symbol in symbols:
            upper_symbol = symbol.upper()
            if upper_symbol not in _STUB_DIVIDENDS:
                continue
            cash, stock, ex_date = _STUB_DIVIDENDS[upper_symbol]
            result[upper_symbol] = DividendInfo(
                symbol=upper_symbol,
                cash_dividend_per_share=cash,
                stock_dividend_per_share=stock,
                ex_dividend_date=ex_date,
                ex_right_date=ex_date if stock > 0 else None,
                name=_STUB_PRICES[upper_symbol][2] if upper_symbol in _STUB_PRICES else None,
            )
        return result
