"""Valuation service: display fields derived from positions and market data."""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from tradeledger.core.timezone import now_eastern
from tradeledger.domain.models import Position
from tradeledger.domain.views import DividendInfo, PortfolioSummary, PositionView, Quote
from tradeledger.services.market_data_service import MarketDataService

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
HUNDRED = Decimal("100")
ZERO = Decimal("0")


def _round2(value: Optional[Decimal]) -> Optional[Decimal]:
    if value is None:
        return None
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_yields(
    position: Position,
    dividend: Optional[DividendInfo],
    last_price: Optional[Decimal],
) -> tuple[Optional[Decimal], Optional[Decimal], Optional[Decimal]]:
    """
    Return (cash_yield, total_yield, cost_yield) as unrounded percentages.

    Stock dividends are valued at the last price, falling back to avg_cost.
    Without a positive cash dividend every yield is 0.
    """
    if dividend is None or position.avg_cost == 0:
        return None, None, None
    if dividend.cash_dividend_per_share <= 0:
        return ZERO, ZERO, ZERO

    avg_cost = position.avg_cost
    cash_yield = dividend.cash_dividend_per_share / avg_cost * HUNDRED
    stock_price = last_price if last_price is not None else avg_cost
    stock_yield = dividend.stock_dividend_per_share * stock_price / avg_cost * HUNDRED
    total_yield = cash_yield + stock_yield
    return cash_yield, total_yield, total_yield


class ValuationService:
    """
    Builds PositionView and PortfolioSummary from read-only positions.

    Never changes positions. Missing quotes or dividend info leave the
    corresponding fields as None.
    """

    def __init__(self, market_data_service: MarketDataService):
        self._market = market_data_service

    def refresh(self, symbols: Iterable[str]) -> None:
        """Refetch market data for symbols; a failed fetch keeps the cached entries."""
        keys = sorted(set(symbols))
        if not keys:
            return
        self._market.refresh(keys)
        logger.debug("Refreshed market data for %s", ", ".join(keys))

    def build_view(
        self,
        position: Position,
        quote: Optional[Quote] = None,
        dividend: Optional[DividendInfo] = None,
        total_market_value: Optional[Decimal] = None,
    ) -> PositionView:
        """Compute display fields for one position."""
        total_value = position.shares * position.avg_cost
        last_price = quote.last_price if quote else None

        market_value: Optional[Decimal] = None
        unrealized_pnl: Optional[Decimal] = None
        unrealized_pnl_pct: Optional[Decimal] = None
        weight_pct: Optional[Decimal] = None
        if last_price is not None:
            market_value = position.shares * last_price
            unrealized_pnl = market_value - total_value
            if total_value != 0:
                unrealized_pnl_pct = unrealized_pnl / total_value * HUNDRED
            if total_market_value:
                weight_pct = market_value / total_market_value * HUNDRED

        cash_yield, total_yield, cost_yield = compute_yields(position, dividend, last_price)

        name = None
        if quote and quote.name:
            name = quote.name
        elif dividend and dividend.name:
            name = dividend.name

        return PositionView(
            symbol=position.symbol,
            shares=position.shares,
            avg_cost=position.avg_cost,
            total_value=_round2(total_value),
            name=name,
            last_price=last_price,
            market_value=_round2(market_value),
            unrealized_pnl=_round2(unrealized_pnl),
            unrealized_pnl_pct=_round2(unrealized_pnl_pct),
            weight_pct=_round2(weight_pct),
            cash_dividend_per_share=dividend.cash_dividend_per_share if dividend else None,
            stock_dividend_per_share=dividend.stock_dividend_per_share if dividend else None,
            cash_yield=_round2(cash_yield),
            total_yield=_round2(total_yield),
            cost_yield=_round2(cost_yield),
            as_of=quote.as_of if quote else None,
        )

    def list_views(self, positions: list[Position]) -> list[PositionView]:
        """Compute views for positions, sorted by symbol."""
        return self.summary(positions).positions

    def summary(self, positions: list[Position]) -> PortfolioSummary:
        """Aggregate valuation across positions."""
        ordered = sorted(positions, key=lambda p: p.symbol)
        symbols = [p.symbol for p in ordered]
        quotes = self._market.get_quotes(symbols) if symbols else {}
        dividends = self._market.get_dividend_info(symbols) if symbols else {}

        total_cost = sum((p.shares * p.avg_cost for p in ordered), ZERO)
        quoted = [p for p in ordered if p.symbol in quotes]
        total_market_value: Optional[Decimal] = None
        profit: Optional[Decimal] = None
        if quoted:
            total_market_value = sum(
                (p.shares * quotes[p.symbol].last_price for p in quoted), ZERO
            )
            profit = total_market_value - sum((p.shares * p.avg_cost for p in quoted), ZERO)

        views = [
            self.build_view(
                p,
                quote=quotes.get(p.symbol),
                dividend=dividends.get(p.symbol),
                total_market_value=total_market_value,
            )
            for p in ordered
        ]
        return PortfolioSummary(
            positions=views,
            total_cost=_round2(total_cost),
            total_market_value=_round2(total_market_value),
            profit=_round2(profit),
            as_of=now_eastern(),
        )
