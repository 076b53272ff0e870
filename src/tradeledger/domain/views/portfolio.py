"""View models for valuation outputs."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional


@dataclass
class Quote:
    """Market quote data for a symbol."""

    symbol: str
    last_price: Decimal
    prev_close: Optional[Decimal] = None
    as_of: Optional[datetime] = None
    name: Optional[str] = None


@dataclass
class DividendInfo:
    """Latest announced per-share distributions for a symbol."""

    symbol: str
    cash_dividend_per_share: Decimal = field(default_factory=lambda: Decimal("0"))
    stock_dividend_per_share: Decimal = field(default_factory=lambda: Decimal("0"))
    ex_dividend_date: Optional[date] = None
    ex_right_date: Optional[date] = None
    name: Optional[str] = None


@dataclass
class PositionView:
    """
    Read-only view of a position with derived display fields.

    Yields are percentages. Fields are None when the data needed to compute
    them (quote, dividend info, non-zero cost) is unavailable.
    """

    symbol: str
    shares: Decimal
    avg_cost: Decimal
    total_value: Decimal
    name: Optional[str] = None
    last_price: Optional[Decimal] = None
    market_value: Optional[Decimal] = None
    unrealized_pnl: Optional[Decimal] = None
    unrealized_pnl_pct: Optional[Decimal] = None
    weight_pct: Optional[Decimal] = None
    cash_dividend_per_share: Optional[Decimal] = None
    stock_dividend_per_share: Optional[Decimal] = None
    cash_yield: Optional[Decimal] = None
    total_yield: Optional[Decimal] = None
    cost_yield: Optional[Decimal] = None
    as_of: Optional[datetime] = None


@dataclass
class PortfolioSummary:
    """Aggregate valuation across all positions."""

    positions: list[PositionView] = field(default_factory=list)
    total_cost: Decimal = field(default_factory=lambda: Decimal("0"))
    total_market_value: Optional[Decimal] = None
    profit: Optional[Decimal] = None
    as_of: Optional[datetime] = None
