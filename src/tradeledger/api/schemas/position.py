"""Pydantic schemas for position and portfolio endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class PositionResponse(BaseModel):
    """Position with valuation fields (None when market data is unavailable)."""

    model_config = {"from_attributes": True}

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


class PositionsResponse(BaseModel):
    """Response schema for listing positions."""

    positions: list[PositionResponse]
    count: int


class PortfolioSummaryResponse(BaseModel):
    """Aggregate valuation across all positions."""

    model_config = {"from_attributes": True}

    positions: list[PositionResponse]
    total_cost: Decimal
    total_market_value: Optional[Decimal] = None
    profit: Optional[Decimal] = None
    as_of: Optional[datetime] = None


class ShareMismatchResponse(BaseModel):
    """A symbol whose held shares disagree with its trade history."""

    model_config = {"from_attributes": True}

    symbol: str
    held: Decimal
    expected: Decimal


class VerifyResponse(BaseModel):
    """Result of checking positions against the ledger."""

    consistent: bool
    mismatches: list[ShareMismatchResponse]


class RemovePositionResponse(BaseModel):
    """Result of removing a position and purging its trades."""

    symbol: str
    purged_count: int
