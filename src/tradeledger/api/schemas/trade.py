"""Pydantic schemas for trade endpoints."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from tradeledger.domain.models import TradeDraft
from tradeledger.domain.models.enums import TradeKind, RevisionAction


class TradeRequest(BaseModel):
    """
    Request schema for creating or replacing a trade.

    Range checks that depend on the kind (price > 0, shares > 0 except for
    cash dividends) are enforced by the ledger, not here.
    """

    trade_date: date = Field(..., description="Trade date")
    symbol: str = Field(..., min_length=1, max_length=20, description="Stock symbol")
    kind: TradeKind = Field(..., description="Trade kind")
    shares: Decimal = Field(default=Decimal("0"), description="Shares (ignored for CASH_DIVIDEND)")
    price: Decimal = Field(..., description="Price per share (dividend per share for CASH_DIVIDEND)")
    fee: Decimal = Field(default=Decimal("0"), ge=0, description="Broker fee")
    tax: Decimal = Field(default=Decimal("0"), ge=0, description="Transaction tax")
    notes: str = Field(default="", max_length=500, description="Optional note")

    @field_validator("symbol")
    @classmethod
    def uppercase_symbol(cls, v: str) -> str:
        return v.strip().upper()

    def to_draft(self) -> TradeDraft:
        return TradeDraft(
            trade_date=self.trade_date,
            symbol=self.symbol,
            kind=self.kind,
            shares=self.shares,
            price=self.price,
            fee=self.fee,
            tax=self.tax,
            notes=self.notes,
        )


class TradeResponse(BaseModel):
    """Response schema for a single trade."""

    model_config = {"from_attributes": True}

    trade_id: str
    trade_date: date
    symbol: str
    kind: TradeKind
    shares: Decimal
    price: Decimal
    fee: Decimal
    tax: Decimal
    total: Decimal
    net_total: Decimal
    notes: str = ""
    held_shares: Optional[Decimal] = None
    cost_basis: Optional[Decimal] = None
    created_at_est: Optional[datetime] = None
    updated_at_est: Optional[datetime] = None


class TradeListResponse(BaseModel):
    """Response schema for listing trades."""

    trades: list[TradeResponse]
    count: int


class RevisionResponse(BaseModel):
    """Response schema for one audit revision."""

    model_config = {"from_attributes": True}

    rev_id: str
    trade_id: str
    rev_time_est: datetime
    action: RevisionAction
    before_json: Optional[str] = None
    after_json: Optional[str] = None


class ParseWarningResponse(BaseModel):
    """A skipped or coerced CSV row."""

    model_config = {"from_attributes": True}

    row_number: int
    message: str
    line: str = ""


class ImportSummaryResponse(BaseModel):
    """Response schema for CSV import results."""

    model_config = {"from_attributes": True}

    imported_count: int
    skipped_count: int
    error_count: int
    warnings: list[ParseWarningResponse]
    errors: list[str]
    trade_ids: list[str]
    import_batch_id: Optional[str] = None
