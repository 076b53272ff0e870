"""TradeDraft, TradeRecord and TradeRevision domain models."""

import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union

from tradeledger.core.timezone import now_eastern, parse_trade_date
from tradeledger.domain.models.enums import (
    TradeKind,
    RevisionAction,
    SHARE_INCREASING_KINDS,
    SHARE_DECREASING_KINDS,
    FEE_KINDS,
    TAX_KINDS,
)

Number = Union[Decimal, int, float, str]


def to_decimal(value: Optional[Number]) -> Decimal:
    """Coerce a number to Decimal via its string form; None -> 0."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def normalize_symbol(symbol: Optional[str]) -> str:
    """Strip whitespace and uppercase; None -> empty string."""
    return (symbol or "").strip().upper()


def new_trade_id() -> str:
    """Sortable id: creation time in ms plus a random suffix."""
    millis = int(now_eastern().timestamp() * 1000)
    return f"{millis:013d}-{uuid.uuid4().hex[:8]}"


@dataclass
class TradeDraft:
    """
    Caller-supplied trade input.

    Carries no derived fields; totals are computed when the draft is booked.
    """

    trade_date: date
    symbol: str
    kind: TradeKind
    shares: Decimal = field(default_factory=lambda: Decimal("0"))
    price: Decimal = field(default_factory=lambda: Decimal("0"))
    fee: Decimal = field(default_factory=lambda: Decimal("0"))
    tax: Decimal = field(default_factory=lambda: Decimal("0"))
    notes: str = ""

    def __post_init__(self) -> None:
        if self.trade_date is not None:
            self.trade_date = parse_trade_date(self.trade_date)
        if isinstance(self.kind, str):
            self.kind = TradeKind(self.kind)
        self.symbol = normalize_symbol(self.symbol)
        self.shares = to_decimal(self.shares)
        self.price = to_decimal(self.price)
        self.fee = to_decimal(self.fee)
        self.tax = to_decimal(self.tax)
        self.notes = (self.notes or "").strip()

    def normalized(self) -> "TradeDraft":
        """
        Return a copy with kind-irrelevant quantities forced to zero.

        Cash dividends carry no shares; fee and tax only apply to the kinds
        that bear them.
        """
        return replace(
            self,
            shares=Decimal("0") if self.kind == TradeKind.CASH_DIVIDEND else self.shares,
            fee=self.fee if self.kind in FEE_KINDS else Decimal("0"),
            tax=self.tax if self.kind in TAX_KINDS else Decimal("0"),
        )


@dataclass
class TradeRecord:
    """
    Booked ledger event (source of truth for positions).

    ``total``, ``net_total``, ``held_shares`` and ``cost_basis`` are filled in
    by the ledger engine when the trade is booked:
    - held_shares: shares held when a cash dividend was booked
    - cost_basis: average cost per share just before a share-decreasing trade
    - reversal_of: set only on synthetic inverse trades
    """

    trade_id: str
    trade_date: date
    symbol: str
    kind: TradeKind
    shares: Decimal = field(default_factory=lambda: Decimal("0"))
    price: Decimal = field(default_factory=lambda: Decimal("0"))
    fee: Decimal = field(default_factory=lambda: Decimal("0"))
    tax: Decimal = field(default_factory=lambda: Decimal("0"))
    total: Decimal = field(default_factory=lambda: Decimal("0"))
    net_total: Decimal = field(default_factory=lambda: Decimal("0"))
    notes: str = ""
    held_shares: Optional[Decimal] = None
    cost_basis: Optional[Decimal] = None
    reversal_of: Optional[TradeKind] = None
    created_at_est: Optional[datetime] = field(default=None)
    updated_at_est: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        if isinstance(self.kind, str):
            self.kind = TradeKind(self.kind)
        if isinstance(self.reversal_of, str):
            self.reversal_of = TradeKind(self.reversal_of)

    @property
    def is_reversal(self) -> bool:
        """Return True for synthetic inverse trades."""
        return self.reversal_of is not None

    @property
    def share_delta(self) -> Decimal:
        """Signed change in held shares caused by this trade."""
        if self.kind in SHARE_INCREASING_KINDS:
            return self.shares
        if self.kind in SHARE_DECREASING_KINDS:
            return -self.shares
        return Decimal("0")


@dataclass
class TradeRevision:
    """
    Audit trail for trade changes.

    Records CREATE, UPDATE, DELETE, PURGE and IMPORT actions with
    before/after JSON snapshots.
    """

    rev_id: str
    trade_id: str
    rev_time_est: datetime
    action: RevisionAction
    before_json: Optional[str] = None
    after_json: Optional[str] = None

    def __post_init__(self) -> None:
        if isinstance(self.action, str):
            self.action = RevisionAction(self.action)
