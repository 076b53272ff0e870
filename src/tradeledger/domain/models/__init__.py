"""Domain models package."""

from tradeledger.domain.models.enums import (
    TradeKind,
    RevisionAction,
    SHARE_INCREASING_KINDS,
    SHARE_DECREASING_KINDS,
    FEE_KINDS,
    TAX_KINDS,
)
from tradeledger.domain.models.trade import (
    TradeDraft,
    TradeRecord,
    TradeRevision,
    new_trade_id,
    normalize_symbol,
    to_decimal,
)
from tradeledger.domain.models.position import Position

__all__ = [
    "TradeKind",
    "RevisionAction",
    "SHARE_INCREASING_KINDS",
    "SHARE_DECREASING_KINDS",
    "FEE_KINDS",
    "TAX_KINDS",
    "TradeDraft",
    "TradeRecord",
    "TradeRevision",
    "new_trade_id",
    "normalize_symbol",
    "to_decimal",
    "Position",
]
