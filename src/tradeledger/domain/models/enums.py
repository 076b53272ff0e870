"""Enumerations for domain models."""

from enum import Enum


class TradeKind(str, Enum):
    """Kinds of ledger events."""

    BUY = "BUY"
    SELL = "SELL"
    CASH_DIVIDEND = "CASH_DIVIDEND"
    STOCK_DIVIDEND = "STOCK_DIVIDEND"
    CAPITAL_INCREASE = "CAPITAL_INCREASE"
    CAPITAL_DECREASE = "CAPITAL_DECREASE"


class RevisionAction(str, Enum):
    """Actions recorded in trade revisions."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    PURGE = "PURGE"
    IMPORT = "IMPORT"


SHARE_INCREASING_KINDS = frozenset(
    {TradeKind.BUY, TradeKind.STOCK_DIVIDEND, TradeKind.CAPITAL_INCREASE}
)
SHARE_DECREASING_KINDS = frozenset({TradeKind.SELL, TradeKind.CAPITAL_DECREASE})
FEE_KINDS = frozenset(
    {TradeKind.BUY, TradeKind.SELL, TradeKind.CAPITAL_INCREASE, TradeKind.CAPITAL_DECREASE}
)
TAX_KINDS = frozenset({TradeKind.SELL, TradeKind.CAPITAL_DECREASE})
