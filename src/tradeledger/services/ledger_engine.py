"""
Ledger engine: applies and reverses trades against a position set.

Every function here is pure. Inputs are never mutated and no state is kept,
so applying the same trade to the same positions always gives the same
result; reversal correctness depends on that.

Cost basis is a single weighted average per symbol:
- BUY / CAPITAL_INCREASE blend the trade price into the average
- STOCK_DIVIDEND adds shares without touching the average
- SELL / CAPITAL_DECREASE remove shares without touching the average
- CASH_DIVIDEND has no share effect
"""

from collections import defaultdict
from dataclasses import replace
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Mapping, Optional, Union

from tradeledger.core.exceptions import (
    ValidationError,
    InvalidQuantityError,
    InsufficientSharesError,
    NoSuchPositionError,
    ReconciliationError,
)
from tradeledger.domain.models import (
    Position,
    TradeDraft,
    TradeKind,
    TradeRecord,
    SHARE_DECREASING_KINDS,
)

Positions = dict[str, Position]
PositionsInput = Mapping[str, Position]

ZERO = Decimal("0")
CENT = Decimal("0.01")

_INVERSE_KINDS: dict[TradeKind, TradeKind] = {
    TradeKind.BUY: TradeKind.SELL,
    TradeKind.SELL: TradeKind.BUY,
    TradeKind.CAPITAL_INCREASE: TradeKind.SELL,
    TradeKind.CAPITAL_DECREASE: TradeKind.BUY,
    TradeKind.STOCK_DIVIDEND: TradeKind.SELL,
    TradeKind.CASH_DIVIDEND: TradeKind.CASH_DIVIDEND,
}

_BLENDING_KINDS = frozenset({TradeKind.BUY, TradeKind.CAPITAL_INCREASE})


def round_money(value: Decimal) -> Decimal:
    """Round a money amount to cents (half up)."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def inverse_kind(kind: Union[TradeKind, str]) -> TradeKind:
    """Return the kind whose application undoes ``kind``."""
    return _INVERSE_KINDS[TradeKind(kind)]


# =============================================================================
# VALIDATION
# =============================================================================


def validate_draft(trade: Union[TradeDraft, TradeRecord]) -> None:
    """
    Validate fields that do not depend on current holdings.

    Raises InvalidQuantityError for shares/price out of range and
    ValidationError for missing fields or negative fee/tax.
    """
    if not trade.symbol:
        raise ValidationError("symbol is required")
    if trade.trade_date is None:
        raise ValidationError("trade_date is required")
    kind = trade.kind.value
    if trade.price <= 0:
        raise InvalidQuantityError(f"{kind} requires price > 0")
    if trade.kind != TradeKind.CASH_DIVIDEND and trade.shares <= 0:
        raise InvalidQuantityError(f"{kind} requires shares > 0")
    if trade.fee < 0:
        raise ValidationError("fee cannot be negative")
    if trade.tax < 0:
        raise ValidationError("tax cannot be negative")


def validate_trade(trade: TradeRecord, positions: PositionsInput) -> None:
    """
    Validate a trade against the current position set.

    A share-decreasing trade needs enough held shares. A cash dividend needs
    a held position unless its entitlement (held_shares) is already fixed or
    it is a reversal.
    """
    validate_draft(trade)
    position = positions.get(trade.symbol)

    if trade.kind in SHARE_DECREASING_KINDS:
        available = position.shares if position else ZERO
        if available < trade.shares:
            raise InsufficientSharesError(
                trade.symbol, str(trade.shares), str(available)
            )

    elif trade.kind == TradeKind.CASH_DIVIDEND:
        if position is None and trade.held_shares is None and not trade.is_reversal:
            raise NoSuchPositionError(trade.symbol)


# =============================================================================
# BOOKING AND APPLICATION
# =============================================================================


def book_trade(trade: TradeRecord, positions: PositionsInput) -> TradeRecord:
    """
    Return ``trade`` with its derived fields computed from current holdings.

    total/net_total are rounded to cents; cost_basis and held_shares keep
    full precision.
    """
    validate_trade(trade, positions)
    position = positions.get(trade.symbol)
    held_shares: Optional[Decimal] = None
    cost_basis: Optional[Decimal] = None

    if trade.kind in _BLENDING_KINDS:
        total = trade.shares * trade.price
        net_total = -(total + trade.fee)
    elif trade.kind in SHARE_DECREASING_KINDS:
        total = trade.shares * trade.price
        net_total = total - trade.fee - trade.tax
        cost_basis = position.avg_cost
    elif trade.kind == TradeKind.STOCK_DIVIDEND:
        # Informational value of the granted shares, not real cash
        total = trade.shares * trade.price
        net_total = total
    else:
        held_shares = trade.held_shares if trade.held_shares is not None else position.shares
        total = held_shares * trade.price
        net_total = total

    return replace(
        trade,
        total=round_money(total),
        net_total=round_money(net_total),
        held_shares=held_shares,
        cost_basis=cost_basis,
    )


def apply_trade(trade: TradeRecord, positions: PositionsInput) -> Positions:
    """
    Apply a trade (or a synthetic reversal) and return the new position set.

    The input mapping is not modified. Validation happens before any result
    is built, so a failing trade never yields a partial position set.
    """
    validate_trade(trade, positions)
    result: Positions = dict(positions)
    position = result.get(trade.symbol)

    if trade.is_reversal:
        _apply_reversal(trade, position, result)
    else:
        _apply_forward(trade, position, result)
    return result


def book_and_apply(
    trade: TradeRecord,
    positions: PositionsInput,
) -> tuple[TradeRecord, Positions]:
    """Book a trade and apply it in one step."""
    booked = book_trade(trade, positions)
    return booked, apply_trade(booked, positions)


def _apply_forward(trade: TradeRecord, position: Optional[Position], result: Positions) -> None:
    symbol = trade.symbol
    if trade.kind in _BLENDING_KINDS:
        result[symbol] = _blend(symbol, position, trade.shares, trade.price)

    elif trade.kind == TradeKind.STOCK_DIVIDEND:
        if position is None:
            result[symbol] = Position(symbol=symbol, shares=trade.shares, avg_cost=ZERO)
        else:
            result[symbol] = replace(position, shares=position.shares + trade.shares)

    elif trade.kind in SHARE_DECREASING_KINDS:
        _reduce(symbol, position, trade.shares, result)

    # CASH_DIVIDEND: no share or cost effect


def _apply_reversal(trade: TradeRecord, position: Optional[Position], result: Positions) -> None:
    symbol = trade.symbol
    reversed_kind = trade.reversal_of

    if reversed_kind in _BLENDING_KINDS:
        remaining = position.shares - trade.shares
        if remaining <= 0:
            result.pop(symbol, None)
            return
        avg_cost = (position.total_cost - trade.shares * trade.price) / remaining
        if avg_cost < 0:
            raise ReconciliationError(
                f"Reversing {reversed_kind.value} {trade.trade_id} on {symbol} "
                "would leave a negative average cost; rebuild positions from history"
            )
        result[symbol] = Position(symbol=symbol, shares=remaining, avg_cost=avg_cost)

    elif reversed_kind in SHARE_DECREASING_KINDS:
        cost = trade.cost_basis
        if cost is None:
            cost = position.avg_cost if position else trade.price
        result[symbol] = _blend(symbol, position, trade.shares, cost)

    elif reversed_kind == TradeKind.STOCK_DIVIDEND:
        _reduce(symbol, position, trade.shares, result)

    # CASH_DIVIDEND reversal: cash only


def _blend(symbol: str, position: Optional[Position], shares: Decimal, cost: Decimal) -> Position:
    if position is None:
        return Position(symbol=symbol, shares=shares, avg_cost=cost)
    total_shares = position.shares + shares
    avg_cost = (position.total_cost + shares * cost) / total_shares
    return Position(symbol=symbol, shares=total_shares, avg_cost=avg_cost)


def _reduce(symbol: str, position: Position, shares: Decimal, result: Positions) -> None:
    remaining = position.shares - shares
    if remaining > 0:
        result[symbol] = replace(position, shares=remaining)
    else:
        # Fully sold or reduced: the position leaves the portfolio
        result.pop(symbol, None)


# =============================================================================
# REVERSAL
# =============================================================================


def invert_trade(trade: TradeRecord) -> TradeRecord:
    """
    Build the synthetic trade that undoes ``trade``.

    The inverse keeps shares, price and cost basis, flips the cash impact and
    records the reversed kind in ``reversal_of``. ``trade`` should be a booked
    trade so that a sell's cost basis is known.
    """
    if trade.is_reversal:
        raise ValueError(f"Trade {trade.trade_id} is already a reversal")
    return replace(
        trade,
        kind=inverse_kind(trade.kind),
        reversal_of=trade.kind,
        net_total=-trade.net_total,
    )


# =============================================================================
# HISTORY
# =============================================================================


def replay(trades: Iterable[TradeRecord]) -> Positions:
    """
    Derive positions from scratch by applying trades to an empty set.

    Trades are applied in ledger order, the order the store booked them in,
    so back-dated entries replay against the same running position.
    """
    positions: Positions = {}
    for trade in trades:
        positions = apply_trade(trade, positions)
    return positions


def share_totals(trades: Iterable[TradeRecord]) -> dict[str, Decimal]:
    """Signed share sum per symbol; symbols netting to zero are omitted."""
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for trade in trades:
        totals[trade.symbol] += trade.share_delta
    return {symbol: shares for symbol, shares in totals.items() if shares != 0}
