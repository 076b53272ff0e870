"""Position endpoints: holdings, verification and removal."""

from fastapi import APIRouter, Depends

from tradeledger.api.deps import get_ledger_store, get_valuation_service
from tradeledger.api.schemas import (
    PositionResponse,
    PositionsResponse,
    RemovePositionResponse,
    ShareMismatchResponse,
    VerifyResponse,
)
from tradeledger.services import LedgerStore, ValuationService

router = APIRouter(prefix="/positions", tags=["positions"])


@router.get("", response_model=PositionsResponse)
def list_positions(
    store: LedgerStore = Depends(get_ledger_store),
    valuation: ValuationService = Depends(get_valuation_service),
):
    """List positions with valuation and yield fields."""
    views = valuation.list_views(store.list_positions())
    return PositionsResponse(
        positions=[PositionResponse.model_validate(v) for v in views],
        count=len(views),
    )


@router.get("/verify", response_model=VerifyResponse)
def verify_positions(store: LedgerStore = Depends(get_ledger_store)):
    """Compare held shares against the trade history."""
    mismatches = store.verify()
    return VerifyResponse(
        consistent=not mismatches,
        mismatches=[ShareMismatchResponse.model_validate(m) for m in mismatches],
    )


@router.post("/rebuild", response_model=PositionsResponse)
def rebuild_positions(
    store: LedgerStore = Depends(get_ledger_store),
    valuation: ValuationService = Depends(get_valuation_service),
):
    """Recompute every position by replaying the trade history."""
    positions = store.rebuild_positions()
    views = valuation.list_views(list(positions.values()))
    return PositionsResponse(
        positions=[PositionResponse.model_validate(v) for v in views],
        count=len(views),
    )


@router.get("/{symbol}", response_model=PositionResponse)
def get_position(
    symbol: str,
    store: LedgerStore = Depends(get_ledger_store),
    valuation: ValuationService = Depends(get_valuation_service),
):
    position = store.get_position(symbol)
    return PositionResponse.model_validate(valuation.list_views([position])[0])


@router.delete("/{symbol}", response_model=RemovePositionResponse)
def remove_position(symbol: str, store: LedgerStore = Depends(get_ledger_store)):
    """Remove a position and purge all of its trades (no reversal)."""
    purged = store.remove_position(symbol)
    return RemovePositionResponse(symbol=symbol.strip().upper(), purged_count=purged)
