"""Portfolio summary endpoint."""

from fastapi import APIRouter, Depends

from tradeledger.api.deps import get_ledger_store, get_valuation_service
from tradeledger.api.schemas import PortfolioSummaryResponse
from tradeledger.services import LedgerStore, ValuationService

router = APIRouter(prefix="/portfolio", tags=["portfolio"])


@router.get("/summary", response_model=PortfolioSummaryResponse)
def get_summary(
    store: LedgerStore = Depends(get_ledger_store),
    valuation: ValuationService = Depends(get_valuation_service),
):
    """
    Totals across all positions.

    total_market_value and profit cover only symbols with a quote.
    """
    summary = valuation.summary(store.list_positions())
    return PortfolioSummaryResponse.model_validate(summary)
