"""Pydantic schemas for API request/response."""

from tradeledger.api.schemas.trade import (
    TradeRequest,
    TradeResponse,
    TradeListResponse,
    RevisionResponse,
    ParseWarningResponse,
    ImportSummaryResponse,
)
from tradeledger.api.schemas.position import (
    PositionResponse,
    PositionsResponse,
    PortfolioSummaryResponse,
    ShareMismatchResponse,
    VerifyResponse,
    RemovePositionResponse,
)

__all__ = [
    "TradeRequest",
    "TradeResponse",
    "TradeListResponse",
    "RevisionResponse",
    "ParseWarningResponse",
    "ImportSummaryResponse",
    "PositionResponse",
    "PositionsResponse",
    "PortfolioSummaryResponse",
    "ShareMismatchResponse",
    "VerifyResponse",
    "RemovePositionResponse",
]
