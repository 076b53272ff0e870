"""View models for service outputs."""

from tradeledger.domain.views.portfolio import (
    Quote,
    DividendInfo,
    PositionView,
    PortfolioSummary,
)
from tradeledger.domain.views.ledger import (
    ParseWarning,
    ImportSummary,
    ShareMismatch,
)

__all__ = [
    "Quote",
    "DividendInfo",
    "PositionView",
    "PortfolioSummary",
    "ParseWarning",
    "ImportSummary",
    "ShareMismatch",
]
