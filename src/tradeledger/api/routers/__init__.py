"""API routers package."""

from tradeledger.api.routers.trades import router as trades_router
from tradeledger.api.routers.positions import router as positions_router
from tradeledger.api.routers.portfolio import router as portfolio_router

__all__ = [
    "trades_router",
    "positions_router",
    "portfolio_router",
]
