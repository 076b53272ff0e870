"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tradeledger import __version__
from tradeledger.config.settings import get_settings
from tradeledger.config.logging_config import setup_logging
from tradeledger.repositories.sqlalchemy.database import init_db
from tradeledger.api.routers import trades_router, positions_router, portfolio_router
from tradeledger.core.exceptions import AppError, NotFoundError, ReconciliationError


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    setup_logging()
    init_db()
    yield
    # Shutdown (nothing to clean up)


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="Trade ledger with weighted-average cost positions",
    version=__version__,
    lifespan=lifespan,
)

# Include routers
app.include_router(trades_router)
app.include_router(positions_router)
app.include_router(portfolio_router)


def _status_for(exc: AppError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, ReconciliationError):
        return 409
    return 400


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Global handler for application errors."""
    return JSONResponse(
        status_code=_status_for(exc),
        content={"error": exc.code, "message": exc.message},
    )


@app.get("/health")
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": __version__,
        "docs": "/docs",
    }
