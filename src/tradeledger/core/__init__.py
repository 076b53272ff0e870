"""Core utilities and shared functionality."""

from tradeledger.core.timezone import (
    now_eastern,
    to_eastern,
    parse_trade_date,
    EASTERN_TZ,
)
from tradeledger.core.exceptions import (
    AppError,
    ValidationError,
    InvalidQuantityError,
    InsufficientSharesError,
    NoSuchPositionError,
    NotFoundError,
    ReconciliationError,
)

__all__ = [
    "now_eastern",
    "to_eastern",
    "parse_trade_date",
    "EASTERN_TZ",
    "AppError",
    "ValidationError",
    "InvalidQuantityError",
    "InsufficientSharesError",
    "NoSuchPositionError",
    "NotFoundError",
    "ReconciliationError",
]
