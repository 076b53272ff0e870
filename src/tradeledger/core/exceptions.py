"""Application-level exceptions."""

from typing import Optional


class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, code: str = "APP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(AppError):
    """Raised when input validation fails."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        super().__init__(message, code=code)


class InvalidQuantityError(ValidationError):
    """Raised when shares or price are out of range for the trade kind."""

    def __init__(self, message: str):
        super().__init__(message, code="INVALID_QUANTITY")


class InsufficientSharesError(ValidationError):
    """Raised when attempting to remove more shares than held."""

    def __init__(self, symbol: str, requested: str, available: str):
        self.symbol = symbol
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient shares of {symbol}: requested {requested}, available {available}",
            code="INSUFFICIENT_SHARES",
        )


class NoSuchPositionError(ValidationError):
    """Raised when a trade needs a position that is not held."""

    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"No position held in {symbol}", code="NO_SUCH_POSITION")


class NotFoundError(AppError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} not found: {identifier}", code="NOT_FOUND")


class ReconciliationError(AppError):
    """
    Raised when reversing or re-applying a trade fails.

    The ledger is left at its pre-operation snapshot. ``cause`` holds the
    underlying validation error when there is one.
    """

    def __init__(self, message: str, cause: Optional[AppError] = None):
        self.cause = cause
        if cause is not None:
            message = f"{message}: {cause.message}"
        super().__init__(message, code="RECONCILIATION_FAILED")
