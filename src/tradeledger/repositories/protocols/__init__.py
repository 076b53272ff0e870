"""Repository protocol definitions (interfaces)."""

from tradeledger.repositories.protocols.ledger_repo import LedgerRepository

__all__ = [
    "LedgerRepository",
]
