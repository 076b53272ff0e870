"""Ledger repository protocol."""

from typing import Protocol, Optional

from tradeledger.domain.models import Position, TradeRecord, TradeRevision


class LedgerRepository(Protocol):
    """
    Interface for ledger persistence.

    The ledger is loaded in full at startup and written in full after each
    mutation. Writes are staged until ``commit``; ``rollback`` discards them.
    """

    def load_trades(self) -> list[TradeRecord]:
        """Load all trades in ledger order."""
        ...

    def save_trades(self, trades: list[TradeRecord]) -> None:
        """Replace the stored trades, preserving list order."""
        ...

    def load_positions(self) -> dict[str, Position]:
        """Load the stored position set keyed by symbol."""
        ...

    def save_positions(self, positions: dict[str, Position]) -> None:
        """Replace the stored position set."""
        ...

    def create_revision(self, revision: TradeRevision) -> None:
        """Stage an audit revision."""
        ...

    def list_revisions(self, trade_id: Optional[str] = None) -> list[TradeRevision]:
        """List revisions, oldest first, optionally for one trade."""
        ...

    def commit(self) -> None:
        """Commit staged writes."""
        ...

    def rollback(self) -> None:
        """Discard staged writes."""
        ...
