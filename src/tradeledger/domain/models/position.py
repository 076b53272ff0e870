"""Position domain model."""

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class Position:
    """
    Current holding for one symbol.

    IMPORTANT: Never construct or edit outside the ledger engine; shares and
    avg_cost are derived from the trade history. avg_cost keeps full precision.
    """

    symbol: str
    shares: Decimal
    avg_cost: Decimal

    @property
    def total_cost(self) -> Decimal:
        """Book cost of the holding (shares * avg_cost)."""
        return self.shares * self.avg_cost
