"""View models for ledger operations (import results, verification)."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional


@dataclass
class ParseWarning:
    """A CSV row that could not be classified, parsed or booked."""

    row_number: int
    message: str
    line: str = ""

    def __str__(self) -> str:
        return f"Row {self.row_number}: {self.message}"


@dataclass
class ImportSummary:
    """Summary of a CSV import operation."""

    imported_count: int = 0
    skipped_count: int = 0
    error_count: int = 0
    warnings: list[ParseWarning] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    trade_ids: list[str] = field(default_factory=list)
    import_batch_id: Optional[str] = None


@dataclass
class ShareMismatch:
    """A symbol whose held shares disagree with its trade history."""

    symbol: str
    held: Decimal
    expected: Decimal
