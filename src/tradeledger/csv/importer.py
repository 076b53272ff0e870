"""
CSV import functionality.

Reads broker statement exports, one file per symbol, with columns:
date, type, price, buyShares, sellShares, fee, amount, tax, netAmount, notes.

Broker ``amount`` and ``netAmount`` are ignored; totals are recomputed by the
ledger engine when each trade is booked.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

from tradeledger.config.settings import Settings, get_settings
from tradeledger.core.exceptions import ValidationError
from tradeledger.domain.models import (
    TradeDraft,
    TradeKind,
    SHARE_DECREASING_KINDS,
    normalize_symbol,
)
from tradeledger.domain.views import ImportSummary, ParseWarning
from tradeledger.services.ledger_engine import validate_draft
from tradeledger.services.ledger_store import LedgerStore

logger = logging.getLogger(__name__)


# Broker column layout
CSV_COLUMNS = [
    "date",
    "type",
    "price",
    "buy_shares",
    "sell_shares",
    "fee",
    "amount",
    "tax",
    "net_amount",
    "notes",
]
MIN_COLUMNS = 9

HEADER_TOKENS = ("交易日期", "日期", "date", "trade date")

# Ordered: the first kind with a matching token wins
KIND_TOKENS: list[tuple[TradeKind, tuple[str, ...]]] = [
    (TradeKind.BUY, ("買入", "買進", "buy", "bought")),
    (TradeKind.SELL, ("賣出", "sell", "sold")),
    (TradeKind.STOCK_DIVIDEND, ("除權", "股票股利", "配股", "stock dividend")),
    (TradeKind.CASH_DIVIDEND, ("除息", "現金股利", "配息", "dividend")),
    (TradeKind.CAPITAL_INCREASE, ("增資", "capital increase")),
    (TradeKind.CAPITAL_DECREASE, ("減資", "capital decrease", "capital reduction")),
]

_DATE_RE = re.compile(r"^(\d{4})[/-](\d{1,2})[/-](\d{1,2})$")
_AMOUNT_STRIP_RE = re.compile(r"[\"',\s]")


@dataclass
class ParseResult:
    """Drafts parsed from a CSV text, in file order."""

    drafts: list[TradeDraft] = field(default_factory=list)
    row_numbers: list[int] = field(default_factory=list)
    warnings: list[ParseWarning] = field(default_factory=list)
    skipped_count: int = 0


class RowError(ValueError):
    """A CSV row that cannot be turned into a draft."""


def tokenize_line(line: str) -> list[str]:
    """
    Split one CSV line on commas outside double quotes.

    A doubled quote inside a quoted field is a literal quote character.
    """
    columns: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    while i < len(line):
        char = line[i]
        if char == '"':
            if in_quotes and i + 1 < len(line) and line[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            columns.append("".join(current))
            current = []
        else:
            current.append(char)
        i += 1
    columns.append("".join(current))
    return columns


def parse_date(value: str) -> date:
    """Parse YYYY/MM/DD or YYYY-MM-DD; raises RowError otherwise."""
    match = _DATE_RE.match(value.strip())
    if not match:
        raise RowError(f"Invalid date: {value!r}")
    try:
        return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError as exc:
        raise RowError(f"Invalid date: {value!r}") from exc


def parse_amount(value: Optional[str]) -> Decimal:
    """Parse a number with quotes, thousands separators and spaces removed."""
    cleaned = _AMOUNT_STRIP_RE.sub("", value or "")
    if not cleaned:
        return Decimal("0")
    try:
        result = Decimal(cleaned)
    except InvalidOperation as exc:
        raise RowError(f"Invalid number: {value!r}") from exc
    if not result.is_finite():
        raise RowError(f"Invalid number: {value!r}")
    return result


def classify_trade_kind(value: str) -> Optional[TradeKind]:
    """Map a broker type label to a TradeKind; None when unrecognized."""
    text = value.strip().lower()
    if not text:
        return None
    for kind, tokens in KIND_TOKENS:
        if any(token in text for token in tokens):
            return kind
    return None


def is_header(columns: list[str]) -> bool:
    first = columns[0].strip().lstrip("\ufeff").lower() if columns else ""
    return any(token in first for token in HEADER_TOKENS)


def parse_csv(
    text: str,
    symbol: str,
    unknown_type_policy: str = "skip",
) -> ParseResult:
    """
    Parse broker CSV text into trade drafts for one symbol.

    Malformed rows never raise; they are recorded as warnings and skipped.
    With ``unknown_type_policy="buy"`` an unrecognized type is booked as BUY
    (still with a warning).
    """
    result = ParseResult()
    symbol = normalize_symbol(symbol)
    text = text.lstrip("\ufeff")

    first_row = True
    for row_number, line in enumerate(re.split(r"\r?\n", text), start=1):
        if not line.strip():
            continue
        columns = tokenize_line(line)

        if first_row:
            first_row = False
            if is_header(columns):
                continue

        if len(columns) < MIN_COLUMNS:
            _skip(result, row_number, f"Expected at least {MIN_COLUMNS} columns, got {len(columns)}", line)
            continue

        try:
            draft = _parse_row(columns, symbol, row_number, line, unknown_type_policy, result)
        except RowError as exc:
            _skip(result, row_number, str(exc), line)
            continue
        if draft is None:
            result.skipped_count += 1
            continue

        try:
            validate_draft(draft)
        except ValidationError as exc:
            _skip(result, row_number, exc.message, line)
            continue

        result.drafts.append(draft)
        result.row_numbers.append(row_number)

    return result


def _parse_row(
    columns: list[str],
    symbol: str,
    row_number: int,
    line: str,
    unknown_type_policy: str,
    result: ParseResult,
) -> Optional[TradeDraft]:
    trade_date = parse_date(columns[0])

    kind = classify_trade_kind(columns[1])
    if kind is None:
        if unknown_type_policy == "buy":
            result.warnings.append(
                ParseWarning(row_number, f"Unrecognized trade type {columns[1]!r}; booked as BUY", line)
            )
            kind = TradeKind.BUY
        else:
            result.warnings.append(
                ParseWarning(row_number, f"Unrecognized trade type {columns[1]!r}", line)
            )
            logger.warning("Row %d: unrecognized trade type %r", row_number, columns[1])
            return None

    price = parse_amount(columns[2])
    buy_shares = parse_amount(columns[3])
    sell_shares = parse_amount(columns[4])
    fee = parse_amount(columns[5])
    tax = parse_amount(columns[7])
    notes = columns[9].strip() if len(columns) > 9 else ""

    if kind == TradeKind.CASH_DIVIDEND:
        shares = Decimal("0")
    elif kind in SHARE_DECREASING_KINDS:
        shares = sell_shares or buy_shares
    else:
        shares = buy_shares or sell_shares

    return TradeDraft(
        trade_date=trade_date,
        symbol=symbol,
        kind=kind,
        shares=shares,
        price=price,
        fee=fee,
        tax=tax,
        notes=notes,
    ).normalized()


def _skip(result: ParseResult, row_number: int, message: str, line: str) -> None:
    result.warnings.append(ParseWarning(row_number, message, line))
    result.skipped_count += 1
    logger.warning("Row %d skipped: %s", row_number, message)


class CsvImporter:
    """
    CSV importer for broker statements.

    Parses a file for one symbol and feeds the drafts to the ledger store in
    file order, so each row is validated against the holdings built by the
    rows before it.
    """

    def __init__(self, store: LedgerStore, settings: Optional[Settings] = None):
        self._store = store
        self._settings = settings or get_settings()

    def import_text(self, text: str, symbol: str, source: str = "") -> ImportSummary:
        """Import CSV text for ``symbol``."""
        symbol = normalize_symbol(symbol)
        if not symbol:
            raise ValidationError("symbol is required for CSV import")

        line_count = sum(1 for line in re.split(r"\r?\n", text) if line.strip())
        if line_count > self._settings.csv_max_rows:
            raise ValidationError(
                f"CSV has {line_count} rows; the limit is {self._settings.csv_max_rows}"
            )

        parsed = parse_csv(text, symbol, self._settings.csv_unknown_type_policy)
        summary = self._store.import_trades(
            parsed.drafts,
            source=source or symbol,
            row_numbers=parsed.row_numbers,
        )
        summary.warnings = sorted(
            parsed.warnings + summary.warnings, key=lambda w: w.row_number
        )
        summary.skipped_count += parsed.skipped_count
        if not summary.imported_count:
            summary.errors.append("No valid trades found")
        summary.error_count = len(summary.errors)
        return summary

    def import_file(self, path: str, symbol: Optional[str] = None) -> ImportSummary:
        """
        Import a CSV file.

        The symbol defaults to the file name without extension, upper-cased.
        """
        file_path = Path(path)
        if not file_path.exists():
            raise ValidationError(f"File not found: {path}")

        text = file_path.read_text(encoding="utf-8-sig")
        return self.import_text(text, symbol or file_path.stem, source=file_path.name)
