"""
Ledger store: the single owner of the trade ledger and position set.

Every mutation runs under one lock and follows the same pattern: compute the
new snapshot with the pure ledger engine, persist it in a single commit, then
swap it in. An exception anywhere before the swap leaves the previous
snapshot untouched.
"""

import json
import logging
import threading
import uuid
from dataclasses import asdict, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from tradeledger.core.timezone import now_eastern
from tradeledger.core.exceptions import (
    AppError,
    NotFoundError,
    ReconciliationError,
    ValidationError,
)
from tradeledger.domain.models import (
    Position,
    RevisionAction,
    TradeDraft,
    TradeKind,
    TradeRecord,
    TradeRevision,
    new_trade_id,
    normalize_symbol,
)
from tradeledger.domain.views import ImportSummary, ParseWarning, ShareMismatch
from tradeledger.repositories.protocols import LedgerRepository
from tradeledger.services.ledger_engine import (
    apply_trade,
    book_and_apply,
    invert_trade,
    replay,
    share_totals,
    validate_draft,
)
from tradeledger.services.valuation_service import ValuationService

logger = logging.getLogger(__name__)


class LedgerStore:
    """
    Reconciliation controller for the ledger.

    Holds the authoritative in-memory snapshot (trades in ledger order and
    the position set keyed by symbol), loaded in full from the repository
    at construction.
    """

    def __init__(
        self,
        repository: LedgerRepository,
        valuation_service: Optional[ValuationService] = None,
    ):
        self._repo = repository
        self._valuation = valuation_service
        self._lock = threading.RLock()
        self._trades: list[TradeRecord] = repository.load_trades()
        self._positions: dict[str, Position] = repository.load_positions()
        logger.info(
            "Ledger loaded: %d trades, %d positions",
            len(self._trades),
            len(self._positions),
        )

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def add_trade(self, draft: TradeDraft) -> TradeRecord:
        """
        Validate, book and apply a new trade.

        Raises ValidationError (or a subclass) when the draft is malformed or
        does not fit the current holdings; nothing changes in that case.
        """
        draft = draft.normalized()
        validate_draft(draft)

        with self._lock:
            now = now_eastern()
            record = self._record_from_draft(draft, new_trade_id(), created_at=now)
            booked, positions = book_and_apply(record, self._positions)
            self._commit(
                self._trades + [booked],
                positions,
                [self._revision(booked.trade_id, RevisionAction.CREATE, None, booked)],
            )

        logger.info(
            "Added trade %s: %s %s %s @ %s",
            booked.trade_id, booked.kind.value, booked.shares, booked.symbol, booked.price,
        )
        self._refresh_valuation([booked.symbol])
        return booked

    def edit_trade(self, trade_id: str, draft: TradeDraft) -> TradeRecord:
        """
        Replace a trade's caller-supplied fields.

        The original is reversed and the draft applied against the reversed
        position set. trade_id, ledger position and created_at_est are kept.
        A cash dividend edited on the same symbol keeps its original share
        entitlement.

        Raises:
            ValidationError: draft is malformed (nothing reversed yet)
            NotFoundError: unknown trade_id
            ReconciliationError: reversal or re-application failed; the
                snapshot is unchanged and ``cause`` holds the reason
        """
        draft = draft.normalized()
        validate_draft(draft)

        with self._lock:
            index, original = self._find(trade_id)
            now = now_eastern()

            if self._same_economics(original, draft):
                # Only notes may differ: positions and booked values stay as they are
                updated = replace(original, notes=draft.notes, updated_at_est=now)
                positions = self._positions
            else:
                try:
                    reversed_positions = apply_trade(invert_trade(original), self._positions)
                except AppError as exc:
                    raise ReconciliationError(
                        f"Cannot reverse trade {trade_id}", cause=exc
                    ) from exc

                held_shares = None
                if (
                    draft.kind == TradeKind.CASH_DIVIDEND
                    and original.kind == TradeKind.CASH_DIVIDEND
                    and draft.symbol == original.symbol
                ):
                    held_shares = original.held_shares

                candidate = self._record_from_draft(
                    draft,
                    trade_id,
                    created_at=original.created_at_est,
                    updated_at=now,
                    held_shares=held_shares,
                )
                try:
                    updated, positions = book_and_apply(candidate, reversed_positions)
                except AppError as exc:
                    raise ReconciliationError(
                        f"Cannot apply edit to trade {trade_id}", cause=exc
                    ) from exc

            trades = list(self._trades)
            trades[index] = updated
            self._commit(
                trades,
                positions,
                [self._revision(trade_id, RevisionAction.UPDATE, original, updated)],
            )

        logger.info("Edited trade %s", trade_id)
        self._refresh_valuation({original.symbol, updated.symbol})
        return updated

    def delete_trade(self, trade_id: str) -> None:
        """
        Reverse a trade's effect and remove it from the ledger.

        Raises NotFoundError for an unknown id and ReconciliationError when
        the reversal is not possible (e.g. later sells depend on its shares).
        """
        with self._lock:
            index, trade = self._find(trade_id)
            try:
                positions = apply_trade(invert_trade(trade), self._positions)
            except AppError as exc:
                raise ReconciliationError(
                    f"Cannot delete trade {trade_id}", cause=exc
                ) from exc

            trades = self._trades[:index] + self._trades[index + 1:]
            self._commit(
                trades,
                positions,
                [self._revision(trade_id, RevisionAction.DELETE, trade, None)],
            )

        logger.info("Deleted trade %s (%s %s)", trade_id, trade.kind.value, trade.symbol)
        self._refresh_valuation([trade.symbol])

    def import_trades(
        self,
        drafts: Sequence[TradeDraft],
        source: str = "",
        row_numbers: Optional[Sequence[int]] = None,
    ) -> ImportSummary:
        """
        Apply drafts sequentially in the given order.

        Each draft is validated against the position set produced by the
        drafts before it. Drafts that fail are skipped with a warning. The
        batch is committed only if at least one trade was booked.
        """
        summary = ImportSummary(import_batch_id=str(uuid.uuid4()))
        if row_numbers is None:
            row_numbers = range(1, len(drafts) + 1)

        with self._lock:
            now = now_eastern()
            positions = self._positions
            trades = list(self._trades)
            revisions: list[TradeRevision] = []
            affected: set[str] = set()

            for row_number, draft in zip(row_numbers, drafts):
                try:
                    draft = draft.normalized()
                    validate_draft(draft)
                    record = self._record_from_draft(draft, new_trade_id(), created_at=now)
                    booked, positions = book_and_apply(record, positions)
                except ValidationError as exc:
                    summary.warnings.append(ParseWarning(row_number, exc.message))
                    summary.skipped_count += 1
                    logger.warning("Import %s row %d skipped: %s", source, row_number, exc.message)
                    continue

                trades.append(booked)
                revisions.append(
                    self._revision(booked.trade_id, RevisionAction.IMPORT, None, booked)
                )
                summary.trade_ids.append(booked.trade_id)
                summary.imported_count += 1
                affected.add(booked.symbol)

            if summary.imported_count:
                self._commit(trades, positions, revisions)

        logger.info(
            "Imported %d trades from %s (%d skipped)",
            summary.imported_count, source or "batch", summary.skipped_count,
        )
        self._refresh_valuation(affected)
        return summary

    def remove_position(self, symbol: str) -> int:
        """
        Drop a position and purge every trade on its symbol.

        Trades are removed without reversal. Returns the number of purged
        trades; raises NotFoundError when the symbol has neither a position
        nor trades.
        """
        symbol = normalize_symbol(symbol)
        with self._lock:
            purged = [t for t in self._trades if t.symbol == symbol]
            if symbol not in self._positions and not purged:
                raise NotFoundError("Position", symbol)

            positions = dict(self._positions)
            positions.pop(symbol, None)
            trades = [t for t in self._trades if t.symbol != symbol]
            self._commit(
                trades,
                positions,
                [self._revision(t.trade_id, RevisionAction.PURGE, t, None) for t in purged],
            )

        logger.info("Removed position %s and purged %d trades", symbol, len(purged))
        return len(purged)

    def rebuild_positions(self) -> dict[str, Position]:
        """
        Replace the position set with a replay of the full trade history.

        Recovery path for a position set that no longer reverses cleanly.
        """
        with self._lock:
            try:
                positions = replay(self._trades)
            except AppError as exc:
                raise ReconciliationError("Cannot rebuild positions from history", cause=exc) from exc
            self._commit(list(self._trades), positions, [])
            result = dict(positions)

        logger.info("Rebuilt %d positions from %d trades", len(result), len(self._trades))
        self._refresh_valuation(result.keys())
        return result

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_trade(self, trade_id: str) -> TradeRecord:
        """Get a trade by id; raises NotFoundError."""
        with self._lock:
            return self._find(trade_id)[1]

    def list_trades(
        self,
        symbol: Optional[str] = None,
        kind: Optional[TradeKind] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[TradeRecord]:
        """List trades in ledger order with optional filters (dates inclusive)."""
        symbol = normalize_symbol(symbol) if symbol else None
        with self._lock:
            trades = list(self._trades)
        return [
            t for t in trades
            if (symbol is None or t.symbol == symbol)
            and (kind is None or t.kind == kind)
            and (start is None or t.trade_date >= start)
            and (end is None or t.trade_date <= end)
        ]

    def get_position(self, symbol: str) -> Position:
        """Get the position for a symbol; raises NotFoundError."""
        symbol = normalize_symbol(symbol)
        with self._lock:
            position = self._positions.get(symbol)
        if position is None:
            raise NotFoundError("Position", symbol)
        return position

    def list_positions(self) -> list[Position]:
        """List positions sorted by symbol."""
        with self._lock:
            return sorted(self._positions.values(), key=lambda p: p.symbol)

    @property
    def positions(self) -> dict[str, Position]:
        """Copy of the current position set."""
        with self._lock:
            return dict(self._positions)

    def list_revisions(self, trade_id: Optional[str] = None) -> list[TradeRevision]:
        """List audit revisions, oldest first."""
        with self._lock:
            return self._repo.list_revisions(trade_id)

    def verify(self) -> list[ShareMismatch]:
        """Compare held shares with the signed share sum of the ledger."""
        with self._lock:
            expected = share_totals(self._trades)
            positions = dict(self._positions)

        mismatches = []
        for symbol in sorted(set(expected) | set(positions)):
            held = positions[symbol].shares if symbol in positions else Decimal("0")
            total = expected.get(symbol, Decimal("0"))
            if held != total:
                mismatches.append(ShareMismatch(symbol=symbol, held=held, expected=total))
        if mismatches:
            logger.warning("Share mismatch for %s", ", ".join(m.symbol for m in mismatches))
        return mismatches

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _find(self, trade_id: str) -> tuple[int, TradeRecord]:
        for index, trade in enumerate(self._trades):
            if trade.trade_id == trade_id:
                return index, trade
        raise NotFoundError("Trade", trade_id)

    def _commit(
        self,
        trades: list[TradeRecord],
        positions: dict[str, Position],
        revisions: list[TradeRevision],
    ) -> None:
        """Persist a full snapshot in one commit, then swap it in."""
        try:
            self._repo.save_trades(trades)
            self._repo.save_positions(positions)
            for revision in revisions:
                self._repo.create_revision(revision)
            self._repo.commit()
        except Exception:
            self._repo.rollback()
            raise
        self._trades = trades
        self._positions = positions

    def _refresh_valuation(self, symbols: Iterable[str]) -> None:
        if self._valuation is None:
            return
        symbols = list(symbols)
        try:
            self._valuation.refresh(symbols)
        except Exception as exc:
            # Valuation is display-only; the mutation is already committed
            logger.warning("Valuation refresh failed for %s: %s", ", ".join(symbols), exc)

    @staticmethod
    def _same_economics(trade: TradeRecord, draft: TradeDraft) -> bool:
        return (
            trade.trade_date == draft.trade_date
            and trade.symbol == draft.symbol
            and trade.kind == draft.kind
            and trade.shares == draft.shares
            and trade.price == draft.price
            and trade.fee == draft.fee
            and trade.tax == draft.tax
        )

    @staticmethod
    def _record_from_draft(
        draft: TradeDraft,
        trade_id: str,
        created_at: Optional[datetime],
        updated_at: Optional[datetime] = None,
        held_shares: Optional[Decimal] = None,
    ) -> TradeRecord:
        return TradeRecord(
            trade_id=trade_id,
            trade_date=draft.trade_date,
            symbol=draft.symbol,
            kind=draft.kind,
            shares=draft.shares,
            price=draft.price,
            fee=draft.fee,
            tax=draft.tax,
            notes=draft.notes,
            held_shares=held_shares,
            created_at_est=created_at,
            updated_at_est=updated_at,
        )

    def _revision(
        self,
        trade_id: str,
        action: RevisionAction,
        before: Optional[TradeRecord],
        after: Optional[TradeRecord],
    ) -> TradeRevision:
        return TradeRevision(
            rev_id=str(uuid.uuid4()),
            trade_id=trade_id,
            rev_time_est=now_eastern(),
            action=action,
            before_json=self._to_json(before) if before else None,
            after_json=self._to_json(after) if after else None,
        )

    @staticmethod
    def _to_json(trade: TradeRecord) -> str:
        """Serialize trade to JSON for revision storage."""
        data = asdict(trade)
        # Convert non-serializable types
        for key, value in data.items():
            if isinstance(value, Decimal):
                data[key] = str(value)
            elif isinstance(value, (datetime, date)):
                data[key] = value.isoformat()
            elif hasattr(value, "value"):  # Enum
                data[key] = value.value
        return json.dumps(data, ensure_ascii=False)
