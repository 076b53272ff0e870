"""SQLAlchemy implementation of LedgerRepository."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from tradeledger.core.timezone import to_eastern
from tradeledger.domain.models import Position, TradeRecord, TradeRevision
from tradeledger.repositories.sqlalchemy.orm_models import (
    PositionORM,
    TradeORM,
    TradeRevisionORM,
)


def _as_eastern(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo; stored values are Eastern wall-clock time
    return to_eastern(value) if value is not None else None


class SqlAlchemyLedgerRepository:
    """
    SQLAlchemy-backed ledger repository.

    Writes are flushed but not committed; the caller commits once per
    mutation so trades, positions and revisions land together.
    """

    def __init__(self, db: Session):
        self._db = db

    def load_trades(self) -> list[TradeRecord]:
        """Load all trades in ledger order."""
        orm_trades = self._db.query(TradeORM).order_by(TradeORM.sequence).all()
        return [self._to_domain(t) for t in orm_trades]

    def save_trades(self, trades: list[TradeRecord]) -> None:
        """Replace the stored trades, preserving list order."""
        existing = {t.trade_id: t for t in self._db.query(TradeORM).all()}
        for sequence, trade in enumerate(trades):
            orm_trade = existing.pop(trade.trade_id, None)
            if orm_trade is None:
                self._db.add(self._to_orm(trade, sequence))
            else:
                self._update_orm(orm_trade, trade, sequence)
        for orm_trade in existing.values():
            self._db.delete(orm_trade)
        self._db.flush()

    def load_positions(self) -> dict[str, Position]:
        """Load the stored position set keyed by symbol."""
        orm_positions = self._db.query(PositionORM).order_by(PositionORM.symbol).all()
        return {p.symbol: self._position_to_domain(p) for p in orm_positions}

    def save_positions(self, positions: dict[str, Position]) -> None:
        """Replace the stored position set."""
        existing = {p.symbol: p for p in self._db.query(PositionORM).all()}
        for position in positions.values():
            orm_pos = existing.pop(position.symbol, None)
            if orm_pos is None:
                self._db.add(
                    PositionORM(
                        symbol=position.symbol,
                        shares=position.shares,
                        avg_cost=position.avg_cost,
                    )
                )
            else:
                orm_pos.shares = position.shares
                orm_pos.avg_cost = position.avg_cost
        for orm_pos in existing.values():
            self._db.delete(orm_pos)
        self._db.flush()

    def create_revision(self, revision: TradeRevision) -> None:
        """Stage an audit revision."""
        self._db.add(
            TradeRevisionORM(
                rev_id=revision.rev_id,
                trade_id=revision.trade_id,
                rev_time_est=revision.rev_time_est,
                action=revision.action,
                before_json=revision.before_json,
                after_json=revision.after_json,
            )
        )
        self._db.flush()

    def list_revisions(self, trade_id: Optional[str] = None) -> list[TradeRevision]:
        """List revisions, oldest first, optionally for one trade."""
        query = self._db.query(TradeRevisionORM)
        if trade_id is not None:
            query = query.filter(TradeRevisionORM.trade_id == trade_id)
        query = query.order_by(TradeRevisionORM.rev_time_est, TradeRevisionORM.rev_id)
        return [self._revision_to_domain(r) for r in query.all()]

    def commit(self) -> None:
        self._db.commit()

    def rollback(self) -> None:
        self._db.rollback()

    @staticmethod
    def _to_orm(trade: TradeRecord, sequence: int) -> TradeORM:
        """Convert domain model to ORM model."""
        return TradeORM(
            trade_id=trade.trade_id,
            sequence=sequence,
            trade_date=trade.trade_date,
            symbol=trade.symbol,
            kind=trade.kind,
            shares=trade.shares,
            price=trade.price,
            fee=trade.fee,
            tax=trade.tax,
            total=trade.total,
            net_total=trade.net_total,
            held_shares=trade.held_shares,
            cost_basis=trade.cost_basis,
            notes=trade.notes,
            created_at_est=trade.created_at_est,
            updated_at_est=trade.updated_at_est,
        )

    @staticmethod
    def _update_orm(orm: TradeORM, trade: TradeRecord, sequence: int) -> None:
        orm.sequence = sequence
        orm.trade_date = trade.trade_date
        orm.symbol = trade.symbol
        orm.kind = trade.kind
        orm.shares = trade.shares
        orm.price = trade.price
        orm.fee = trade.fee
        orm.tax = trade.tax
        orm.total = trade.total
        orm.net_total = trade.net_total
        orm.held_shares = trade.held_shares
        orm.cost_basis = trade.cost_basis
        orm.notes = trade.notes
        orm.updated_at_est = trade.updated_at_est

    @staticmethod
    def _to_domain(orm: TradeORM) -> TradeRecord:
        """Convert ORM model to domain model."""
        return TradeRecord(
            trade_id=orm.trade_id,
            trade_date=orm.trade_date,
            symbol=orm.symbol,
            kind=orm.kind,
            shares=orm.shares if orm.shares is not None else Decimal("0"),
            price=orm.price if orm.price is not None else Decimal("0"),
            fee=orm.fee if orm.fee is not None else Decimal("0"),
            tax=orm.tax if orm.tax is not None else Decimal("0"),
            total=orm.total if orm.total is not None else Decimal("0"),
            net_total=orm.net_total if orm.net_total is not None else Decimal("0"),
            notes=orm.notes or "",
            held_shares=orm.held_shares,
            cost_basis=orm.cost_basis,
            created_at_est=_as_eastern(orm.created_at_est),
            updated_at_est=_as_eastern(orm.updated_at_est),
        )

    @staticmethod
    def _position_to_domain(orm: PositionORM) -> Position:
        """Convert ORM position to domain model."""
        return Position(symbol=orm.symbol, shares=orm.shares, avg_cost=orm.avg_cost)

    @staticmethod
    def _revision_to_domain(orm: TradeRevisionORM) -> TradeRevision:
        """Convert ORM revision to domain model."""
        return TradeRevision(
            rev_id=orm.rev_id,
            trade_id=orm.trade_id,
            rev_time_est=_as_eastern(orm.rev_time_est),
            action=orm.action,
            before_json=orm.before_json,
            after_json=orm.after_json,
        )
