"""SQLAlchemy ORM model definitions."""

from decimal import Decimal

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Integer,
    String,
    Text,
    Enum as SqlEnum,
)
from sqlalchemy.types import TypeDecorator

from tradeledger.repositories.sqlalchemy.database import Base
from tradeledger.domain.models.enums import TradeKind, RevisionAction


class DecimalText(TypeDecorator):
    """
    Decimal stored as its string form.

    SQLite has no exact decimal type; text keeps full precision for avg_cost.
    """

    impl = String(64)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value)


class TradeORM(Base):
    """SQLAlchemy model for TradeRecord (ledger entry)."""

    __tablename__ = "trades"

    trade_id = Column(String(36), primary_key=True)
    sequence = Column(Integer, nullable=False, index=True)
    trade_date = Column(Date, nullable=False)
    symbol = Column(String(20), nullable=False, index=True)
    kind = Column(SqlEnum(TradeKind), nullable=False)
    shares = Column(DecimalText, nullable=False, default=Decimal("0"))
    price = Column(DecimalText, nullable=False, default=Decimal("0"))
    fee = Column(DecimalText, nullable=False, default=Decimal("0"))
    tax = Column(DecimalText, nullable=False, default=Decimal("0"))
    total = Column(DecimalText, nullable=False, default=Decimal("0"))
    net_total = Column(DecimalText, nullable=False, default=Decimal("0"))
    held_shares = Column(DecimalText, nullable=True)
    cost_basis = Column(DecimalText, nullable=True)
    notes = Column(Text, nullable=True)
    created_at_est = Column(DateTime, nullable=False)
    updated_at_est = Column(DateTime, nullable=True)


class PositionORM(Base):
    """SQLAlchemy model for Position (derived holdings)."""

    __tablename__ = "positions"

    symbol = Column(String(20), primary_key=True)
    shares = Column(DecimalText, nullable=False)
    avg_cost = Column(DecimalText, nullable=False)


class TradeRevisionORM(Base):
    """
    SQLAlchemy model for TradeRevision (audit trail).

    No foreign key to trades: revisions outlive deleted and purged trades.
    """

    __tablename__ = "trade_revisions"

    rev_id = Column(String(36), primary_key=True)
    trade_id = Column(String(36), nullable=False, index=True)
    rev_time_est = Column(DateTime, nullable=False)
    action = Column(SqlEnum(RevisionAction), nullable=False)
    before_json = Column(Text, nullable=True)
    after_json = Column(Text, nullable=True)
