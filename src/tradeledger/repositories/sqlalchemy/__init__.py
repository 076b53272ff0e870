"""SQLAlchemy repository implementations."""

from tradeledger.repositories.sqlalchemy.database import (
    get_engine,
    get_session_factory,
    get_session,
    init_db,
    init_db_with_path,
    reset_database,
    Base,
)
from tradeledger.repositories.sqlalchemy.ledger_repo import SqlAlchemyLedgerRepository

__all__ = [
    "get_engine",
    "get_session_factory",
    "get_session",
    "init_db",
    "init_db_with_path",
    "reset_database",
    "Base",
    "SqlAlchemyLedgerRepository",
]
