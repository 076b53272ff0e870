"""
Integration tests for the SQLAlchemy ledger repository with SQLite.

Tests cover:
- Trade persistence, ledger order and in-place updates
- Full-precision decimals
- Position set replacement
- Revision trail
- Rollback of uncommitted writes
- File-backed database across sessions
"""

from decimal import Decimal

from tradeledger.domain.models import RevisionAction, TradeKind, TradeRevision
from tradeledger.repositories.sqlalchemy import (
    SqlAlchemyLedgerRepository,
    get_session,
    init_db_with_path,
    reset_database,
)
from tradeledger.services import LedgerStore

from tests.conftest import buy_draft, eastern_datetime, make_record, position, sell_draft


def _booked(kind, symbol, shares, price, day, trade_id, **extra):
    record = make_record(kind, symbol, shares=shares, price=price, day=day, trade_id=trade_id)
    record.created_at_est = eastern_datetime(2024, 1, day)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


# =============================================================================
# TRADE PERSISTENCE TESTS
# =============================================================================


class TestTradePersistence:
    """Tests for save_trades / load_trades."""

    def test_round_trip_keeps_ledger_order(self, ledger_repo: SqlAlchemyLedgerRepository):
        """
        GIVEN trades saved in an order that differs from id and date order
        WHEN they are loaded back
        THEN the saved list order is preserved
        """
        trades = [
            _booked(TradeKind.BUY, "AAPL", "10", "150", 5, "c"),
            _booked(TradeKind.BUY, "AAPL", "10", "160", 1, "a"),
            _booked(TradeKind.SELL, "AAPL", "5", "170", 3, "b", cost_basis=Decimal("155")),
        ]

        ledger_repo.save_trades(trades)
        ledger_repo.commit()

        loaded = ledger_repo.load_trades()
        assert [t.trade_id for t in loaded] == ["c", "a", "b"]
        assert loaded[2].cost_basis == Decimal("155")
        assert loaded[2].kind == TradeKind.SELL
        assert loaded[0].created_at_est == eastern_datetime(2024, 1, 5)

    def test_decimals_keep_full_precision(self, ledger_repo):
        held = Decimal("163.3333333333333333333333333")
        dividend = _booked(
            TradeKind.CASH_DIVIDEND, "AAPL", "0", "0.123456789", 2, "d", held_shares=held
        )

        ledger_repo.save_trades([dividend])
        ledger_repo.commit()

        loaded = ledger_repo.load_trades()[0]
        assert loaded.held_shares == held
        assert loaded.price == Decimal("0.123456789")

    def test_save_updates_and_deletes(self, ledger_repo):
        first = _booked(TradeKind.BUY, "AAPL", "10", "150", 1, "a")
        second = _booked(TradeKind.BUY, "MSFT", "1", "375", 2, "b")
        ledger_repo.save_trades([first, second])
        ledger_repo.commit()

        first.shares = Decimal("20")
        first.notes = "edited"
        ledger_repo.save_trades([first])
        ledger_repo.commit()

        loaded = ledger_repo.load_trades()
        assert [t.trade_id for t in loaded] == ["a"]
        assert loaded[0].shares == Decimal("20")
        assert loaded[0].notes == "edited"

    def test_rollback_discards_flushed_writes(self, ledger_repo):
        ledger_repo.save_trades([_booked(TradeKind.BUY, "AAPL", "10", "150", 1, "a")])
        ledger_repo.commit()

        ledger_repo.save_trades([])
        ledger_repo.save_positions({})
        ledger_repo.rollback()

        assert [t.trade_id for t in ledger_repo.load_trades()] == ["a"]


# =============================================================================
# POSITION PERSISTENCE TESTS
# =============================================================================


class TestPositionPersistence:
    """Tests for save_positions / load_positions."""

    def test_replace_position_set(self, ledger_repo):
        ledger_repo.save_positions({
            "AAPL": position("AAPL", "150", "160"),
            "MSFT": position("MSFT", "10", "375"),
        })
        ledger_repo.commit()

        ledger_repo.save_positions({
            "AAPL": position("AAPL", "300", "163.3333333333333333333333333"),
        })
        ledger_repo.commit()

        loaded = ledger_repo.load_positions()
        assert list(loaded) == ["AAPL"]
        assert loaded["AAPL"].avg_cost == Decimal("163.3333333333333333333333333")


# =============================================================================
# REVISION TESTS
# =============================================================================


class TestRevisions:
    """Tests for the revision trail."""

    def test_revisions_filtered_and_ordered(self, ledger_repo):
        for minute, (trade_id, action) in enumerate([
            ("a", RevisionAction.CREATE),
            ("b", RevisionAction.IMPORT),
            ("a", RevisionAction.DELETE),
        ]):
            ledger_repo.create_revision(
                TradeRevision(
                    rev_id=f"r{minute}",
                    trade_id=trade_id,
                    rev_time_est=eastern_datetime(2024, 1, 1, 10, minute),
                    action=action,
                    after_json="{}",
                )
            )
        ledger_repo.commit()

        revisions = ledger_repo.list_revisions("a")

        assert [r.action for r in revisions] == [RevisionAction.CREATE, RevisionAction.DELETE]
        assert len(ledger_repo.list_revisions()) == 3
        assert revisions[0].rev_time_est == eastern_datetime(2024, 1, 1, 10, 0)

    def test_revisions_outlive_trades(self, ledger_store):
        trade = ledger_store.add_trade(buy_draft("AAPL", "10", "150"))
        ledger_store.delete_trade(trade.trade_id)

        actions = [r.action for r in ledger_store.list_revisions(trade.trade_id)]

        assert actions == [RevisionAction.CREATE, RevisionAction.DELETE]


# =============================================================================
# FILE DATABASE TESTS
# =============================================================================


class TestFileDatabase:
    """Ledger persisted to a SQLite file and reloaded in a new session."""

    def test_store_reloads_from_file(self, tmp_path):
        init_db_with_path(tmp_path / "ledger.db")
        try:
            session = get_session()
            store = LedgerStore(SqlAlchemyLedgerRepository(session))
            store.add_trade(buy_draft("AAPL", "100", "150", day=1))
            store.add_trade(buy_draft("AAPL", "100", "170", day=2))
            store.add_trade(sell_draft("AAPL", "50", "180", day=3))
            session.close()

            reopened = get_session()
            reloaded = LedgerStore(SqlAlchemyLedgerRepository(reopened))

            assert reloaded.get_position("AAPL") == position("AAPL", "150", "160")
            assert [t.kind for t in reloaded.list_trades()] == [
                TradeKind.BUY,
                TradeKind.BUY,
                TradeKind.SELL,
            ]
            assert reloaded.verify() == []
            reopened.close()
        finally:
            reset_database()
