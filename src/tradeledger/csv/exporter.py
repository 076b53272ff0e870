"""CSV export functionality."""

import csv
import io
from pathlib import Path
from typing import Optional

from tradeledger.domain.models import TradeKind, TradeRecord, SHARE_DECREASING_KINDS
from tradeledger.services.ledger_store import LedgerStore

# Header row in the broker layout read by the importer
EXPORT_HEADER = [
    "交易日期",
    "交易類別",
    "成交價",
    "買進股數",
    "賣出股數",
    "手續費",
    "成交金額",
    "交易稅",
    "淨收付金額",
    "備註",
]

# Labels the importer classifies back to the same kind
KIND_LABELS: dict[TradeKind, str] = {
    TradeKind.BUY: "買入",
    TradeKind.SELL: "賣出",
    TradeKind.CASH_DIVIDEND: "現金股利",
    TradeKind.STOCK_DIVIDEND: "股票股利",
    TradeKind.CAPITAL_INCREASE: "增資",
    TradeKind.CAPITAL_DECREASE: "減資",
}


class CsvExporter:
    """
    CSV exporter for ledger trades.

    A single-symbol export re-imports to the same trades.
    """

    def __init__(self, store: LedgerStore):
        self._store = store

    def export_text(self, symbol: Optional[str] = None) -> str:
        """Render trades (optionally for one symbol) as CSV text."""
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(EXPORT_HEADER)
        for trade in self._store.list_trades(symbol=symbol):
            writer.writerow(self._to_row(trade))
        return buffer.getvalue()

    def export_csv(self, path: str, symbol: Optional[str] = None) -> None:
        """
        Export trades to a CSV file.

        Args:
            path: Output file path
            symbol: Optional symbol filter (None = all)
        """
        file_path = Path(path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(self.export_text(symbol), encoding="utf-8")

    @staticmethod
    def _to_row(trade: TradeRecord) -> list[str]:
        decreasing = trade.kind in SHARE_DECREASING_KINDS
        shares = "" if trade.kind == TradeKind.CASH_DIVIDEND else str(trade.shares)
        return [
            trade.trade_date.strftime("%Y/%m/%d"),
            KIND_LABELS[trade.kind],
            str(trade.price),
            "" if decreasing else shares,
            shares if decreasing else "",
            str(trade.fee),
            str(trade.total),
            str(trade.tax),
            str(trade.net_total),
            trade.notes,
        ]
