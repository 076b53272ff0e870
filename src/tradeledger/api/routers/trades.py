"""Trade endpoints: ledger mutations, history, CSV import/export."""

from datetime import date
from pathlib import PurePath
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import Response

from tradeledger.api.deps import get_csv_exporter, get_csv_importer, get_ledger_store
from tradeledger.api.schemas import (
    ImportSummaryResponse,
    RevisionResponse,
    TradeListResponse,
    TradeRequest,
    TradeResponse,
)
from tradeledger.core.exceptions import ValidationError
from tradeledger.csv import CsvExporter, CsvImporter
from tradeledger.domain.models import TradeKind
from tradeledger.services import LedgerStore

router = APIRouter(prefix="/trades", tags=["trades"])


@router.post("", response_model=TradeResponse, status_code=201)
def create_trade(
    data: TradeRequest,
    store: LedgerStore = Depends(get_ledger_store),
):
    """Book a new trade and update its position."""
    return store.add_trade(data.to_draft())


@router.get("", response_model=TradeListResponse)
def list_trades(
    symbol: Optional[str] = Query(None),
    kind: Optional[TradeKind] = Query(None),
    start: Optional[date] = Query(None, description="Inclusive start date"),
    end: Optional[date] = Query(None, description="Inclusive end date"),
    store: LedgerStore = Depends(get_ledger_store),
):
    """List trades in ledger order."""
    trades = store.list_trades(symbol=symbol, kind=kind, start=start, end=end)
    return TradeListResponse(
        trades=[TradeResponse.model_validate(t) for t in trades],
        count=len(trades),
    )


@router.post("/import", response_model=ImportSummaryResponse, status_code=201)
def import_trades(
    file: UploadFile = File(...),
    symbol: Optional[str] = Query(None, description="Defaults to the file name"),
    importer: CsvImporter = Depends(get_csv_importer),
):
    """
    Import a broker CSV for one symbol.

    Valid rows are booked in file order; rejected rows come back as warnings.
    """
    raw = file.file.read()
    if not raw:
        raise ValidationError("Uploaded file is empty")
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ValidationError("CSV must be UTF-8 encoded") from exc

    filename = file.filename or ""
    symbol = symbol or PurePath(filename).stem
    summary = importer.import_text(text, symbol, source=filename)
    return ImportSummaryResponse.model_validate(summary)


@router.get("/export")
def export_trades(
    symbol: Optional[str] = Query(None),
    exporter: CsvExporter = Depends(get_csv_exporter),
):
    """Download trades as CSV in the broker layout."""
    content = exporter.export_text(symbol)
    filename = f"{symbol.upper()}.csv" if symbol else "trades.csv"
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{trade_id}", response_model=TradeResponse)
def get_trade(trade_id: str, store: LedgerStore = Depends(get_ledger_store)):
    return store.get_trade(trade_id)


@router.put("/{trade_id}", response_model=TradeResponse)
def edit_trade(
    trade_id: str,
    data: TradeRequest,
    store: LedgerStore = Depends(get_ledger_store),
):
    """Replace a trade; its old effect is reversed before the new one applies."""
    return store.edit_trade(trade_id, data.to_draft())


@router.delete("/{trade_id}", status_code=204)
def delete_trade(trade_id: str, store: LedgerStore = Depends(get_ledger_store)):
    """Reverse and remove a trade."""
    store.delete_trade(trade_id)
    return Response(status_code=204)


@router.get("/{trade_id}/revisions", response_model=list[RevisionResponse])
def list_revisions(trade_id: str, store: LedgerStore = Depends(get_ledger_store)):
    """Audit trail for one trade, oldest first."""
    return store.list_revisions(trade_id)
