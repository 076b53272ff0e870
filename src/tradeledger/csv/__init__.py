"""CSV import/export utilities."""

from tradeledger.csv.importer import CsvImporter, ParseResult, parse_csv
from tradeledger.csv.exporter import CsvExporter

__all__ = [
    "CsvImporter",
    "CsvExporter",
    "ParseResult",
    "parse_csv",
]
