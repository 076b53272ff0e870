"""Trade ledger: positions and weighted-average cost derived from trade history."""

__version__ = "0.1.0"
