"""Monthly rent billing ledger with FIFO payment allocation."""

__version__ = "0.1.0"
