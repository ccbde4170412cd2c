"""StockLedger: inventory consistency and order-fulfillment engine."""

__version__ = "1.0.0"
