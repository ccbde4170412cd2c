"""SQLite storage implementations."""

from stockledger.infrastructure.storage.sqlite.adjustment_store import (
    SQLiteStockAdjustmentStore,
)
from stockledger.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)
from stockledger.infrastructure.storage.sqlite.inventory_store import SQLiteInventoryStore
from stockledger.infrastructure.storage.sqlite.movement_store import SQLiteStockMovementStore
from stockledger.infrastructure.storage.sqlite.purchase_order_store import (
    SQLitePurchaseOrderStore,
)
from stockledger.infrastructure.storage.sqlite.request_log_store import SQLiteRequestLogStore
from stockledger.infrastructure.storage.sqlite.sales_order_store import SQLiteSalesOrderStore
from stockledger.infrastructure.storage.sqlite.transfer_store import SQLiteStockTransferStore
from stockledger.infrastructure.storage.sqlite.unit_of_work import SQLiteUnitOfWork

__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    # Unit of work
    "SQLiteUnitOfWork",
    # Store classes
    "SQLiteInventoryStore",
    "SQLitePurchaseOrderStore",
    "SQLiteSalesOrderStore",
    "SQLiteStockTransferStore",
    "SQLiteStockAdjustmentStore",
    "SQLiteStockMovementStore",
    "SQLiteRequestLogStore",
]
