"""Core interfaces (ports) for dependency injection."""

from stockledger.core.interfaces.adjustment_store import IStockAdjustmentStore
from stockledger.core.interfaces.inventory_store import IInventoryStore
from stockledger.core.interfaces.movement_store import IStockMovementStore
from stockledger.core.interfaces.purchase_order_store import IPurchaseOrderStore
from stockledger.core.interfaces.request_log_store import IRequestLogStore
from stockledger.core.interfaces.sales_order_store import ISalesOrderStore
from stockledger.core.interfaces.transfer_store import IStockTransferStore
from stockledger.core.interfaces.unit_of_work import IUnitOfWork, UnitOfWorkFactory

__all__ = [
    # Storage interfaces
    "IInventoryStore",
    "IPurchaseOrderStore",
    "ISalesOrderStore",
    "IStockTransferStore",
    "IStockAdjustmentStore",
    "IStockMovementStore",
    "IRequestLogStore",
    # Transactions
    "IUnitOfWork",
    "UnitOfWorkFactory",
]
