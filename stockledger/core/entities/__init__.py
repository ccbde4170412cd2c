"""Core domain entities."""

from stockledger.core.entities.inventory import InventoryDelta, InventoryRecord
from stockledger.core.entities.purchase_order import (
    PURCHASE_ORDER_TRANSITIONS,
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderItemStatus,
    PurchaseOrderLineInput,
    PurchaseOrderStatus,
    ReceiptLine,
)
from stockledger.core.entities.request_log import ProcessedRequest
from stockledger.core.entities.sales_order import (
    SALES_ORDER_TRANSITIONS,
    FulfillmentLine,
    SalesOrder,
    SalesOrderItem,
    SalesOrderItemStatus,
    SalesOrderLineInput,
    SalesOrderStatus,
)
from stockledger.core.entities.state_machine import StateMachine
from stockledger.core.entities.stock_adjustment import (
    AdjustmentReason,
    AdjustmentType,
    StockAdjustment,
)
from stockledger.core.entities.stock_movement import (
    STOCK_MOVEMENT_TRANSITIONS,
    MovementStatus,
    MovementType,
    ReconciliationReport,
    RelatedDocumentType,
    StockMovement,
)
from stockledger.core.entities.stock_transfer import (
    STOCK_TRANSFER_TRANSITIONS,
    BulkTransferResult,
    StockTransfer,
    StockTransferStatus,
)

__all__ = [
    # Inventory
    "InventoryRecord",
    "InventoryDelta",
    # Purchase orders
    "PurchaseOrder",
    "PurchaseOrderItem",
    "PurchaseOrderItemStatus",
    "PurchaseOrderLineInput",
    "PurchaseOrderStatus",
    "ReceiptLine",
    "PURCHASE_ORDER_TRANSITIONS",
    # Sales orders
    "SalesOrder",
    "SalesOrderItem",
    "SalesOrderItemStatus",
    "SalesOrderLineInput",
    "SalesOrderStatus",
    "FulfillmentLine",
    "SALES_ORDER_TRANSITIONS",
    # Transfers
    "StockTransfer",
    "StockTransferStatus",
    "BulkTransferResult",
    "STOCK_TRANSFER_TRANSITIONS",
    # Adjustments
    "StockAdjustment",
    "AdjustmentType",
    "AdjustmentReason",
    # Movements
    "StockMovement",
    "MovementType",
    "MovementStatus",
    "RelatedDocumentType",
    "ReconciliationReport",
    "STOCK_MOVEMENT_TRANSITIONS",
    # Misc
    "ProcessedRequest",
    "StateMachine",
]
