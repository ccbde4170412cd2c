"""
Core business logic services.

Layer-pure services that depend only on:
- stockledger/core/entities/*
- stockledger/core/interfaces/*
- stockledger/core/exceptions.py

NO infrastructure imports. The unit-of-work factory is injected via constructor.
"""

from stockledger.core.services.inventory_service import InventoryService, ensure_available
from stockledger.core.services.purchase_order_service import PurchaseOrderService
from stockledger.core.services.sales_order_service import SalesOrderService
from stockledger.core.services.stock_adjustment_service import StockAdjustmentService
from stockledger.core.services.stock_movement_service import StockMovementService
from stockledger.core.services.stock_transfer_service import StockTransferService

__all__ = [
    # Inventory records
    "InventoryService",
    "ensure_available",
    # Workflows
    "PurchaseOrderService",
    "SalesOrderService",
    "StockTransferService",
    "StockAdjustmentService",
    # Ledger
    "StockMovementService",
]
