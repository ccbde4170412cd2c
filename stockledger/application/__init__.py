"""
Application layer - service factories and call helpers.

Wires infrastructure implementations into the core services and offers
the retry helper for storage-level failures.
"""

from stockledger.application.retry import retrying
from stockledger.application.services import (
    get_inventory_service,
    get_purchase_order_service,
    get_sales_order_service,
    get_stock_adjustment_service,
    get_stock_movement_service,
    get_stock_transfer_service,
    reset_services,
    sqlite_uow_factory,
)

__all__ = [
    # Factories
    "sqlite_uow_factory",
    "get_inventory_service",
    "get_purchase_order_service",
    "get_sales_order_service",
    "get_stock_transfer_service",
    "get_stock_adjustment_service",
    "get_stock_movement_service",
    "reset_services",
    # Helpers
    "retrying",
]
