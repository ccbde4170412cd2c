"""
Service factory functions for dependency injection.

Wires the SQLite unit of work into the core services. Callers (CLI, an
HTTP layer, tests) should obtain services from here.

Clean Architecture: Application layer orchestrates DI, not core layer.
"""

from stockledger.config import get_settings
from stockledger.core.interfaces import UnitOfWorkFactory
from stockledger.core.services import (
    InventoryService,
    PurchaseOrderService,
    SalesOrderService,
    StockAdjustmentService,
    StockMovementService,
    StockTransferService,
)
from stockledger.infrastructure.storage.sqlite import ConnectionPool, SQLiteUnitOfWork

# Singleton service instances
_inventory_service: InventoryService | None = None
_purchase_order_service: PurchaseOrderService | None = None
_sales_order_service: SalesOrderService | None = None
_stock_transfer_service: StockTransferService | None = None
_stock_adjustment_service: StockAdjustmentService | None = None
_stock_movement_service: StockMovementService | None = None


def sqlite_uow_factory(pool: ConnectionPool | None = None) -> UnitOfWorkFactory:
    """
    Build a unit-of-work factory bound to a pool (the global pool if None).

    The factory is called as ``factory()`` for a writing transaction and
    ``factory(read_only=True)`` for reads.
    """

    def factory(read_only: bool = False) -> SQLiteUnitOfWork:
        return SQLiteUnitOfWork(pool, read_only=read_only)

    return factory


def get_inventory_service(uow_factory: UnitOfWorkFactory | None = None) -> InventoryService:
    """Get or create InventoryService instance."""
    global _inventory_service

    if uow_factory is not None:
        return InventoryService(uow_factory)
    if _inventory_service is None:
        _inventory_service = InventoryService(sqlite_uow_factory())
    return _inventory_service


def get_purchase_order_service(
    uow_factory: UnitOfWorkFactory | None = None,
) -> PurchaseOrderService:
    """Get or create PurchaseOrderService instance."""
    global _purchase_order_service

    if uow_factory is not None:
        return PurchaseOrderService(uow_factory)
    if _purchase_order_service is None:
        _purchase_order_service = PurchaseOrderService(sqlite_uow_factory())
    return _purchase_order_service


def get_sales_order_service(uow_factory: UnitOfWorkFactory | None = None) -> SalesOrderService:
    """Get or create SalesOrderService instance."""
    global _sales_order_service

    if uow_factory is not None:
        return SalesOrderService(uow_factory)
    if _sales_order_service is None:
        _sales_order_service = SalesOrderService(sqlite_uow_factory())
    return _sales_order_service


def get_stock_transfer_service(
    uow_factory: UnitOfWorkFactory | None = None,
) -> StockTransferService:
    """Get or create StockTransferService instance."""
    global _stock_transfer_service

    if uow_factory is not None:
        return StockTransferService(uow_factory)
    if _stock_transfer_service is None:
        _stock_transfer_service = StockTransferService(sqlite_uow_factory())
    return _stock_transfer_service


def get_stock_adjustment_service(
    uow_factory: UnitOfWorkFactory | None = None,
) -> StockAdjustmentService:
    """Get or create StockAdjustmentService instance."""
    global _stock_adjustment_service

    if uow_factory is not None:
        return StockAdjustmentService(uow_factory)
    if _stock_adjustment_service is None:
        _stock_adjustment_service = StockAdjustmentService(sqlite_uow_factory())
    return _stock_adjustment_service


def get_stock_movement_service(
    uow_factory: UnitOfWorkFactory | None = None,
) -> StockMovementService:
    """
    Get or create StockMovementService instance.

    The auto-approve threshold comes from WorkflowSettings.
    """
    global _stock_movement_service

    threshold = get_settings().workflow.movement_auto_approve_threshold
    if uow_factory is not None:
        return StockMovementService(uow_factory, auto_approve_threshold=threshold)
    if _stock_movement_service is None:
        _stock_movement_service = StockMovementService(
            sqlite_uow_factory(), auto_approve_threshold=threshold
        )
    return _stock_movement_service


def reset_services() -> None:
    """Reset all singleton services (for testing)."""
    global _inventory_service, _purchase_order_service, _sales_order_service
    global _stock_transfer_service, _stock_adjustment_service, _stock_movement_service

    _inventory_service = None
    _purchase_order_service = None
    _sales_order_service = None
    _stock_transfer_service = None
    _stock_adjustment_service = None
    _stock_movement_service = None
