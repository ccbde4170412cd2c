"""Services wired to a real migrated SQLite database."""

from collections.abc import Awaitable, Callable

import pytest

from stockledger.core.entities.stock_movement import MovementType
from stockledger.core.interfaces.unit_of_work import UnitOfWorkFactory
from stockledger.core.services import (
    InventoryService,
    PurchaseOrderService,
    SalesOrderService,
    StockAdjustmentService,
    StockMovementService,
    StockTransferService,
)


@pytest.fixture
def inventory_service(uow_factory: UnitOfWorkFactory) -> InventoryService:
    return InventoryService(uow_factory)


@pytest.fixture
def purchase_order_service(uow_factory: UnitOfWorkFactory) -> PurchaseOrderService:
    return PurchaseOrderService(uow_factory)


@pytest.fixture
def sales_order_service(uow_factory: UnitOfWorkFactory) -> SalesOrderService:
    return SalesOrderService(uow_factory)


@pytest.fixture
def transfer_service(uow_factory: UnitOfWorkFactory) -> StockTransferService:
    return StockTransferService(uow_factory)


@pytest.fixture
def adjustment_service(uow_factory: UnitOfWorkFactory) -> StockAdjustmentService:
    return StockAdjustmentService(uow_factory)


@pytest.fixture
def movement_service(uow_factory: UnitOfWorkFactory) -> StockMovementService:
    return StockMovementService(uow_factory, auto_approve_threshold=100.0)


@pytest.fixture
def seed_stock(
    movement_service: StockMovementService,
) -> Callable[[int, int, int], Awaitable[None]]:
    """Put opening stock on the books through the ledger so it reconciles."""

    async def seed(product_id: int, warehouse_id: int, quantity: int) -> None:
        await movement_service.record_manual(
            product_id,
            warehouse_id,
            MovementType.ADJUSTMENT_INCREASE,
            quantity,
            reason="opening balance",
        )

    return seed
