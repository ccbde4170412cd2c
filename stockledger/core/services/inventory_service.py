"""
Inventory record service.

Thin facade over the inventory store: every call is one unit of work.
Workflows that need inventory inside their own transaction use the store
on their unit of work directly, together with ``ensure_available``.
"""

from stockledger.core.entities.inventory import InventoryRecord
from stockledger.core.exceptions import InsufficientStockError, InventoryNotFoundError
from stockledger.core.interfaces.unit_of_work import IUnitOfWork, UnitOfWorkFactory


async def ensure_available(
    uow: IUnitOfWork,
    product_id: int,
    warehouse_id: int,
    requested: int,
) -> InventoryRecord | None:
    """
    Raise InsufficientStockError unless ``requested`` units are available.

    A missing record counts as zero available.
    """
    record = await uow.inventory.get(product_id, warehouse_id)
    available = record.quantity_available if record else 0
    if available < requested:
        raise InsufficientStockError(
            product_id=product_id,
            warehouse_id=warehouse_id,
            requested=requested,
            available=available,
        )
    return record


class InventoryService:
    """Reads and direct deltas against inventory records."""

    def __init__(self, uow_factory: UnitOfWorkFactory):
        self._uow_factory = uow_factory

    async def get(self, product_id: int, warehouse_id: int) -> InventoryRecord:
        async with self._uow_factory(read_only=True) as uow:
            record = await uow.inventory.get(product_id, warehouse_id)
        if record is None:
            raise InventoryNotFoundError({"product_id": product_id, "warehouse_id": warehouse_id})
        return record

    async def get_by_id(self, inventory_id: int) -> InventoryRecord:
        async with self._uow_factory(read_only=True) as uow:
            record = await uow.inventory.get_by_id(inventory_id)
        if record is None:
            raise InventoryNotFoundError(inventory_id)
        return record

    async def available(self, product_id: int, warehouse_id: int) -> int:
        """On-hand minus reserved; 0 when no record exists yet."""
        async with self._uow_factory(read_only=True) as uow:
            record = await uow.inventory.get(product_id, warehouse_id)
        return record.quantity_available if record else 0

    async def list_for_product(self, product_id: int) -> list[InventoryRecord]:
        async with self._uow_factory(read_only=True) as uow:
            return await uow.inventory.list_for_product(product_id)

    async def list_for_warehouse(self, warehouse_id: int) -> list[InventoryRecord]:
        async with self._uow_factory(read_only=True) as uow:
            return await uow.inventory.list_for_warehouse(warehouse_id)

    async def apply_delta(
        self,
        product_id: int,
        warehouse_id: int,
        on_hand_delta: int,
        reserved_delta: int,
    ) -> InventoryRecord:
        """Apply one delta in its own transaction."""
        async with self._uow_factory() as uow:
            return await uow.inventory.apply_delta(
                product_id, warehouse_id, on_hand_delta, reserved_delta
            )

    async def delete(self, product_id: int, warehouse_id: int) -> bool:
        async with self._uow_factory() as uow:
            return await uow.inventory.delete(product_id, warehouse_id)
