"""Abstract interface for inventory record storage."""

from abc import ABC, abstractmethod

from stockledger.core.entities.inventory import InventoryDelta, InventoryRecord


class IInventoryStore(ABC):
    """
    Interface for inventory record persistence.

    ``apply_delta`` is the only way quantities change. Implementations must
    validate the result with ``InventoryRecord.with_delta`` and persist the
    recomputed available quantity in the same write.
    """

    @abstractmethod
    async def get(self, product_id: int, warehouse_id: int) -> InventoryRecord | None:
        """Get the record for a (product, warehouse) pair."""
        pass

    @abstractmethod
    async def get_by_id(self, inventory_id: int) -> InventoryRecord | None:
        """Get record by ID."""
        pass

    @abstractmethod
    async def list_for_product(self, product_id: int) -> list[InventoryRecord]:
        """List records for a product across all warehouses."""
        pass

    @abstractmethod
    async def list_for_warehouse(self, warehouse_id: int) -> list[InventoryRecord]:
        """List records held at a warehouse."""
        pass

    @abstractmethod
    async def apply_delta(
        self,
        product_id: int,
        warehouse_id: int,
        on_hand_delta: int,
        reserved_delta: int,
    ) -> InventoryRecord:
        """
        Add both deltas to the record, creating it with zeros if absent.

        Raises:
            InvalidQuantityError: result would break 0 <= reserved <= on_hand.
            UnavailableError: version conflict or storage failure.
        """
        pass

    @abstractmethod
    async def apply_deltas(self, deltas: list[InventoryDelta]) -> list[InventoryRecord]:
        """Apply several deltas in ascending (warehouse_id, product_id) order."""
        pass

    @abstractmethod
    async def delete(self, product_id: int, warehouse_id: int) -> bool:
        """Delete a record. Refused while quantity_reserved > 0."""
        pass
