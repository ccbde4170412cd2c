"""Abstract interface for purchase order storage."""

from abc import ABC, abstractmethod

from stockledger.core.entities.purchase_order import PurchaseOrder, PurchaseOrderItem


class IPurchaseOrderStore(ABC):
    """Interface for purchase order and item persistence."""

    @abstractmethod
    async def create(self, order: PurchaseOrder) -> PurchaseOrder:
        """Create a purchase order with all its items."""
        pass

    @abstractmethod
    async def get(self, po_id: int) -> PurchaseOrder | None:
        """Get purchase order by ID with items."""
        pass

    @abstractmethod
    async def update(self, order: PurchaseOrder) -> PurchaseOrder:
        """Update order header fields (status, totals, timestamps)."""
        pass

    @abstractmethod
    async def add_item(self, item: PurchaseOrderItem) -> PurchaseOrderItem:
        pass

    @abstractmethod
    async def update_item(self, item: PurchaseOrderItem) -> PurchaseOrderItem:
        """Update item counters, pricing and status."""
        pass

    @abstractmethod
    async def remove_item(self, item_id: int) -> bool:
        pass

    @abstractmethod
    async def next_sequence(self, prefix: str) -> int:
        """Next sequence number for order numbers starting with prefix."""
        pass
