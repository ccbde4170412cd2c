"""Abstract interface for sales order storage."""

from abc import ABC, abstractmethod

from stockledger.core.entities.sales_order import SalesOrder, SalesOrderItem


class ISalesOrderStore(ABC):
    """Interface for sales order and item persistence."""

    @abstractmethod
    async def create(self, order: SalesOrder) -> SalesOrder:
        """Create a sales order with all its items."""
        pass

    @abstractmethod
    async def get(self, so_id: int) -> SalesOrder | None:
        """Get sales order by ID with items."""
        pass

    @abstractmethod
    async def update(self, order: SalesOrder) -> SalesOrder:
        """Update order header fields (status, totals, timestamps)."""
        pass

    @abstractmethod
    async def add_item(self, item: SalesOrderItem) -> SalesOrderItem:
        pass

    @abstractmethod
    async def update_item(self, item: SalesOrderItem) -> SalesOrderItem:
        """Update item counters, pricing and status."""
        pass

    @abstractmethod
    async def remove_item(self, item_id: int) -> bool:
        pass

    @abstractmethod
    async def next_sequence(self, prefix: str) -> int:
        """Next sequence number for order numbers starting with prefix."""
        pass
