"""Abstract interface for the stock movement ledger."""

from abc import ABC, abstractmethod

from stockledger.core.entities.stock_movement import StockMovement


class IStockMovementStore(ABC):
    """Interface for stock movement persistence."""

    @abstractmethod
    async def create(self, movement: StockMovement) -> StockMovement:
        """Append a movement."""
        pass

    @abstractmethod
    async def get(self, movement_id: int) -> StockMovement | None:
        pass

    @abstractmethod
    async def update(self, movement: StockMovement) -> StockMovement:
        """Update status, approval stamps, quantities and notes."""
        pass

    @abstractmethod
    async def list_for_inventory(
        self, product_id: int, warehouse_id: int, limit: int = 100
    ) -> list[StockMovement]:
        """Movements for a (product, warehouse) pair, newest first."""
        pass

    @abstractmethod
    async def list_pending(self, limit: int = 100) -> list[StockMovement]:
        """Pending movements, oldest first."""
        pass

    @abstractmethod
    async def sum_applied(self, product_id: int, warehouse_id: int) -> int:
        """Sum of quantity_moved over applied movements for the pair."""
        pass

    @abstractmethod
    async def next_sequence(self, prefix: str) -> int:
        pass
