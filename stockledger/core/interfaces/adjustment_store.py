"""Abstract interface for stock adjustment storage."""

from abc import ABC, abstractmethod

from stockledger.core.entities.stock_adjustment import StockAdjustment


class IStockAdjustmentStore(ABC):
    """Interface for stock adjustment persistence."""

    @abstractmethod
    async def create(self, adjustment: StockAdjustment) -> StockAdjustment:
        pass

    @abstractmethod
    async def get(
        self, adjustment_id: int, include_deleted: bool = False
    ) -> StockAdjustment | None:
        """Get adjustment by ID. Soft-deleted rows are hidden unless asked for."""
        pass

    @abstractmethod
    async def update_notes(self, adjustment_id: int, notes: str | None) -> None:
        pass

    @abstractmethod
    async def soft_delete(self, adjustment_id: int) -> bool:
        """Stamp deleted_at. Never touches inventory."""
        pass

    @abstractmethod
    async def list_for_inventory(
        self, inventory_id: int, limit: int = 100
    ) -> list[StockAdjustment]:
        """List live adjustments for an inventory record, newest first."""
        pass
