"""Abstract interface for stock transfer storage."""

from abc import ABC, abstractmethod

from stockledger.core.entities.stock_transfer import StockTransfer, StockTransferStatus


class IStockTransferStore(ABC):
    """Interface for stock transfer persistence."""

    @abstractmethod
    async def create(self, transfer: StockTransfer) -> StockTransfer:
        pass

    @abstractmethod
    async def get(self, transfer_id: int) -> StockTransfer | None:
        """Get transfer by ID."""
        pass

    @abstractmethod
    async def update(self, transfer: StockTransfer) -> StockTransfer:
        """Update status, quantity, notes and transition stamps."""
        pass

    @abstractmethod
    async def find_open_duplicate(
        self,
        from_warehouse_id: int,
        to_warehouse_id: int,
        product_id: int,
        quantity: int,
        exclude_id: int | None = None,
    ) -> StockTransfer | None:
        """
        Find a pending or approved transfer with the same route, product and quantity.

        ``exclude_id`` skips one transfer, so an edited transfer never matches itself.
        """
        pass

    @abstractmethod
    async def list_transfers(
        self,
        status: StockTransferStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[StockTransfer]:
        """List transfers, newest first."""
        pass

    @abstractmethod
    async def next_sequence(self, prefix: str) -> int:
        pass
