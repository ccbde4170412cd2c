"""SQLite unit of work: one pooled connection, one transaction, all stores."""

from contextlib import AsyncExitStack
from types import TracebackType

from stockledger.core.interfaces.unit_of_work import IUnitOfWork
from stockledger.infrastructure.storage.sqlite.adjustment_store import (
    SQLiteStockAdjustmentStore,
)
from stockledger.infrastructure.storage.sqlite.connection import ConnectionPool, get_pool
from stockledger.infrastructure.storage.sqlite.inventory_store import SQLiteInventoryStore
from stockledger.infrastructure.storage.sqlite.movement_store import SQLiteStockMovementStore
from stockledger.infrastructure.storage.sqlite.purchase_order_store import (
    SQLitePurchaseOrderStore,
)
from stockledger.infrastructure.storage.sqlite.request_log_store import SQLiteRequestLogStore
from stockledger.infrastructure.storage.sqlite.sales_order_store import SQLiteSalesOrderStore
from stockledger.infrastructure.storage.sqlite.transfer_store import SQLiteStockTransferStore


class SQLiteUnitOfWork(IUnitOfWork):
    """
    Async context manager wrapping ConnectionPool.transaction().

    Usage:
        async with SQLiteUnitOfWork(pool) as uow:
            await uow.inventory.apply_delta(...)
    """

    def __init__(self, pool: ConnectionPool | None = None, read_only: bool = False):
        self._pool = pool
        self.read_only = read_only
        self._stack: AsyncExitStack | None = None

    async def __aenter__(self) -> "SQLiteUnitOfWork":
        if self._stack is not None:
            raise RuntimeError("unit of work is already active")

        pool = self._pool or await get_pool()
        stack = AsyncExitStack()
        conn = await stack.enter_async_context(pool.transaction(immediate=not self.read_only))
        self._stack = stack

        self.inventory = SQLiteInventoryStore(conn)
        self.purchase_orders = SQLitePurchaseOrderStore(conn)
        self.sales_orders = SQLiteSalesOrderStore(conn)
        self.transfers = SQLiteStockTransferStore(conn)
        self.adjustments = SQLiteStockAdjustmentStore(conn)
        self.movements = SQLiteStockMovementStore(conn)
        self.requests = SQLiteRequestLogStore(conn)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        stack, self._stack = self._stack, None
        if stack is not None:
            await stack.__aexit__(exc_type, exc, tb)
