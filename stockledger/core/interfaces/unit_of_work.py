"""Transaction boundary used by every workflow operation."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from types import TracebackType

from stockledger.core.interfaces.adjustment_store import IStockAdjustmentStore
from stockledger.core.interfaces.inventory_store import IInventoryStore
from stockledger.core.interfaces.movement_store import IStockMovementStore
from stockledger.core.interfaces.purchase_order_store import IPurchaseOrderStore
from stockledger.core.interfaces.request_log_store import IRequestLogStore
from stockledger.core.interfaces.sales_order_store import ISalesOrderStore
from stockledger.core.interfaces.transfer_store import IStockTransferStore


class IUnitOfWork(ABC):
    """
    One transaction with a store per entity bound to it.

    Entering begins the transaction (taking the write lock unless read-only),
    a clean exit commits and any exception rolls everything back.
    """

    inventory: IInventoryStore
    purchase_orders: IPurchaseOrderStore
    sales_orders: ISalesOrderStore
    transfers: IStockTransferStore
    adjustments: IStockAdjustmentStore
    movements: IStockMovementStore
    requests: IRequestLogStore

    @abstractmethod
    async def __aenter__(self) -> "IUnitOfWork":
        pass

    @abstractmethod
    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        pass


# Services receive a factory: uow_factory() for writes, uow_factory(read_only=True) for reads
UnitOfWorkFactory = Callable[..., IUnitOfWork]
