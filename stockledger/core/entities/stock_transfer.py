"""Inter-warehouse stock transfer entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from stockledger.core.clock import utcnow
from stockledger.core.entities.state_machine import StateMachine


class StockTransferStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    IN_TRANSIT = "in_transit"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


_S = StockTransferStatus

STOCK_TRANSFER_TRANSITIONS = StateMachine(
    "stock_transfer",
    StockTransferStatus,
    {
        _S.PENDING: {_S.APPROVED, _S.CANCELLED},
        _S.APPROVED: {_S.IN_TRANSIT, _S.CANCELLED},
        _S.IN_TRANSIT: {_S.COMPLETED},
    },
)

# Transfers in these states count towards the duplicate guard
STOCK_TRANSFER_OPEN = frozenset({_S.PENDING, _S.APPROVED})


class StockTransfer(BaseModel):
    """
    Intent to move quantity of one product between two warehouses.

    Nothing is reserved at the source until completion; availability is
    re-checked on approve and on complete instead.
    """

    id: int | None = None
    reference_number: str
    from_warehouse_id: int
    to_warehouse_id: int
    product_id: int
    quantity_transferred: int = Field(gt=0)
    status: StockTransferStatus = StockTransferStatus.PENDING
    notes: str | None = None

    initiated_by: int | None = None
    initiated_at: datetime = Field(default_factory=utcnow)
    approved_by: int | None = None
    approved_at: datetime | None = None
    shipped_at: datetime | None = None
    completed_by: int | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def check_warehouses(self) -> "StockTransfer":
        if self.from_warehouse_id == self.to_warehouse_id:
            raise ValueError("from_warehouse_id and to_warehouse_id must differ")
        if (self.status == StockTransferStatus.CANCELLED) != bool(self.cancellation_reason):
            raise ValueError("cancellation_reason is required iff status is cancelled")
        return self


@dataclass
class BulkTransferResult:
    """Outcome of a bulk approve/cancel; each transfer runs in its own unit of work."""

    succeeded: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)
    errors: dict[int, dict] = field(default_factory=dict)

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failed)
