"""Stock movement ledger entities."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from stockledger.core.clock import utcnow
from stockledger.core.entities.state_machine import StateMachine


class MovementType(str, Enum):
    """Kinds of quantity-affecting events."""

    ADJUSTMENT_INCREASE = "adjustment_increase"
    ADJUSTMENT_DECREASE = "adjustment_decrease"
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"
    PURCHASE_RECEIVE = "purchase_receive"
    SALE_FULFILL = "sale_fulfill"
    RETURN_CUSTOMER = "return_customer"
    RETURN_SUPPLIER = "return_supplier"
    DAMAGE_WRITE_OFF = "damage_write_off"
    EXPIRY_WRITE_OFF = "expiry_write_off"

    @property
    def is_increase(self) -> bool:
        return self in INCREASE_MOVEMENT_TYPES


INCREASE_MOVEMENT_TYPES = frozenset(
    {
        MovementType.ADJUSTMENT_INCREASE,
        MovementType.TRANSFER_IN,
        MovementType.PURCHASE_RECEIVE,
        MovementType.RETURN_CUSTOMER,
    }
)

# Only these are eligible for auto-approval on manual entry
ADJUSTMENT_MOVEMENT_TYPES = frozenset(
    {MovementType.ADJUSTMENT_INCREASE, MovementType.ADJUSTMENT_DECREASE}
)


class MovementStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    APPLIED = "applied"


_S = MovementStatus

STOCK_MOVEMENT_TRANSITIONS = StateMachine(
    "stock_movement",
    MovementStatus,
    {
        _S.PENDING: {_S.APPROVED, _S.REJECTED},
        _S.APPROVED: {_S.APPLIED},
    },
)


class RelatedDocumentType(str, Enum):
    PURCHASE_ORDER = "purchase_order"
    SALES_ORDER = "sales_order"
    STOCK_TRANSFER = "stock_transfer"
    STOCK_ADJUSTMENT = "stock_adjustment"


class StockMovement(BaseModel):
    """
    One ledger entry. ``quantity_moved`` is signed: positive for the
    increase types, negative for the rest. ``quantity_before`` and
    ``quantity_after`` are on-hand figures.
    """

    id: int | None = None
    reference_number: str
    product_id: int
    warehouse_id: int
    movement_type: MovementType
    quantity_moved: int
    quantity_before: int | None = None
    quantity_after: int | None = None
    unit_cost: float = 0.0
    total_value: float = 0.0
    status: MovementStatus = MovementStatus.PENDING
    reason: str | None = None
    notes: str | None = None
    related_document_type: RelatedDocumentType | None = None
    related_document_id: int | None = None
    user_id: int | None = None
    approved_by: int | None = None
    approved_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


@dataclass(frozen=True)
class ReconciliationReport:
    """Ledger total versus the inventory record for one (product, warehouse)."""

    product_id: int
    warehouse_id: int
    ledger_on_hand: int
    record_on_hand: int

    @property
    def difference(self) -> int:
        return self.record_on_hand - self.ledger_on_hand

    @property
    def is_consistent(self) -> bool:
        return self.difference == 0

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "warehouse_id": self.warehouse_id,
            "ledger_on_hand": self.ledger_on_hand,
            "record_on_hand": self.record_on_hand,
            "difference": self.difference,
            "is_consistent": self.is_consistent,
        }
