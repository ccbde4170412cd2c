"""Manual stock adjustment entities."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from stockledger.core.clock import utcnow


class AdjustmentType(str, Enum):
    INCREASE = "increase"
    DECREASE = "decrease"


class AdjustmentReason(str, Enum):
    DAMAGE = "damage"
    THEFT = "theft"
    FOUND = "found"
    EXPIRED = "expired"
    RETURNED = "returned"
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"
    CORRECTION = "correction"
    RECOUNT = "recount"
    OTHER = "other"


class StockAdjustment(BaseModel):
    """
    Corrective change to one inventory record.

    Immutable after creation apart from ``notes``. Deleting only stamps
    ``deleted_at``; the inventory change stays applied.
    """

    id: int | None = None
    reference_number: str
    inventory_id: int
    product_id: int
    warehouse_id: int
    adjustment_type: AdjustmentType
    quantity_adjusted: int = Field(gt=0)
    quantity_before: int = Field(ge=0)
    quantity_after: int = Field(ge=0)
    reason: AdjustmentReason
    notes: str | None = None
    adjusted_by: int | None = None
    adjusted_at: datetime = Field(default_factory=utcnow)
    deleted_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def signed_quantity(self) -> int:
        if self.adjustment_type == AdjustmentType.INCREASE:
            return self.quantity_adjusted
        return -self.quantity_adjusted

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
