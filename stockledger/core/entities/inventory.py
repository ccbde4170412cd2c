"""Inventory domain entities."""

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from stockledger.core.clock import utcnow
from stockledger.core.exceptions import InvalidQuantityError


class InventoryRecord(BaseModel):
    """
    Quantity triple for one (product, warehouse) pair.

    ``quantity_available`` is derived from the other two fields and never
    set independently; stores persist the recomputed value on every write.
    """

    id: int | None = None
    product_id: int
    warehouse_id: int
    quantity_on_hand: int = Field(default=0, ge=0)
    quantity_reserved: int = Field(default=0, ge=0)
    version: int = 0
    notes: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def check_reserved(self) -> "InventoryRecord":
        if self.quantity_reserved > self.quantity_on_hand:
            raise ValueError("quantity_reserved cannot exceed quantity_on_hand")
        return self

    @property
    def quantity_available(self) -> int:
        """On-hand minus reserved."""
        return self.quantity_on_hand - self.quantity_reserved

    @property
    def key(self) -> tuple[int, int]:
        return (self.product_id, self.warehouse_id)

    def with_delta(self, on_hand_delta: int, reserved_delta: int) -> "InventoryRecord":
        """
        Return a copy with both deltas applied.

        Raises:
            InvalidQuantityError: if the result would make on_hand < 0,
                reserved < 0 or reserved > on_hand.
        """
        on_hand = self.quantity_on_hand + on_hand_delta
        reserved = self.quantity_reserved + reserved_delta

        reason = None
        if on_hand < 0:
            reason = "negative_on_hand"
        elif reserved < 0:
            reason = "negative_reserved"
        elif reserved > on_hand:
            reason = "reserved_exceeds_on_hand"

        if reason is not None:
            raise InvalidQuantityError(
                product_id=self.product_id,
                warehouse_id=self.warehouse_id,
                on_hand=self.quantity_on_hand,
                reserved=self.quantity_reserved,
                on_hand_delta=on_hand_delta,
                reserved_delta=reserved_delta,
                reason=reason,
            )

        return self.model_copy(
            update={
                "quantity_on_hand": on_hand,
                "quantity_reserved": reserved,
                "updated_at": utcnow(),
            }
        )


@dataclass(frozen=True)
class InventoryDelta:
    """One pending change to an inventory record."""

    product_id: int
    warehouse_id: int
    on_hand_delta: int = 0
    reserved_delta: int = 0

    @property
    def lock_key(self) -> tuple[int, int]:
        """Global lock order: ascending warehouse, then product."""
        return (self.warehouse_id, self.product_id)
