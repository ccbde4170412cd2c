"""Helpers every workflow uses to write the movement ledger."""

from stockledger.core.clock import utcnow
from stockledger.core.entities.inventory import InventoryRecord
from stockledger.core.entities.stock_movement import (
    MovementStatus,
    MovementType,
    RelatedDocumentType,
    StockMovement,
)
from stockledger.core.exceptions import ValidationError
from stockledger.core.interfaces.unit_of_work import IUnitOfWork
from stockledger.core.services.numbering import movement_reference


def check_movement_sign(movement_type: MovementType, quantity_moved: int) -> None:
    """Increase types move a positive quantity, all others a negative one."""
    if quantity_moved == 0:
        raise ValidationError("quantity_moved", "must not be zero", quantity_moved)
    if movement_type.is_increase != (quantity_moved > 0):
        expected = "positive" if movement_type.is_increase else "negative"
        raise ValidationError(
            "quantity_moved",
            f"must be {expected} for {movement_type.value}",
            quantity_moved,
        )


async def record_applied_movement(
    uow: IUnitOfWork,
    record: InventoryRecord,
    movement_type: MovementType,
    quantity_moved: int,
    *,
    unit_cost: float = 0.0,
    reason: str | None = None,
    notes: str | None = None,
    related_document_type: RelatedDocumentType | None = None,
    related_document_id: int | None = None,
    user_id: int | None = None,
) -> StockMovement:
    """
    Append an already-applied movement for a delta that just hit ``record``.

    ``record`` is the inventory state after the delta; the before figure is
    derived from it.
    """
    check_movement_sign(movement_type, quantity_moved)
    now = utcnow()
    movement = StockMovement(
        reference_number=await movement_reference(uow, now),
        product_id=record.product_id,
        warehouse_id=record.warehouse_id,
        movement_type=movement_type,
        quantity_moved=quantity_moved,
        quantity_before=record.quantity_on_hand - quantity_moved,
        quantity_after=record.quantity_on_hand,
        unit_cost=unit_cost,
        total_value=quantity_moved * unit_cost,
        status=MovementStatus.APPLIED,
        reason=reason,
        notes=notes,
        related_document_type=related_document_type,
        related_document_id=related_document_id,
        user_id=user_id,
        approved_by=user_id,
        approved_at=now,
    )
    return await uow.movements.create(movement)
