"""Manual stock adjustments: direct corrections with an audit record."""

from stockledger.config import get_logger
from stockledger.core.clock import utcnow
from stockledger.core.entities.stock_adjustment import (
    AdjustmentReason,
    AdjustmentType,
    StockAdjustment,
)
from stockledger.core.entities.stock_movement import MovementType, RelatedDocumentType
from stockledger.core.exceptions import (
    InventoryNotFoundError,
    StockAdjustmentNotFoundError,
    StockLedgerError,
    ValidationError,
)
from stockledger.core.interfaces.unit_of_work import IUnitOfWork, UnitOfWorkFactory
from stockledger.core.services.ledger import record_applied_movement
from stockledger.core.services.numbering import adjustment_reference

logger = get_logger(__name__)


def _parse_type(value: AdjustmentType | str) -> AdjustmentType:
    try:
        return AdjustmentType(value)
    except ValueError:
        raise ValidationError("adjustment_type", "unknown adjustment type", value) from None


def _parse_reason(value: AdjustmentReason | str) -> AdjustmentReason:
    try:
        return AdjustmentReason(value)
    except ValueError:
        raise ValidationError("reason", "unknown adjustment reason", value) from None


class StockAdjustmentService:
    """
    Create, annotate and soft-delete adjustments.

    An adjustment is a historical fact: deleting one hides it but never
    reverses the inventory change it made.
    """

    def __init__(self, uow_factory: UnitOfWorkFactory):
        self._uow_factory = uow_factory

    async def create(
        self,
        inventory_id: int,
        adjustment_type: AdjustmentType | str,
        quantity: int,
        reason: AdjustmentReason | str,
        adjusted_by: int | None = None,
        notes: str | None = None,
    ) -> StockAdjustment:
        """
        Apply +quantity (increase) or -quantity (decrease) to on-hand.

        Raises:
            InventoryNotFoundError: no record with inventory_id
            InvalidQuantityError: a decrease would take on-hand below reserved
        """
        kind = _parse_type(adjustment_type)
        reason = _parse_reason(reason)
        if quantity <= 0:
            raise ValidationError("quantity_adjusted", "must be positive", quantity)

        signed = quantity if kind == AdjustmentType.INCREASE else -quantity

        try:
            async with self._uow_factory() as uow:
                record = await uow.inventory.get_by_id(inventory_id)
                if record is None:
                    raise InventoryNotFoundError(inventory_id)

                updated = await uow.inventory.apply_delta(
                    record.product_id, record.warehouse_id, signed, 0
                )

                now = utcnow()
                adjustment = await uow.adjustments.create(
                    StockAdjustment(
                        reference_number=adjustment_reference(now),
                        inventory_id=record.id,
                        product_id=record.product_id,
                        warehouse_id=record.warehouse_id,
                        adjustment_type=kind,
                        quantity_adjusted=quantity,
                        quantity_before=record.quantity_on_hand,
                        quantity_after=updated.quantity_on_hand,
                        reason=reason,
                        notes=notes,
                        adjusted_by=adjusted_by,
                        adjusted_at=now,
                    )
                )

                movement_type = (
                    MovementType.ADJUSTMENT_INCREASE
                    if kind == AdjustmentType.INCREASE
                    else MovementType.ADJUSTMENT_DECREASE
                )
                await record_applied_movement(
                    uow,
                    updated,
                    movement_type,
                    signed,
                    reason=reason.value,
                    notes=notes,
                    related_document_type=RelatedDocumentType.STOCK_ADJUSTMENT,
                    related_document_id=adjustment.id,
                    user_id=adjusted_by,
                )
        except StockLedgerError as e:
            logger.warning(
                "stock_adjustment_rejected", inventory_id=inventory_id, error=e.code
            )
            raise

        logger.info(
            "stock_adjustment_created",
            adjustment_id=adjustment.id,
            reference=adjustment.reference_number,
            inventory_id=inventory_id,
            type=kind.value,
            quantity=quantity,
            quantity_after=adjustment.quantity_after,
        )
        return adjustment

    async def get(self, adjustment_id: int) -> StockAdjustment:
        async with self._uow_factory(read_only=True) as uow:
            return await self._load(uow, adjustment_id)

    async def list_for_inventory(self, inventory_id: int, limit: int = 100) -> list[StockAdjustment]:
        async with self._uow_factory(read_only=True) as uow:
            return await uow.adjustments.list_for_inventory(inventory_id, limit=limit)

    async def update_notes(self, adjustment_id: int, notes: str | None) -> StockAdjustment:
        """Notes are the only field that may change after creation."""
        async with self._uow_factory() as uow:
            adjustment = await self._load(uow, adjustment_id)
            await uow.adjustments.update_notes(adjustment.id, notes)
            adjustment.notes = notes
            return adjustment

    async def delete(self, adjustment_id: int) -> bool:
        """Soft delete. The inventory change stays applied."""
        async with self._uow_factory() as uow:
            adjustment = await self._load(uow, adjustment_id)
            deleted = await uow.adjustments.soft_delete(adjustment.id)

        logger.info("stock_adjustment_deleted", adjustment_id=adjustment_id)
        return deleted

    @staticmethod
    async def _load(uow: IUnitOfWork, adjustment_id: int) -> StockAdjustment:
        adjustment = await uow.adjustments.get(adjustment_id)
        if adjustment is None:
            raise StockAdjustmentNotFoundError(adjustment_id)
        return adjustment
