"""
Stock movement ledger service.

Workflow operations append movements that are already applied. Manually
entered movements start pending and change inventory only when approved,
exactly once per movement.
"""

from stockledger.config import get_logger
from stockledger.core.clock import utcnow
from stockledger.core.entities.inventory import InventoryRecord
from stockledger.core.entities.pricing import append_note
from stockledger.core.entities.stock_movement import (
    ADJUSTMENT_MOVEMENT_TYPES,
    STOCK_MOVEMENT_TRANSITIONS,
    MovementStatus,
    MovementType,
    ReconciliationReport,
    RelatedDocumentType,
    StockMovement,
)
from stockledger.core.exceptions import (
    StockLedgerError,
    StockMovementNotFoundError,
    ValidationError,
)
from stockledger.core.interfaces.unit_of_work import IUnitOfWork, UnitOfWorkFactory
from stockledger.core.services.ledger import check_movement_sign
from stockledger.core.services.numbering import movement_reference

logger = get_logger(__name__)

DEFAULT_AUTO_APPROVE_THRESHOLD = 100.0


class StockMovementService:
    """Manual ledger entries, their approval, and reconciliation."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        auto_approve_threshold: float = DEFAULT_AUTO_APPROVE_THRESHOLD,
    ):
        self._uow_factory = uow_factory
        self._auto_approve_threshold = auto_approve_threshold

    async def record_manual(
        self,
        product_id: int,
        warehouse_id: int,
        movement_type: MovementType | str,
        quantity_moved: int,
        unit_cost: float = 0.0,
        reason: str | None = None,
        notes: str | None = None,
        user_id: int | None = None,
        related_document_type: RelatedDocumentType | None = None,
        related_document_id: int | None = None,
    ) -> StockMovement:
        """
        Record a pending movement.

        Adjustment movements worth less than the auto-approve threshold are
        approved and applied in the same transaction.
        """
        try:
            movement_type = MovementType(movement_type)
        except ValueError:
            raise ValidationError("movement_type", "unknown movement type", movement_type) from None
        check_movement_sign(movement_type, quantity_moved)
        if unit_cost < 0:
            raise ValidationError("unit_cost", "must not be negative", unit_cost)

        async with self._uow_factory() as uow:
            record = await uow.inventory.get(product_id, warehouse_id)
            base = record or InventoryRecord(product_id=product_id, warehouse_id=warehouse_id)
            # Reject up front anything that could never be approved
            projected = base.with_delta(quantity_moved, 0)

            now = utcnow()
            movement = await uow.movements.create(
                StockMovement(
                    reference_number=await movement_reference(uow, now),
                    product_id=product_id,
                    warehouse_id=warehouse_id,
                    movement_type=movement_type,
                    quantity_moved=quantity_moved,
                    quantity_before=base.quantity_on_hand,
                    quantity_after=projected.quantity_on_hand,
                    unit_cost=unit_cost,
                    total_value=quantity_moved * unit_cost,
                    status=MovementStatus.PENDING,
                    reason=reason,
                    notes=notes,
                    related_document_type=related_document_type,
                    related_document_id=related_document_id,
                    user_id=user_id,
                )
            )

            if (
                movement_type in ADJUSTMENT_MOVEMENT_TYPES
                and abs(movement.total_value) < self._auto_approve_threshold
            ):
                logger.info("stock_movement_auto_approved", movement_id=movement.id)
                movement = await self._apply(uow, movement, user_id)

        return movement

    async def approve(self, movement_id: int, approver_id: int | None = None) -> StockMovement:
        """
        Approve a pending movement and apply its quantity to on-hand.

        The pending -> approved check runs under the write lock, so a movement
        is applied at most once; approving it again is an InvalidTransitionError.
        """
        try:
            async with self._uow_factory() as uow:
                movement = await self._load(uow, movement_id)
                return await self._apply(uow, movement, approver_id)
        except StockLedgerError as e:
            logger.warning("stock_movement_approve_rejected", movement_id=movement_id, error=e.code)
            raise

    async def reject(
        self, movement_id: int, reason: str = "", rejected_by: int | None = None
    ) -> StockMovement:
        async with self._uow_factory() as uow:
            movement = await self._load(uow, movement_id)
            STOCK_MOVEMENT_TRANSITIONS.ensure_transition(
                movement.id, movement.status, MovementStatus.REJECTED, "reject"
            )
            movement.status = MovementStatus.REJECTED
            movement.approved_by = rejected_by
            movement.approved_at = utcnow()
            movement.notes = append_note(movement.notes, f"Rejected: {reason}")
            movement = await uow.movements.update(movement)

        logger.info("stock_movement_rejected", movement_id=movement.id)
        return movement

    async def get(self, movement_id: int) -> StockMovement:
        async with self._uow_factory(read_only=True) as uow:
            return await self._load(uow, movement_id)

    async def list_for_inventory(
        self, product_id: int, warehouse_id: int, limit: int = 100
    ) -> list[StockMovement]:
        async with self._uow_factory(read_only=True) as uow:
            return await uow.movements.list_for_inventory(product_id, warehouse_id, limit=limit)

    async def list_pending(self, limit: int = 100) -> list[StockMovement]:
        async with self._uow_factory(read_only=True) as uow:
            return await uow.movements.list_pending(limit=limit)

    async def reconcile(self, product_id: int, warehouse_id: int) -> ReconciliationReport:
        """
        Compare the sum of applied movements with the record's on-hand.

        Reservations never change on-hand and are not part of the ledger.
        """
        async with self._uow_factory(read_only=True) as uow:
            ledger_on_hand = await uow.movements.sum_applied(product_id, warehouse_id)
            record = await uow.inventory.get(product_id, warehouse_id)

        report = ReconciliationReport(
            product_id=product_id,
            warehouse_id=warehouse_id,
            ledger_on_hand=ledger_on_hand,
            record_on_hand=record.quantity_on_hand if record else 0,
        )
        if report.is_consistent:
            logger.info("stock_ledger_reconciled", **report.to_dict())
        else:
            logger.warning("stock_ledger_discrepancy", **report.to_dict())
        return report

    async def _apply(
        self, uow: IUnitOfWork, movement: StockMovement, approver_id: int | None
    ) -> StockMovement:
        STOCK_MOVEMENT_TRANSITIONS.ensure_transition(
            movement.id, movement.status, MovementStatus.APPROVED, "approve"
        )
        movement.status = MovementStatus.APPROVED
        movement.approved_by = approver_id
        movement.approved_at = utcnow()

        record = await uow.inventory.apply_delta(
            movement.product_id, movement.warehouse_id, movement.quantity_moved, 0
        )
        movement.quantity_before = record.quantity_on_hand - movement.quantity_moved
        movement.quantity_after = record.quantity_on_hand

        STOCK_MOVEMENT_TRANSITIONS.ensure_transition(
            movement.id, movement.status, MovementStatus.APPLIED, "apply"
        )
        movement.status = MovementStatus.APPLIED
        movement = await uow.movements.update(movement)

        logger.info(
            "stock_movement_applied",
            movement_id=movement.id,
            quantity_moved=movement.quantity_moved,
            on_hand=record.quantity_on_hand,
        )
        return movement

    @staticmethod
    async def _load(uow: IUnitOfWork, movement_id: int) -> StockMovement:
        movement = await uow.movements.get(movement_id)
        if movement is None:
            raise StockMovementNotFoundError(movement_id)
        return movement
