"""
Stock transfer workflow.

pending -> approved -> in_transit -> completed, cancellable while pending
or approved. Stock moves only on completion, when both warehouse records
change in one transaction. While in transit the goods are still counted
at the source.
"""

from collections.abc import Awaitable, Callable, Iterable

from stockledger.config import get_logger
from stockledger.core.clock import utcnow
from stockledger.core.entities.inventory import InventoryDelta
from stockledger.core.entities.stock_movement import MovementType, RelatedDocumentType
from stockledger.core.entities.stock_transfer import (
    STOCK_TRANSFER_TRANSITIONS,
    BulkTransferResult,
    StockTransfer,
    StockTransferStatus,
)
from stockledger.core.exceptions import (
    DuplicateTransferError,
    SameWarehouseError,
    StockLedgerError,
    StockTransferNotFoundError,
    ValidationError,
)
from stockledger.core.interfaces.unit_of_work import IUnitOfWork, UnitOfWorkFactory
from stockledger.core.services.inventory_service import ensure_available
from stockledger.core.services.ledger import record_applied_movement
from stockledger.core.services.numbering import transfer_reference

logger = get_logger(__name__)


class StockTransferService:
    """Inter-warehouse transfers with availability re-checked at each step."""

    def __init__(self, uow_factory: UnitOfWorkFactory):
        self._uow_factory = uow_factory

    async def initiate(
        self,
        from_warehouse_id: int,
        to_warehouse_id: int,
        product_id: int,
        quantity: int,
        initiated_by: int | None = None,
        notes: str | None = None,
    ) -> StockTransfer:
        """
        Record the intent to move stock. Nothing is reserved at the source.

        Raises:
            SameWarehouseError: source and destination are equal
            InsufficientStockError: source availability below quantity
            DuplicateTransferError: an identical open transfer exists
        """
        if from_warehouse_id == to_warehouse_id:
            raise SameWarehouseError(from_warehouse_id)
        if quantity <= 0:
            raise ValidationError("quantity_transferred", "must be positive", quantity)

        async with self._uow_factory() as uow:
            await ensure_available(uow, product_id, from_warehouse_id, quantity)

            duplicate = await uow.transfers.find_open_duplicate(
                from_warehouse_id, to_warehouse_id, product_id, quantity
            )
            if duplicate is not None:
                raise DuplicateTransferError(duplicate.id)

            now = utcnow()
            transfer = StockTransfer(
                reference_number=await transfer_reference(uow, now),
                from_warehouse_id=from_warehouse_id,
                to_warehouse_id=to_warehouse_id,
                product_id=product_id,
                quantity_transferred=quantity,
                notes=notes,
                initiated_by=initiated_by,
                initiated_at=now,
            )
            transfer = await uow.transfers.create(transfer)

        logger.info(
            "stock_transfer_initiated",
            transfer_id=transfer.id,
            reference=transfer.reference_number,
            from_warehouse_id=from_warehouse_id,
            to_warehouse_id=to_warehouse_id,
            product_id=product_id,
            quantity=quantity,
        )
        return transfer

    async def get(self, transfer_id: int) -> StockTransfer:
        async with self._uow_factory(read_only=True) as uow:
            return await self._load(uow, transfer_id)

    async def list_transfers(
        self,
        status: StockTransferStatus | str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[StockTransfer]:
        parsed = STOCK_TRANSFER_TRANSITIONS.parse(status) if status is not None else None
        async with self._uow_factory(read_only=True) as uow:
            return await uow.transfers.list_transfers(parsed, limit=limit, offset=offset)

    async def update(
        self,
        transfer_id: int,
        quantity_transferred: int | None = None,
        notes: str | None = None,
    ) -> StockTransfer:
        """
        Change quantity or notes while the transfer is still pending.

        A new quantity is re-checked against source availability and the
        duplicate guard that initiate applies.
        """
        async with self._uow_factory() as uow:
            transfer = await self._load(uow, transfer_id)
            STOCK_TRANSFER_TRANSITIONS.ensure_in(
                transfer.id, transfer.status, {StockTransferStatus.PENDING}, "update"
            )
            if quantity_transferred is not None:
                if quantity_transferred <= 0:
                    raise ValidationError(
                        "quantity_transferred", "must be positive", quantity_transferred
                    )
                await ensure_available(
                    uow, transfer.product_id, transfer.from_warehouse_id, quantity_transferred
                )
                duplicate = await uow.transfers.find_open_duplicate(
                    transfer.from_warehouse_id,
                    transfer.to_warehouse_id,
                    transfer.product_id,
                    quantity_transferred,
                    exclude_id=transfer.id,
                )
                if duplicate is not None:
                    raise DuplicateTransferError(duplicate.id)
                transfer.quantity_transferred = quantity_transferred
            if notes is not None:
                transfer.notes = notes
            return await uow.transfers.update(transfer)

    async def approve(self, transfer_id: int, approver_id: int | None = None) -> StockTransfer:
        async with self._uow_factory() as uow:
            transfer = await self._load(uow, transfer_id)
            STOCK_TRANSFER_TRANSITIONS.ensure_transition(
                transfer.id, transfer.status, StockTransferStatus.APPROVED, "approve"
            )
            await ensure_available(
                uow, transfer.product_id, transfer.from_warehouse_id, transfer.quantity_transferred
            )
            transfer.approved_by = approver_id
            transfer.approved_at = utcnow()
            return await self._transition(uow, transfer, StockTransferStatus.APPROVED)

    async def mark_in_transit(self, transfer_id: int) -> StockTransfer:
        """approved -> in_transit. No inventory effect at either warehouse."""
        async with self._uow_factory() as uow:
            transfer = await self._load(uow, transfer_id)
            STOCK_TRANSFER_TRANSITIONS.ensure_transition(
                transfer.id, transfer.status, StockTransferStatus.IN_TRANSIT, "mark_in_transit"
            )
            transfer.shipped_at = utcnow()
            return await self._transition(uow, transfer, StockTransferStatus.IN_TRANSIT)

    async def complete(self, transfer_id: int, completed_by: int | None = None) -> StockTransfer:
        """
        Move the stock: source on-hand down, destination on-hand up.

        Both deltas and both ledger entries commit together or not at all.
        """
        logger.info("stock_transfer_complete_started", transfer_id=transfer_id)

        try:
            async with self._uow_factory() as uow:
                transfer = await self._load(uow, transfer_id)
                STOCK_TRANSFER_TRANSITIONS.ensure_transition(
                    transfer.id, transfer.status, StockTransferStatus.COMPLETED, "complete"
                )
                quantity = transfer.quantity_transferred
                await ensure_available(
                    uow, transfer.product_id, transfer.from_warehouse_id, quantity
                )

                source, destination = await uow.inventory.apply_deltas(
                    [
                        InventoryDelta(
                            product_id=transfer.product_id,
                            warehouse_id=transfer.from_warehouse_id,
                            on_hand_delta=-quantity,
                        ),
                        InventoryDelta(
                            product_id=transfer.product_id,
                            warehouse_id=transfer.to_warehouse_id,
                            on_hand_delta=quantity,
                        ),
                    ]
                )

                for record, moved, movement_type in (
                    (source, -quantity, MovementType.TRANSFER_OUT),
                    (destination, quantity, MovementType.TRANSFER_IN),
                ):
                    await record_applied_movement(
                        uow,
                        record,
                        movement_type,
                        moved,
                        reason=transfer.reference_number,
                        related_document_type=RelatedDocumentType.STOCK_TRANSFER,
                        related_document_id=transfer.id,
                        user_id=completed_by,
                    )

                transfer.completed_by = completed_by
                transfer.completed_at = utcnow()
                transfer = await self._transition(uow, transfer, StockTransferStatus.COMPLETED)
        except StockLedgerError as e:
            logger.warning("stock_transfer_complete_rejected", transfer_id=transfer_id, error=e.code)
            raise

        logger.info(
            "stock_transfer_completed",
            transfer_id=transfer.id,
            source_on_hand=source.quantity_on_hand,
            destination_on_hand=destination.quantity_on_hand,
        )
        return transfer

    async def cancel(self, transfer_id: int, reason: str) -> StockTransfer:
        """Cancel from pending or approved. Nothing was applied, so nothing is reversed."""
        if not reason or not reason.strip():
            raise ValidationError("reason", "cancellation reason is required", reason)

        async with self._uow_factory() as uow:
            transfer = await self._load(uow, transfer_id)
            STOCK_TRANSFER_TRANSITIONS.ensure_transition(
                transfer.id, transfer.status, StockTransferStatus.CANCELLED, "cancel"
            )
            transfer.cancelled_at = utcnow()
            transfer.cancellation_reason = reason.strip()
            return await self._transition(uow, transfer, StockTransferStatus.CANCELLED)

    async def bulk_approve(
        self, transfer_ids: Iterable[int], approver_id: int | None = None
    ) -> BulkTransferResult:
        """Approve each transfer in its own unit of work."""
        return await self._bulk(
            "approve", transfer_ids, lambda tid: self.approve(tid, approver_id)
        )

    async def bulk_cancel(self, transfer_ids: Iterable[int], reason: str) -> BulkTransferResult:
        """Cancel each transfer in its own unit of work."""
        return await self._bulk("cancel", transfer_ids, lambda tid: self.cancel(tid, reason))

    async def _bulk(
        self,
        action: str,
        transfer_ids: Iterable[int],
        operation: Callable[[int], Awaitable[StockTransfer]],
    ) -> BulkTransferResult:
        result = BulkTransferResult()
        for transfer_id in transfer_ids:
            try:
                await operation(transfer_id)
            except StockLedgerError as e:
                result.failed.append(transfer_id)
                result.errors[transfer_id] = e.to_dict()
            else:
                result.succeeded.append(transfer_id)

        logger.info(
            "stock_transfer_bulk_processed",
            action=action,
            succeeded=result.success_count,
            failed=result.failure_count,
        )
        return result

    @staticmethod
    async def _load(uow: IUnitOfWork, transfer_id: int) -> StockTransfer:
        transfer = await uow.transfers.get(transfer_id)
        if transfer is None:
            raise StockTransferNotFoundError(transfer_id)
        return transfer

    @staticmethod
    async def _transition(
        uow: IUnitOfWork, transfer: StockTransfer, target: StockTransferStatus
    ) -> StockTransfer:
        STOCK_TRANSFER_TRANSITIONS.ensure_transition(transfer.id, transfer.status, target)
        from_status = transfer.status
        transfer.status = target
        transfer = await uow.transfers.update(transfer)
        logger.info(
            "stock_transfer_status_changed",
            transfer_id=transfer.id,
            from_status=from_status.value,
            to_status=target.value,
        )
        return transfer
