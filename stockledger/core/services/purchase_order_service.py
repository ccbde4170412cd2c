"""
Purchase order workflow.

draft -> pending_approval -> approved -> sent_to_supplier ->
{partially_received, fully_received} -> closed, with cancelled reachable
while nothing has been received. Receiving is the only step with an
inventory effect: each line adds to on-hand at the order's warehouse.
"""

from collections.abc import Sequence
from datetime import date

from stockledger.config import get_logger
from stockledger.core.clock import utcnow
from stockledger.core.entities.inventory import InventoryDelta
from stockledger.core.entities.pricing import append_note
from stockledger.core.entities.purchase_order import (
    PURCHASE_ORDER_EDITABLE,
    PURCHASE_ORDER_RECEIVABLE,
    PURCHASE_ORDER_TRANSITIONS,
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderLineInput,
    PurchaseOrderStatus,
    ReceiptLine,
)
from stockledger.core.entities.stock_movement import MovementType, RelatedDocumentType
from stockledger.core.exceptions import (
    InvalidTransitionError,
    OverReceiptError,
    PurchaseOrderItemNotFoundError,
    PurchaseOrderNotFoundError,
    StockLedgerError,
    ValidationError,
)
from stockledger.core.interfaces.unit_of_work import IUnitOfWork, UnitOfWorkFactory
from stockledger.core.services.idempotency import is_replay, remember
from stockledger.core.services.ledger import record_applied_movement
from stockledger.core.services.numbering import purchase_order_number

logger = get_logger(__name__)

RECEIVE_OPERATION = "purchase_order.receive_items"


class PurchaseOrderService:
    """
    Purchase order state machine and receiving.

    Each public method is one unit of work; domain errors raised inside it
    roll the whole call back.
    """

    def __init__(self, uow_factory: UnitOfWorkFactory):
        self._uow_factory = uow_factory

    async def create(
        self,
        warehouse_id: int,
        supplier_name: str | None = None,
        items: Sequence[PurchaseOrderLineInput] = (),
        tax_rate: float = 0.0,
        shipping_cost: float = 0.0,
        discount_amount: float = 0.0,
        expected_delivery_date: date | None = None,
        notes: str | None = None,
        created_by: int | None = None,
    ) -> PurchaseOrder:
        """Create a draft purchase order with generated PO number."""
        async with self._uow_factory() as uow:
            order = PurchaseOrder(
                po_number=await purchase_order_number(uow),
                warehouse_id=warehouse_id,
                supplier_name=supplier_name,
                tax_rate=tax_rate,
                shipping_cost=shipping_cost,
                discount_amount=discount_amount,
                expected_delivery_date=expected_delivery_date,
                notes=notes,
                created_by=created_by,
                items=[self._new_item(line) for line in items],
            )
            order.recompute_totals()
            return await uow.purchase_orders.create(order)

    async def get(self, po_id: int) -> PurchaseOrder:
        async with self._uow_factory(read_only=True) as uow:
            return await self._load(uow, po_id)

    # ------------------------------------------------------------------
    # Status transitions without inventory effect
    # ------------------------------------------------------------------

    async def submit_for_approval(self, po_id: int) -> PurchaseOrder:
        async with self._uow_factory() as uow:
            order = await self._load(uow, po_id)
            return await self._transition(uow, order, PurchaseOrderStatus.PENDING_APPROVAL)

    async def approve(self, po_id: int, approver_id: int | None = None) -> PurchaseOrder:
        """pending_approval -> approved. An order without items cannot be approved."""
        async with self._uow_factory() as uow:
            order = await self._load(uow, po_id)
            PURCHASE_ORDER_TRANSITIONS.ensure_transition(
                order.id, order.status, PurchaseOrderStatus.APPROVED, "approve"
            )
            if not order.items:
                raise ValidationError("items", "purchase order has no items")
            order.approved_by = approver_id
            order.approved_at = utcnow()
            return await self._transition(uow, order, PurchaseOrderStatus.APPROVED)

    async def send_to_supplier(self, po_id: int) -> PurchaseOrder:
        async with self._uow_factory() as uow:
            order = await self._load(uow, po_id)
            PURCHASE_ORDER_TRANSITIONS.ensure_transition(
                order.id, order.status, PurchaseOrderStatus.SENT_TO_SUPPLIER
            )
            order.sent_at = utcnow()
            return await self._transition(uow, order, PurchaseOrderStatus.SENT_TO_SUPPLIER)

    async def close(self, po_id: int) -> PurchaseOrder:
        async with self._uow_factory() as uow:
            order = await self._load(uow, po_id)
            PURCHASE_ORDER_TRANSITIONS.ensure_transition(
                order.id, order.status, PurchaseOrderStatus.CLOSED, "close"
            )
            order.closed_at = utcnow()
            return await self._transition(uow, order, PurchaseOrderStatus.CLOSED)

    async def cancel(self, po_id: int, reason: str) -> PurchaseOrder:
        """Cancel an order that has received nothing; there is nothing to reverse."""
        if not reason or not reason.strip():
            raise ValidationError("reason", "cancellation reason is required", reason)

        async with self._uow_factory() as uow:
            order = await self._load(uow, po_id)
            PURCHASE_ORDER_TRANSITIONS.ensure_transition(
                order.id, order.status, PurchaseOrderStatus.CANCELLED, "cancel"
            )
            if order.total_received > 0:
                raise InvalidTransitionError(
                    "purchase_order", order.id, order.status.value, "cancel_after_receipt"
                )
            order.cancelled_at = utcnow()
            order.cancellation_reason = reason.strip()
            return await self._transition(uow, order, PurchaseOrderStatus.CANCELLED)

    # ------------------------------------------------------------------
    # Receiving
    # ------------------------------------------------------------------

    async def receive_items(
        self,
        po_id: int,
        lines: Sequence[ReceiptLine],
        received_by: int | None = None,
        request_id: str | None = None,
    ) -> PurchaseOrder:
        """
        Receive goods against item lines.

        All lines are validated before any inventory changes, then applied in
        lock order. A replayed ``request_id`` returns the order untouched.

        Raises:
            InvalidTransitionError: order is not sent_to_supplier or partially_received
            PurchaseOrderItemNotFoundError: a line names an item not on the order
            OverReceiptError: cumulative received would exceed ordered
            ValidationError: empty receipt or a non-positive line quantity
        """
        logger.info("purchase_order_receive_started", po_id=po_id, lines=len(lines))

        try:
            async with self._uow_factory() as uow:
                if await is_replay(uow, request_id, RECEIVE_OPERATION, po_id):
                    return await self._load(uow, po_id)

                order = await self._load(uow, po_id)
                order = await self._receive(uow, order, lines, received_by)
                await remember(uow, request_id, RECEIVE_OPERATION, po_id)
        except StockLedgerError as e:
            logger.warning("purchase_order_receive_rejected", po_id=po_id, error=e.code)
            raise

        logger.info(
            "purchase_order_items_received",
            po_id=order.id,
            status=order.status.value,
            total_received=order.total_received,
        )
        return order

    async def _receive(
        self,
        uow: IUnitOfWork,
        order: PurchaseOrder,
        lines: Sequence[ReceiptLine],
        received_by: int | None,
    ) -> PurchaseOrder:
        if order.status not in PURCHASE_ORDER_RECEIVABLE:
            raise InvalidTransitionError(
                "purchase_order", order.id, order.status.value, "receive_items"
            )
        if not lines:
            raise ValidationError("lines", "at least one receipt line is required")

        # Validate every line first; repeated item ids accumulate
        pending: dict[int, int] = {}
        for line in lines:
            if line.quantity_received <= 0:
                raise ValidationError(
                    "quantity_received", "must be positive", line.quantity_received
                )
            item = order.get_item(line.item_id)
            if item is None:
                raise PurchaseOrderItemNotFoundError(line.item_id)
            already = item.quantity_received + pending.get(item.id, 0)
            if already + line.quantity_received > item.quantity_ordered:
                raise OverReceiptError(
                    item_id=item.id,
                    ordered=item.quantity_ordered,
                    received=already,
                    requested=line.quantity_received,
                )
            pending[item.id] = pending.get(item.id, 0) + line.quantity_received

        now = utcnow()
        deltas = [
            InventoryDelta(
                product_id=order.get_item(item_id).product_id,
                warehouse_id=order.warehouse_id,
                on_hand_delta=quantity,
            )
            for item_id, quantity in pending.items()
        ]
        records = await uow.inventory.apply_deltas(deltas)

        for (item_id, quantity), record in zip(pending.items(), records):
            item = order.get_item(item_id)
            item.quantity_received += quantity
            item.refresh_status()
            item.last_received_at = now
            for line in lines:
                if line.item_id == item_id:
                    item.notes = append_note(item.notes, line.notes)
            await uow.purchase_orders.update_item(item)

            await record_applied_movement(
                uow,
                record,
                MovementType.PURCHASE_RECEIVE,
                quantity,
                unit_cost=item.unit_cost,
                reason=order.po_number,
                related_document_type=RelatedDocumentType.PURCHASE_ORDER,
                related_document_id=order.id,
                user_id=received_by,
            )

        target = (
            PurchaseOrderStatus.FULLY_RECEIVED
            if order.all_received
            else PurchaseOrderStatus.PARTIALLY_RECEIVED
        )
        PURCHASE_ORDER_TRANSITIONS.ensure_transition(order.id, order.status, target)

        if order.received_at is None:
            order.received_by = received_by
            order.received_at = now
        if target == PurchaseOrderStatus.FULLY_RECEIVED:
            order.received_at = now

        order.status = target
        return await uow.purchase_orders.update(order)

    # ------------------------------------------------------------------
    # Item lines (draft / pending_approval only)
    # ------------------------------------------------------------------

    async def add_item(self, po_id: int, line: PurchaseOrderLineInput) -> PurchaseOrder:
        async with self._uow_factory() as uow:
            order = await self._load_editable(uow, po_id, "add_item")
            item = self._new_item(line)
            item.purchase_order_id = order.id
            order.items.append(await uow.purchase_orders.add_item(item))
            return await self._save_totals(uow, order)

    async def update_item(
        self,
        po_id: int,
        item_id: int,
        quantity_ordered: int | None = None,
        unit_cost: float | None = None,
        discount_percentage: float | None = None,
        notes: str | None = None,
    ) -> PurchaseOrder:
        async with self._uow_factory() as uow:
            order = await self._load_editable(uow, po_id, "update_item")
            item = order.get_item(item_id)
            if item is None:
                raise PurchaseOrderItemNotFoundError(item_id)

            if quantity_ordered is not None:
                if quantity_ordered <= 0:
                    raise ValidationError("quantity_ordered", "must be positive", quantity_ordered)
                item.quantity_ordered = quantity_ordered
            if unit_cost is not None:
                if unit_cost < 0:
                    raise ValidationError("unit_cost", "must not be negative", unit_cost)
                item.unit_cost = unit_cost
            if discount_percentage is not None:
                if not 0 <= discount_percentage <= 100:
                    raise ValidationError(
                        "discount_percentage", "must be between 0 and 100", discount_percentage
                    )
                item.discount_percentage = discount_percentage
            if notes is not None:
                item.notes = notes

            await uow.purchase_orders.update_item(item)
            return await self._save_totals(uow, order)

    async def remove_item(self, po_id: int, item_id: int) -> PurchaseOrder:
        async with self._uow_factory() as uow:
            order = await self._load_editable(uow, po_id, "remove_item")
            if order.get_item(item_id) is None:
                raise PurchaseOrderItemNotFoundError(item_id)
            await uow.purchase_orders.remove_item(item_id)
            order.items = [item for item in order.items if item.id != item_id]
            return await self._save_totals(uow, order)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _new_item(line: PurchaseOrderLineInput) -> PurchaseOrderItem:
        return PurchaseOrderItem(
            product_id=line.product_id,
            quantity_ordered=line.quantity_ordered,
            unit_cost=line.unit_cost,
            discount_percentage=line.discount_percentage,
            notes=line.notes,
        )

    @staticmethod
    async def _load(uow: IUnitOfWork, po_id: int) -> PurchaseOrder:
        order = await uow.purchase_orders.get(po_id)
        if order is None:
            raise PurchaseOrderNotFoundError(po_id)
        return order

    async def _load_editable(self, uow: IUnitOfWork, po_id: int, action: str) -> PurchaseOrder:
        order = await self._load(uow, po_id)
        PURCHASE_ORDER_TRANSITIONS.ensure_in(order.id, order.status, PURCHASE_ORDER_EDITABLE, action)
        return order

    @staticmethod
    async def _save_totals(uow: IUnitOfWork, order: PurchaseOrder) -> PurchaseOrder:
        order.recompute_totals()
        return await uow.purchase_orders.update(order)

    @staticmethod
    async def _transition(
        uow: IUnitOfWork, order: PurchaseOrder, target: PurchaseOrderStatus
    ) -> PurchaseOrder:
        PURCHASE_ORDER_TRANSITIONS.ensure_transition(order.id, order.status, target)
        from_status = order.status
        order.status = target
        order = await uow.purchase_orders.update(order)
        logger.info(
            "purchase_order_status_changed",
            po_id=order.id,
            from_status=from_status.value,
            to_status=target.value,
        )
        return order
