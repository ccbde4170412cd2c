"""
Sales order workflow.

Stock is reserved when the order is confirmed, converted into a shipment
line by line on fulfillment, and released again if a reserved order is
cancelled.
"""

from collections.abc import Sequence

from stockledger.config import get_logger
from stockledger.core.clock import utcnow
from stockledger.core.entities.inventory import InventoryDelta
from stockledger.core.entities.pricing import append_note
from stockledger.core.entities.sales_order import (
    SALES_ORDER_EDITABLE,
    SALES_ORDER_FULFILLABLE,
    SALES_ORDER_RESERVED,
    SALES_ORDER_TRANSITIONS,
    FulfillmentLine,
    SalesOrder,
    SalesOrderItem,
    SalesOrderLineInput,
    SalesOrderStatus,
)
from stockledger.core.entities.stock_movement import MovementType, RelatedDocumentType
from stockledger.core.exceptions import (
    InvalidTransitionError,
    OverFulfillmentError,
    SalesOrderItemNotFoundError,
    SalesOrderNotFoundError,
    StockLedgerError,
    ValidationError,
)
from stockledger.core.interfaces.unit_of_work import IUnitOfWork, UnitOfWorkFactory
from stockledger.core.services.idempotency import is_replay, remember
from stockledger.core.services.inventory_service import ensure_available
from stockledger.core.services.ledger import record_applied_movement
from stockledger.core.services.numbering import sales_order_number

logger = get_logger(__name__)

FULFILL_OPERATION = "sales_order.fulfill_items"


class SalesOrderService:
    """Sales order state machine, reservation and fulfillment."""

    def __init__(self, uow_factory: UnitOfWorkFactory):
        self._uow_factory = uow_factory

    async def create(
        self,
        warehouse_id: int,
        customer_name: str | None = None,
        items: Sequence[SalesOrderLineInput] = (),
        tax_rate: float = 0.0,
        shipping_cost: float = 0.0,
        discount_amount: float = 0.0,
        notes: str | None = None,
        created_by: int | None = None,
    ) -> SalesOrder:
        """Create a draft sales order. Nothing is reserved until confirm."""
        async with self._uow_factory() as uow:
            order = SalesOrder(
                so_number=await sales_order_number(uow),
                warehouse_id=warehouse_id,
                customer_name=customer_name,
                tax_rate=tax_rate,
                shipping_cost=shipping_cost,
                discount_amount=discount_amount,
                notes=notes,
                created_by=created_by,
                items=[self._new_item(line) for line in items],
            )
            order.recompute_totals()
            return await uow.sales_orders.create(order)

    async def get(self, so_id: int) -> SalesOrder:
        async with self._uow_factory(read_only=True) as uow:
            return await self._load(uow, so_id)

    async def submit_for_approval(self, so_id: int) -> SalesOrder:
        async with self._uow_factory() as uow:
            order = await self._load(uow, so_id)
            return await self._transition(uow, order, SalesOrderStatus.PENDING_APPROVAL)

    async def approve(self, so_id: int, approver_id: int | None = None) -> SalesOrder:
        async with self._uow_factory() as uow:
            order = await self._load(uow, so_id)
            SALES_ORDER_TRANSITIONS.ensure_transition(
                order.id, order.status, SalesOrderStatus.APPROVED, "approve"
            )
            order.approved_by = approver_id
            order.approved_at = utcnow()
            return await self._transition(uow, order, SalesOrderStatus.APPROVED)

    async def confirm(self, so_id: int) -> SalesOrder:
        """
        Reserve every line against current availability.

        Concurrent confirmations against the same stock race; the first to
        commit wins and the other fails with InsufficientStockError.
        """
        logger.info("sales_order_confirm_started", so_id=so_id)

        try:
            async with self._uow_factory() as uow:
                order = await self._load(uow, so_id)
                SALES_ORDER_TRANSITIONS.ensure_transition(
                    order.id, order.status, SalesOrderStatus.CONFIRMED, "confirm"
                )
                if not order.items:
                    raise ValidationError("items", "sales order has no items")

                requested: dict[int, int] = {}
                for item in order.items:
                    requested[item.product_id] = (
                        requested.get(item.product_id, 0) + item.quantity_ordered
                    )
                for product_id, quantity in sorted(requested.items()):
                    await ensure_available(uow, product_id, order.warehouse_id, quantity)

                await uow.inventory.apply_deltas(
                    [
                        InventoryDelta(
                            product_id=product_id,
                            warehouse_id=order.warehouse_id,
                            reserved_delta=quantity,
                        )
                        for product_id, quantity in requested.items()
                    ]
                )

                order.confirmed_at = utcnow()
                order = await self._transition(uow, order, SalesOrderStatus.CONFIRMED)
        except StockLedgerError as e:
            logger.warning("sales_order_confirm_rejected", so_id=so_id, error=e.code)
            raise

        logger.info(
            "sales_order_reserved",
            so_id=order.id,
            units=sum(item.quantity_ordered for item in order.items),
        )
        return order

    async def fulfill_items(
        self,
        so_id: int,
        lines: Sequence[FulfillmentLine],
        fulfilled_by: int | None = None,
        request_id: str | None = None,
    ) -> SalesOrder:
        """
        Ship reserved units: each line decrements both on-hand and reserved.

        Raises:
            InvalidTransitionError: order is not confirmed or partially_fulfilled
            SalesOrderItemNotFoundError: a line names an item not on the order
            OverFulfillmentError: cumulative fulfilled would exceed ordered
            ValidationError: empty call or a non-positive line quantity
        """
        logger.info("sales_order_fulfill_started", so_id=so_id, lines=len(lines))

        try:
            async with self._uow_factory() as uow:
                if await is_replay(uow, request_id, FULFILL_OPERATION, so_id):
                    return await self._load(uow, so_id)

                order = await self._load(uow, so_id)
                order = await self._fulfill(uow, order, lines, fulfilled_by)
                await remember(uow, request_id, FULFILL_OPERATION, so_id)
        except StockLedgerError as e:
            logger.warning("sales_order_fulfill_rejected", so_id=so_id, error=e.code)
            raise

        logger.info(
            "sales_order_items_fulfilled",
            so_id=order.id,
            status=order.status.value,
            total_fulfilled=order.total_fulfilled,
        )
        return order

    async def _fulfill(
        self,
        uow: IUnitOfWork,
        order: SalesOrder,
        lines: Sequence[FulfillmentLine],
        fulfilled_by: int | None,
    ) -> SalesOrder:
        # Status check runs under the same write lock as the fulfillment, so a
        # committed cancel is always seen here
        if order.status not in SALES_ORDER_FULFILLABLE:
            raise InvalidTransitionError(
                "sales_order", order.id, order.status.value, "fulfill_items"
            )
        if not lines:
            raise ValidationError("lines", "at least one fulfillment line is required")

        pending: dict[int, int] = {}
        for line in lines:
            if line.quantity_fulfilled <= 0:
                raise ValidationError(
                    "quantity_fulfilled", "must be positive", line.quantity_fulfilled
                )
            item = order.get_item(line.item_id)
            if item is None:
                raise SalesOrderItemNotFoundError(line.item_id)
            already = item.quantity_fulfilled + pending.get(item.id, 0)
            if already + line.quantity_fulfilled > item.quantity_ordered:
                raise OverFulfillmentError(
                    item_id=item.id,
                    ordered=item.quantity_ordered,
                    fulfilled=already,
                    requested=line.quantity_fulfilled,
                )
            pending[item.id] = pending.get(item.id, 0) + line.quantity_fulfilled

        now = utcnow()
        records = await uow.inventory.apply_deltas(
            [
                InventoryDelta(
                    product_id=order.get_item(item_id).product_id,
                    warehouse_id=order.warehouse_id,
                    on_hand_delta=-quantity,
                    reserved_delta=-quantity,
                )
                for item_id, quantity in pending.items()
            ]
        )

        for (item_id, quantity), record in zip(pending.items(), records):
            item = order.get_item(item_id)
            item.quantity_fulfilled += quantity
            item.refresh_status()
            item.last_fulfilled_at = now
            for line in lines:
                if line.item_id == item_id:
                    item.notes = append_note(item.notes, line.notes)
            await uow.sales_orders.update_item(item)

            await record_applied_movement(
                uow,
                record,
                MovementType.SALE_FULFILL,
                -quantity,
                unit_cost=item.unit_price,
                reason=order.so_number,
                related_document_type=RelatedDocumentType.SALES_ORDER,
                related_document_id=order.id,
                user_id=fulfilled_by,
            )

        target = (
            SalesOrderStatus.FULLY_FULFILLED
            if order.all_fulfilled
            else SalesOrderStatus.PARTIALLY_FULFILLED
        )
        SALES_ORDER_TRANSITIONS.ensure_transition(order.id, order.status, target)

        if order.fulfilled_by is None:
            order.fulfilled_by = fulfilled_by
        if target == SalesOrderStatus.FULLY_FULFILLED:
            order.fulfilled_at = now

        order.status = target
        return await uow.sales_orders.update(order)

    async def ship(
        self,
        so_id: int,
        tracking_number: str | None = None,
        carrier: str | None = None,
        shipped_by: int | None = None,
    ) -> SalesOrder:
        async with self._uow_factory() as uow:
            order = await self._load(uow, so_id)
            SALES_ORDER_TRANSITIONS.ensure_transition(
                order.id, order.status, SalesOrderStatus.SHIPPED, "ship"
            )
            order.tracking_number = tracking_number
            order.carrier = carrier
            order.shipped_by = shipped_by
            order.shipped_at = utcnow()
            return await self._transition(uow, order, SalesOrderStatus.SHIPPED)

    async def mark_as_delivered(self, so_id: int) -> SalesOrder:
        async with self._uow_factory() as uow:
            order = await self._load(uow, so_id)
            SALES_ORDER_TRANSITIONS.ensure_transition(
                order.id, order.status, SalesOrderStatus.DELIVERED, "mark_as_delivered"
            )
            order.delivered_at = utcnow()
            return await self._transition(uow, order, SalesOrderStatus.DELIVERED)

    async def cancel(self, so_id: int, reason: str) -> SalesOrder:
        """
        Cancel before shipment.

        A confirmed or partially fulfilled order releases ordered minus
        fulfilled units of reservation per line in the same transaction.
        """
        if not reason or not reason.strip():
            raise ValidationError("reason", "cancellation reason is required", reason)

        async with self._uow_factory() as uow:
            order = await self._load(uow, so_id)
            SALES_ORDER_TRANSITIONS.ensure_transition(
                order.id, order.status, SalesOrderStatus.CANCELLED, "cancel"
            )

            released = 0
            if order.status in SALES_ORDER_RESERVED:
                deltas = [
                    InventoryDelta(
                        product_id=item.product_id,
                        warehouse_id=order.warehouse_id,
                        reserved_delta=-item.quantity_remaining,
                    )
                    for item in order.items
                    if item.quantity_remaining > 0
                ]
                await uow.inventory.apply_deltas(deltas)
                released = sum(-delta.reserved_delta for delta in deltas)

            order.cancelled_at = utcnow()
            order.cancellation_reason = reason.strip()
            order = await self._transition(uow, order, SalesOrderStatus.CANCELLED)

        if released:
            logger.info("sales_order_reservation_released", so_id=order.id, units=released)
        return order

    # ------------------------------------------------------------------
    # Item lines (draft / pending_approval only)
    # ------------------------------------------------------------------

    async def add_item(self, so_id: int, line: SalesOrderLineInput) -> SalesOrder:
        async with self._uow_factory() as uow:
            order = await self._load_editable(uow, so_id, "add_item")
            item = self._new_item(line)
            item.sales_order_id = order.id
            order.items.append(await uow.sales_orders.add_item(item))
            return await self._save_totals(uow, order)

    async def update_item(
        self,
        so_id: int,
        item_id: int,
        quantity_ordered: int | None = None,
        unit_price: float | None = None,
        discount_percentage: float | None = None,
        notes: str | None = None,
    ) -> SalesOrder:
        async with self._uow_factory() as uow:
            order = await self._load_editable(uow, so_id, "update_item")
            item = order.get_item(item_id)
            if item is None:
                raise SalesOrderItemNotFoundError(item_id)

            if quantity_ordered is not None:
                if quantity_ordered <= 0:
                    raise ValidationError("quantity_ordered", "must be positive", quantity_ordered)
                item.quantity_ordered = quantity_ordered
            if unit_price is not None:
                if unit_price < 0:
                    raise ValidationError("unit_price", "must not be negative", unit_price)
                item.unit_price = unit_price
            if discount_percentage is not None:
                if not 0 <= discount_percentage <= 100:
                    raise ValidationError(
                        "discount_percentage", "must be between 0 and 100", discount_percentage
                    )
                item.discount_percentage = discount_percentage
            if notes is not None:
                item.notes = notes

            await uow.sales_orders.update_item(item)
            return await self._save_totals(uow, order)

    async def remove_item(self, so_id: int, item_id: int) -> SalesOrder:
        async with self._uow_factory() as uow:
            order = await self._load_editable(uow, so_id, "remove_item")
            if order.get_item(item_id) is None:
                raise SalesOrderItemNotFoundError(item_id)
            await uow.sales_orders.remove_item(item_id)
            order.items = [item for item in order.items if item.id != item_id]
            return await self._save_totals(uow, order)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _new_item(line: SalesOrderLineInput) -> SalesOrderItem:
        return SalesOrderItem(
            product_id=line.product_id,
            quantity_ordered=line.quantity_ordered,
            unit_price=line.unit_price,
            discount_percentage=line.discount_percentage,
            notes=line.notes,
        )

    @staticmethod
    async def _load(uow: IUnitOfWork, so_id: int) -> SalesOrder:
        order = await uow.sales_orders.get(so_id)
        if order is None:
            raise SalesOrderNotFoundError(so_id)
        return order

    async def _load_editable(self, uow: IUnitOfWork, so_id: int, action: str) -> SalesOrder:
        order = await self._load(uow, so_id)
        SALES_ORDER_TRANSITIONS.ensure_in(order.id, order.status, SALES_ORDER_EDITABLE, action)
        return order

    @staticmethod
    async def _save_totals(uow: IUnitOfWork, order: SalesOrder) -> SalesOrder:
        order.recompute_totals()
        return await uow.sales_orders.update(order)

    @staticmethod
    async def _transition(
        uow: IUnitOfWork, order: SalesOrder, target: SalesOrderStatus
    ) -> SalesOrder:
        SALES_ORDER_TRANSITIONS.ensure_transition(order.id, order.status, target)
        from_status = order.status
        order.status = target
        order = await uow.sales_orders.update(order)
        logger.info(
            "sales_order_status_changed",
            so_id=order.id,
            from_status=from_status.value,
            to_status=target.value,
        )
        return order
