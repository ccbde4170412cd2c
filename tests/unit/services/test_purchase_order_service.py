"""Tests for PurchaseOrderService."""

import pytest

from stockledger.core.entities.inventory import InventoryDelta, InventoryRecord
from stockledger.core.entities.purchase_order import (
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderItemStatus,
    PurchaseOrderLineInput,
    PurchaseOrderStatus,
    ReceiptLine,
)
from stockledger.core.entities.request_log import ProcessedRequest
from stockledger.core.entities.stock_movement import MovementStatus, MovementType
from stockledger.core.exceptions import (
    InvalidTransitionError,
    OverReceiptError,
    PurchaseOrderItemNotFoundError,
    PurchaseOrderNotFoundError,
    ValidationError,
)
from stockledger.core.services.purchase_order_service import (
    RECEIVE_OPERATION,
    PurchaseOrderService,
)


@pytest.fixture
def service(uow_factory):
    return PurchaseOrderService(uow_factory)


def make_order(status=PurchaseOrderStatus.SENT_TO_SUPPLIER, received=0) -> PurchaseOrder:
    return PurchaseOrder(
        id=10,
        po_number="PO-202401-001",
        warehouse_id=1,
        status=status,
        items=[
            PurchaseOrderItem(
                id=1,
                purchase_order_id=10,
                product_id=7,
                quantity_ordered=50,
                quantity_received=received,
                unit_cost=2.5,
            )
        ],
    )


class TestCreate:
    async def test_create_draft_with_number_and_totals(self, service, uow):
        order = await service.create(
            warehouse_id=1,
            supplier_name="Acme",
            items=[PurchaseOrderLineInput(product_id=7, quantity_ordered=4, unit_cost=5.0)],
            tax_rate=0.5,
        )
        assert order.status == PurchaseOrderStatus.DRAFT
        assert order.po_number.startswith("PO-")
        assert order.po_number.endswith("-001")
        assert order.subtotal == pytest.approx(20.0)
        assert order.total_amount == pytest.approx(30.0)
        uow.purchase_orders.create.assert_awaited_once()


class TestTransitions:
    async def test_approve_requires_items(self, service, uow):
        order = make_order(status=PurchaseOrderStatus.PENDING_APPROVAL)
        order.items = []
        uow.purchase_orders.get.return_value = order

        with pytest.raises(ValidationError):
            await service.approve(10, approver_id=3)

    async def test_approve_stamps_approver(self, service, uow):
        uow.purchase_orders.get.return_value = make_order(status=PurchaseOrderStatus.PENDING_APPROVAL)
        order = await service.approve(10, approver_id=3)
        assert order.status == PurchaseOrderStatus.APPROVED
        assert order.approved_by == 3
        assert order.approved_at is not None

    async def test_send_from_draft_rejected(self, service, uow):
        uow.purchase_orders.get.return_value = make_order(status=PurchaseOrderStatus.DRAFT)
        with pytest.raises(InvalidTransitionError):
            await service.send_to_supplier(10)
        uow.purchase_orders.update.assert_not_awaited()

    async def test_cancel_requires_reason(self, service, uow_factory):
        with pytest.raises(ValidationError):
            await service.cancel(10, "  ")
        uow_factory.assert_not_called()

    async def test_cancel_after_receipt_rejected(self, service, uow):
        """Test an order that received goods cannot be cancelled."""
        uow.purchase_orders.get.return_value = make_order(received=5)
        with pytest.raises(InvalidTransitionError) as exc_info:
            await service.cancel(10, "supplier bankrupt")
        assert exc_info.value.details["action"] == "cancel_after_receipt"

    async def test_missing_order(self, service, uow):
        uow.purchase_orders.get.return_value = None
        with pytest.raises(PurchaseOrderNotFoundError):
            await service.get(10)


class TestReceiveItems:
    async def test_partial_receipt(self, service, uow):
        """Test a receipt adds on-hand, updates the item and writes a ledger entry."""
        uow.purchase_orders.get.return_value = make_order()
        uow.inventory.apply_deltas.return_value = [
            InventoryRecord(product_id=7, warehouse_id=1, quantity_on_hand=20)
        ]

        order = await service.receive_items(
            10, [ReceiptLine(item_id=1, quantity_received=20)], received_by=4, request_id="r-1"
        )

        uow.inventory.apply_deltas.assert_awaited_once_with(
            [InventoryDelta(product_id=7, warehouse_id=1, on_hand_delta=20)]
        )
        assert order.status == PurchaseOrderStatus.PARTIALLY_RECEIVED
        item = order.get_item(1)
        assert item.quantity_received == 20
        assert item.status == PurchaseOrderItemStatus.PARTIALLY_RECEIVED
        assert order.received_by == 4

        movement = uow.movements.create.call_args[0][0]
        assert movement.movement_type == MovementType.PURCHASE_RECEIVE
        assert movement.status == MovementStatus.APPLIED
        assert movement.quantity_moved == 20
        assert movement.quantity_before == 0
        assert movement.quantity_after == 20
        assert movement.total_value == pytest.approx(50.0)

        recorded = uow.requests.record.call_args[0][0]
        assert recorded.request_id == "r-1"
        assert recorded.operation == RECEIVE_OPERATION

    async def test_repeated_item_lines_accumulate(self, service, uow):
        uow.purchase_orders.get.return_value = make_order()
        uow.inventory.apply_deltas.return_value = [
            InventoryRecord(product_id=7, warehouse_id=1, quantity_on_hand=50)
        ]

        order = await service.receive_items(
            10,
            [
                ReceiptLine(item_id=1, quantity_received=30),
                ReceiptLine(item_id=1, quantity_received=20),
            ],
        )

        uow.inventory.apply_deltas.assert_awaited_once_with(
            [InventoryDelta(product_id=7, warehouse_id=1, on_hand_delta=50)]
        )
        assert order.status == PurchaseOrderStatus.FULLY_RECEIVED

    async def test_over_receipt_rejected_before_any_delta(self, service, uow):
        uow.purchase_orders.get.return_value = make_order(
            status=PurchaseOrderStatus.PARTIALLY_RECEIVED, received=40
        )

        with pytest.raises(OverReceiptError) as exc_info:
            await service.receive_items(10, [ReceiptLine(item_id=1, quantity_received=20)])

        assert exc_info.value.details["remaining"] == 10
        uow.inventory.apply_deltas.assert_not_awaited()
        uow.requests.record.assert_not_awaited()

    async def test_accumulated_lines_checked_against_ordered(self, service, uow):
        uow.purchase_orders.get.return_value = make_order()
        with pytest.raises(OverReceiptError):
            await service.receive_items(
                10,
                [
                    ReceiptLine(item_id=1, quantity_received=30),
                    ReceiptLine(item_id=1, quantity_received=21),
                ],
            )
        uow.inventory.apply_deltas.assert_not_awaited()

    async def test_unknown_item(self, service, uow):
        uow.purchase_orders.get.return_value = make_order()
        with pytest.raises(PurchaseOrderItemNotFoundError):
            await service.receive_items(10, [ReceiptLine(item_id=99, quantity_received=1)])

    @pytest.mark.parametrize("quantity", [0, -5])
    async def test_non_positive_quantity(self, service, uow, quantity):
        uow.purchase_orders.get.return_value = make_order()
        with pytest.raises(ValidationError):
            await service.receive_items(10, [ReceiptLine(item_id=1, quantity_received=quantity)])

    async def test_empty_receipt(self, service, uow):
        uow.purchase_orders.get.return_value = make_order()
        with pytest.raises(ValidationError):
            await service.receive_items(10, [])

    @pytest.mark.parametrize(
        "status",
        [PurchaseOrderStatus.DRAFT, PurchaseOrderStatus.APPROVED, PurchaseOrderStatus.CLOSED],
    )
    async def test_not_receivable(self, service, uow, status):
        uow.purchase_orders.get.return_value = make_order(status=status)
        with pytest.raises(InvalidTransitionError):
            await service.receive_items(10, [ReceiptLine(item_id=1, quantity_received=1)])

    async def test_replay_returns_order_without_effects(self, service, uow):
        """Test a replayed request id does not apply the receipt again."""
        uow.requests.get.return_value = ProcessedRequest(
            request_id="r-1", operation=RECEIVE_OPERATION, document_id=10
        )
        uow.purchase_orders.get.return_value = make_order(
            status=PurchaseOrderStatus.PARTIALLY_RECEIVED, received=20
        )

        order = await service.receive_items(
            10, [ReceiptLine(item_id=1, quantity_received=20)], request_id="r-1"
        )

        assert order.get_item(1).quantity_received == 20
        uow.inventory.apply_deltas.assert_not_awaited()
        uow.movements.create.assert_not_awaited()

    async def test_request_id_reused_for_other_order(self, service, uow):
        uow.requests.get.return_value = ProcessedRequest(
            request_id="r-1", operation=RECEIVE_OPERATION, document_id=11
        )
        with pytest.raises(ValidationError):
            await service.receive_items(
                10, [ReceiptLine(item_id=1, quantity_received=1)], request_id="r-1"
            )


class TestItemEdits:
    async def test_add_item_recomputes_totals(self, service, uow):
        order = make_order(status=PurchaseOrderStatus.DRAFT)
        uow.purchase_orders.get.return_value = order
        uow.purchase_orders.add_item.side_effect = lambda item: item

        order = await service.add_item(
            10, PurchaseOrderLineInput(product_id=8, quantity_ordered=2, unit_cost=10.0)
        )

        assert len(order.items) == 2
        assert order.subtotal == pytest.approx(145.0)

    async def test_edit_after_approval_rejected(self, service, uow):
        uow.purchase_orders.get.return_value = make_order(status=PurchaseOrderStatus.APPROVED)
        with pytest.raises(InvalidTransitionError):
            await service.update_item(10, 1, quantity_ordered=5)

    async def test_update_item_validates_quantity(self, service, uow):
        uow.purchase_orders.get.return_value = make_order(status=PurchaseOrderStatus.DRAFT)
        with pytest.raises(ValidationError):
            await service.update_item(10, 1, quantity_ordered=0)

    async def test_remove_item(self, service, uow):
        uow.purchase_orders.get.return_value = make_order(status=PurchaseOrderStatus.DRAFT)
        order = await service.remove_item(10, 1)
        assert order.items == []
        assert order.subtotal == 0.0
        uow.purchase_orders.remove_item.assert_awaited_once_with(1)
