"""End-to-end workflow scenarios against SQLite."""

import pytest

from stockledger.core.entities import (
    FulfillmentLine,
    PurchaseOrderLineInput,
    PurchaseOrderStatus,
    ReceiptLine,
    SalesOrderLineInput,
    SalesOrderStatus,
    StockTransferStatus,
)
from stockledger.core.exceptions import (
    DuplicateTransferError,
    InvalidQuantityError,
    InvalidTransitionError,
    OverReceiptError,
)

PRODUCT = 7
WAREHOUSE_A = 1
WAREHOUSE_B = 2


async def open_purchase_order(service, quantity: int):
    order = await service.create(
        warehouse_id=WAREHOUSE_A,
        supplier_name="Acme",
        items=[PurchaseOrderLineInput(product_id=PRODUCT, quantity_ordered=quantity, unit_cost=3.0)],
    )
    await service.submit_for_approval(order.id)
    await service.approve(order.id, approver_id=1)
    return await service.send_to_supplier(order.id)


class TestSalesReservationAndFulfillment:
    async def test_confirm_then_fulfill(
        self, seed_stock, sales_order_service, inventory_service, movement_service
    ):
        """Confirm 30 of 100 on hand, then ship them."""
        await seed_stock(PRODUCT, WAREHOUSE_A, 100)
        order = await sales_order_service.create(
            warehouse_id=WAREHOUSE_A,
            customer_name="Globex",
            items=[SalesOrderLineInput(product_id=PRODUCT, quantity_ordered=30, unit_price=9.0)],
        )

        order = await sales_order_service.confirm(order.id)
        assert order.status == SalesOrderStatus.CONFIRMED

        record = await inventory_service.get(PRODUCT, WAREHOUSE_A)
        assert (record.quantity_on_hand, record.quantity_reserved, record.quantity_available) == (
            100,
            30,
            70,
        )

        order = await sales_order_service.fulfill_items(
            order.id, [FulfillmentLine(item_id=order.items[0].id, quantity_fulfilled=30)]
        )
        assert order.status == SalesOrderStatus.FULLY_FULFILLED

        record = await inventory_service.get(PRODUCT, WAREHOUSE_A)
        assert (record.quantity_on_hand, record.quantity_reserved, record.quantity_available) == (
            70,
            0,
            70,
        )
        assert (await movement_service.reconcile(PRODUCT, WAREHOUSE_A)).is_consistent

        order = await sales_order_service.ship(order.id, tracking_number="1Z", carrier="UPS")
        order = await sales_order_service.mark_as_delivered(order.id)
        assert order.status == SalesOrderStatus.DELIVERED


class TestPurchaseReceiving:
    async def test_partial_receipts_and_over_receipt(
        self, purchase_order_service, inventory_service, movement_service
    ):
        """Receive 20 + 20, reject 20 more, then receive the last 10."""
        order = await open_purchase_order(purchase_order_service, 50)
        item_id = order.items[0].id

        for _ in range(2):
            order = await purchase_order_service.receive_items(
                order.id, [ReceiptLine(item_id=item_id, quantity_received=20)]
            )
        assert order.status == PurchaseOrderStatus.PARTIALLY_RECEIVED
        assert order.get_item(item_id).quantity_received == 40

        with pytest.raises(OverReceiptError):
            await purchase_order_service.receive_items(
                order.id, [ReceiptLine(item_id=item_id, quantity_received=20)]
            )

        order = await purchase_order_service.get(order.id)
        assert order.get_item(item_id).quantity_received == 40
        assert (await inventory_service.get(PRODUCT, WAREHOUSE_A)).quantity_on_hand == 40

        order = await purchase_order_service.receive_items(
            order.id, [ReceiptLine(item_id=item_id, quantity_received=10)]
        )
        assert order.get_item(item_id).quantity_received == 50
        assert order.status == PurchaseOrderStatus.FULLY_RECEIVED
        assert (await inventory_service.get(PRODUCT, WAREHOUSE_A)).quantity_on_hand == 50
        assert (await movement_service.reconcile(PRODUCT, WAREHOUSE_A)).is_consistent

        order = await purchase_order_service.close(order.id)
        assert order.status == PurchaseOrderStatus.CLOSED


class TestTransfer:
    async def test_complete_moves_stock_once(
        self, seed_stock, transfer_service, inventory_service, movement_service
    ):
        """Move 15 from A (20 on hand) to B (5 on hand)."""
        await seed_stock(PRODUCT, WAREHOUSE_A, 20)
        await seed_stock(PRODUCT, WAREHOUSE_B, 5)

        transfer = await transfer_service.initiate(WAREHOUSE_A, WAREHOUSE_B, PRODUCT, 15)
        await transfer_service.approve(transfer.id, approver_id=1)
        transfer = await transfer_service.mark_in_transit(transfer.id)

        # In transit the goods are still counted at the source only
        assert (await inventory_service.get(PRODUCT, WAREHOUSE_A)).quantity_on_hand == 20

        transfer = await transfer_service.complete(transfer.id, completed_by=1)
        assert transfer.status == StockTransferStatus.COMPLETED
        assert (await inventory_service.get(PRODUCT, WAREHOUSE_A)).quantity_on_hand == 5
        assert (await inventory_service.get(PRODUCT, WAREHOUSE_B)).quantity_on_hand == 20

        with pytest.raises(InvalidTransitionError):
            await transfer_service.complete(transfer.id)

        assert (await inventory_service.get(PRODUCT, WAREHOUSE_A)).quantity_on_hand == 5
        assert (await inventory_service.get(PRODUCT, WAREHOUSE_B)).quantity_on_hand == 20
        for warehouse_id in (WAREHOUSE_A, WAREHOUSE_B):
            assert (await movement_service.reconcile(PRODUCT, warehouse_id)).is_consistent


class TestAdjustment:
    async def test_oversized_decrease_rejected(
        self, seed_stock, adjustment_service, inventory_service
    ):
        """A decrease of 200 against 50 on hand changes nothing."""
        await seed_stock(PRODUCT, WAREHOUSE_A, 50)
        before = await inventory_service.get(PRODUCT, WAREHOUSE_A)

        with pytest.raises(InvalidQuantityError):
            await adjustment_service.create(before.id, "decrease", 200, "damage")

        after = await inventory_service.get(PRODUCT, WAREHOUSE_A)
        assert after == before
        assert await adjustment_service.list_for_inventory(before.id) == []

    async def test_adjust_then_soft_delete(
        self, seed_stock, adjustment_service, inventory_service, movement_service
    ):
        await seed_stock(PRODUCT, WAREHOUSE_A, 50)
        record = await inventory_service.get(PRODUCT, WAREHOUSE_A)

        adjustment = await adjustment_service.create(record.id, "decrease", 8, "damage")
        assert adjustment.quantity_after == 42

        await adjustment_service.delete(adjustment.id)
        assert (await inventory_service.get(PRODUCT, WAREHOUSE_A)).quantity_on_hand == 42
        assert (await movement_service.reconcile(PRODUCT, WAREHOUSE_A)).is_consistent


class TestTransferEdits:
    async def test_quantity_edit_cannot_duplicate_an_open_transfer(
        self, seed_stock, transfer_service
    ):
        await seed_stock(PRODUCT, WAREHOUSE_A, 50)
        first = await transfer_service.initiate(WAREHOUSE_A, WAREHOUSE_B, PRODUCT, 10)
        second = await transfer_service.initiate(WAREHOUSE_A, WAREHOUSE_B, PRODUCT, 12)

        with pytest.raises(DuplicateTransferError):
            await transfer_service.update(second.id, quantity_transferred=10)

        assert (await transfer_service.get(second.id)).quantity_transferred == 12

        # Re-saving a transfer's own quantity is not a duplicate of itself
        updated = await transfer_service.update(first.id, quantity_transferred=10, notes="checked")
        assert updated.notes == "checked"
