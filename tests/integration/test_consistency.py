"""Atomicity, idempotency and concurrency against a real database."""

import asyncio

import aiosqlite
import pytest

from stockledger.core.entities import (
    FulfillmentLine,
    PurchaseOrderLineInput,
    ReceiptLine,
    SalesOrderLineInput,
    SalesOrderStatus,
    StockTransferStatus,
)
from stockledger.core.exceptions import InsufficientStockError, UnavailableError
from stockledger.infrastructure.storage.sqlite.inventory_store import SQLiteInventoryStore

PRODUCT = 3
WAREHOUSE_A = 1
WAREHOUSE_B = 2


async def draft_sales_order(service, quantity: int):
    return await service.create(
        warehouse_id=WAREHOUSE_A,
        items=[SalesOrderLineInput(product_id=PRODUCT, quantity_ordered=quantity, unit_price=5.0)],
    )


class TestIdempotentReceipt:
    async def test_replayed_request_applies_once(
        self, purchase_order_service, inventory_service, movement_service
    ):
        order = await purchase_order_service.create(
            warehouse_id=WAREHOUSE_A,
            items=[PurchaseOrderLineInput(product_id=PRODUCT, quantity_ordered=30, unit_cost=2.0)],
        )
        await purchase_order_service.submit_for_approval(order.id)
        await purchase_order_service.approve(order.id)
        order = await purchase_order_service.send_to_supplier(order.id)
        lines = [ReceiptLine(item_id=order.items[0].id, quantity_received=10)]

        first = await purchase_order_service.receive_items(order.id, lines, request_id="dock-17")
        second = await purchase_order_service.receive_items(order.id, lines, request_id="dock-17")

        assert first.items[0].quantity_received == 10
        assert second.items[0].quantity_received == 10
        assert (await inventory_service.get(PRODUCT, WAREHOUSE_A)).quantity_on_hand == 10
        assert len(await movement_service.list_for_inventory(PRODUCT, WAREHOUSE_A)) == 1


class TestIdempotentFulfillment:
    async def test_replayed_request_ships_once(
        self, seed_stock, sales_order_service, inventory_service, movement_service
    ):
        await seed_stock(PRODUCT, WAREHOUSE_A, 50)
        order = await draft_sales_order(sales_order_service, 20)
        order = await sales_order_service.confirm(order.id)
        lines = [FulfillmentLine(item_id=order.items[0].id, quantity_fulfilled=5)]

        first = await sales_order_service.fulfill_items(order.id, lines, request_id="pick-4")
        second = await sales_order_service.fulfill_items(order.id, lines, request_id="pick-4")

        assert first.items[0].quantity_fulfilled == 5
        assert second.items[0].quantity_fulfilled == 5
        assert second.status == SalesOrderStatus.PARTIALLY_FULFILLED
        record = await inventory_service.get(PRODUCT, WAREHOUSE_A)
        assert record.quantity_on_hand == 45
        assert record.quantity_reserved == 15
        assert (await movement_service.reconcile(PRODUCT, WAREHOUSE_A)).is_consistent

    async def test_fresh_request_id_ships_again(
        self, seed_stock, sales_order_service, inventory_service
    ):
        await seed_stock(PRODUCT, WAREHOUSE_A, 50)
        order = await draft_sales_order(sales_order_service, 20)
        order = await sales_order_service.confirm(order.id)
        lines = [FulfillmentLine(item_id=order.items[0].id, quantity_fulfilled=5)]

        await sales_order_service.fulfill_items(order.id, lines, request_id="pick-4")
        order = await sales_order_service.fulfill_items(order.id, lines, request_id="pick-5")

        assert order.items[0].quantity_fulfilled == 10
        record = await inventory_service.get(PRODUCT, WAREHOUSE_A)
        assert record.quantity_on_hand == 40
        assert record.quantity_reserved == 10


class TestTransferAtomicity:
    async def test_failed_destination_leaves_source_untouched(
        self, seed_stock, transfer_service, inventory_service, monkeypatch
    ):
        await seed_stock(PRODUCT, WAREHOUSE_A, 20)
        transfer = await transfer_service.initiate(WAREHOUSE_A, WAREHOUSE_B, PRODUCT, 15)
        await transfer_service.approve(transfer.id)
        await transfer_service.mark_in_transit(transfer.id)

        original = SQLiteInventoryStore.apply_delta

        async def failing_apply_delta(self, product_id, warehouse_id, on_hand_delta, reserved_delta):
            if warehouse_id == WAREHOUSE_B:
                raise aiosqlite.OperationalError("disk I/O error")
            return await original(self, product_id, warehouse_id, on_hand_delta, reserved_delta)

        with monkeypatch.context() as patch:
            patch.setattr(SQLiteInventoryStore, "apply_delta", failing_apply_delta)
            with pytest.raises(UnavailableError):
                await transfer_service.complete(transfer.id)

        source = await inventory_service.get(PRODUCT, WAREHOUSE_A)
        assert source.quantity_on_hand == 20
        assert await inventory_service.list_for_warehouse(WAREHOUSE_B) == []
        assert (await transfer_service.get(transfer.id)).status == StockTransferStatus.IN_TRANSIT

        # The same transfer can be completed once the fault clears
        transfer = await transfer_service.complete(transfer.id)
        assert transfer.status == StockTransferStatus.COMPLETED
        assert (await inventory_service.get(PRODUCT, WAREHOUSE_B)).quantity_on_hand == 15


class TestConcurrentReservation:
    async def test_two_confirms_for_the_last_units(
        self, seed_stock, sales_order_service, inventory_service
    ):
        """Only one of two orders for 8 of 10 units can reserve."""
        await seed_stock(PRODUCT, WAREHOUSE_A, 10)
        first = await draft_sales_order(sales_order_service, 8)
        second = await draft_sales_order(sales_order_service, 8)

        results = await asyncio.gather(
            sales_order_service.confirm(first.id),
            sales_order_service.confirm(second.id),
            return_exceptions=True,
        )

        confirmed = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(confirmed) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], InsufficientStockError)
        assert confirmed[0].status == SalesOrderStatus.CONFIRMED

        record = await inventory_service.get(PRODUCT, WAREHOUSE_A)
        assert record.quantity_reserved == 8
        assert record.quantity_available == 2

    async def test_concurrent_adjustments_are_not_lost(
        self, seed_stock, adjustment_service, inventory_service, movement_service
    ):
        await seed_stock(PRODUCT, WAREHOUSE_A, 1)
        record = await inventory_service.get(PRODUCT, WAREHOUSE_A)

        await asyncio.gather(
            *(
                adjustment_service.create(record.id, "increase", 1, "found")
                for _ in range(20)
            )
        )

        updated = await inventory_service.get(PRODUCT, WAREHOUSE_A)
        assert updated.quantity_on_hand == 21
        assert updated.version == record.version + 20
        assert (await movement_service.reconcile(PRODUCT, WAREHOUSE_A)).is_consistent


class TestCancellation:
    async def test_cancel_after_partial_fulfillment_releases_remainder(
        self, seed_stock, sales_order_service, inventory_service, movement_service
    ):
        await seed_stock(PRODUCT, WAREHOUSE_A, 40)
        order = await draft_sales_order(sales_order_service, 25)
        order = await sales_order_service.confirm(order.id)
        order = await sales_order_service.fulfill_items(
            order.id, [FulfillmentLine(item_id=order.items[0].id, quantity_fulfilled=10)]
        )
        assert order.status == SalesOrderStatus.PARTIALLY_FULFILLED

        order = await sales_order_service.cancel(order.id, "customer withdrew")
        assert order.status == SalesOrderStatus.CANCELLED

        record = await inventory_service.get(PRODUCT, WAREHOUSE_A)
        assert record.quantity_on_hand == 30
        assert record.quantity_reserved == 0
        assert (await movement_service.reconcile(PRODUCT, WAREHOUSE_A)).is_consistent

    async def test_cancelled_draft_never_touches_inventory(
        self, seed_stock, sales_order_service, inventory_service
    ):
        await seed_stock(PRODUCT, WAREHOUSE_A, 5)
        before = await inventory_service.get(PRODUCT, WAREHOUSE_A)
        order = await draft_sales_order(sales_order_service, 3)

        await sales_order_service.cancel(order.id, "duplicate")

        assert await inventory_service.get(PRODUCT, WAREHOUSE_A) == before
