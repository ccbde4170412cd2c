"""Tests for purchase and sales order entities."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from stockledger.core.entities.pricing import append_note, line_totals, order_totals
from stockledger.core.entities.purchase_order import (
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderItemStatus,
    PurchaseOrderLineInput,
)
from stockledger.core.entities.sales_order import (
    SalesOrder,
    SalesOrderItem,
    SalesOrderItemStatus,
)


class TestPricing:
    def test_line_totals(self):
        assert line_totals(10, 5.0, 10.0) == pytest.approx((50.0, 5.0, 45.0))

    def test_order_totals(self):
        subtotal, tax, total = order_totals([45.0, 55.0], 0.1, 7.5, 2.5)
        assert subtotal == pytest.approx(100.0)
        assert tax == pytest.approx(10.0)
        assert total == pytest.approx(115.0)

    def test_order_totals_no_lines(self):
        assert order_totals([], 0.2, 0.0, 0.0) == (0.0, 0.0, 0.0)

    def test_append_note(self):
        assert append_note(None, "first") == "first"
        assert append_note("first", "second") == "first\nsecond"
        assert append_note("first", None) == "first"


class TestPurchaseOrderItem:
    """Tests for PurchaseOrderItem entity."""

    def test_defaults(self):
        item = PurchaseOrderItem(product_id=1, quantity_ordered=50)
        assert item.quantity_received == 0
        assert item.quantity_remaining == 50
        assert item.status == PurchaseOrderItemStatus.PENDING
        assert not item.is_fully_received

    def test_received_above_ordered_rejected(self):
        with pytest.raises(PydanticValidationError):
            PurchaseOrderItem(product_id=1, quantity_ordered=5, quantity_received=6)

    def test_zero_ordered_rejected(self):
        with pytest.raises(PydanticValidationError):
            PurchaseOrderLineInput(product_id=1, quantity_ordered=0)

    @pytest.mark.parametrize(
        ("received", "status"),
        [
            (0, PurchaseOrderItemStatus.PENDING),
            (20, PurchaseOrderItemStatus.PARTIALLY_RECEIVED),
            (50, PurchaseOrderItemStatus.FULLY_RECEIVED),
        ],
    )
    def test_refresh_status(self, received, status):
        item = PurchaseOrderItem(product_id=1, quantity_ordered=50, quantity_received=received)
        assert item.refresh_status() == status
        assert item.status == status

    def test_line_amounts(self):
        item = PurchaseOrderItem(
            product_id=1, quantity_ordered=4, unit_cost=25.0, discount_percentage=50
        )
        assert item.line_total == pytest.approx(100.0)
        assert item.discount_amount == pytest.approx(50.0)
        assert item.final_line_total == pytest.approx(50.0)


class TestPurchaseOrder:
    """Tests for PurchaseOrder entity."""

    def _order(self) -> PurchaseOrder:
        return PurchaseOrder(
            po_number="PO-202401-001",
            warehouse_id=1,
            tax_rate=0.1,
            shipping_cost=5.0,
            items=[
                PurchaseOrderItem(id=1, product_id=1, quantity_ordered=10, unit_cost=2.0),
                PurchaseOrderItem(id=2, product_id=2, quantity_ordered=5, unit_cost=4.0),
            ],
        )

    def test_recompute_totals(self):
        order = self._order().recompute_totals()
        assert order.subtotal == pytest.approx(40.0)
        assert order.tax_amount == pytest.approx(4.0)
        assert order.total_amount == pytest.approx(49.0)

    def test_get_item(self):
        order = self._order()
        assert order.get_item(2).product_id == 2
        assert order.get_item(99) is None

    def test_all_received(self):
        order = self._order()
        assert not order.all_received
        for item in order.items:
            item.quantity_received = item.quantity_ordered
        assert order.all_received
        assert order.total_received == 15

    def test_all_received_needs_items(self):
        order = PurchaseOrder(po_number="PO-202401-002", warehouse_id=1)
        assert not order.all_received


class TestSalesOrder:
    """Tests for SalesOrder and SalesOrderItem entities."""

    def test_item_remaining_and_status(self):
        item = SalesOrderItem(id=1, product_id=1, quantity_ordered=30, quantity_fulfilled=10)
        assert item.quantity_remaining == 20
        assert item.refresh_status() == SalesOrderItemStatus.PARTIALLY_FULFILLED

    def test_fulfilled_above_ordered_rejected(self):
        with pytest.raises(PydanticValidationError):
            SalesOrderItem(product_id=1, quantity_ordered=3, quantity_fulfilled=4)

    def test_totals_and_fulfillment(self):
        order = SalesOrder(
            so_number="SO-202401-001",
            warehouse_id=1,
            discount_amount=5.0,
            items=[
                SalesOrderItem(id=1, product_id=1, quantity_ordered=2, unit_price=10.0),
                SalesOrderItem(
                    id=2, product_id=2, quantity_ordered=1, unit_price=20.0, quantity_fulfilled=1
                ),
            ],
        ).recompute_totals()
        assert order.subtotal == pytest.approx(40.0)
        assert order.total_amount == pytest.approx(35.0)
        assert order.total_fulfilled == 1
        assert not order.all_fulfilled
