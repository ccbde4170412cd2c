"""SQLite implementation of purchase order storage."""

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.clock import parse_date, parse_datetime, to_iso, utcnow
from stockledger.core.entities.purchase_order import (
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderItemStatus,
    PurchaseOrderStatus,
)
from stockledger.core.interfaces.purchase_order_store import IPurchaseOrderStore
from stockledger.infrastructure.storage.sqlite.base import SQLiteStore

logger = get_logger(__name__)


class SQLitePurchaseOrderStore(SQLiteStore, IPurchaseOrderStore):
    """SQLite implementation of purchase order and item storage."""

    async def create(self, order: PurchaseOrder) -> PurchaseOrder:
        """Create a purchase order with all its items."""
        now = utcnow()
        order.created_at = now
        order.updated_at = now
        cursor = await self._conn.execute(
            """
            INSERT INTO purchase_orders (
                po_number, warehouse_id, supplier_name, status, order_date,
                expected_delivery_date, subtotal, tax_rate, tax_amount,
                shipping_cost, discount_amount, total_amount, notes,
                created_by, approved_by, approved_at, sent_at, received_by,
                received_at, closed_at, cancelled_at, cancellation_reason,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                order.po_number,
                order.warehouse_id,
                order.supplier_name,
                order.status.value,
                order.order_date.isoformat(),
                to_iso(order.expected_delivery_date),
                order.subtotal,
                order.tax_rate,
                order.tax_amount,
                order.shipping_cost,
                order.discount_amount,
                order.total_amount,
                order.notes,
                order.created_by,
                order.approved_by,
                to_iso(order.approved_at),
                to_iso(order.sent_at),
                order.received_by,
                to_iso(order.received_at),
                to_iso(order.closed_at),
                to_iso(order.cancelled_at),
                order.cancellation_reason,
                order.created_at.isoformat(),
                order.updated_at.isoformat(),
            ),
        )
        order.id = cursor.lastrowid

        for item in order.items:
            item.purchase_order_id = order.id
            await self.add_item(item)

        logger.info(
            "purchase_order_created",
            po_id=order.id,
            po_number=order.po_number,
            items=len(order.items),
        )
        return order

    async def get(self, po_id: int) -> PurchaseOrder | None:
        """Get purchase order by ID with items."""
        cursor = await self._conn.execute(
            "SELECT * FROM purchase_orders WHERE id = ?", (po_id,)
        )
        row = await cursor.fetchone()
        if row is None:
            return None

        cursor = await self._conn.execute(
            "SELECT * FROM purchase_order_items WHERE po_id = ? ORDER BY id",
            (po_id,),
        )
        item_rows = await cursor.fetchall()
        items = [self._row_to_item(r) for r in item_rows]
        return self._row_to_order(row, items)

    async def update(self, order: PurchaseOrder) -> PurchaseOrder:
        order.updated_at = utcnow()
        await self._conn.execute(
            """
            UPDATE purchase_orders SET
                supplier_name = ?, status = ?, expected_delivery_date = ?,
                subtotal = ?, tax_rate = ?, tax_amount = ?, shipping_cost = ?,
                discount_amount = ?, total_amount = ?, notes = ?,
                approved_by = ?, approved_at = ?, sent_at = ?,
                received_by = ?, received_at = ?, closed_at = ?,
                cancelled_at = ?, cancellation_reason = ?, updated_at = ?
            WHERE id = ?
            """,
            (
                order.supplier_name,
                order.status.value,
                to_iso(order.expected_delivery_date),
                order.subtotal,
                order.tax_rate,
                order.tax_amount,
                order.shipping_cost,
                order.discount_amount,
                order.total_amount,
                order.notes,
                order.approved_by,
                to_iso(order.approved_at),
                to_iso(order.sent_at),
                order.received_by,
                to_iso(order.received_at),
                to_iso(order.closed_at),
                to_iso(order.cancelled_at),
                order.cancellation_reason,
                order.updated_at.isoformat(),
                order.id,
            ),
        )
        return order

    async def add_item(self, item: PurchaseOrderItem) -> PurchaseOrderItem:
        now = utcnow()
        item.created_at = now
        item.updated_at = now
        cursor = await self._conn.execute(
            """
            INSERT INTO purchase_order_items (
                po_id, product_id, quantity_ordered, quantity_received,
                unit_cost, discount_percentage, line_total, discount_amount,
                final_line_total, status, notes, last_received_at,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                item.purchase_order_id,
                item.product_id,
                item.quantity_ordered,
                item.quantity_received,
                item.unit_cost,
                item.discount_percentage,
                item.line_total,
                item.discount_amount,
                item.final_line_total,
                item.status.value,
                item.notes,
                to_iso(item.last_received_at),
                item.created_at.isoformat(),
                item.updated_at.isoformat(),
            ),
        )
        item.id = cursor.lastrowid
        return item

    async def update_item(self, item: PurchaseOrderItem) -> PurchaseOrderItem:
        item.updated_at = utcnow()
        await self._conn.execute(
            """
            UPDATE purchase_order_items SET
                product_id = ?, quantity_ordered = ?, quantity_received = ?,
                unit_cost = ?, discount_percentage = ?, line_total = ?,
                discount_amount = ?, final_line_total = ?, status = ?,
                notes = ?, last_received_at = ?, updated_at = ?
            WHERE id = ?
            """,
            (
                item.product_id,
                item.quantity_ordered,
                item.quantity_received,
                item.unit_cost,
                item.discount_percentage,
                item.line_total,
                item.discount_amount,
                item.final_line_total,
                item.status.value,
                item.notes,
                to_iso(item.last_received_at),
                item.updated_at.isoformat(),
                item.id,
            ),
        )
        return item

    async def remove_item(self, item_id: int) -> bool:
        cursor = await self._conn.execute(
            "DELETE FROM purchase_order_items WHERE id = ?", (item_id,)
        )
        return cursor.rowcount > 0

    async def next_sequence(self, prefix: str) -> int:
        return await self._count_prefix("purchase_orders", "po_number", prefix) + 1

    @staticmethod
    def _row_to_item(row: aiosqlite.Row) -> PurchaseOrderItem:
        """Convert a database row to a PurchaseOrderItem entity."""
        return PurchaseOrderItem(
            id=row["id"],
            purchase_order_id=row["po_id"],
            product_id=row["product_id"],
            quantity_ordered=row["quantity_ordered"],
            quantity_received=row["quantity_received"],
            unit_cost=float(row["unit_cost"]),
            discount_percentage=float(row["discount_percentage"]),
            status=PurchaseOrderItemStatus(row["status"]),
            notes=row["notes"],
            last_received_at=parse_datetime(row["last_received_at"]),
            created_at=parse_datetime(row["created_at"]) or utcnow(),
            updated_at=parse_datetime(row["updated_at"]) or utcnow(),
        )

    @staticmethod
    def _row_to_order(
        row: aiosqlite.Row, items: list[PurchaseOrderItem]
    ) -> PurchaseOrder:
        """Convert a database row to a PurchaseOrder entity."""
        return PurchaseOrder(
            id=row["id"],
            po_number=row["po_number"],
            warehouse_id=row["warehouse_id"],
            supplier_name=row["supplier_name"],
            status=PurchaseOrderStatus(row["status"]),
            order_date=parse_date(row["order_date"]) or utcnow().date(),
            expected_delivery_date=parse_date(row["expected_delivery_date"]),
            subtotal=float(row["subtotal"]),
            tax_rate=float(row["tax_rate"]),
            tax_amount=float(row["tax_amount"]),
            shipping_cost=float(row["shipping_cost"]),
            discount_amount=float(row["discount_amount"]),
            total_amount=float(row["total_amount"]),
            notes=row["notes"],
            created_by=row["created_by"],
            approved_by=row["approved_by"],
            approved_at=parse_datetime(row["approved_at"]),
            sent_at=parse_datetime(row["sent_at"]),
            received_by=row["received_by"],
            received_at=parse_datetime(row["received_at"]),
            closed_at=parse_datetime(row["closed_at"]),
            cancelled_at=parse_datetime(row["cancelled_at"]),
            cancellation_reason=row["cancellation_reason"],
            items=items,
            created_at=parse_datetime(row["created_at"]) or utcnow(),
            updated_at=parse_datetime(row["updated_at"]) or utcnow(),
        )
