"""SQLite implementation of sales order storage."""

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.clock import parse_date, parse_datetime, to_iso, utcnow
from stockledger.core.entities.sales_order import (
    SalesOrder,
    SalesOrderItem,
    SalesOrderItemStatus,
    SalesOrderStatus,
)
from stockledger.core.interfaces.sales_order_store import ISalesOrderStore
from stockledger.infrastructure.storage.sqlite.base import SQLiteStore

logger = get_logger(__name__)


class SQLiteSalesOrderStore(SQLiteStore, ISalesOrderStore):
    """SQLite implementation of sales order and item storage."""

    async def create(self, order: SalesOrder) -> SalesOrder:
        """Create a sales order with all its items."""
        now = utcnow()
        order.created_at = now
        order.updated_at = now
        cursor = await self._conn.execute(
            """
            INSERT INTO sales_orders (
                so_number, warehouse_id, customer_name, status, order_date,
                subtotal, tax_rate, tax_amount, shipping_cost, discount_amount,
                total_amount, notes, created_by, approved_by, approved_at,
                confirmed_at, fulfilled_by, fulfilled_at, shipped_by, shipped_at,
                tracking_number, carrier, delivered_at, cancelled_at,
                cancellation_reason, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                order.so_number,
                order.warehouse_id,
                order.customer_name,
                order.status.value,
                order.order_date.isoformat(),
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
                to_iso(order.confirmed_at),
                order.fulfilled_by,
                to_iso(order.fulfilled_at),
                order.shipped_by,
                to_iso(order.shipped_at),
                order.tracking_number,
                order.carrier,
                to_iso(order.delivered_at),
                to_iso(order.cancelled_at),
                order.cancellation_reason,
                order.created_at.isoformat(),
                order.updated_at.isoformat(),
            ),
        )
        order.id = cursor.lastrowid

        for item in order.items:
            item.sales_order_id = order.id
            await self.add_item(item)

        logger.info(
            "sales_order_created",
            so_id=order.id,
            so_number=order.so_number,
            items=len(order.items),
        )
        return order

    async def get(self, so_id: int) -> SalesOrder | None:
        """Get sales order by ID with items."""
        cursor = await self._conn.execute("SELECT * FROM sales_orders WHERE id = ?", (so_id,))
        row = await cursor.fetchone()
        if row is None:
            return None

        cursor = await self._conn.execute(
            "SELECT * FROM sales_order_items WHERE so_id = ? ORDER BY id",
            (so_id,),
        )
        item_rows = await cursor.fetchall()
        return self._row_to_order(row, [self._row_to_item(r) for r in item_rows])

    async def update(self, order: SalesOrder) -> SalesOrder:
        order.updated_at = utcnow()
        await self._conn.execute(
            """
            UPDATE sales_orders SET
                customer_name = ?, status = ?, subtotal = ?, tax_rate = ?,
                tax_amount = ?, shipping_cost = ?, discount_amount = ?,
                total_amount = ?, notes = ?, approved_by = ?, approved_at = ?,
                confirmed_at = ?, fulfilled_by = ?, fulfilled_at = ?,
                shipped_by = ?, shipped_at = ?, tracking_number = ?, carrier = ?,
                delivered_at = ?, cancelled_at = ?, cancellation_reason = ?,
                updated_at = ?
            WHERE id = ?
            """,
            (
                order.customer_name,
                order.status.value,
                order.subtotal,
                order.tax_rate,
                order.tax_amount,
                order.shipping_cost,
                order.discount_amount,
                order.total_amount,
                order.notes,
                order.approved_by,
                to_iso(order.approved_at),
                to_iso(order.confirmed_at),
                order.fulfilled_by,
                to_iso(order.fulfilled_at),
                order.shipped_by,
                to_iso(order.shipped_at),
                order.tracking_number,
                order.carrier,
                to_iso(order.delivered_at),
                to_iso(order.cancelled_at),
                order.cancellation_reason,
                order.updated_at.isoformat(),
                order.id,
            ),
        )
        return order

    async def add_item(self, item: SalesOrderItem) -> SalesOrderItem:
        now = utcnow()
        item.created_at = now
        item.updated_at = now
        cursor = await self._conn.execute(
            """
            INSERT INTO sales_order_items (
                so_id, product_id, quantity_ordered, quantity_fulfilled,
                unit_price, discount_percentage, line_total, discount_amount,
                final_line_total, status, notes, last_fulfilled_at,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                item.sales_order_id,
                item.product_id,
                item.quantity_ordered,
                item.quantity_fulfilled,
                item.unit_price,
                item.discount_percentage,
                item.line_total,
                item.discount_amount,
                item.final_line_total,
                item.status.value,
                item.notes,
                to_iso(item.last_fulfilled_at),
                item.created_at.isoformat(),
                item.updated_at.isoformat(),
            ),
        )
        item.id = cursor.lastrowid
        return item

    async def update_item(self, item: SalesOrderItem) -> SalesOrderItem:
        item.updated_at = utcnow()
        await self._conn.execute(
            """
            UPDATE sales_order_items SET
                product_id = ?, quantity_ordered = ?, quantity_fulfilled = ?,
                unit_price = ?, discount_percentage = ?, line_total = ?,
                discount_amount = ?, final_line_total = ?, status = ?,
                notes = ?, last_fulfilled_at = ?, updated_at = ?
            WHERE id = ?
            """,
            (
                item.product_id,
                item.quantity_ordered,
                item.quantity_fulfilled,
                item.unit_price,
                item.discount_percentage,
                item.line_total,
                item.discount_amount,
                item.final_line_total,
                item.status.value,
                item.notes,
                to_iso(item.last_fulfilled_at),
                item.updated_at.isoformat(),
                item.id,
            ),
        )
        return item

    async def remove_item(self, item_id: int) -> bool:
        cursor = await self._conn.execute(
            "DELETE FROM sales_order_items WHERE id = ?", (item_id,)
        )
        return cursor.rowcount > 0

    async def next_sequence(self, prefix: str) -> int:
        return await self._count_prefix("sales_orders", "so_number", prefix) + 1

    @staticmethod
    def _row_to_item(row: aiosqlite.Row) -> SalesOrderItem:
        """Convert a database row to a SalesOrderItem entity."""
        return SalesOrderItem(
            id=row["id"],
            sales_order_id=row["so_id"],
            product_id=row["product_id"],
            quantity_ordered=row["quantity_ordered"],
            quantity_fulfilled=row["quantity_fulfilled"],
            unit_price=float(row["unit_price"]),
            discount_percentage=float(row["discount_percentage"]),
            status=SalesOrderItemStatus(row["status"]),
            notes=row["notes"],
            last_fulfilled_at=parse_datetime(row["last_fulfilled_at"]),
            created_at=parse_datetime(row["created_at"]) or utcnow(),
            updated_at=parse_datetime(row["updated_at"]) or utcnow(),
        )

    @staticmethod
    def _row_to_order(row: aiosqlite.Row, items: list[SalesOrderItem]) -> SalesOrder:
        """Convert a database row to a SalesOrder entity."""
        return SalesOrder(
            id=row["id"],
            so_number=row["so_number"],
            warehouse_id=row["warehouse_id"],
            customer_name=row["customer_name"],
            status=SalesOrderStatus(row["status"]),
            order_date=parse_date(row["order_date"]) or utcnow().date(),
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
            confirmed_at=parse_datetime(row["confirmed_at"]),
            fulfilled_by=row["fulfilled_by"],
            fulfilled_at=parse_datetime(row["fulfilled_at"]),
            shipped_by=row["shipped_by"],
            shipped_at=parse_datetime(row["shipped_at"]),
            tracking_number=row["tracking_number"],
            carrier=row["carrier"],
            delivered_at=parse_datetime(row["delivered_at"]),
            cancelled_at=parse_datetime(row["cancelled_at"]),
            cancellation_reason=row["cancellation_reason"],
            items=items,
            created_at=parse_datetime(row["created_at"]) or utcnow(),
            updated_at=parse_datetime(row["updated_at"]) or utcnow(),
        )
