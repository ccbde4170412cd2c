"""SQLite implementation of stock adjustment storage."""

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.clock import parse_datetime, utcnow
from stockledger.core.entities.stock_adjustment import (
    AdjustmentReason,
    AdjustmentType,
    StockAdjustment,
)
from stockledger.core.interfaces.adjustment_store import IStockAdjustmentStore
from stockledger.infrastructure.storage.sqlite.base import SQLiteStore

logger = get_logger(__name__)


class SQLiteStockAdjustmentStore(SQLiteStore, IStockAdjustmentStore):
    """SQLite implementation of stock adjustment storage."""

    async def create(self, adjustment: StockAdjustment) -> StockAdjustment:
        now = utcnow()
        adjustment.created_at = now
        adjustment.updated_at = now
        cursor = await self._conn.execute(
            """
            INSERT INTO stock_adjustments (
                reference_number, inventory_id, product_id, warehouse_id,
                adjustment_type, quantity_adjusted, quantity_before, quantity_after,
                reason, notes, adjusted_by, adjusted_at, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                adjustment.reference_number,
                adjustment.inventory_id,
                adjustment.product_id,
                adjustment.warehouse_id,
                adjustment.adjustment_type.value,
                adjustment.quantity_adjusted,
                adjustment.quantity_before,
                adjustment.quantity_after,
                adjustment.reason.value,
                adjustment.notes,
                adjustment.adjusted_by,
                adjustment.adjusted_at.isoformat(),
                adjustment.created_at.isoformat(),
                adjustment.updated_at.isoformat(),
            ),
        )
        adjustment.id = cursor.lastrowid
        return adjustment

    async def get(
        self, adjustment_id: int, include_deleted: bool = False
    ) -> StockAdjustment | None:
        query = "SELECT * FROM stock_adjustments WHERE id = ?"
        if not include_deleted:
            query += " AND deleted_at IS NULL"
        cursor = await self._conn.execute(query, (adjustment_id,))
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_adjustment(row)

    async def update_notes(self, adjustment_id: int, notes: str | None) -> None:
        await self._conn.execute(
            "UPDATE stock_adjustments SET notes = ?, updated_at = ? WHERE id = ?",
            (notes, utcnow().isoformat(), adjustment_id),
        )

    async def soft_delete(self, adjustment_id: int) -> bool:
        now = utcnow().isoformat()
        cursor = await self._conn.execute(
            """
            UPDATE stock_adjustments SET deleted_at = ?, updated_at = ?
            WHERE id = ? AND deleted_at IS NULL
            """,
            (now, now, adjustment_id),
        )
        return cursor.rowcount > 0

    async def list_for_inventory(
        self, inventory_id: int, limit: int = 100
    ) -> list[StockAdjustment]:
        cursor = await self._conn.execute(
            """
            SELECT * FROM stock_adjustments
            WHERE inventory_id = ? AND deleted_at IS NULL
            ORDER BY adjusted_at DESC, id DESC
            LIMIT ?
            """,
            (inventory_id, limit),
        )
        rows = await cursor.fetchall()
        return [self._row_to_adjustment(row) for row in rows]

    @staticmethod
    def _row_to_adjustment(row: aiosqlite.Row) -> StockAdjustment:
        """Convert a database row to a StockAdjustment entity."""
        return StockAdjustment(
            id=row["id"],
            reference_number=row["reference_number"],
            inventory_id=row["inventory_id"],
            product_id=row["product_id"],
            warehouse_id=row["warehouse_id"],
            adjustment_type=AdjustmentType(row["adjustment_type"]),
            quantity_adjusted=row["quantity_adjusted"],
            quantity_before=row["quantity_before"],
            quantity_after=row["quantity_after"],
            reason=AdjustmentReason(row["reason"]),
            notes=row["notes"],
            adjusted_by=row["adjusted_by"],
            adjusted_at=parse_datetime(row["adjusted_at"]) or utcnow(),
            deleted_at=parse_datetime(row["deleted_at"]),
            created_at=parse_datetime(row["created_at"]) or utcnow(),
            updated_at=parse_datetime(row["updated_at"]) or utcnow(),
        )
