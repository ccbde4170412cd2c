"""SQLite implementation of the stock movement ledger."""

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.clock import parse_datetime, to_iso, utcnow
from stockledger.core.entities.stock_movement import (
    MovementStatus,
    MovementType,
    RelatedDocumentType,
    StockMovement,
)
from stockledger.core.interfaces.movement_store import IStockMovementStore
from stockledger.infrastructure.storage.sqlite.base import SQLiteStore

logger = get_logger(__name__)


class SQLiteStockMovementStore(SQLiteStore, IStockMovementStore):
    """SQLite implementation of stock movement storage."""

    async def create(self, movement: StockMovement) -> StockMovement:
        now = utcnow()
        movement.created_at = now
        movement.updated_at = now
        cursor = await self._conn.execute(
            """
            INSERT INTO stock_movements (
                reference_number, product_id, warehouse_id, movement_type,
                quantity_moved, quantity_before, quantity_after, unit_cost,
                total_value, status, reason, notes, related_document_type,
                related_document_id, user_id, approved_by, approved_at,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                movement.reference_number,
                movement.product_id,
                movement.warehouse_id,
                movement.movement_type.value,
                movement.quantity_moved,
                movement.quantity_before,
                movement.quantity_after,
                movement.unit_cost,
                movement.total_value,
                movement.status.value,
                movement.reason,
                movement.notes,
                movement.related_document_type.value if movement.related_document_type else None,
                movement.related_document_id,
                movement.user_id,
                movement.approved_by,
                to_iso(movement.approved_at),
                movement.created_at.isoformat(),
                movement.updated_at.isoformat(),
            ),
        )
        movement.id = cursor.lastrowid
        logger.info(
            "stock_movement_recorded",
            movement_id=movement.id,
            reference=movement.reference_number,
            type=movement.movement_type.value,
            qty=movement.quantity_moved,
            status=movement.status.value,
        )
        return movement

    async def get(self, movement_id: int) -> StockMovement | None:
        cursor = await self._conn.execute(
            "SELECT * FROM stock_movements WHERE id = ?", (movement_id,)
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_movement(row)

    async def update(self, movement: StockMovement) -> StockMovement:
        movement.updated_at = utcnow()
        await self._conn.execute(
            """
            UPDATE stock_movements SET
                status = ?, quantity_before = ?, quantity_after = ?,
                notes = ?, approved_by = ?, approved_at = ?, updated_at = ?
            WHERE id = ?
            """,
            (
                movement.status.value,
                movement.quantity_before,
                movement.quantity_after,
                movement.notes,
                movement.approved_by,
                to_iso(movement.approved_at),
                movement.updated_at.isoformat(),
                movement.id,
            ),
        )
        return movement

    async def list_for_inventory(
        self, product_id: int, warehouse_id: int, limit: int = 100
    ) -> list[StockMovement]:
        cursor = await self._conn.execute(
            """
            SELECT * FROM stock_movements
            WHERE product_id = ? AND warehouse_id = ?
            ORDER BY created_at DESC, id DESC
            LIMIT ?
            """,
            (product_id, warehouse_id, limit),
        )
        rows = await cursor.fetchall()
        return [self._row_to_movement(row) for row in rows]

    async def list_pending(self, limit: int = 100) -> list[StockMovement]:
        cursor = await self._conn.execute(
            """
            SELECT * FROM stock_movements
            WHERE status = ?
            ORDER BY created_at, id
            LIMIT ?
            """,
            (MovementStatus.PENDING.value, limit),
        )
        rows = await cursor.fetchall()
        return [self._row_to_movement(row) for row in rows]

    async def sum_applied(self, product_id: int, warehouse_id: int) -> int:
        cursor = await self._conn.execute(
            """
            SELECT COALESCE(SUM(quantity_moved), 0) FROM stock_movements
            WHERE product_id = ? AND warehouse_id = ? AND status = ?
            """,
            (product_id, warehouse_id, MovementStatus.APPLIED.value),
        )
        row = await cursor.fetchone()
        return int(row[0])

    async def next_sequence(self, prefix: str) -> int:
        return await self._count_prefix("stock_movements", "reference_number", prefix) + 1

    @staticmethod
    def _row_to_movement(row: aiosqlite.Row) -> StockMovement:
        """Convert a database row to a StockMovement entity."""
        related_type = None
        if row["related_document_type"]:
            related_type = RelatedDocumentType(row["related_document_type"])

        return StockMovement(
            id=row["id"],
            reference_number=row["reference_number"],
            product_id=row["product_id"],
            warehouse_id=row["warehouse_id"],
            movement_type=MovementType(row["movement_type"]),
            quantity_moved=row["quantity_moved"],
            quantity_before=row["quantity_before"],
            quantity_after=row["quantity_after"],
            unit_cost=float(row["unit_cost"]),
            total_value=float(row["total_value"]),
            status=MovementStatus(row["status"]),
            reason=row["reason"],
            notes=row["notes"],
            related_document_type=related_type,
            related_document_id=row["related_document_id"],
            user_id=row["user_id"],
            approved_by=row["approved_by"],
            approved_at=parse_datetime(row["approved_at"]),
            created_at=parse_datetime(row["created_at"]) or utcnow(),
            updated_at=parse_datetime(row["updated_at"]) or utcnow(),
        )
