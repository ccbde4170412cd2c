"""SQLite implementation of stock transfer storage."""

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.clock import parse_datetime, to_iso, utcnow
from stockledger.core.entities.stock_transfer import (
    STOCK_TRANSFER_OPEN,
    StockTransfer,
    StockTransferStatus,
)
from stockledger.core.interfaces.transfer_store import IStockTransferStore
from stockledger.infrastructure.storage.sqlite.base import SQLiteStore

logger = get_logger(__name__)


class SQLiteStockTransferStore(SQLiteStore, IStockTransferStore):
    """SQLite implementation of stock transfer storage."""

    async def create(self, transfer: StockTransfer) -> StockTransfer:
        now = utcnow()
        transfer.created_at = now
        transfer.updated_at = now
        cursor = await self._conn.execute(
            """
            INSERT INTO stock_transfers (
                reference_number, from_warehouse_id, to_warehouse_id, product_id,
                quantity_transferred, status, notes, initiated_by, initiated_at,
                approved_by, approved_at, shipped_at, completed_by, completed_at,
                cancelled_at, cancellation_reason, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                transfer.reference_number,
                transfer.from_warehouse_id,
                transfer.to_warehouse_id,
                transfer.product_id,
                transfer.quantity_transferred,
                transfer.status.value,
                transfer.notes,
                transfer.initiated_by,
                transfer.initiated_at.isoformat(),
                transfer.approved_by,
                to_iso(transfer.approved_at),
                to_iso(transfer.shipped_at),
                transfer.completed_by,
                to_iso(transfer.completed_at),
                to_iso(transfer.cancelled_at),
                transfer.cancellation_reason,
                transfer.created_at.isoformat(),
                transfer.updated_at.isoformat(),
            ),
        )
        transfer.id = cursor.lastrowid
        return transfer

    async def get(self, transfer_id: int) -> StockTransfer | None:
        cursor = await self._conn.execute(
            "SELECT * FROM stock_transfers WHERE id = ?", (transfer_id,)
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_transfer(row)

    async def update(self, transfer: StockTransfer) -> StockTransfer:
        transfer.updated_at = utcnow()
        await self._conn.execute(
            """
            UPDATE stock_transfers SET
                quantity_transferred = ?, status = ?, notes = ?,
                approved_by = ?, approved_at = ?, shipped_at = ?,
                completed_by = ?, completed_at = ?, cancelled_at = ?,
                cancellation_reason = ?, updated_at = ?
            WHERE id = ?
            """,
            (
                transfer.quantity_transferred,
                transfer.status.value,
                transfer.notes,
                transfer.approved_by,
                to_iso(transfer.approved_at),
                to_iso(transfer.shipped_at),
                transfer.completed_by,
                to_iso(transfer.completed_at),
                to_iso(transfer.cancelled_at),
                transfer.cancellation_reason,
                transfer.updated_at.isoformat(),
                transfer.id,
            ),
        )
        return transfer

    async def find_open_duplicate(
        self,
        from_warehouse_id: int,
        to_warehouse_id: int,
        product_id: int,
        quantity: int,
        exclude_id: int | None = None,
    ) -> StockTransfer | None:
        open_statuses = sorted(s.value for s in STOCK_TRANSFER_OPEN)
        placeholders = ", ".join("?" for _ in open_statuses)
        cursor = await self._conn.execute(
            f"""
            SELECT * FROM stock_transfers
            WHERE from_warehouse_id = ? AND to_warehouse_id = ?
              AND product_id = ? AND quantity_transferred = ?
              AND status IN ({placeholders})
              AND (? IS NULL OR id <> ?)
            ORDER BY id
            LIMIT 1
            """,
            (
                from_warehouse_id,
                to_warehouse_id,
                product_id,
                quantity,
                *open_statuses,
                exclude_id,
                exclude_id,
            ),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_transfer(row)

    async def list_transfers(
        self,
        status: StockTransferStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[StockTransfer]:
        if status is None:
            cursor = await self._conn.execute(
                "SELECT * FROM stock_transfers ORDER BY id DESC LIMIT ? OFFSET ?",
                (limit, offset),
            )
        else:
            cursor = await self._conn.execute(
                """
                SELECT * FROM stock_transfers WHERE status = ?
                ORDER BY id DESC LIMIT ? OFFSET ?
                """,
                (status.value, limit, offset),
            )
        rows = await cursor.fetchall()
        return [self._row_to_transfer(row) for row in rows]

    async def next_sequence(self, prefix: str) -> int:
        return await self._count_prefix("stock_transfers", "reference_number", prefix) + 1

    @staticmethod
    def _row_to_transfer(row: aiosqlite.Row) -> StockTransfer:
        """Convert a database row to a StockTransfer entity."""
        return StockTransfer(
            id=row["id"],
            reference_number=row["reference_number"],
            from_warehouse_id=row["from_warehouse_id"],
            to_warehouse_id=row["to_warehouse_id"],
            product_id=row["product_id"],
            quantity_transferred=row["quantity_transferred"],
            status=StockTransferStatus(row["status"]),
            notes=row["notes"],
            initiated_by=row["initiated_by"],
            initiated_at=parse_datetime(row["initiated_at"]) or utcnow(),
            approved_by=row["approved_by"],
            approved_at=parse_datetime(row["approved_at"]),
            shipped_at=parse_datetime(row["shipped_at"]),
            completed_by=row["completed_by"],
            completed_at=parse_datetime(row["completed_at"]),
            cancelled_at=parse_datetime(row["cancelled_at"]),
            cancellation_reason=row["cancellation_reason"],
            created_at=parse_datetime(row["created_at"]) or utcnow(),
            updated_at=parse_datetime(row["updated_at"]) or utcnow(),
        )
