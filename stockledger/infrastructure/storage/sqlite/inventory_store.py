"""SQLite implementation of inventory record storage."""

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.clock import parse_datetime, utcnow
from stockledger.core.entities.inventory import InventoryDelta, InventoryRecord
from stockledger.core.exceptions import (
    InvalidQuantityError,
    InventoryNotFoundError,
    UnavailableError,
)
from stockledger.core.interfaces.inventory_store import IInventoryStore
from stockledger.infrastructure.storage.sqlite.base import SQLiteStore

logger = get_logger(__name__)


class SQLiteInventoryStore(SQLiteStore, IInventoryStore):
    """
    SQLite implementation of inventory record storage.

    Every write is a compare-and-swap on ``version``. A row that changed
    since it was read raises UnavailableError.
    """

    async def get(self, product_id: int, warehouse_id: int) -> InventoryRecord | None:
        cursor = await self._conn.execute(
            "SELECT * FROM inventories WHERE product_id = ? AND warehouse_id = ?",
            (product_id, warehouse_id),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_record(row)

    async def get_by_id(self, inventory_id: int) -> InventoryRecord | None:
        cursor = await self._conn.execute(
            "SELECT * FROM inventories WHERE id = ?", (inventory_id,)
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_record(row)

    async def list_for_product(self, product_id: int) -> list[InventoryRecord]:
        cursor = await self._conn.execute(
            "SELECT * FROM inventories WHERE product_id = ? ORDER BY warehouse_id",
            (product_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_record(row) for row in rows]

    async def list_for_warehouse(self, warehouse_id: int) -> list[InventoryRecord]:
        cursor = await self._conn.execute(
            "SELECT * FROM inventories WHERE warehouse_id = ? ORDER BY product_id",
            (warehouse_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_record(row) for row in rows]

    async def apply_delta(
        self,
        product_id: int,
        warehouse_id: int,
        on_hand_delta: int,
        reserved_delta: int,
    ) -> InventoryRecord:
        """Add both deltas, creating the record from zeros on first use."""
        current = await self.get(product_id, warehouse_id)
        base = current or InventoryRecord(product_id=product_id, warehouse_id=warehouse_id)

        try:
            updated = base.with_delta(on_hand_delta, reserved_delta)
        except InvalidQuantityError as e:
            logger.warning(
                "inventory_delta_rejected",
                product_id=product_id,
                warehouse_id=warehouse_id,
                on_hand_delta=on_hand_delta,
                reserved_delta=reserved_delta,
                reason=e.details["reason"],
            )
            raise

        if current is None:
            updated = await self._insert(updated)
        else:
            updated = await self._compare_and_swap(updated, expected_version=current.version)

        logger.info(
            "inventory_delta_applied",
            inventory_id=updated.id,
            product_id=product_id,
            warehouse_id=warehouse_id,
            on_hand_delta=on_hand_delta,
            reserved_delta=reserved_delta,
            on_hand=updated.quantity_on_hand,
            reserved=updated.quantity_reserved,
            version=updated.version,
        )
        return updated

    async def apply_deltas(self, deltas: list[InventoryDelta]) -> list[InventoryRecord]:
        """Apply deltas in global lock order; results follow the input order."""
        results: dict[int, InventoryRecord] = {}
        ordered = sorted(enumerate(deltas), key=lambda pair: pair[1].lock_key)
        for index, delta in ordered:
            results[index] = await self.apply_delta(
                delta.product_id,
                delta.warehouse_id,
                delta.on_hand_delta,
                delta.reserved_delta,
            )
        return [results[index] for index in range(len(deltas))]

    async def delete(self, product_id: int, warehouse_id: int) -> bool:
        record = await self.get(product_id, warehouse_id)
        if record is None:
            raise InventoryNotFoundError({"product_id": product_id, "warehouse_id": warehouse_id})

        if record.quantity_reserved > 0:
            raise InvalidQuantityError(
                product_id=product_id,
                warehouse_id=warehouse_id,
                on_hand=record.quantity_on_hand,
                reserved=record.quantity_reserved,
                on_hand_delta=0,
                reserved_delta=0,
                reason="reserved_stock_present",
            )

        cursor = await self._conn.execute(
            "DELETE FROM inventories WHERE id = ? AND version = ?",
            (record.id, record.version),
        )
        if cursor.rowcount != 1:
            raise UnavailableError("inventory_delete", "version conflict")

        logger.info(
            "inventory_record_deleted",
            inventory_id=record.id,
            product_id=product_id,
            warehouse_id=warehouse_id,
        )
        return True

    async def _insert(self, record: InventoryRecord) -> InventoryRecord:
        now = utcnow()
        record = record.model_copy(update={"version": 1, "created_at": now, "updated_at": now})
        cursor = await self._conn.execute(
            """
            INSERT INTO inventories (
                product_id, warehouse_id, quantity_on_hand, quantity_reserved,
                quantity_available, version, notes, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.product_id,
                record.warehouse_id,
                record.quantity_on_hand,
                record.quantity_reserved,
                record.quantity_available,
                record.version,
                record.notes,
                record.created_at.isoformat(),
                record.updated_at.isoformat(),
            ),
        )
        record.id = cursor.lastrowid
        logger.info(
            "inventory_record_created",
            inventory_id=record.id,
            product_id=record.product_id,
            warehouse_id=record.warehouse_id,
        )
        return record

    async def _compare_and_swap(
        self, record: InventoryRecord, expected_version: int
    ) -> InventoryRecord:
        record = record.model_copy(update={"version": expected_version + 1})
        cursor = await self._conn.execute(
            """
            UPDATE inventories SET
                quantity_on_hand = ?,
                quantity_reserved = ?,
                quantity_available = ?,
                version = ?,
                updated_at = ?
            WHERE id = ? AND version = ?
            """,
            (
                record.quantity_on_hand,
                record.quantity_reserved,
                record.quantity_available,
                record.version,
                record.updated_at.isoformat(),
                record.id,
                expected_version,
            ),
        )
        if cursor.rowcount != 1:
            logger.error(
                "inventory_version_conflict",
                inventory_id=record.id,
                expected_version=expected_version,
            )
            raise UnavailableError("apply_delta", "version conflict")
        return record

    @staticmethod
    def _row_to_record(row: aiosqlite.Row) -> InventoryRecord:
        """Convert a database row to an InventoryRecord entity."""
        return InventoryRecord(
            id=row["id"],
            product_id=row["product_id"],
            warehouse_id=row["warehouse_id"],
            quantity_on_hand=row["quantity_on_hand"],
            quantity_reserved=row["quantity_reserved"],
            version=row["version"],
            notes=row["notes"],
            created_at=parse_datetime(row["created_at"]) or utcnow(),
            updated_at=parse_datetime(row["updated_at"]) or utcnow(),
        )
