"""Shared helpers for stores bound to a unit-of-work connection."""

import aiosqlite


class SQLiteStore:
    """Base for stores that run on the connection of the enclosing unit of work."""

    def __init__(self, conn: aiosqlite.Connection):
        self._conn = conn

    async def _count_prefix(self, table: str, column: str, prefix: str) -> int:
        # table/column come from store code, never from callers
        cursor = await self._conn.execute(
            f"SELECT COUNT(*) FROM {table} WHERE {column} LIKE ?",
            (f"{prefix}%",),
        )
        row = await cursor.fetchone()
        return row[0]
