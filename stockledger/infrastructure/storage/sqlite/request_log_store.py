"""SQLite implementation of the processed-request log."""

import aiosqlite

from stockledger.core.clock import parse_datetime, utcnow
from stockledger.core.entities.request_log import ProcessedRequest
from stockledger.core.interfaces.request_log_store import IRequestLogStore
from stockledger.infrastructure.storage.sqlite.base import SQLiteStore


class SQLiteRequestLogStore(SQLiteStore, IRequestLogStore):
    async def get(self, request_id: str) -> ProcessedRequest | None:
        cursor = await self._conn.execute(
            "SELECT * FROM processed_requests WHERE request_id = ?", (request_id,)
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_request(row)

    async def record(self, request: ProcessedRequest) -> ProcessedRequest:
        await self._conn.execute(
            """
            INSERT INTO processed_requests (request_id, operation, document_id, created_at)
            VALUES (?, ?, ?, ?)
            """,
            (
                request.request_id,
                request.operation,
                request.document_id,
                request.created_at.isoformat(),
            ),
        )
        return request

    @staticmethod
    def _row_to_request(row: aiosqlite.Row) -> ProcessedRequest:
        return ProcessedRequest(
            request_id=row["request_id"],
            operation=row["operation"],
            document_id=row["document_id"],
            created_at=parse_datetime(row["created_at"]) or utcnow(),
        )
