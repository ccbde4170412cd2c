"""Storage infrastructure implementations."""

from stockledger.infrastructure.storage.sqlite import (
    ConnectionPool,
    SQLiteUnitOfWork,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)

__all__ = [
    # Unit of work
    "SQLiteUnitOfWork",
    # Connection pool
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
]
