"""SQLite storage implementations."""

from possync.infrastructure.storage.sqlite.connection import ConnectionPool
from possync.infrastructure.storage.sqlite.operation_store import SQLiteOperationStore
from possync.infrastructure.storage.sqlite.sale_store import SQLiteSaleStore
from possync.infrastructure.storage.sqlite.session_store import SQLiteCashSessionStore
from possync.infrastructure.storage.sqlite.state_store import SQLiteStateStore

__all__ = [
    "ConnectionPool",
    "SQLiteOperationStore",
    "SQLiteSaleStore",
    "SQLiteCashSessionStore",
    "SQLiteStateStore",
]
