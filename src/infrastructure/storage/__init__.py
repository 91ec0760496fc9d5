"""Storage infrastructure implementations."""

from src.infrastructure.storage.sqlite import (
    SQLiteLotStore,
    SQLiteMaterialStore,
    SQLitePurchaseOrderStore,
    SQLiteQuotationStore,
    SQLiteWorkOrderStore,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)

__all__ = [
    # SQLite stores
    "SQLiteLotStore",
    "SQLiteMaterialStore",
    "SQLitePurchaseOrderStore",
    "SQLiteQuotationStore",
    "SQLiteWorkOrderStore",
    # Connection pool
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
]
