"""SQLite storage implementations."""

from src.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
    next_sequence,
)
from src.infrastructure.storage.sqlite.lot_store import SQLiteLotStore
from src.infrastructure.storage.sqlite.material_store import SQLiteMaterialStore
from src.infrastructure.storage.sqlite.purchase_order_store import SQLitePurchaseOrderStore
from src.infrastructure.storage.sqlite.quotation_store import SQLiteQuotationStore
from src.infrastructure.storage.sqlite.work_order_store import SQLiteWorkOrderStore

# Singleton instances
_lot_store: SQLiteLotStore | None = None
_material_store: SQLiteMaterialStore | None = None
_work_order_store: SQLiteWorkOrderStore | None = None
_purchase_order_store: SQLitePurchaseOrderStore | None = None
_quotation_store: SQLiteQuotationStore | None = None


async def get_lot_store() -> SQLiteLotStore:
    """Get singleton lot store instance."""
    global _lot_store
    if _lot_store is None:
        _lot_store = SQLiteLotStore()
    return _lot_store


async def get_material_store() -> SQLiteMaterialStore:
    """Get singleton material store instance."""
    global _material_store
    if _material_store is None:
        _material_store = SQLiteMaterialStore()
    return _material_store


async def get_work_order_store() -> SQLiteWorkOrderStore:
    """Get singleton work order store instance."""
    global _work_order_store
    if _work_order_store is None:
        _work_order_store = SQLiteWorkOrderStore()
    return _work_order_store


async def get_purchase_order_store() -> SQLitePurchaseOrderStore:
    """Get singleton purchase order store instance."""
    global _purchase_order_store
    if _purchase_order_store is None:
        _purchase_order_store = SQLitePurchaseOrderStore()
    return _purchase_order_store


async def get_quotation_store() -> SQLiteQuotationStore:
    """Get singleton quotation store instance."""
    global _quotation_store
    if _quotation_store is None:
        _quotation_store = SQLiteQuotationStore()
    return _quotation_store


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    "next_sequence",
    # Store classes
    "SQLiteLotStore",
    "SQLiteMaterialStore",
    "SQLitePurchaseOrderStore",
    "SQLiteQuotationStore",
    "SQLiteWorkOrderStore",
    # Factory functions
    "get_lot_store",
    "get_material_store",
    "get_work_order_store",
    "get_purchase_order_store",
    "get_quotation_store",
]
