"""Pytest configuration and fixtures.

Store, engine and flow tests run against a temporary SQLite database built
by the real migrator; the global connection pool is pointed at it by
patching the settings the connection module reads.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import date
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from src.application.services import reset_services
from src.core.entities.lot import LotPricing, LotStorage, MaterialLot, Quantity, StorageLocation
from src.core.entities.material import Material, MaterialCategory
from src.core.services import AllocationEngine, AvailabilityChecker, CostingEngine, LotLedger
from src.infrastructure.storage.sqlite import (
    SQLiteLotStore,
    SQLiteMaterialStore,
    SQLitePurchaseOrderStore,
    SQLiteQuotationStore,
    SQLiteWorkOrderStore,
)
from src.infrastructure.storage.sqlite import connection as conn_module
from src.infrastructure.storage.sqlite.migrations.migrator import initialize_database


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
def mock_settings(temp_db_path: Path):
    """Mock settings with temp database path."""
    mock = MagicMock()
    mock.storage.db_path = temp_db_path
    mock.storage.pool_size = 2
    mock.storage.busy_timeout = 5000
    return mock


@pytest.fixture
async def migrated_db(temp_db_path: Path, mock_settings) -> AsyncGenerator[Path, None]:
    """Migrated temp database wired into the global connection pool."""
    await initialize_database(db_path=temp_db_path, create_backup_before=False)

    conn_module._pool = None
    reset_services()
    with patch.object(conn_module, "get_settings", return_value=mock_settings):
        try:
            yield temp_db_path
        finally:
            await conn_module.close_pool()
            reset_services()


@pytest.fixture
def material_store(migrated_db) -> SQLiteMaterialStore:
    return SQLiteMaterialStore()


@pytest.fixture
def lot_store(migrated_db) -> SQLiteLotStore:
    return SQLiteLotStore()


@pytest.fixture
def work_order_store(migrated_db) -> SQLiteWorkOrderStore:
    return SQLiteWorkOrderStore()


@pytest.fixture
def quotation_store(migrated_db) -> SQLiteQuotationStore:
    return SQLiteQuotationStore()


@pytest.fixture
def purchase_order_store(migrated_db) -> SQLitePurchaseOrderStore:
    return SQLitePurchaseOrderStore()


@pytest.fixture
def ledger(lot_store, material_store) -> LotLedger:
    return LotLedger(lot_store=lot_store, material_store=material_store)


@pytest.fixture
def costing(ledger, material_store) -> CostingEngine:
    return CostingEngine(ledger=ledger, material_store=material_store)


@pytest.fixture
def engine(ledger, costing) -> AllocationEngine:
    return AllocationEngine(ledger=ledger, costing=costing)


@pytest.fixture
def checker(ledger, material_store) -> AvailabilityChecker:
    return AvailabilityChecker(ledger=ledger, material_store=material_store)


@pytest.fixture
def make_material(material_store) -> Callable[..., Awaitable[Material]]:
    """Factory creating catalog materials in the temp database."""

    async def _make(
        name: str = "Copper 8mm rod",
        category: MaterialCategory = MaterialCategory.METAL,
        **kwargs,
    ) -> Material:
        return await material_store.create_material(
            Material(material_type_id=1, name=name, category=category, **kwargs)
        )

    return _make


@pytest.fixture
def make_lot(ledger) -> Callable[..., Awaitable[MaterialLot]]:
    """Factory recording lots through the ledger."""

    async def _make(
        material_id: int,
        weight: float,
        purchase_date: date,
        price_per_kg: float = 10.0,
        length: float = 0.0,
        price_per_km: float | None = None,
        supplier_id: int = 1,
    ) -> MaterialLot:
        return await ledger.create_lot(
            material_id=material_id,
            supplier_id=supplier_id,
            purchase_date=purchase_date,
            initial_quantity=Quantity(weight=weight, length=length),
            pricing=LotPricing(price_per_kg=price_per_kg, price_per_km=price_per_km),
            storage=LotStorage(location=StorageLocation.DRUM),
        )

    return _make
