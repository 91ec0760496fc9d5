"""
Core business logic services.

Layer-pure services that depend only on:
- src/core/entities/*
- src/core/interfaces/*
- src/core/exceptions.py

NO infrastructure imports. All dependencies injected via constructor.
"""

from src.core.services.allocation_engine import AllocationEngine
from src.core.services.allocation_saga import AllocationSaga
from src.core.services.availability import AvailabilityChecker
from src.core.services.costing import (
    CategorySummary,
    CostingEngine,
    InventorySummary,
    compute_inventory_snapshot,
    summarize_inventory,
)
from src.core.services.lot_ledger import EDITABLE_LOT_FIELDS, LotLedger, MaterialLockRegistry

__all__ = [
    # Lot Ledger
    "LotLedger",
    "EDITABLE_LOT_FIELDS",
    "MaterialLockRegistry",
    # Costing
    "CostingEngine",
    "CategorySummary",
    "InventorySummary",
    "compute_inventory_snapshot",
    "summarize_inventory",
    # Allocation
    "AllocationEngine",
    "AllocationSaga",
    # Availability
    "AvailabilityChecker",
]
