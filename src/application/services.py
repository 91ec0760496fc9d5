"""
Service factory functions for dependency injection.

This module provides factory functions that wire infrastructure
implementations to core services. Use cases should import from here.

Clean Architecture: Application layer orchestrates DI, not core layer.

The allocation engine must be a process-wide singleton: its per-material
locks only serialize writers that share the same instance.
"""

from src.core.services import (
    AllocationEngine,
    AvailabilityChecker,
    CostingEngine,
    LotLedger,
)

# Singleton service instances
_lot_ledger: LotLedger | None = None
_costing_engine: CostingEngine | None = None
_allocation_engine: AllocationEngine | None = None
_availability_checker: AvailabilityChecker | None = None


async def get_lot_ledger() -> LotLedger:
    """Get or create the LotLedger over the SQLite stores."""
    global _lot_ledger

    if _lot_ledger is None:
        # Lazy import infrastructure to avoid circular imports
        from src.infrastructure.storage.sqlite import get_lot_store, get_material_store

        _lot_ledger = LotLedger(
            lot_store=await get_lot_store(),
            material_store=await get_material_store(),
        )
    return _lot_ledger


async def get_costing_engine() -> CostingEngine:
    """
    Get or create the CostingEngine.

    It subscribes to the ledger singleton so its memoized snapshots are
    dropped on every lot mutation.
    """
    global _costing_engine

    if _costing_engine is None:
        from src.infrastructure.storage.sqlite import get_material_store

        _costing_engine = CostingEngine(
            ledger=await get_lot_ledger(),
            material_store=await get_material_store(),
        )
    return _costing_engine


async def get_allocation_engine() -> AllocationEngine:
    """Get or create the AllocationEngine."""
    global _allocation_engine

    if _allocation_engine is None:
        _allocation_engine = AllocationEngine(
            ledger=await get_lot_ledger(),
            costing=await get_costing_engine(),
        )
    return _allocation_engine


async def get_availability_checker() -> AvailabilityChecker:
    """Get or create the AvailabilityChecker."""
    global _availability_checker

    if _availability_checker is None:
        from src.infrastructure.storage.sqlite import get_material_store

        _availability_checker = AvailabilityChecker(
            ledger=await get_lot_ledger(),
            material_store=await get_material_store(),
        )
    return _availability_checker


def reset_services() -> None:
    """Reset all singleton services (for testing)."""
    global _lot_ledger, _costing_engine, _allocation_engine, _availability_checker

    _lot_ledger = None
    _costing_engine = None
    _allocation_engine = None
    _availability_checker = None
