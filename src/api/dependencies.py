"""
Dependency injection container for FastAPI.

Provides service, store and use case instances to route handlers.
"""

from functools import lru_cache

from src.application.services import (
    get_allocation_engine,
    get_availability_checker,
    get_costing_engine,
    get_lot_ledger,
)
from src.application.use_cases import (
    AddReprocessUseCase,
    AllocateMaterialsUseCase,
    CancelPurchaseOrderUseCase,
    CreateLotUseCase,
    CreateMaterialUseCase,
    CreatePurchaseOrderUseCase,
    DeallocateLotsUseCase,
    DeleteMaterialUseCase,
    DeleteWorkOrderUseCase,
    InventorySummaryUseCase,
    ProvisionWorkOrderUseCase,
    ReceivePurchaseOrderUseCase,
    RecordLotUsageUseCase,
    RecordMaterialUsageUseCase,
    RemoveLotUseCase,
    UpdateLotUseCase,
    UpdateMaterialUseCase,
    UpdatePurchaseOrderUseCase,
    UpdateWorkOrderUseCase,
)
from src.config import Settings, get_settings
from src.core.services import (
    AllocationEngine,
    AvailabilityChecker,
    CostingEngine,
    LotLedger,
)
from src.infrastructure.storage.sqlite import (
    SQLiteLotStore,
    SQLiteMaterialStore,
    SQLitePurchaseOrderStore,
    SQLiteQuotationStore,
    SQLiteWorkOrderStore,
    get_lot_store,
    get_material_store,
    get_purchase_order_store,
    get_quotation_store,
    get_work_order_store,
)


@lru_cache
def get_app_settings() -> Settings:
    """Get cached application settings."""
    return get_settings()


# Service dependencies
async def get_ledger() -> LotLedger:
    return await get_lot_ledger()


async def get_costing() -> CostingEngine:
    return await get_costing_engine()


async def get_engine() -> AllocationEngine:
    return await get_allocation_engine()


async def get_checker() -> AvailabilityChecker:
    return await get_availability_checker()


# Store dependencies
async def get_mat_store() -> SQLiteMaterialStore:
    """Get material store."""
    return await get_material_store()


async def get_lot_store_dep() -> SQLiteLotStore:
    """Get lot store."""
    return await get_lot_store()


async def get_wo_store() -> SQLiteWorkOrderStore:
    """Get work order store."""
    return await get_work_order_store()


async def get_po_store() -> SQLitePurchaseOrderStore:
    """Get purchase order store."""
    return await get_purchase_order_store()


async def get_quote_store() -> SQLiteQuotationStore:
    """Get quotation store."""
    return await get_quotation_store()


# Material use cases
def get_create_material_use_case() -> CreateMaterialUseCase:
    return CreateMaterialUseCase()


def get_update_material_use_case() -> UpdateMaterialUseCase:
    return UpdateMaterialUseCase()


def get_delete_material_use_case() -> DeleteMaterialUseCase:
    return DeleteMaterialUseCase()


def get_inventory_summary_use_case() -> InventorySummaryUseCase:
    return InventorySummaryUseCase()


def get_add_reprocess_use_case() -> AddReprocessUseCase:
    return AddReprocessUseCase()


# Lot use cases
def get_create_lot_use_case() -> CreateLotUseCase:
    return CreateLotUseCase()


def get_update_lot_use_case() -> UpdateLotUseCase:
    return UpdateLotUseCase()


def get_remove_lot_use_case() -> RemoveLotUseCase:
    return RemoveLotUseCase()


# Purchase order use cases
def get_create_purchase_order_use_case() -> CreatePurchaseOrderUseCase:
    return CreatePurchaseOrderUseCase()


def get_update_purchase_order_use_case() -> UpdatePurchaseOrderUseCase:
    return UpdatePurchaseOrderUseCase()


def get_cancel_purchase_order_use_case() -> CancelPurchaseOrderUseCase:
    return CancelPurchaseOrderUseCase()


def get_receive_purchase_order_use_case() -> ReceivePurchaseOrderUseCase:
    return ReceivePurchaseOrderUseCase()


# Allocation and work order use cases
def get_allocate_materials_use_case() -> AllocateMaterialsUseCase:
    return AllocateMaterialsUseCase()


def get_provision_work_order_use_case() -> ProvisionWorkOrderUseCase:
    return ProvisionWorkOrderUseCase()


def get_update_work_order_use_case() -> UpdateWorkOrderUseCase:
    return UpdateWorkOrderUseCase()


def get_delete_work_order_use_case() -> DeleteWorkOrderUseCase:
    return DeleteWorkOrderUseCase()


def get_record_usage_use_case() -> RecordMaterialUsageUseCase:
    return RecordMaterialUsageUseCase()


def get_deallocate_lots_use_case() -> DeallocateLotsUseCase:
    return DeallocateLotsUseCase()


def get_record_lot_usage_use_case() -> RecordLotUsageUseCase:
    return RecordLotUsageUseCase()
