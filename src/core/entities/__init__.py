"""Core domain entities."""

from src.core.entities.allocation import (
    AllocationRecord,
    AvailabilityDetail,
    AvailabilityReport,
    ConsumedLot,
    ConsumptionResult,
    LifoPreview,
    LifoPreviewLine,
    LotAllocation,
    MaterialRequirement,
    normalize_requirements,
)
from src.core.entities.lot import (
    LotDelta,
    LotFilter,
    LotPricing,
    LotStorage,
    MaterialLot,
    Quantity,
    StorageLocation,
)
from src.core.entities.material import (
    CATEGORY_PREFIX,
    InventorySnapshot,
    Material,
    MaterialCategory,
    MeasurementType,
    ReprocessInventory,
)
from src.core.entities.purchase_order import (
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
)
from src.core.entities.quotation import Quotation, QuotationStatus
from src.core.entities.work_order import WorkOrder, WorkOrderStatus

__all__ = [
    # Lots
    "LotDelta",
    "LotFilter",
    "LotPricing",
    "LotStorage",
    "MaterialLot",
    "Quantity",
    "StorageLocation",
    # Materials
    "CATEGORY_PREFIX",
    "InventorySnapshot",
    "Material",
    "MaterialCategory",
    "MeasurementType",
    "ReprocessInventory",
    # Allocation
    "AllocationRecord",
    "AvailabilityDetail",
    "AvailabilityReport",
    "ConsumedLot",
    "ConsumptionResult",
    "LifoPreview",
    "LifoPreviewLine",
    "LotAllocation",
    "MaterialRequirement",
    "normalize_requirements",
    # Orders
    "PurchaseOrder",
    "PurchaseOrderItem",
    "PurchaseOrderStatus",
    "Quotation",
    "QuotationStatus",
    "WorkOrder",
    "WorkOrderStatus",
]
