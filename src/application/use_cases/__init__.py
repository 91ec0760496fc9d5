"""Application use cases."""

from src.application.use_cases.add_reprocess import AddReprocessUseCase
from src.application.use_cases.allocate_materials import AllocateMaterialsUseCase
from src.application.use_cases.delete_work_order import (
    DeleteWorkOrderResult,
    DeleteWorkOrderUseCase,
)
from src.application.use_cases.manage_lots import (
    CreateLotUseCase,
    RemoveLotResult,
    RemoveLotUseCase,
    UpdateLotUseCase,
)
from src.application.use_cases.manage_materials import (
    CreateMaterialUseCase,
    DeleteMaterialUseCase,
    InventorySummaryUseCase,
    UpdateMaterialUseCase,
)
from src.application.use_cases.manage_purchase_order import (
    CancelPurchaseOrderUseCase,
    CreatePurchaseOrderUseCase,
    UpdatePurchaseOrderUseCase,
)
from src.application.use_cases.manage_reservations import (
    DeallocateLotsUseCase,
    RecordLotUsageUseCase,
)
from src.application.use_cases.provision_work_order import (
    ProvisionResult,
    ProvisionWorkOrderUseCase,
)
from src.application.use_cases.receive_purchase_order import (
    ReceivePurchaseOrderResult,
    ReceivePurchaseOrderUseCase,
)
from src.application.use_cases.record_material_usage import (
    RecordMaterialUsageUseCase,
    RecordUsageResult,
)
from src.application.use_cases.update_work_order import UpdateWorkOrderUseCase

__all__ = [
    "CreateMaterialUseCase",
    "UpdateMaterialUseCase",
    "DeleteMaterialUseCase",
    "InventorySummaryUseCase",
    "AddReprocessUseCase",
    "CreateLotUseCase",
    "UpdateLotUseCase",
    "RemoveLotUseCase",
    "RemoveLotResult",
    "CreatePurchaseOrderUseCase",
    "UpdatePurchaseOrderUseCase",
    "CancelPurchaseOrderUseCase",
    "ReceivePurchaseOrderUseCase",
    "ReceivePurchaseOrderResult",
    "AllocateMaterialsUseCase",
    "ProvisionWorkOrderUseCase",
    "ProvisionResult",
    "DeleteWorkOrderUseCase",
    "DeleteWorkOrderResult",
    "RecordMaterialUsageUseCase",
    "RecordUsageResult",
    "DeallocateLotsUseCase",
    "RecordLotUsageUseCase",
    "UpdateWorkOrderUseCase",
]
