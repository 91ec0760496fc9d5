"""Data Transfer Objects for API layer.

Request DTOs: Validate and parse incoming API requests.
Response DTOs: Structure and serialize API responses.

These are the ONLY contracts between API handlers and use cases.
"""

from src.application.dto.requests import (
    AddReprocessRequest,
    AllocateMaterialsRequest,
    CheckAvailabilityRequest,
    ConsumeMaterialRequest,
    CreateLotRequest,
    CreateMaterialRequest,
    CreatePurchaseOrderRequest,
    CreateQuotationRequest,
    DeallocateMaterialsRequest,
    DeallocationItemRequest,
    LotUsageRequest,
    MaterialRequirementRequest,
    ProvisionWorkOrderRequest,
    ReceivePurchaseOrderRequest,
    RecordUsageRequest,
    UpdateLotRequest,
    UpdateMaterialRequest,
    UpdatePurchaseOrderRequest,
    UpdateWorkOrderRequest,
)
from src.application.dto.responses import (
    AllocateMaterialsResponse,
    AvailabilityResponse,
    ConsumptionResponse,
    DeallocationResponse,
    ErrorResponse,
    HealthResponse,
    InventorySummaryResponse,
    LifoPreviewResponse,
    LotListResponse,
    LotRemovalResponse,
    LotResponse,
    MaterialListResponse,
    MaterialResponse,
    PurchaseOrderListResponse,
    PurchaseOrderResponse,
    QuotationResponse,
    ReceivePurchaseOrderResponse,
    UsageResponse,
    WorkOrderDeleteResponse,
    WorkOrderListResponse,
    WorkOrderResponse,
)

__all__ = [
    # Requests
    "AddReprocessRequest",
    "AllocateMaterialsRequest",
    "CheckAvailabilityRequest",
    "ConsumeMaterialRequest",
    "CreateLotRequest",
    "CreateMaterialRequest",
    "CreatePurchaseOrderRequest",
    "CreateQuotationRequest",
    "DeallocateMaterialsRequest",
    "DeallocationItemRequest",
    "MaterialRequirementRequest",
    "ProvisionWorkOrderRequest",
    "ReceivePurchaseOrderRequest",
    "LotUsageRequest",
    "RecordUsageRequest",
    "UpdateLotRequest",
    "UpdateMaterialRequest",
    "UpdatePurchaseOrderRequest",
    "UpdateWorkOrderRequest",
    # Responses
    "AllocateMaterialsResponse",
    "AvailabilityResponse",
    "ConsumptionResponse",
    "DeallocationResponse",
    "ErrorResponse",
    "HealthResponse",
    "InventorySummaryResponse",
    "LifoPreviewResponse",
    "LotListResponse",
    "LotRemovalResponse",
    "LotResponse",
    "MaterialListResponse",
    "MaterialResponse",
    "PurchaseOrderListResponse",
    "PurchaseOrderResponse",
    "QuotationResponse",
    "ReceivePurchaseOrderResponse",
    "UsageResponse",
    "WorkOrderDeleteResponse",
    "WorkOrderListResponse",
    "WorkOrderResponse",
]
