"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases.

Allocation payloads accept both snake_case and the camelCase keys used by
the front office (``materialId``, ``requiredWeight``, ...).
"""

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.config import get_settings
from src.core.entities.lot import StorageLocation
from src.core.entities.material import MaterialCategory, MeasurementType
from src.core.entities.purchase_order import PurchaseOrderStatus
from src.core.entities.quotation import QuotationStatus
from src.core.entities.work_order import WorkOrderStatus


class _AliasedRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# Shared lot value shapes


class QuantityRequest(BaseModel):
    """Weight in kg, length in meters."""

    weight: float = Field(default=0.0, ge=0, description="Weight in kg")
    length: float = Field(default=0.0, ge=0, description="Length in meters")


class PricingRequest(BaseModel):
    price_per_kg: float = Field(default=0.0, ge=0, description="Price per kg")
    price_per_km: float | None = Field(
        default=None, ge=0, description="Price per km (metals sold by length)"
    )
    total_cost: float = Field(
        default=0.0, ge=0, description="Total cost; derived from weight x price when 0"
    )
    currency: str = Field(
        default_factory=lambda: get_settings().inventory.currency, max_length=3
    )


class StorageRequest(BaseModel):
    location: StorageLocation | None = Field(
        default=None,
        description="Storage location",
        examples=["drum", "bobbin"],
    )
    location_details: str | None = Field(default=None, description="Rack/bay details")
    container_count: int = Field(default=1, ge=1)


# Materials


class CreateMaterialRequest(BaseModel):
    """Request to add a material to the catalog."""

    material_type_id: int = Field(..., description="Material type reference")
    name: str = Field(..., min_length=1, max_length=200)
    category: MaterialCategory = Field(..., examples=["metal", "plastic"])
    measurement_type: MeasurementType = Field(default=MeasurementType.WEIGHT)
    reorder_level: float = Field(default=0.0, ge=0, description="Low-stock threshold in kg")
    notes: str | None = None


class UpdateMaterialRequest(BaseModel):
    """Partial material update. Inventory figures are never accepted here."""

    material_type_id: int | None = None
    name: str | None = Field(default=None, min_length=1, max_length=200)
    category: MaterialCategory | None = None
    measurement_type: MeasurementType | None = None
    reorder_level: float | None = Field(default=None, ge=0)
    is_active: bool | None = None
    notes: str | None = None


class ConsumeMaterialRequest(BaseModel):
    """Consume unreserved stock directly, newest lots first."""

    quantity: float = Field(..., gt=0, description="Weight to consume in kg")


class AddReprocessRequest(BaseModel):
    """Add recycled scrap to a material's reprocess bucket."""

    weight: float = Field(..., gt=0, description="Weight in kg")
    price_per_kg: float = Field(..., ge=0, description="Valuation price per kg")


# Lots


class CreateLotRequest(BaseModel):
    """Request to record a procurement lot."""

    material_id: int
    supplier_id: int
    purchase_date: date = Field(default_factory=date.today)
    initial_quantity: QuantityRequest
    pricing: PricingRequest = Field(default_factory=PricingRequest)
    storage: StorageRequest
    invoice_number: str | None = None
    invoice_date: date | None = None
    po_number: str | None = None
    notes: str | None = None


class UpdateLotRequest(BaseModel):
    """Edit lot metadata. Quantities cannot be changed through this request."""

    supplier_id: int | None = None
    purchase_date: date | None = None
    pricing: PricingRequest | None = None
    storage: StorageRequest | None = None
    invoice_number: str | None = None
    invoice_date: date | None = None
    po_number: str | None = None
    notes: str | None = None
    is_active: bool | None = None


# Purchase orders


class PurchaseOrderItemRequest(BaseModel):
    material_id: int
    quantity: QuantityRequest
    pricing: PricingRequest = Field(default_factory=PricingRequest)
    storage: StorageRequest = Field(default_factory=StorageRequest)
    notes: str | None = None


class CreatePurchaseOrderRequest(BaseModel):
    """Request to place a purchase order."""

    supplier_id: int
    order_date: date = Field(default_factory=date.today)
    expected_delivery_date: date | None = None
    status: PurchaseOrderStatus = Field(
        default=PurchaseOrderStatus.DRAFT, description="draft or ordered"
    )
    items: list[PurchaseOrderItemRequest] = Field(..., min_length=1)
    invoice_number: str | None = None
    invoice_date: date | None = None
    invoice_url: str | None = None
    notes: str | None = None


class UpdatePurchaseOrderRequest(BaseModel):
    """Partial update of an unreceived purchase order."""

    supplier_id: int | None = None
    order_date: date | None = None
    expected_delivery_date: date | None = None
    status: PurchaseOrderStatus | None = None
    items: list[PurchaseOrderItemRequest] | None = Field(default=None, min_length=1)
    invoice_number: str | None = None
    invoice_date: date | None = None
    invoice_url: str | None = None
    notes: str | None = None


class ReceivePurchaseOrderRequest(BaseModel):
    """Invoice details captured when goods arrive."""

    invoice_number: str | None = None
    invoice_date: date | None = None
    invoice_url: str | None = None


# Quotations


class CreateQuotationRequest(BaseModel):
    customer_id: int | None = None
    status: QuotationStatus = QuotationStatus.ENQUIRED
    cable_length: float = Field(default=100.0, gt=0, description="Cable length in meters")
    notes: str = ""


# Allocations


class MaterialRequirementRequest(_AliasedRequest):
    """Weight of one material needed, in kg."""

    material_id: int = Field(..., alias="materialId")
    required_weight: float = Field(default=0.0, ge=0, alias="requiredWeight")
    material_name: str | None = Field(default=None, alias="materialName")


class CheckAvailabilityRequest(BaseModel):
    materials: list[MaterialRequirementRequest] = Field(..., min_length=1)


class AllocateMaterialsRequest(BaseModel):
    """Reserve several materials at once; all or nothing."""

    materials: list[MaterialRequirementRequest] = Field(..., min_length=1)


class DeallocationItemRequest(_AliasedRequest):
    lot_id: int = Field(..., alias="materialLotId")
    allocated_quantity: float = Field(..., ge=0, alias="allocatedQuantity")


class DeallocateMaterialsRequest(BaseModel):
    allocations: list[DeallocationItemRequest] = Field(..., min_length=1)


class RecordUsageRequest(_AliasedRequest):
    """Convert reserved weight on a lot into consumption."""

    lot_id: int = Field(..., alias="materialLotId")
    quantity_used: float = Field(..., gt=0, alias="quantityUsed")


class LotUsageRequest(RecordUsageRequest):
    """Usage on a lot, optionally settled against a work order."""

    work_order_id: int | None = Field(default=None, alias="workOrderId")


# Work orders


class ProvisionWorkOrderRequest(_AliasedRequest):
    """Create a work order from a quotation and reserve its materials."""

    quote_id: int = Field(..., alias="quoteId")
    materials: list[MaterialRequirementRequest] = Field(
        default_factory=list,
        description="Precomputed material requirements for the quotation",
    )
    process_assignments: list[dict[str, Any]] = Field(
        default_factory=list, alias="processAssignments"
    )
    notes: str = ""


class UpdateWorkOrderRequest(_AliasedRequest):
    status: WorkOrderStatus | None = None
    process_assignments: list[dict[str, Any]] | None = Field(
        default=None, alias="processAssignments"
    )
    notes: str | None = None


def requirements_payload(items: list[MaterialRequirementRequest]) -> list[dict[str, Any]]:
    """Flatten requirement DTOs into the mapping shape the core normalizes."""
    return [item.model_dump() for item in items]
