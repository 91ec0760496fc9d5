"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.

Quantities and money are rounded only here, at presentation; the core
keeps full float precision.
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from src.config import get_settings
from src.core.entities.allocation import (
    AllocationRecord,
    AvailabilityDetail,
    AvailabilityReport,
    ConsumptionResult,
    LifoPreview,
    LotAllocation,
)
from src.core.entities.lot import MaterialLot, Quantity
from src.core.entities.material import Material
from src.core.entities.purchase_order import PurchaseOrder
from src.core.entities.quotation import Quotation
from src.core.entities.work_order import WorkOrder


def present(value: float | None) -> float | None:
    """Round a quantity or amount for display."""
    if value is None:
        return None
    return round(value, get_settings().inventory.presentation_decimals)


class ProviderHealthResponse(BaseModel):
    """Dependency health status."""

    name: str
    available: bool
    latency_ms: float | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: ProviderHealthResponse | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. LOT_NOT_FOUND)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)


# --- Lots ---


class QuantityResponse(BaseModel):
    weight: float
    length: float

    @classmethod
    def from_entity(cls, quantity: Quantity) -> "QuantityResponse":
        return cls(weight=present(quantity.weight), length=present(quantity.length))


class PricingResponse(BaseModel):
    price_per_kg: float
    price_per_km: float | None = None
    total_cost: float
    currency: str


class StorageResponse(BaseModel):
    location: str | None = None
    location_details: str | None = None
    container_count: int = 1


class LotResponse(BaseModel):
    """Material lot response DTO."""

    id: int
    lot_number: str | None = None
    material_id: int
    supplier_id: int
    purchase_date: date
    initial_quantity: QuantityResponse
    remaining_quantity: QuantityResponse
    allocated_quantity: QuantityResponse
    available_weight: float
    pricing: PricingResponse
    storage: StorageResponse
    invoice_number: str | None = None
    invoice_date: date | None = None
    po_number: str | None = None
    notes: str | None = None
    is_active: bool
    is_fully_consumed: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, lot: MaterialLot) -> "LotResponse":
        return cls(
            id=lot.id,  # type: ignore[arg-type]
            lot_number=lot.lot_number,
            material_id=lot.material_id,
            supplier_id=lot.supplier_id,
            purchase_date=lot.purchase_date,
            initial_quantity=QuantityResponse.from_entity(lot.initial_quantity),
            remaining_quantity=QuantityResponse.from_entity(lot.remaining_quantity),
            allocated_quantity=QuantityResponse.from_entity(lot.allocated_quantity),
            available_weight=present(lot.available_weight),
            pricing=PricingResponse(
                price_per_kg=present(lot.pricing.price_per_kg),
                price_per_km=present(lot.pricing.price_per_km),
                total_cost=present(lot.pricing.total_cost),
                currency=lot.pricing.currency,
            ),
            storage=StorageResponse(
                location=lot.storage.location.value if lot.storage.location else None,
                location_details=lot.storage.location_details,
                container_count=lot.storage.container_count,
            ),
            invoice_number=lot.invoice_number,
            invoice_date=lot.invoice_date,
            po_number=lot.po_number,
            notes=lot.notes,
            is_active=lot.is_active,
            is_fully_consumed=lot.is_fully_consumed,
            created_at=lot.created_at,
            updated_at=lot.updated_at,
        )


class LotListResponse(BaseModel):
    lots: list[LotResponse]
    total: int


class LotRemovalResponse(BaseModel):
    """Outcome of deleting a lot."""

    lot_id: int
    deactivated: bool = Field(
        ..., description="True when the lot still had reservations and was only deactivated"
    )
    message: str


class LifoPreviewLineResponse(BaseModel):
    lot_id: int
    lot_number: str | None = None
    supplier_id: int
    purchase_date: date
    consumed: float
    remaining: float
    price: float
    cost: float


class LifoPreviewResponse(BaseModel):
    material_id: int
    requested_quantity: float
    unit: str
    lines: list[LifoPreviewLineResponse]
    total_cost: float
    avg_cost_per_unit: float
    feasible: bool

    @classmethod
    def from_entity(cls, preview: LifoPreview) -> "LifoPreviewResponse":
        return cls(
            material_id=preview.material_id,
            requested_quantity=present(preview.requested_quantity),
            unit=preview.unit,
            lines=[
                LifoPreviewLineResponse(
                    lot_id=line.lot_id,
                    lot_number=line.lot_number,
                    supplier_id=line.supplier_id,
                    purchase_date=line.purchase_date,
                    consumed=present(line.consumed),
                    remaining=present(line.remaining),
                    price=present(line.price),
                    cost=present(line.cost),
                )
                for line in preview.lines
            ],
            total_cost=present(preview.total_cost),
            avg_cost_per_unit=present(preview.avg_cost_per_unit),
            feasible=preview.feasible,
        )


# --- Materials ---


class InventorySnapshotResponse(BaseModel):
    total_weight: float
    total_length: float
    avg_price_per_kg: float
    avg_price_per_km: float
    last_price_per_kg: float
    last_price_per_km: float
    last_purchase_date: date | None = None
    active_lots: int


class ReprocessInventoryResponse(BaseModel):
    total_weight: float
    price_per_kg: float
    total_value: float


class MaterialResponse(BaseModel):
    """Material catalog entry with its inventory snapshot."""

    id: int
    material_code: str | None = None
    material_type_id: int
    name: str
    category: str
    measurement_type: str
    reorder_level: float
    is_active: bool
    is_low_stock: bool
    notes: str | None = None
    inventory: InventorySnapshotResponse
    inventory_value: float
    reprocess_inventory: ReprocessInventoryResponse
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, material: Material) -> "MaterialResponse":
        inv = material.inventory
        reprocess = material.reprocess_inventory
        return cls(
            id=material.id,  # type: ignore[arg-type]
            material_code=material.material_code,
            material_type_id=material.material_type_id,
            name=material.name,
            category=material.category.value,
            measurement_type=material.measurement_type.value,
            reorder_level=present(material.reorder_level),
            is_active=material.is_active,
            is_low_stock=material.is_low_stock,
            notes=material.notes,
            inventory=InventorySnapshotResponse(
                total_weight=present(inv.total_weight),
                total_length=present(inv.total_length),
                avg_price_per_kg=present(inv.avg_price_per_kg),
                avg_price_per_km=present(inv.avg_price_per_km),
                last_price_per_kg=present(inv.last_price_per_kg),
                last_price_per_km=present(inv.last_price_per_km),
                last_purchase_date=inv.last_purchase_date,
                active_lots=inv.active_lots,
            ),
            inventory_value=present(material.inventory_value),
            reprocess_inventory=ReprocessInventoryResponse(
                total_weight=present(reprocess.total_weight),
                price_per_kg=present(reprocess.price_per_kg),
                total_value=present(reprocess.total_value),
            ),
            created_at=material.created_at,
            updated_at=material.updated_at,
        )


class MaterialListResponse(BaseModel):
    materials: list[MaterialResponse]
    total: int


class CategorySummaryResponse(BaseModel):
    count: int
    total_weight: float
    total_value: float


class InventorySummaryResponse(BaseModel):
    """Catalog valuation at weighted-average prices."""

    total_materials: int
    total_value: float
    low_stock: int
    by_category: dict[str, CategorySummaryResponse]


class ConsumedLotResponse(BaseModel):
    lot_id: int
    lot_number: str | None = None
    consumed: float
    price: float
    cost: float


class ConsumptionResponse(BaseModel):
    material_id: int
    consumed_lots: list[ConsumedLotResponse]
    total_cost: float
    avg_cost_per_kg: float

    @classmethod
    def from_entity(cls, result: ConsumptionResult) -> "ConsumptionResponse":
        return cls(
            material_id=result.material_id,
            consumed_lots=[
                ConsumedLotResponse(
                    lot_id=lot.lot_id,
                    lot_number=lot.lot_number,
                    consumed=present(lot.consumed),
                    price=present(lot.price),
                    cost=present(lot.cost),
                )
                for lot in result.consumed_lots
            ],
            total_cost=present(result.total_cost),
            avg_cost_per_kg=present(result.avg_cost_per_kg),
        )


# --- Allocations ---


class LotAllocationResponse(BaseModel):
    lot_id: int
    lot_number: str | None = None
    material_id: int
    allocated_quantity: float
    unit: str = "kg"

    @classmethod
    def from_entity(cls, allocation: LotAllocation) -> "LotAllocationResponse":
        return cls(
            lot_id=allocation.lot_id,
            lot_number=allocation.lot_number,
            material_id=allocation.material_id,
            allocated_quantity=present(allocation.allocated_quantity),
            unit=allocation.unit,
        )


class AllocateMaterialsResponse(BaseModel):
    allocations: list[LotAllocationResponse]
    total_allocated: float


class AvailabilityDetailResponse(BaseModel):
    material_id: int
    material_name: str
    category: str
    required_weight: float
    total_remaining: float
    total_allocated: float
    total_available: float
    lot_count: int
    is_available: bool
    is_sufficient: bool

    @classmethod
    def from_entity(cls, detail: AvailabilityDetail) -> "AvailabilityDetailResponse":
        return cls(
            material_id=detail.material_id,
            material_name=detail.material_name,
            category=detail.category,
            required_weight=present(detail.required_weight),
            total_remaining=present(detail.total_remaining),
            total_allocated=present(detail.total_allocated),
            total_available=present(detail.total_available),
            lot_count=detail.lot_count,
            is_available=detail.is_available,
            is_sufficient=detail.is_sufficient,
        )


class AvailabilityResponse(BaseModel):
    materials: list[AvailabilityDetailResponse]
    all_available: bool
    all_sufficient: bool

    @classmethod
    def from_entity(cls, report: AvailabilityReport) -> "AvailabilityResponse":
        return cls(
            materials=[AvailabilityDetailResponse.from_entity(d) for d in report.materials],
            all_available=report.all_available,
            all_sufficient=report.all_sufficient,
        )


class DeallocationResponse(BaseModel):
    lots: list[LotResponse]


class UsageResponse(BaseModel):
    """Lot state after converting reserved weight into consumption."""

    lot: LotResponse
    quantity_used: float


# --- Work orders ---


class AllocationRecordResponse(BaseModel):
    id: int | None = None
    material_id: int
    lot_id: int
    material_name: str | None = None
    allocated_quantity: float
    consumed_quantity: float
    outstanding_quantity: float
    is_consumed: bool
    allocated_at: datetime

    @classmethod
    def from_entity(cls, record: AllocationRecord) -> "AllocationRecordResponse":
        return cls(
            id=record.id,
            material_id=record.material_id,
            lot_id=record.lot_id,
            material_name=record.material_name,
            allocated_quantity=present(record.allocated_quantity),
            consumed_quantity=present(record.consumed_quantity),
            outstanding_quantity=present(record.outstanding_quantity),
            is_consumed=record.is_consumed,
            allocated_at=record.allocated_at,
        )


class WorkOrderResponse(BaseModel):
    """Work order with its lot allocations."""

    id: int
    work_order_number: str | None = None
    quote_id: int
    quote_number: str
    customer_id: int | None = None
    cable_length: float
    status: str
    process_assignments: list[dict[str, Any]]
    allocated_materials: list[AllocationRecordResponse]
    notes: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, work_order: WorkOrder) -> "WorkOrderResponse":
        return cls(
            id=work_order.id,  # type: ignore[arg-type]
            work_order_number=work_order.work_order_number,
            quote_id=work_order.quote_id,
            quote_number=work_order.quote_number,
            customer_id=work_order.customer_id,
            cable_length=present(work_order.cable_length),
            status=work_order.status.value,
            process_assignments=work_order.process_assignments,
            allocated_materials=[
                AllocationRecordResponse.from_entity(r) for r in work_order.allocated_materials
            ],
            notes=work_order.notes,
            created_at=work_order.created_at,
            updated_at=work_order.updated_at,
        )


class WorkOrderListResponse(BaseModel):
    work_orders: list[WorkOrderResponse]
    total: int


class WorkOrderDeleteResponse(BaseModel):
    work_order_id: int
    released_allocations: int
    message: str


# --- Purchase orders ---


class PurchaseOrderItemResponse(BaseModel):
    id: int | None = None
    material_id: int
    quantity: QuantityResponse
    pricing: PricingResponse
    storage: StorageResponse
    lot_id: int | None = None
    notes: str | None = None


class PurchaseOrderResponse(BaseModel):
    """Purchase order with its line items."""

    id: int
    po_number: str | None = None
    supplier_id: int
    order_date: date
    expected_delivery_date: date | None = None
    status: str
    items: list[PurchaseOrderItemResponse]
    invoice_number: str | None = None
    invoice_date: date | None = None
    invoice_url: str | None = None
    total_amount: float
    notes: str | None = None
    received_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, order: PurchaseOrder) -> "PurchaseOrderResponse":
        return cls(
            id=order.id,  # type: ignore[arg-type]
            po_number=order.po_number,
            supplier_id=order.supplier_id,
            order_date=order.order_date,
            expected_delivery_date=order.expected_delivery_date,
            status=order.status.value,
            items=[
                PurchaseOrderItemResponse(
                    id=item.id,
                    material_id=item.material_id,
                    quantity=QuantityResponse.from_entity(item.quantity),
                    pricing=PricingResponse(
                        price_per_kg=present(item.pricing.price_per_kg),
                        price_per_km=present(item.pricing.price_per_km),
                        total_cost=present(item.pricing.total_cost),
                        currency=item.pricing.currency,
                    ),
                    storage=StorageResponse(
                        location=item.storage.location.value if item.storage.location else None,
                        location_details=item.storage.location_details,
                        container_count=item.storage.container_count,
                    ),
                    lot_id=item.lot_id,
                    notes=item.notes,
                )
                for item in order.items
            ],
            invoice_number=order.invoice_number,
            invoice_date=order.invoice_date,
            invoice_url=order.invoice_url,
            total_amount=present(order.total_amount),
            notes=order.notes,
            received_at=order.received_at,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class PurchaseOrderListResponse(BaseModel):
    purchase_orders: list[PurchaseOrderResponse]
    total: int


class ReceivePurchaseOrderResponse(BaseModel):
    purchase_order: PurchaseOrderResponse
    lots_created: list[LotResponse]


# --- Quotations ---


class QuotationResponse(BaseModel):
    id: int
    quote_number: str | None = None
    customer_id: int | None = None
    status: str
    cable_length: float
    notes: str
    work_order_id: int | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, quotation: Quotation) -> "QuotationResponse":
        return cls(
            id=quotation.id,  # type: ignore[arg-type]
            quote_number=quotation.quote_number,
            customer_id=quotation.customer_id,
            status=quotation.status.value,
            cable_length=quotation.cable_length,
            notes=quotation.notes,
            work_order_id=quotation.work_order_id,
            created_at=quotation.created_at,
            updated_at=quotation.updated_at,
        )
