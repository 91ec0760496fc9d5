"""Purchase order domain entities."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field

from src.core.entities.lot import LotPricing, LotStorage, Quantity


class PurchaseOrderStatus(str, Enum):
    """Purchase order lifecycle states."""

    DRAFT = "draft"
    ORDERED = "ordered"
    RECEIVED = "received"
    CANCELLED = "cancelled"


class PurchaseOrderItem(BaseModel):
    """One order line; becomes exactly one lot on receipt."""

    id: int | None = None
    material_id: int
    quantity: Quantity = Field(default_factory=Quantity)
    pricing: LotPricing = Field(default_factory=LotPricing)
    storage: LotStorage = Field(default_factory=LotStorage)
    lot_id: int | None = None
    notes: str | None = None


class PurchaseOrder(BaseModel):
    """An order placed with a supplier."""

    id: int | None = None
    po_number: str | None = None
    supplier_id: int
    order_date: date = Field(default_factory=date.today)
    expected_delivery_date: date | None = None
    status: PurchaseOrderStatus = PurchaseOrderStatus.DRAFT
    items: list[PurchaseOrderItem] = Field(default_factory=list)

    invoice_number: str | None = None
    invoice_date: date | None = None
    invoice_url: str | None = None

    total_amount: float = 0.0
    notes: str | None = None
    received_at: datetime | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def recalculate_total(self) -> float:
        """Sum item costs into total_amount."""
        self.total_amount = sum(item.pricing.total_cost for item in self.items)
        return self.total_amount
