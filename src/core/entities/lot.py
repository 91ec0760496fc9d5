"""Material lot domain entities."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field

# Float slack for weight comparisons; smaller residues count as zero
EPSILON = 1e-9


class StorageLocation(str, Enum):
    """Where a received lot is kept on the shop floor."""

    SAC = "sac"
    DRUM = "drum"
    BOBBIN = "bobbin"
    RACK = "rack"
    WAREHOUSE = "warehouse"


class Quantity(BaseModel):
    """Weight in kg, length in meters."""

    weight: float = 0.0
    length: float = 0.0


class LotPricing(BaseModel):
    """Purchase pricing captured at intake."""

    price_per_kg: float = Field(default=0.0, ge=0)
    price_per_km: float | None = Field(default=None, ge=0)  # metals only
    total_cost: float = Field(default=0.0, ge=0)
    currency: str = "INR"


class LotStorage(BaseModel):
    """Storage placement of a lot."""

    location: StorageLocation | None = None
    location_details: str | None = None
    container_count: int = Field(default=1, ge=1)


class MaterialLot(BaseModel):
    """One procurement batch of a single material."""

    id: int | None = None
    lot_number: str | None = None
    material_id: int
    supplier_id: int
    purchase_date: date

    initial_quantity: Quantity
    remaining_quantity: Quantity = Field(default_factory=Quantity)
    allocated_quantity: Quantity = Field(default_factory=Quantity)

    pricing: LotPricing = Field(default_factory=LotPricing)
    storage: LotStorage = Field(default_factory=LotStorage)

    invoice_number: str | None = None
    invoice_date: date | None = None
    po_number: str | None = None
    notes: str | None = None

    is_active: bool = True
    is_fully_consumed: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def available_weight(self) -> float:
        """Unreserved weight that can still be allocated."""
        return self.remaining_quantity.weight - self.allocated_quantity.weight


class LotDelta(BaseModel):
    """Signed adjustment applied atomically to a lot's running quantities."""

    remaining_weight: float = 0.0
    allocated_weight: float = 0.0
    remaining_length: float = 0.0


class LotFilter(BaseModel):
    """Filters for browsing lots."""

    material_id: int | None = None
    supplier_id: int | None = None
    is_fully_consumed: bool | None = None
    search: str | None = None
    start_date: date | None = None
    end_date: date | None = None
