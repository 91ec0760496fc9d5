"""Material catalog domain entities."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field


class MaterialCategory(str, Enum):
    """Raw material families."""

    METAL = "metal"
    PLASTIC = "plastic"
    INSULATION = "insulation"
    OTHER = "other"


class MeasurementType(str, Enum):
    """How a material is measured on receipt."""

    WEIGHT = "weight"
    LENGTH = "length"
    BOTH = "both"


# Material code prefixes per category
CATEGORY_PREFIX: dict[MaterialCategory, str] = {
    MaterialCategory.METAL: "MTL",
    MaterialCategory.PLASTIC: "PLS",
    MaterialCategory.INSULATION: "INS",
    MaterialCategory.OTHER: "OTH",
}


class InventorySnapshot(BaseModel):
    """Cached projection of a material's live lots.

    Written only by the costing engine; never the source of truth.
    """

    total_weight: float = 0.0
    total_length: float = 0.0
    avg_price_per_kg: float = 0.0
    avg_price_per_km: float = 0.0
    last_price_per_kg: float = 0.0
    last_price_per_km: float = 0.0
    last_purchase_date: date | None = None
    active_lots: int = 0


class ReprocessInventory(BaseModel):
    """Recycled scrap, tracked as a single weighted-average bucket."""

    total_weight: float = 0.0
    price_per_kg: float = 0.0

    @property
    def total_value(self) -> float:
        return self.total_weight * self.price_per_kg


class Material(BaseModel):
    """A catalog entry aggregating all lots of one kind."""

    id: int | None = None
    material_code: str | None = None
    material_type_id: int
    name: str
    category: MaterialCategory
    measurement_type: MeasurementType = MeasurementType.WEIGHT
    reorder_level: float = 0.0
    is_active: bool = True
    notes: str | None = None

    inventory: InventorySnapshot = Field(default_factory=InventorySnapshot)
    reprocess_inventory: ReprocessInventory = Field(default_factory=ReprocessInventory)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_low_stock(self) -> bool:
        return self.inventory.total_weight < self.reorder_level

    @property
    def inventory_value(self) -> float:
        return self.inventory.total_weight * self.inventory.avg_price_per_kg
