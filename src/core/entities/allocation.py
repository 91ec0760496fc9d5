"""Allocation domain entities and requirement normalization."""

from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from src.core.exceptions import ValidationError


class MaterialRequirement(BaseModel):
    """How much of one material a consumer needs, in kg."""

    material_id: int
    required_weight: float = Field(default=0.0, ge=0)
    material_name: str | None = None


class LotAllocation(BaseModel):
    """Weight reserved from one lot by a single allocate call."""

    lot_id: int
    lot_number: str | None = None
    material_id: int
    allocated_quantity: float
    unit: str = "kg"


class AllocationRecord(BaseModel):
    """A work order's claim against a specific lot."""

    id: int | None = None
    work_order_id: int | None = None
    material_id: int
    lot_id: int
    material_name: str | None = None
    allocated_quantity: float
    consumed_quantity: float = 0.0
    is_consumed: bool = False
    allocated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def outstanding_quantity(self) -> float:
        """Reserved weight not yet converted to usage."""
        return max(0.0, self.allocated_quantity - self.consumed_quantity)


class AvailabilityDetail(BaseModel):
    """Aggregate stock position of one material against a requirement."""

    material_id: int
    material_name: str = "Unknown"
    category: str = ""
    required_weight: float = 0.0
    total_remaining: float = 0.0
    total_allocated: float = 0.0
    total_available: float = 0.0
    lot_count: int = 0
    is_available: bool = False
    is_sufficient: bool = False


class AvailabilityReport(BaseModel):
    """Availability across a set of requirements."""

    materials: list[AvailabilityDetail] = Field(default_factory=list)
    all_available: bool = True
    all_sufficient: bool = True


class LifoPreviewLine(BaseModel):
    """One lot's share of a previewed consumption."""

    lot_id: int
    lot_number: str | None = None
    supplier_id: int
    purchase_date: date
    consumed: float
    remaining: float
    price: float
    cost: float


class LifoPreview(BaseModel):
    """Which lots a consumption would draw from, newest first."""

    material_id: int
    requested_quantity: float
    unit: str
    lines: list[LifoPreviewLine] = Field(default_factory=list)
    total_cost: float = 0.0
    avg_cost_per_unit: float = 0.0
    feasible: bool = False


class ConsumedLot(BaseModel):
    """Weight drawn from one lot by a direct consumption."""

    lot_id: int
    lot_number: str | None = None
    consumed: float
    price: float
    cost: float


class ConsumptionResult(BaseModel):
    """Outcome of a direct LIFO consumption."""

    material_id: int
    consumed_lots: list[ConsumedLot] = Field(default_factory=list)
    total_cost: float = 0.0
    avg_cost_per_kg: float = 0.0


def _pick(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return None


def normalize_requirements(
    raw: Iterable[MaterialRequirement | Mapping[str, Any]],
) -> list[MaterialRequirement]:
    """
    Normalize loosely-shaped requirement payloads into MaterialRequirement.

    Accepts camelCase or snake_case keys. Requirements for the same material
    are merged, keeping first-seen order.

    Raises:
        ValidationError: If a material id is missing or a weight is invalid.
    """
    merged: dict[int, MaterialRequirement] = {}

    for index, item in enumerate(raw):
        if isinstance(item, MaterialRequirement):
            requirement = item
        else:
            material_id = _pick(item, "material_id", "materialId")
            if material_id is None:
                raise ValidationError(f"requirements[{index}].material_id", "is required")
            try:
                material_id = int(material_id)
            except (TypeError, ValueError):
                raise ValidationError(
                    f"requirements[{index}].material_id", "must be an integer", material_id
                )

            weight = _pick(item, "required_weight", "requiredWeight") or 0
            try:
                weight = float(weight)
            except (TypeError, ValueError):
                raise ValidationError(
                    f"requirements[{index}].required_weight", "must be a number", weight
                )
            if weight < 0:
                raise ValidationError(
                    f"requirements[{index}].required_weight", "must not be negative", weight
                )

            requirement = MaterialRequirement(
                material_id=material_id,
                required_weight=weight,
                material_name=_pick(item, "material_name", "materialName"),
            )

        existing = merged.get(requirement.material_id)
        if existing is None:
            merged[requirement.material_id] = requirement.model_copy()
        else:
            existing.required_weight += requirement.required_weight
            existing.material_name = existing.material_name or requirement.material_name

    return list(merged.values())
