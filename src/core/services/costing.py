"""
Costing engine.

Derives a material's inventory snapshot (totals, weighted-average and
last-purchase prices) from its live lots. The snapshot is memoized per
material and dropped whenever the lot ledger reports a mutation.
"""

from collections.abc import Iterable, Sequence

from pydantic import BaseModel, Field

from src.config import get_logger
from src.core.entities.lot import MaterialLot
from src.core.entities.material import InventorySnapshot, Material
from src.core.exceptions import MaterialNotFoundError
from src.core.interfaces.material_store import IMaterialStore
from src.core.services.lot_ledger import LotLedger

logger = get_logger(__name__)


def compute_inventory_snapshot(lots: Sequence[MaterialLot]) -> InventorySnapshot:
    """
    Project active lots into an inventory snapshot.

    Weight averages cover every lot; length averages only lots that carry
    both a length and a per-km price.
    """
    live = [lot for lot in lots if lot.is_active and not lot.is_fully_consumed]
    if not live:
        return InventorySnapshot()

    total_weight = 0.0
    weighted_kg = 0.0
    total_length = 0.0
    weighted_km = 0.0

    for lot in live:
        weight = lot.remaining_quantity.weight
        length = lot.remaining_quantity.length or 0.0

        total_weight += weight
        weighted_kg += weight * lot.pricing.price_per_kg

        if length > 0 and lot.pricing.price_per_km:
            total_length += length
            weighted_km += length * lot.pricing.price_per_km

    # Ties on purchase date keep the first lot seen
    last_lot = max(live, key=lambda lot: lot.purchase_date)

    return InventorySnapshot(
        total_weight=total_weight,
        total_length=total_length,
        avg_price_per_kg=weighted_kg / total_weight if total_weight > 0 else 0.0,
        avg_price_per_km=weighted_km / total_length if total_length > 0 else 0.0,
        last_price_per_kg=last_lot.pricing.price_per_kg,
        last_price_per_km=last_lot.pricing.price_per_km or 0.0,
        last_purchase_date=last_lot.purchase_date,
        active_lots=len(live),
    )


class CategorySummary(BaseModel):
    count: int = 0
    total_weight: float = 0.0
    total_value: float = 0.0


class InventorySummary(BaseModel):
    """Valuation of the active catalog."""

    total_materials: int = 0
    total_value: float = 0.0
    low_stock: int = 0
    by_category: dict[str, CategorySummary] = Field(default_factory=dict)


def summarize_inventory(materials: Iterable[Material]) -> InventorySummary:
    """Value active materials at their weighted-average price."""
    summary = InventorySummary()

    for material in materials:
        if not material.is_active:
            continue
        value = material.inventory_value
        summary.total_materials += 1
        summary.total_value += value
        if material.is_low_stock:
            summary.low_stock += 1

        bucket = summary.by_category.setdefault(material.category.value, CategorySummary())
        bucket.count += 1
        bucket.total_weight += material.inventory.total_weight
        bucket.total_value += value

    return summary


class CostingEngine:
    """Memoized weighted-average costing over the lot ledger."""

    def __init__(self, ledger: LotLedger, material_store: IMaterialStore):
        self._ledger = ledger
        self._material_store = material_store
        self._cache: dict[int, InventorySnapshot] = {}
        ledger.subscribe(self.invalidate)

    def invalidate(self, material_id: int) -> None:
        """Drop the memoized snapshot for a material."""
        self._cache.pop(material_id, None)

    async def get_snapshot(self, material_id: int) -> InventorySnapshot:
        """Current snapshot, computed from lots on a cache miss."""
        cached = self._cache.get(material_id)
        if cached is None:
            lots = await self._ledger.list_active_lots(material_id)
            cached = compute_inventory_snapshot(lots)
            self._cache[material_id] = cached
        return cached.model_copy()

    async def recompute_material_inventory(self, material_id: int) -> InventorySnapshot:
        """
        Recompute the snapshot from live lots and store it on the material.

        Idempotent: with no lot mutation in between, repeated calls write the
        same snapshot.
        """
        material = await self._material_store.get_material(material_id)
        if material is None:
            raise MaterialNotFoundError(material_id)

        self.invalidate(material_id)
        snapshot = await self.get_snapshot(material_id)
        await self._material_store.save_inventory_snapshot(material_id, snapshot)

        logger.info(
            "material_inventory_recomputed",
            material_id=material_id,
            total_weight=snapshot.total_weight,
            avg_price_per_kg=round(snapshot.avg_price_per_kg, 4),
            active_lots=snapshot.active_lots,
        )
        return snapshot
