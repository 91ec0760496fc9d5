"""Add Reprocess Use Case - merge recycled scrap into a material's reprocess bucket."""

from src.application.dto.requests import AddReprocessRequest
from src.config import get_logger
from src.core.entities.material import Material, ReprocessInventory
from src.core.exceptions import MaterialNotFoundError, ValidationError
from src.core.interfaces.material_store import IMaterialStore

logger = get_logger(__name__)


class AddReprocessUseCase:
    """Weighted-average merge of scrap weight and valuation price."""

    def __init__(self, material_store: IMaterialStore | None = None):
        self._material_store = material_store

    async def _get_material_store(self) -> IMaterialStore:
        if self._material_store is None:
            from src.infrastructure.storage.sqlite import get_material_store

            self._material_store = await get_material_store()
        return self._material_store

    async def execute(self, material_id: int, request: AddReprocessRequest) -> Material:
        if request.weight <= 0:
            raise ValidationError("weight", "must be greater than 0", request.weight)
        if request.price_per_kg < 0:
            raise ValidationError("price_per_kg", "must not be negative", request.price_per_kg)

        store = await self._get_material_store()
        material = await store.get_material(material_id)
        if material is None:
            raise MaterialNotFoundError(material_id)

        old_weight = material.reprocess_inventory.total_weight
        old_price = material.reprocess_inventory.price_per_kg
        total_weight = old_weight + request.weight
        new_price = (
            old_weight * old_price + request.weight * request.price_per_kg
        ) / total_weight

        reprocess = ReprocessInventory(total_weight=total_weight, price_per_kg=new_price)
        await store.save_reprocess_inventory(material_id, reprocess)
        material.reprocess_inventory = reprocess

        logger.info(
            "reprocess_added",
            material_id=material_id,
            weight=request.weight,
            total_weight=total_weight,
            price_per_kg=new_price,
        )
        return material
