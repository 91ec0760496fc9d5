"""Material catalog use cases."""

from src.application.dto.requests import CreateMaterialRequest, UpdateMaterialRequest
from src.application.dto.responses import (
    CategorySummaryResponse,
    InventorySummaryResponse,
    present,
)
from src.config import get_logger
from src.core.entities.material import Material
from src.core.exceptions import MaterialNotFoundError, StateConflictError
from src.core.interfaces.lot_store import ILotStore
from src.core.interfaces.material_store import IMaterialStore
from src.core.services.costing import InventorySummary, summarize_inventory

logger = get_logger(__name__)

# Upper bound when valuing the whole catalog in one pass
SUMMARY_PAGE_SIZE = 10_000


class _MaterialUseCase:
    def __init__(
        self,
        material_store: IMaterialStore | None = None,
        lot_store: ILotStore | None = None,
    ):
        self._material_store = material_store
        self._lot_store = lot_store

    async def _get_material_store(self) -> IMaterialStore:
        if self._material_store is None:
            from src.infrastructure.storage.sqlite import get_material_store

            self._material_store = await get_material_store()
        return self._material_store

    async def _get_lot_store(self) -> ILotStore:
        if self._lot_store is None:
            from src.infrastructure.storage.sqlite import get_lot_store

            self._lot_store = await get_lot_store()
        return self._lot_store

    async def _require(self, material_id: int) -> Material:
        store = await self._get_material_store()
        material = await store.get_material(material_id)
        if material is None:
            raise MaterialNotFoundError(material_id)
        return material


class CreateMaterialUseCase(_MaterialUseCase):
    async def execute(self, request: CreateMaterialRequest) -> Material:
        store = await self._get_material_store()
        return await store.create_material(Material(**request.model_dump()))


class UpdateMaterialUseCase(_MaterialUseCase):
    """Update catalog fields; the inventory snapshot is never client-editable."""

    async def execute(self, material_id: int, request: UpdateMaterialRequest) -> Material:
        material = await self._require(material_id)
        changes = request.model_dump(exclude_unset=True)
        if not changes:
            return material

        updated = material.model_copy(update=changes)
        store = await self._get_material_store()
        return await store.update_material(updated)


class DeleteMaterialUseCase(_MaterialUseCase):
    async def execute(self, material_id: int) -> None:
        """
        Delete a material with no lot history.

        Raises:
            MaterialNotFoundError: If the material does not exist.
            StateConflictError: If any lot (even consumed) references it.
        """
        await self._require(material_id)
        lot_store = await self._get_lot_store()
        lot_count = await lot_store.count_lots(material_id)
        if lot_count:
            raise StateConflictError(
                f"Material {material_id} has {lot_count} lot(s); deactivate it instead",
                status="has_lots",
            )

        store = await self._get_material_store()
        await store.delete_material(material_id)


class InventorySummaryUseCase(_MaterialUseCase):
    """Value the active catalog from stored snapshots."""

    async def execute(self) -> InventorySummary:
        store = await self._get_material_store()
        materials = await store.list_materials(is_active=True, limit=SUMMARY_PAGE_SIZE)
        return summarize_inventory(materials)

    def to_response(self, summary: InventorySummary) -> InventorySummaryResponse:
        return InventorySummaryResponse(
            total_materials=summary.total_materials,
            total_value=present(summary.total_value),
            low_stock=summary.low_stock,
            by_category={
                category: CategorySummaryResponse(
                    count=bucket.count,
                    total_weight=present(bucket.total_weight),
                    total_value=present(bucket.total_value),
                )
                for category, bucket in summary.by_category.items()
            },
        )
