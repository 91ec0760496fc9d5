"""Material catalog endpoints."""

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import (
    get_add_reprocess_use_case,
    get_costing,
    get_create_material_use_case,
    get_delete_material_use_case,
    get_engine,
    get_inventory_summary_use_case,
    get_mat_store,
    get_update_material_use_case,
)
from src.application.dto.requests import (
    AddReprocessRequest,
    ConsumeMaterialRequest,
    CreateMaterialRequest,
    UpdateMaterialRequest,
)
from src.application.dto.responses import (
    ConsumptionResponse,
    ErrorResponse,
    InventorySummaryResponse,
    MaterialListResponse,
    MaterialResponse,
)
from src.application.use_cases import (
    AddReprocessUseCase,
    CreateMaterialUseCase,
    DeleteMaterialUseCase,
    InventorySummaryUseCase,
    UpdateMaterialUseCase,
)
from src.core.entities.material import MaterialCategory
from src.core.exceptions import MaterialNotFoundError
from src.core.services import AllocationEngine, CostingEngine
from src.infrastructure.storage.sqlite import SQLiteMaterialStore

router = APIRouter(prefix="/api/materials", tags=["materials"])


@router.post(
    "",
    response_model=MaterialResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_material(
    request: CreateMaterialRequest,
    use_case: CreateMaterialUseCase = Depends(get_create_material_use_case),
) -> MaterialResponse:
    """Add a material; its code is generated from the category."""
    material = await use_case.execute(request)
    return MaterialResponse.from_entity(material)


@router.get("", response_model=MaterialListResponse)
async def list_materials(
    category: MaterialCategory | None = None,
    is_active: bool | None = None,
    search: str | None = None,
    low_stock: bool = False,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    store: SQLiteMaterialStore = Depends(get_mat_store),
) -> MaterialListResponse:
    """List materials, optionally filtered."""
    materials = await store.list_materials(
        category=category,
        is_active=is_active,
        search=search,
        low_stock=low_stock,
        limit=limit,
        offset=offset,
    )
    return MaterialListResponse(
        materials=[MaterialResponse.from_entity(m) for m in materials],
        total=len(materials),
    )


@router.get("/summary", response_model=InventorySummaryResponse)
async def inventory_summary(
    use_case: InventorySummaryUseCase = Depends(get_inventory_summary_use_case),
) -> InventorySummaryResponse:
    """Inventory value and low-stock count by category."""
    summary = await use_case.execute()
    return use_case.to_response(summary)


@router.get(
    "/{material_id}",
    response_model=MaterialResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_material(
    material_id: int,
    store: SQLiteMaterialStore = Depends(get_mat_store),
) -> MaterialResponse:
    material = await store.get_material(material_id)
    if material is None:
        raise MaterialNotFoundError(material_id)
    return MaterialResponse.from_entity(material)


@router.put(
    "/{material_id}",
    response_model=MaterialResponse,
    responses={404: {"model": ErrorResponse}},
)
async def update_material(
    material_id: int,
    request: UpdateMaterialRequest,
    use_case: UpdateMaterialUseCase = Depends(get_update_material_use_case),
) -> MaterialResponse:
    material = await use_case.execute(material_id, request)
    return MaterialResponse.from_entity(material)


@router.delete(
    "/{material_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def delete_material(
    material_id: int,
    use_case: DeleteMaterialUseCase = Depends(get_delete_material_use_case),
) -> None:
    """Delete a material that has never had a lot."""
    await use_case.execute(material_id)


@router.post(
    "/{material_id}/recalculate",
    response_model=MaterialResponse,
    responses={404: {"model": ErrorResponse}},
)
async def recalculate_inventory(
    material_id: int,
    costing: CostingEngine = Depends(get_costing),
    store: SQLiteMaterialStore = Depends(get_mat_store),
) -> MaterialResponse:
    """Rebuild the material's inventory snapshot from its live lots."""
    if await store.get_material(material_id) is None:
        raise MaterialNotFoundError(material_id)
    await costing.recompute_material_inventory(material_id)
    material = await store.get_material(material_id)
    return MaterialResponse.from_entity(material)  # type: ignore[arg-type]


@router.post(
    "/{material_id}/consume",
    response_model=ConsumptionResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def consume_material(
    material_id: int,
    request: ConsumeMaterialRequest,
    engine: AllocationEngine = Depends(get_engine),
    store: SQLiteMaterialStore = Depends(get_mat_store),
) -> ConsumptionResponse:
    """Consume unreserved stock directly, newest lots first."""
    if await store.get_material(material_id) is None:
        raise MaterialNotFoundError(material_id)
    result = await engine.consume(material_id, request.quantity)
    return ConsumptionResponse.from_entity(result)


@router.post(
    "/{material_id}/reprocess",
    response_model=MaterialResponse,
    responses={404: {"model": ErrorResponse}},
)
async def add_reprocess(
    material_id: int,
    request: AddReprocessRequest,
    use_case: AddReprocessUseCase = Depends(get_add_reprocess_use_case),
) -> MaterialResponse:
    """Add recycled scrap to the material's reprocess bucket."""
    material = await use_case.execute(material_id, request)
    return MaterialResponse.from_entity(material)
