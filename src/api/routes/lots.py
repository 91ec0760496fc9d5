"""Procurement lot endpoints."""

from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import (
    get_create_lot_use_case,
    get_engine,
    get_ledger,
    get_remove_lot_use_case,
    get_update_lot_use_case,
)
from src.application.dto.requests import CreateLotRequest, UpdateLotRequest
from src.application.dto.responses import (
    ErrorResponse,
    LifoPreviewResponse,
    LotListResponse,
    LotRemovalResponse,
    LotResponse,
)
from src.application.use_cases import CreateLotUseCase, RemoveLotUseCase, UpdateLotUseCase
from src.core.entities.lot import LotFilter
from src.core.services import AllocationEngine, LotLedger

router = APIRouter(prefix="/api/lots", tags=["lots"])


@router.post(
    "",
    response_model=LotResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def create_lot(
    request: CreateLotRequest,
    use_case: CreateLotUseCase = Depends(get_create_lot_use_case),
) -> LotResponse:
    """Record a procurement lot; its full weight starts unreserved."""
    lot = await use_case.execute(request)
    return LotResponse.from_entity(lot)


@router.get("", response_model=LotListResponse)
async def list_lots(
    material_id: int | None = None,
    supplier_id: int | None = None,
    is_fully_consumed: bool | None = None,
    search: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    ledger: LotLedger = Depends(get_ledger),
) -> LotListResponse:
    """Browse lots, newest purchase first."""
    lots = await ledger.list_lots(
        LotFilter(
            material_id=material_id,
            supplier_id=supplier_id,
            is_fully_consumed=is_fully_consumed,
            search=search,
            start_date=start_date,
            end_date=end_date,
        )
    )
    return LotListResponse(lots=[LotResponse.from_entity(lot) for lot in lots], total=len(lots))


@router.get("/lifo-preview", response_model=LifoPreviewResponse)
async def lifo_preview(
    material_id: int,
    quantity: float = Query(..., gt=0),
    unit: Literal["weight", "length"] = "weight",
    engine: AllocationEngine = Depends(get_engine),
) -> LifoPreviewResponse:
    """Show which lots a consumption would draw from, without writing anything."""
    preview = await engine.preview_lifo(material_id, quantity, unit)
    return LifoPreviewResponse.from_entity(preview)


@router.get("/material/{material_id}", response_model=LotListResponse)
async def list_active_lots(
    material_id: int,
    ledger: LotLedger = Depends(get_ledger),
) -> LotListResponse:
    """Active, unconsumed lots of one material in LIFO order."""
    lots = await ledger.list_active_lots(material_id)
    return LotListResponse(lots=[LotResponse.from_entity(lot) for lot in lots], total=len(lots))


@router.get(
    "/{lot_id}",
    response_model=LotResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_lot(
    lot_id: int,
    ledger: LotLedger = Depends(get_ledger),
) -> LotResponse:
    lot = await ledger.get_lot(lot_id)
    return LotResponse.from_entity(lot)


@router.put(
    "/{lot_id}",
    response_model=LotResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_lot(
    lot_id: int,
    request: UpdateLotRequest,
    use_case: UpdateLotUseCase = Depends(get_update_lot_use_case),
) -> LotResponse:
    """Edit lot metadata; quantities are not editable."""
    lot = await use_case.execute(lot_id, request)
    return LotResponse.from_entity(lot)


@router.delete(
    "/{lot_id}",
    response_model=LotRemovalResponse,
    responses={404: {"model": ErrorResponse}},
)
async def delete_lot(
    lot_id: int,
    use_case: RemoveLotUseCase = Depends(get_remove_lot_use_case),
) -> LotRemovalResponse:
    """Delete a lot, or deactivate it while reservations remain."""
    result = await use_case.execute(lot_id)
    if result.deactivated:
        message = f"Lot {result.lot.lot_number} has reservations and was deactivated"
    else:
        message = f"Lot {result.lot.lot_number} deleted"
    return LotRemovalResponse(lot_id=lot_id, deactivated=result.deactivated, message=message)
