"""Material availability and lot allocation endpoints."""

from fastapi import APIRouter, Depends

from src.api.dependencies import (
    get_allocate_materials_use_case,
    get_checker,
    get_deallocate_lots_use_case,
    get_record_lot_usage_use_case,
)
from src.application.dto.requests import (
    AllocateMaterialsRequest,
    CheckAvailabilityRequest,
    DeallocateMaterialsRequest,
    LotUsageRequest,
    requirements_payload,
)
from src.application.dto.responses import (
    AllocateMaterialsResponse,
    AvailabilityResponse,
    DeallocationResponse,
    ErrorResponse,
    LotResponse,
    UsageResponse,
    present,
)
from src.application.use_cases import (
    AllocateMaterialsUseCase,
    DeallocateLotsUseCase,
    RecordLotUsageUseCase,
)
from src.core.services import AvailabilityChecker

router = APIRouter(prefix="/api/allocations", tags=["allocations"])


@router.post(
    "/check",
    response_model=AvailabilityResponse,
    responses={400: {"model": ErrorResponse}},
)
async def check_availability(
    request: CheckAvailabilityRequest,
    checker: AvailabilityChecker = Depends(get_checker),
) -> AvailabilityResponse:
    """Report stock against requirements without reserving anything."""
    report = await checker.check_availability(requirements_payload(request.materials))
    return AvailabilityResponse.from_entity(report)


@router.post(
    "/allocate",
    response_model=AllocateMaterialsResponse,
    responses={409: {"model": ErrorResponse}},
)
async def allocate_materials(
    request: AllocateMaterialsRequest,
    use_case: AllocateMaterialsUseCase = Depends(get_allocate_materials_use_case),
) -> AllocateMaterialsResponse:
    """Reserve every requirement newest lot first; a shortage reserves nothing."""
    allocations = await use_case.execute(requirements_payload(request.materials))
    return use_case.to_response(allocations)


@router.post(
    "/deallocate",
    response_model=DeallocationResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def deallocate_materials(
    request: DeallocateMaterialsRequest,
    use_case: DeallocateLotsUseCase = Depends(get_deallocate_lots_use_case),
) -> DeallocationResponse:
    """Return reserved weight not held by a work order to the lots' free stock."""
    lots = await use_case.execute(
        (item.lot_id, item.allocated_quantity) for item in request.allocations
    )
    return DeallocationResponse(lots=[LotResponse.from_entity(lot) for lot in lots])


@router.post(
    "/usage",
    response_model=UsageResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def record_usage(
    request: LotUsageRequest,
    use_case: RecordLotUsageUseCase = Depends(get_record_lot_usage_use_case),
) -> UsageResponse:
    """Consume reserved weight on a lot, settling a work order's records when given."""
    lot = await use_case.execute(
        request.lot_id, request.quantity_used, work_order_id=request.work_order_id
    )
    return UsageResponse(
        lot=LotResponse.from_entity(lot),
        quantity_used=present(request.quantity_used),  # type: ignore[arg-type]
    )
