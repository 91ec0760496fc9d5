"""Work order endpoints."""

from fastapi import APIRouter, Depends, status

from src.api.dependencies import (
    get_delete_work_order_use_case,
    get_provision_work_order_use_case,
    get_record_usage_use_case,
    get_update_work_order_use_case,
    get_wo_store,
)
from src.application.dto.requests import (
    ProvisionWorkOrderRequest,
    RecordUsageRequest,
    UpdateWorkOrderRequest,
    requirements_payload,
)
from src.application.dto.responses import (
    ErrorResponse,
    WorkOrderDeleteResponse,
    WorkOrderListResponse,
    WorkOrderResponse,
)
from src.application.use_cases import (
    DeleteWorkOrderUseCase,
    ProvisionWorkOrderUseCase,
    RecordMaterialUsageUseCase,
    UpdateWorkOrderUseCase,
)
from src.core.entities.work_order import WorkOrderStatus
from src.core.exceptions import WorkOrderNotFoundError
from src.infrastructure.storage.sqlite import SQLiteWorkOrderStore

router = APIRouter(prefix="/api/work-orders", tags=["work-orders"])


@router.post(
    "",
    response_model=WorkOrderResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def provision_work_order(
    request: ProvisionWorkOrderRequest,
    use_case: ProvisionWorkOrderUseCase = Depends(get_provision_work_order_use_case),
) -> WorkOrderResponse:
    """
    Create a work order from a quotation and reserve its materials.

    All materials are reserved or none are: a shortage on any material
    returns 409 and leaves no work order behind.
    """
    result = await use_case.execute(
        quote_id=request.quote_id,
        requirements=requirements_payload(request.materials),
        process_assignments=request.process_assignments,
        notes=request.notes,
    )
    return use_case.to_response(result)


@router.get("", response_model=WorkOrderListResponse)
async def list_work_orders(
    status: WorkOrderStatus | None = None,
    search: str | None = None,
    store: SQLiteWorkOrderStore = Depends(get_wo_store),
) -> WorkOrderListResponse:
    work_orders = await store.list_work_orders(status=status, search=search)
    return WorkOrderListResponse(
        work_orders=[WorkOrderResponse.from_entity(wo) for wo in work_orders],
        total=len(work_orders),
    )


@router.get(
    "/{work_order_id}",
    response_model=WorkOrderResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_work_order(
    work_order_id: int,
    store: SQLiteWorkOrderStore = Depends(get_wo_store),
) -> WorkOrderResponse:
    work_order = await store.get_work_order(work_order_id)
    if work_order is None:
        raise WorkOrderNotFoundError(work_order_id)
    return WorkOrderResponse.from_entity(work_order)


@router.patch(
    "/{work_order_id}",
    response_model=WorkOrderResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def update_work_order(
    work_order_id: int,
    request: UpdateWorkOrderRequest,
    use_case: UpdateWorkOrderUseCase = Depends(get_update_work_order_use_case),
) -> WorkOrderResponse:
    work_order = await use_case.execute(work_order_id, request)
    return WorkOrderResponse.from_entity(work_order)


@router.delete(
    "/{work_order_id}",
    response_model=WorkOrderDeleteResponse,
    responses={404: {"model": ErrorResponse}},
)
async def delete_work_order(
    work_order_id: int,
    use_case: DeleteWorkOrderUseCase = Depends(get_delete_work_order_use_case),
) -> WorkOrderDeleteResponse:
    """Delete a work order after returning its unconsumed reservations."""
    result = await use_case.execute(work_order_id)
    return WorkOrderDeleteResponse(
        work_order_id=result.work_order_id,
        released_allocations=result.released_allocations,
        message=f"Work order deleted; {result.released_allocations} allocation(s) released",
    )


@router.post(
    "/{work_order_id}/usage",
    response_model=WorkOrderResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def record_usage(
    work_order_id: int,
    request: RecordUsageRequest,
    use_case: RecordMaterialUsageUseCase = Depends(get_record_usage_use_case),
) -> WorkOrderResponse:
    """Turn part of the work order's reservation on a lot into consumption."""
    result = await use_case.execute(work_order_id, request.lot_id, request.quantity_used)
    return WorkOrderResponse.from_entity(result.work_order)
