"""Purchase order endpoints."""

from fastapi import APIRouter, Depends, status

from src.api.dependencies import (
    get_cancel_purchase_order_use_case,
    get_create_purchase_order_use_case,
    get_po_store,
    get_receive_purchase_order_use_case,
    get_update_purchase_order_use_case,
)
from src.application.dto.requests import (
    CreatePurchaseOrderRequest,
    ReceivePurchaseOrderRequest,
    UpdatePurchaseOrderRequest,
)
from src.application.dto.responses import (
    ErrorResponse,
    PurchaseOrderListResponse,
    PurchaseOrderResponse,
    ReceivePurchaseOrderResponse,
)
from src.application.use_cases import (
    CancelPurchaseOrderUseCase,
    CreatePurchaseOrderUseCase,
    ReceivePurchaseOrderUseCase,
    UpdatePurchaseOrderUseCase,
)
from src.core.entities.purchase_order import PurchaseOrderStatus
from src.core.exceptions import PurchaseOrderNotFoundError
from src.infrastructure.storage.sqlite import SQLitePurchaseOrderStore

router = APIRouter(prefix="/api/purchase-orders", tags=["purchase-orders"])


@router.post(
    "",
    response_model=PurchaseOrderResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_purchase_order(
    request: CreatePurchaseOrderRequest,
    use_case: CreatePurchaseOrderUseCase = Depends(get_create_purchase_order_use_case),
) -> PurchaseOrderResponse:
    order = await use_case.execute(request)
    return PurchaseOrderResponse.from_entity(order)


@router.get("", response_model=PurchaseOrderListResponse)
async def list_purchase_orders(
    status: PurchaseOrderStatus | None = None,
    supplier_id: int | None = None,
    search: str | None = None,
    store: SQLitePurchaseOrderStore = Depends(get_po_store),
) -> PurchaseOrderListResponse:
    orders = await store.list_purchase_orders(
        status=status, supplier_id=supplier_id, search=search
    )
    return PurchaseOrderListResponse(
        purchase_orders=[PurchaseOrderResponse.from_entity(o) for o in orders],
        total=len(orders),
    )


@router.get(
    "/{order_id}",
    response_model=PurchaseOrderResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_purchase_order(
    order_id: int,
    store: SQLitePurchaseOrderStore = Depends(get_po_store),
) -> PurchaseOrderResponse:
    order = await store.get_purchase_order(order_id)
    if order is None:
        raise PurchaseOrderNotFoundError(order_id)
    return PurchaseOrderResponse.from_entity(order)


@router.put(
    "/{order_id}",
    response_model=PurchaseOrderResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def update_purchase_order(
    order_id: int,
    request: UpdatePurchaseOrderRequest,
    use_case: UpdatePurchaseOrderUseCase = Depends(get_update_purchase_order_use_case),
) -> PurchaseOrderResponse:
    order = await use_case.execute(order_id, request)
    return PurchaseOrderResponse.from_entity(order)


@router.post(
    "/{order_id}/receive",
    response_model=ReceivePurchaseOrderResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def receive_purchase_order(
    order_id: int,
    request: ReceivePurchaseOrderRequest | None = None,
    use_case: ReceivePurchaseOrderUseCase = Depends(get_receive_purchase_order_use_case),
) -> ReceivePurchaseOrderResponse:
    """Receive the goods: one lot is created per order line."""
    result = await use_case.execute(order_id, request)
    return use_case.to_response(result)


@router.post(
    "/{order_id}/cancel",
    response_model=PurchaseOrderResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def cancel_purchase_order(
    order_id: int,
    use_case: CancelPurchaseOrderUseCase = Depends(get_cancel_purchase_order_use_case),
) -> PurchaseOrderResponse:
    order = await use_case.execute(order_id)
    return PurchaseOrderResponse.from_entity(order)
