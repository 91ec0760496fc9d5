"""Purchase order maintenance use cases: create, update and cancel."""

from datetime import datetime

from src.application.dto.requests import (
    CreatePurchaseOrderRequest,
    PurchaseOrderItemRequest,
    UpdatePurchaseOrderRequest,
)
from src.config import get_logger
from src.core.entities.lot import LotPricing, LotStorage, Quantity
from src.core.entities.purchase_order import (
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
)
from src.core.exceptions import (
    PurchaseOrderNotFoundError,
    StateConflictError,
    ValidationError,
)
from src.core.interfaces.order_store import IPurchaseOrderStore

logger = get_logger(__name__)

# Statuses a client may set directly; receipt and cancellation have their own actions
EDITABLE_STATUSES = frozenset({PurchaseOrderStatus.DRAFT, PurchaseOrderStatus.ORDERED})


def _to_item(request: PurchaseOrderItemRequest) -> PurchaseOrderItem:
    pricing = LotPricing(**request.pricing.model_dump())
    if not pricing.total_cost and pricing.price_per_kg:
        pricing.total_cost = request.quantity.weight * pricing.price_per_kg
    return PurchaseOrderItem(
        material_id=request.material_id,
        quantity=Quantity(**request.quantity.model_dump()),
        pricing=pricing,
        storage=LotStorage(**request.storage.model_dump()),
        notes=request.notes,
    )


def _check_status(status: PurchaseOrderStatus) -> None:
    if status not in EDITABLE_STATUSES:
        raise ValidationError(
            "status",
            "only draft or ordered can be set; use receive or cancel",
            status.value,
        )


class _PurchaseOrderUseCase:
    def __init__(self, purchase_order_store: IPurchaseOrderStore | None = None):
        self._purchase_order_store = purchase_order_store

    async def _get_purchase_order_store(self) -> IPurchaseOrderStore:
        if self._purchase_order_store is None:
            from src.infrastructure.storage.sqlite import get_purchase_order_store

            self._purchase_order_store = await get_purchase_order_store()
        return self._purchase_order_store

    async def _require(self, order_id: int) -> PurchaseOrder:
        store = await self._get_purchase_order_store()
        order = await store.get_purchase_order(order_id)
        if order is None:
            raise PurchaseOrderNotFoundError(order_id)
        return order


class CreatePurchaseOrderUseCase(_PurchaseOrderUseCase):
    async def execute(self, request: CreatePurchaseOrderRequest) -> PurchaseOrder:
        _check_status(request.status)

        order = PurchaseOrder(
            supplier_id=request.supplier_id,
            order_date=request.order_date,
            expected_delivery_date=request.expected_delivery_date,
            status=request.status,
            items=[_to_item(item) for item in request.items],
            invoice_number=request.invoice_number,
            invoice_date=request.invoice_date,
            invoice_url=request.invoice_url,
            notes=request.notes,
        )
        order.recalculate_total()

        store = await self._get_purchase_order_store()
        order = await store.create_purchase_order(order)
        logger.info(
            "purchase_order_created",
            order_id=order.id,
            po_number=order.po_number,
            items=len(order.items),
            total_amount=order.total_amount,
        )
        return order


class UpdatePurchaseOrderUseCase(_PurchaseOrderUseCase):
    """Edit an order that has not been received or cancelled."""

    async def execute(
        self, order_id: int, request: UpdatePurchaseOrderRequest
    ) -> PurchaseOrder:
        order = await self._require(order_id)
        if order.status in (PurchaseOrderStatus.RECEIVED, PurchaseOrderStatus.CANCELLED):
            raise StateConflictError(
                f"Purchase order {order.po_number} is {order.status.value} and cannot be edited",
                status=order.status.value,
            )

        changes = request.model_dump(exclude_unset=True, exclude={"items"})
        if request.status is not None:
            _check_status(request.status)
        for field, value in changes.items():
            setattr(order, field, value)

        if request.items is not None:
            order.items = [_to_item(item) for item in request.items]
            order.recalculate_total()

        order.updated_at = datetime.utcnow()
        store = await self._get_purchase_order_store()
        order = await store.update_purchase_order(order)
        logger.info("purchase_order_updated", order_id=order_id, fields=sorted(changes))
        return order


class CancelPurchaseOrderUseCase(_PurchaseOrderUseCase):
    async def execute(self, order_id: int) -> PurchaseOrder:
        """
        Cancel an order.

        Cancelling twice is a no-op; received orders already have lots and
        cannot be cancelled.
        """
        order = await self._require(order_id)
        if order.status == PurchaseOrderStatus.RECEIVED:
            raise StateConflictError(
                f"Purchase order {order.po_number} has been received",
                status=order.status.value,
            )
        if order.status == PurchaseOrderStatus.CANCELLED:
            return order

        order.status = PurchaseOrderStatus.CANCELLED
        order.updated_at = datetime.utcnow()
        store = await self._get_purchase_order_store()
        order = await store.update_purchase_order(order)
        logger.info("purchase_order_cancelled", order_id=order_id, po_number=order.po_number)
        return order
