"""Receive Purchase Order Use Case - goods arrival turns order lines into lots."""

from dataclasses import dataclass
from datetime import datetime

from src.application.dto.requests import ReceivePurchaseOrderRequest
from src.application.dto.responses import (
    LotResponse,
    PurchaseOrderResponse,
    ReceivePurchaseOrderResponse,
)
from src.config import get_logger
from src.core.entities.lot import MaterialLot
from src.core.entities.purchase_order import PurchaseOrder, PurchaseOrderStatus
from src.core.exceptions import (
    MaterialNotFoundError,
    PurchaseOrderNotFoundError,
    StateConflictError,
    ValidationError,
)
from src.core.interfaces.material_store import IMaterialStore
from src.core.interfaces.order_store import IPurchaseOrderStore
from src.core.services.costing import CostingEngine
from src.core.services.lot_ledger import LotLedger

logger = get_logger(__name__)


@dataclass
class ReceivePurchaseOrderResult:
    """Result of receiving a purchase order."""

    purchase_order: PurchaseOrder
    lots: list[MaterialLot]


class ReceivePurchaseOrderUseCase:
    """Receive an order: one lot per line, then refresh each material's costing."""

    def __init__(
        self,
        purchase_order_store: IPurchaseOrderStore | None = None,
        material_store: IMaterialStore | None = None,
        ledger: LotLedger | None = None,
        costing: CostingEngine | None = None,
    ):
        self._purchase_order_store = purchase_order_store
        self._material_store = material_store
        self._ledger = ledger
        self._costing = costing

    async def _get_purchase_order_store(self) -> IPurchaseOrderStore:
        if self._purchase_order_store is None:
            from src.infrastructure.storage.sqlite import get_purchase_order_store

            self._purchase_order_store = await get_purchase_order_store()
        return self._purchase_order_store

    async def _get_material_store(self) -> IMaterialStore:
        if self._material_store is None:
            from src.infrastructure.storage.sqlite import get_material_store

            self._material_store = await get_material_store()
        return self._material_store

    async def _get_ledger(self) -> LotLedger:
        if self._ledger is None:
            from src.application.services import get_lot_ledger

            self._ledger = await get_lot_ledger()
        return self._ledger

    async def _get_costing(self) -> CostingEngine:
        if self._costing is None:
            from src.application.services import get_costing_engine

            self._costing = await get_costing_engine()
        return self._costing

    async def execute(
        self,
        order_id: int,
        request: ReceivePurchaseOrderRequest | None = None,
    ) -> ReceivePurchaseOrderResult:
        """
        Receive every line of a purchase order.

        Raises:
            PurchaseOrderNotFoundError: If the order does not exist.
            StateConflictError: If the order is already received or cancelled.
            ValidationError: If a line has no storage location.
            MaterialNotFoundError: If a line references an unknown material.
        """
        request = request or ReceivePurchaseOrderRequest()
        po_store = await self._get_purchase_order_store()
        order = await po_store.get_purchase_order(order_id)
        if order is None:
            raise PurchaseOrderNotFoundError(order_id)

        if order.status in (PurchaseOrderStatus.RECEIVED, PurchaseOrderStatus.CANCELLED):
            raise StateConflictError(
                f"Purchase order {order.po_number} is already {order.status.value}",
                status=order.status.value,
            )

        if request.invoice_number is not None:
            order.invoice_number = request.invoice_number
        if request.invoice_date is not None:
            order.invoice_date = request.invoice_date
        if request.invoice_url is not None:
            order.invoice_url = request.invoice_url

        # Validate every line before writing a single lot
        mat_store = await self._get_material_store()
        for index, item in enumerate(order.items):
            if item.storage.location is None:
                raise ValidationError(
                    f"items[{index}].storage.location",
                    "storage location is required to receive a line",
                )
            if await mat_store.get_material(item.material_id) is None:
                raise MaterialNotFoundError(item.material_id)

        logger.info(
            "purchase_order_receive_started",
            order_id=order_id,
            po_number=order.po_number,
            items=len(order.items),
        )

        ledger = await self._get_ledger()
        lots: list[MaterialLot] = []
        for item in order.items:
            lot = await ledger.create_lot(
                material_id=item.material_id,
                supplier_id=order.supplier_id,
                purchase_date=order.order_date,
                initial_quantity=item.quantity,
                pricing=item.pricing,
                storage=item.storage,
                invoice_number=order.invoice_number,
                invoice_date=order.invoice_date,
                po_number=order.po_number,
                notes=item.notes,
            )
            item.lot_id = lot.id
            lots.append(lot)

        costing = await self._get_costing()
        for material_id in dict.fromkeys(item.material_id for item in order.items):
            await costing.recompute_material_inventory(material_id)

        order.status = PurchaseOrderStatus.RECEIVED
        order.received_at = datetime.utcnow()
        order = await po_store.update_purchase_order(order)

        logger.info(
            "purchase_order_received",
            order_id=order_id,
            po_number=order.po_number,
            lots_created=len(lots),
        )
        return ReceivePurchaseOrderResult(purchase_order=order, lots=lots)

    def to_response(self, result: ReceivePurchaseOrderResult) -> ReceivePurchaseOrderResponse:
        return ReceivePurchaseOrderResponse(
            purchase_order=PurchaseOrderResponse.from_entity(result.purchase_order),
            lots_created=[LotResponse.from_entity(lot) for lot in result.lots],
        )
