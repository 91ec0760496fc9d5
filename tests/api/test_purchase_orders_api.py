"""API tests for purchase order endpoints."""

from datetime import date
from itertools import count
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from src.api.dependencies import (
    get_cancel_purchase_order_use_case,
    get_create_purchase_order_use_case,
    get_po_store,
    get_receive_purchase_order_use_case,
    get_update_purchase_order_use_case,
)
from src.api.main import app
from src.application.use_cases import (
    CancelPurchaseOrderUseCase,
    CreatePurchaseOrderUseCase,
    ReceivePurchaseOrderUseCase,
    UpdatePurchaseOrderUseCase,
)
from src.core.entities.lot import LotPricing, LotStorage, MaterialLot, Quantity, StorageLocation
from src.core.entities.material import Material, MaterialCategory
from src.core.entities.purchase_order import (
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
)


def _order(**kwargs) -> PurchaseOrder:
    fields = {
        "id": 3,
        "po_number": "PO-00003",
        "supplier_id": 5,
        "order_date": date(2024, 4, 2),
        "status": PurchaseOrderStatus.ORDERED,
        "items": [
            PurchaseOrderItem(
                material_id=1,
                quantity=Quantity(weight=100),
                pricing=LotPricing(price_per_kg=10, total_cost=1000),
                storage=LotStorage(location=StorageLocation.DRUM),
            ),
            PurchaseOrderItem(
                material_id=1,
                quantity=Quantity(weight=50),
                pricing=LotPricing(price_per_kg=16, total_cost=800),
                storage=LotStorage(location=StorageLocation.SAC),
            ),
        ],
    }
    fields.update(kwargs)
    return PurchaseOrder(**fields)


@pytest.fixture
def mock_po_store():
    store = AsyncMock()
    store.get_purchase_order.return_value = _order()
    store.list_purchase_orders.return_value = [_order()]
    store.create_purchase_order.side_effect = lambda order: order.model_copy(
        update={"id": 3, "po_number": "PO-00003"}
    )
    store.update_purchase_order.side_effect = lambda order: order
    return store


@pytest.fixture
def mock_material_store():
    store = AsyncMock()
    store.get_material.return_value = Material(
        id=1, material_type_id=1, name="Copper", category=MaterialCategory.METAL
    )
    return store


@pytest.fixture
def mock_ledger():
    ids = count(11)
    ledger = AsyncMock()

    async def create_lot(**kwargs):
        return MaterialLot(id=next(ids), **kwargs)

    ledger.create_lot.side_effect = create_lot
    return ledger


@pytest.fixture
def mock_costing():
    return AsyncMock()


@pytest.fixture
async def po_client(mock_po_store, mock_material_store, mock_ledger, mock_costing):
    app.dependency_overrides[get_po_store] = lambda: mock_po_store
    app.dependency_overrides[get_create_purchase_order_use_case] = (
        lambda: CreatePurchaseOrderUseCase(purchase_order_store=mock_po_store)
    )
    app.dependency_overrides[get_update_purchase_order_use_case] = (
        lambda: UpdatePurchaseOrderUseCase(purchase_order_store=mock_po_store)
    )
    app.dependency_overrides[get_cancel_purchase_order_use_case] = (
        lambda: CancelPurchaseOrderUseCase(purchase_order_store=mock_po_store)
    )
    app.dependency_overrides[get_receive_purchase_order_use_case] = (
        lambda: ReceivePurchaseOrderUseCase(
            purchase_order_store=mock_po_store,
            material_store=mock_material_store,
            ledger=mock_ledger,
            costing=mock_costing,
        )
    )
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


class TestPurchaseOrderCrud:
    async def test_create_derives_line_costs(self, po_client):
        response = await po_client.post(
            "/api/purchase-orders",
            json={
                "supplier_id": 5,
                "items": [
                    {"material_id": 1, "quantity": {"weight": 100}, "pricing": {"price_per_kg": 10}},
                    {"material_id": 2, "quantity": {"weight": 20}, "pricing": {"price_per_kg": 3}},
                ],
            },
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "draft"
        assert [item["pricing"]["total_cost"] for item in body["items"]] == [1000, 60]
        assert body["total_amount"] == 1060

    async def test_create_requires_items(self, po_client):
        response = await po_client.post(
            "/api/purchase-orders", json={"supplier_id": 5, "items": []}
        )
        assert response.status_code == 422

    async def test_create_cannot_start_received(self, po_client, mock_po_store):
        response = await po_client.post(
            "/api/purchase-orders",
            json={
                "supplier_id": 5,
                "status": "received",
                "items": [{"material_id": 1, "quantity": {"weight": 1}}],
            },
        )

        assert response.status_code == 400
        mock_po_store.create_purchase_order.assert_not_called()

    async def test_list_filters(self, po_client, mock_po_store):
        response = await po_client.get(
            "/api/purchase-orders", params={"status": "ordered", "supplier_id": 5}
        )

        assert response.json()["total"] == 1
        mock_po_store.list_purchase_orders.assert_awaited_once_with(
            status=PurchaseOrderStatus.ORDERED, supplier_id=5, search=None
        )

    async def test_get_missing_is_404(self, po_client, mock_po_store):
        mock_po_store.get_purchase_order.return_value = None

        response = await po_client.get("/api/purchase-orders/8")

        assert response.status_code == 404
        assert response.json()["error_code"] == "PURCHASE_ORDER_NOT_FOUND"

    async def test_update_received_is_409(self, po_client, mock_po_store):
        mock_po_store.get_purchase_order.return_value = _order(
            status=PurchaseOrderStatus.RECEIVED
        )

        response = await po_client.put("/api/purchase-orders/3", json={"notes": "late"})

        assert response.status_code == 409
        mock_po_store.update_purchase_order.assert_not_called()

    async def test_update_notes(self, po_client):
        response = await po_client.put("/api/purchase-orders/3", json={"notes": "call first"})

        assert response.status_code == 200
        assert response.json()["notes"] == "call first"


class TestReceiveAndCancel:
    async def test_receive_creates_one_lot_per_line(
        self, po_client, mock_ledger, mock_costing
    ):
        response = await po_client.post(
            "/api/purchase-orders/3/receive", json={"invoice_number": "INV-42"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["purchase_order"]["status"] == "received"
        assert [item["lot_id"] for item in body["purchase_order"]["items"]] == [11, 12]
        assert [lot["invoice_number"] for lot in body["lots_created"]] == ["INV-42", "INV-42"]
        assert [lot["po_number"] for lot in body["lots_created"]] == ["PO-00003", "PO-00003"]
        assert mock_ledger.create_lot.await_count == 2
        mock_costing.recompute_material_inventory.assert_awaited_once_with(1)

    async def test_receive_without_body(self, po_client):
        response = await po_client.post("/api/purchase-orders/3/receive")
        assert response.status_code == 200

    async def test_receive_twice_is_409(self, po_client, mock_po_store, mock_ledger):
        mock_po_store.get_purchase_order.return_value = _order(
            status=PurchaseOrderStatus.RECEIVED
        )

        response = await po_client.post("/api/purchase-orders/3/receive")

        assert response.status_code == 409
        mock_ledger.create_lot.assert_not_called()

    async def test_receive_line_without_storage_is_400(
        self, po_client, mock_po_store, mock_ledger
    ):
        order = _order()
        order.items[1].storage = LotStorage()
        mock_po_store.get_purchase_order.return_value = order

        response = await po_client.post("/api/purchase-orders/3/receive")

        assert response.status_code == 400
        assert "items[1].storage.location" in response.json()["detail"]
        mock_ledger.create_lot.assert_not_called()

    async def test_cancel(self, po_client):
        response = await po_client.post("/api/purchase-orders/3/cancel")

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

    async def test_cancel_received_is_409(self, po_client, mock_po_store):
        mock_po_store.get_purchase_order.return_value = _order(
            status=PurchaseOrderStatus.RECEIVED
        )

        response = await po_client.post("/api/purchase-orders/3/cancel")

        assert response.status_code == 409
