"""API tests for material catalog endpoints."""

import json
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from src.api.dependencies import (
    get_costing,
    get_create_material_use_case,
    get_delete_material_use_case,
    get_engine,
    get_inventory_summary_use_case,
    get_mat_store,
)
from src.api.main import app
from src.application.use_cases import (
    CreateMaterialUseCase,
    DeleteMaterialUseCase,
    InventorySummaryUseCase,
)
from src.core.entities.allocation import ConsumedLot, ConsumptionResult
from src.core.entities.material import InventorySnapshot, Material, MaterialCategory
from src.core.exceptions import InsufficientStockError, StateConflictError


def _material(**kwargs) -> Material:
    fields = {
        "id": 1,
        "material_code": "MTL-00001",
        "material_type_id": 1,
        "name": "Copper 8mm rod",
        "category": MaterialCategory.METAL,
    }
    fields.update(kwargs)
    return Material(**fields)


@pytest.fixture
def mock_material_store():
    store = AsyncMock()
    store.get_material.return_value = _material()
    store.list_materials.return_value = [_material()]
    return store


@pytest.fixture
def mock_engine():
    return AsyncMock()


@pytest.fixture
async def materials_client(mock_material_store, mock_engine):
    app.dependency_overrides[get_mat_store] = lambda: mock_material_store
    app.dependency_overrides[get_engine] = lambda: mock_engine
    app.dependency_overrides[get_create_material_use_case] = lambda: CreateMaterialUseCase(
        material_store=mock_material_store
    )
    app.dependency_overrides[get_inventory_summary_use_case] = (
        lambda: InventorySummaryUseCase(material_store=mock_material_store)
    )
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


class TestMaterialCrud:
    async def test_create_returns_201(self, materials_client, mock_material_store):
        mock_material_store.create_material.return_value = _material(
            name="PVC", category=MaterialCategory.PLASTIC
        )

        response = await materials_client.post(
            "/api/materials",
            json={"material_type_id": 3, "name": "PVC", "category": "plastic"},
        )

        assert response.status_code == 201
        assert response.json()["category"] == "plastic"
        created = mock_material_store.create_material.await_args.args[0]
        assert created.material_code is None
        assert created.category == MaterialCategory.PLASTIC

    async def test_create_rejects_unknown_category(self, materials_client):
        response = await materials_client.post(
            "/api/materials",
            json={"material_type_id": 3, "name": "Mystery", "category": "wood"},
        )

        assert response.status_code == 422
        body = response.json()
        assert body["error_code"] == "VALIDATION_ERROR"
        assert "category" in body["detail"]

    async def test_list_passes_filters(self, materials_client, mock_material_store):
        response = await materials_client.get(
            "/api/materials", params={"category": "metal", "low_stock": "true", "search": "cu"}
        )

        assert response.status_code == 200
        assert response.json()["total"] == 1
        mock_material_store.list_materials.assert_awaited_once_with(
            category=MaterialCategory.METAL,
            is_active=None,
            search="cu",
            low_stock=True,
            limit=100,
            offset=0,
        )

    async def test_get_reports_snapshot(self, materials_client, mock_material_store):
        mock_material_store.get_material.return_value = _material(
            reorder_level=500,
            inventory=InventorySnapshot(total_weight=150, avg_price_per_kg=12, active_lots=2),
        )

        response = await materials_client.get("/api/materials/1")

        body = response.json()
        assert body["inventory"]["total_weight"] == 150
        assert body["inventory_value"] == 1800
        assert body["is_low_stock"] is True

    async def test_get_missing_is_404(self, materials_client, mock_material_store):
        mock_material_store.get_material.return_value = None

        response = await materials_client.get("/api/materials/99")

        assert response.status_code == 404
        body = response.json()
        assert body["error_code"] == "MATERIAL_NOT_FOUND"
        assert body["hint"].startswith("Check the material ID")
        assert body["path"] == "/api/materials/99"

    async def test_delete_with_lots_is_409(self, materials_client):
        use_case = AsyncMock(spec=DeleteMaterialUseCase)
        use_case.execute.side_effect = StateConflictError(
            "Material 1 has 2 lot(s); deactivate it instead", status="has_lots"
        )
        app.dependency_overrides[get_delete_material_use_case] = lambda: use_case

        response = await materials_client.delete("/api/materials/1")

        assert response.status_code == 409
        body = response.json()
        assert body["error_code"] == "STATE_CONFLICT"
        assert json.loads(body["detail"]) == {"status": "has_lots"}

    async def test_delete_returns_204(self, materials_client):
        use_case = AsyncMock(spec=DeleteMaterialUseCase)
        app.dependency_overrides[get_delete_material_use_case] = lambda: use_case

        response = await materials_client.delete("/api/materials/1")

        assert response.status_code == 204
        use_case.execute.assert_awaited_once_with(1)


class TestInventoryEndpoints:
    async def test_summary_groups_by_category(self, materials_client, mock_material_store):
        mock_material_store.list_materials.return_value = [
            _material(inventory=InventorySnapshot(total_weight=100, avg_price_per_kg=10)),
            _material(
                id=2,
                category=MaterialCategory.PLASTIC,
                reorder_level=50,
                inventory=InventorySnapshot(total_weight=20, avg_price_per_kg=2),
            ),
        ]

        response = await materials_client.get("/api/materials/summary")

        body = response.json()
        assert body["total_materials"] == 2
        assert body["total_value"] == 1040
        assert body["low_stock"] == 1
        assert body["by_category"]["plastic"] == {"count": 1, "total_weight": 20, "total_value": 40}

    async def test_consume_reports_cost(self, materials_client, mock_engine):
        mock_engine.consume.return_value = ConsumptionResult(
            material_id=1,
            consumed_lots=[
                ConsumedLot(lot_id=2, consumed=30, price=12, cost=360),
                ConsumedLot(lot_id=1, consumed=20, price=10, cost=200),
            ],
            total_cost=560,
            avg_cost_per_kg=11.2,
        )

        response = await materials_client.post("/api/materials/1/consume", json={"quantity": 50})

        assert response.status_code == 200
        body = response.json()
        assert [line["lot_id"] for line in body["consumed_lots"]] == [2, 1]
        assert body["avg_cost_per_kg"] == 11.2
        mock_engine.consume.assert_awaited_once_with(1, 50)

    async def test_consume_shortage_is_409(self, materials_client, mock_engine):
        mock_engine.consume.side_effect = InsufficientStockError(
            material_id=1, shortage=25, requested=75, available=50
        )

        response = await materials_client.post("/api/materials/1/consume", json={"quantity": 75})

        assert response.status_code == 409
        body = response.json()
        assert body["error_code"] == "INSUFFICIENT_STOCK"
        assert json.loads(body["detail"])["shortage"] == 25

    async def test_consume_requires_positive_quantity(self, materials_client, mock_engine):
        response = await materials_client.post("/api/materials/1/consume", json={"quantity": 0})

        assert response.status_code == 422
        mock_engine.consume.assert_not_called()

    async def test_recalculate_unknown_material(self, materials_client, mock_material_store):
        mock_material_store.get_material.return_value = None
        costing = AsyncMock()
        app.dependency_overrides[get_costing] = lambda: costing

        response = await materials_client.post("/api/materials/5/recalculate")

        assert response.status_code == 404
        costing.recompute_material_inventory.assert_not_called()
