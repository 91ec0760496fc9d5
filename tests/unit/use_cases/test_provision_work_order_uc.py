"""
Unit tests for ProvisionWorkOrderUseCase.

The allocation engine and stores are mocked; the saga is real so rollback
behavior is exercised end to end.
"""

from unittest.mock import AsyncMock, call

import pytest

from src.application.use_cases.provision_work_order import ProvisionWorkOrderUseCase
from src.core.entities.allocation import LotAllocation
from src.core.entities.material import Material, MaterialCategory
from src.core.entities.quotation import Quotation
from src.core.entities.work_order import WorkOrder, WorkOrderStatus
from src.core.exceptions import (
    InsufficientStockError,
    MaterialNotFoundError,
    QuotationNotFoundError,
    StateConflictError,
)


@pytest.fixture
def mock_engine():
    return AsyncMock()


@pytest.fixture
def mock_work_order_store():
    store = AsyncMock()

    async def create(work_order: WorkOrder) -> WorkOrder:
        work_order.id = 11
        work_order.work_order_number = "WO-00011"
        return work_order

    store.create_work_order.side_effect = create
    store.save_allocations.side_effect = lambda work_order_id, records: records
    store.update_work_order.side_effect = lambda work_order: work_order
    return store


@pytest.fixture
def mock_quotation_store():
    store = AsyncMock()
    store.get_quotation.return_value = Quotation(
        id=3, quote_number="QT-00003", customer_id=8, cable_length=500
    )
    store.link_work_order.return_value = True
    return store


@pytest.fixture
def mock_material_store():
    store = AsyncMock()
    store.get_material.side_effect = lambda material_id: Material(
        id=material_id,
        material_type_id=1,
        name=f"Material {material_id}",
        category=MaterialCategory.METAL,
    )
    return store


@pytest.fixture
def use_case(mock_engine, mock_work_order_store, mock_quotation_store, mock_material_store):
    return ProvisionWorkOrderUseCase(
        engine=mock_engine,
        work_order_store=mock_work_order_store,
        quotation_store=mock_quotation_store,
        material_store=mock_material_store,
    )


class TestProvisionWorkOrderUseCase:
    async def test_success_links_quotation(
        self, use_case, mock_engine, mock_quotation_store, mock_work_order_store
    ):
        mock_engine.allocate.side_effect = [
            [LotAllocation(lot_id=7, material_id=1, allocated_quantity=20)],
            [LotAllocation(lot_id=9, material_id=2, allocated_quantity=4)],
        ]

        result = await use_case.execute(
            3,
            [
                {"materialId": 1, "requiredWeight": 20},
                {"materialId": 2, "requiredWeight": 4, "materialName": "PVC (black)"},
            ],
            process_assignments=[{"process": "drawing"}],
        )

        work_order = result.work_order
        assert work_order.status == WorkOrderStatus.PENDING
        assert work_order.customer_id == 8
        assert work_order.cable_length == 500
        assert work_order.process_assignments == [{"process": "drawing"}]
        assert [r.material_name for r in work_order.allocated_materials] == [
            "Material 1",
            "PVC (black)",
        ]
        assert len(result.allocations) == 2
        mock_quotation_store.link_work_order.assert_awaited_once_with(3, 11)
        mock_quotation_store.set_work_order.assert_not_called()
        mock_work_order_store.delete_work_order.assert_not_called()
        mock_engine.deallocate.assert_not_called()

    async def test_shortfall_rolls_back(
        self, use_case, mock_engine, mock_work_order_store, mock_quotation_store
    ):
        mock_engine.allocate.side_effect = [
            [LotAllocation(lot_id=7, material_id=1, allocated_quantity=20)],
            InsufficientStockError(
                material_id=2,
                shortage=6,
                allocations=[LotAllocation(lot_id=9, material_id=2, allocated_quantity=4)],
            ),
        ]

        with pytest.raises(InsufficientStockError):
            await use_case.execute(
                3,
                [
                    {"materialId": 1, "requiredWeight": 20},
                    {"materialId": 2, "requiredWeight": 10},
                ],
            )

        assert mock_engine.deallocate.await_args_list == [call(9, 4), call(7, 20)]
        mock_work_order_store.delete_work_order.assert_awaited_once_with(11)
        mock_quotation_store.link_work_order.assert_not_called()

    async def test_persistence_failure_rolls_back(
        self, use_case, mock_engine, mock_work_order_store
    ):
        mock_engine.allocate.return_value = [
            LotAllocation(lot_id=7, material_id=1, allocated_quantity=20)
        ]
        mock_work_order_store.save_allocations.side_effect = RuntimeError("disk full")

        with pytest.raises(RuntimeError):
            await use_case.execute(3, [{"materialId": 1, "requiredWeight": 20}])

        mock_engine.deallocate.assert_awaited_once_with(7, 20)
        mock_work_order_store.delete_work_order.assert_awaited_once_with(11)

    async def test_concurrent_conversion_rolls_back(
        self, use_case, mock_engine, mock_work_order_store, mock_quotation_store
    ):
        mock_engine.allocate.return_value = [
            LotAllocation(lot_id=7, material_id=1, allocated_quantity=20)
        ]
        mock_quotation_store.link_work_order.return_value = False

        with pytest.raises(StateConflictError):
            await use_case.execute(3, [{"materialId": 1, "requiredWeight": 20}])

        mock_engine.deallocate.assert_awaited_once_with(7, 20)
        mock_work_order_store.delete_work_order.assert_awaited_once_with(11)
        mock_work_order_store.update_work_order.assert_not_called()
        mock_quotation_store.set_work_order.assert_not_called()

    async def test_failure_after_link_unlinks_quotation(
        self, use_case, mock_engine, mock_work_order_store, mock_quotation_store
    ):
        mock_engine.allocate.return_value = [
            LotAllocation(lot_id=7, material_id=1, allocated_quantity=20)
        ]
        mock_work_order_store.update_work_order.side_effect = RuntimeError("disk full")

        with pytest.raises(RuntimeError):
            await use_case.execute(3, [{"materialId": 1, "requiredWeight": 20}])

        mock_quotation_store.set_work_order.assert_awaited_once_with(3, None)
        mock_work_order_store.delete_work_order.assert_awaited_once_with(11)

    async def test_quotation_not_found(self, use_case, mock_quotation_store):
        mock_quotation_store.get_quotation.return_value = None
        with pytest.raises(QuotationNotFoundError):
            await use_case.execute(3, [])

    async def test_quotation_already_converted(
        self, use_case, mock_quotation_store, mock_work_order_store
    ):
        mock_quotation_store.get_quotation.return_value = Quotation(
            id=3, quote_number="QT-00003", work_order_id=1
        )
        with pytest.raises(StateConflictError):
            await use_case.execute(3, [{"materialId": 1, "requiredWeight": 1}])
        mock_work_order_store.create_work_order.assert_not_called()

    async def test_unknown_material_creates_nothing(
        self, use_case, mock_material_store, mock_work_order_store
    ):
        mock_material_store.get_material.side_effect = None
        mock_material_store.get_material.return_value = None
        with pytest.raises(MaterialNotFoundError):
            await use_case.execute(3, [{"materialId": 99, "requiredWeight": 1}])
        mock_work_order_store.create_work_order.assert_not_called()

    async def test_no_requirements_creates_empty_work_order(self, use_case, mock_engine):
        result = await use_case.execute(3, [])
        assert result.work_order.allocated_materials == []
        mock_engine.allocate.assert_not_called()

    async def test_to_response(self, use_case, mock_engine):
        mock_engine.allocate.return_value = [
            LotAllocation(lot_id=7, material_id=1, allocated_quantity=20)
        ]
        result = await use_case.execute(3, [{"materialId": 1, "requiredWeight": 20}])

        response = use_case.to_response(result)

        assert response.id == 11
        assert response.work_order_number == "WO-00011"
        assert response.status == "pending"
