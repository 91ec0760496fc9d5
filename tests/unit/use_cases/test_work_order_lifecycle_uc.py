"""Tests for work order usage, update and deletion use cases."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, call

import pytest

from src.application.dto.requests import UpdateWorkOrderRequest
from src.application.use_cases.delete_work_order import DeleteWorkOrderUseCase
from src.application.use_cases.record_material_usage import RecordMaterialUsageUseCase
from src.application.use_cases.update_work_order import UpdateWorkOrderUseCase
from src.core.entities.allocation import AllocationRecord
from src.core.entities.quotation import Quotation
from src.core.entities.work_order import WorkOrder, WorkOrderStatus
from src.core.exceptions import (
    StateConflictError,
    ValidationError,
    WorkOrderNotFoundError,
)


def _work_order(status=WorkOrderStatus.PENDING, records=None) -> WorkOrder:
    return WorkOrder(
        id=4,
        work_order_number="WO-00004",
        quote_id=2,
        quote_number="QT-00002",
        status=status,
        allocated_materials=records or [],
    )


@pytest.fixture
def mock_engine():
    engine = AsyncMock()
    engine.material_lock = MagicMock(side_effect=lambda material_id: asyncio.Lock())
    return engine


@pytest.fixture
def mock_work_order_store():
    store = AsyncMock()
    store.update_work_order.side_effect = lambda work_order: work_order
    return store


@pytest.fixture
def mock_quotation_store():
    return AsyncMock()


class TestDeleteWorkOrderUseCase:
    @pytest.fixture
    def use_case(self, mock_engine, mock_work_order_store, mock_quotation_store):
        return DeleteWorkOrderUseCase(
            engine=mock_engine,
            work_order_store=mock_work_order_store,
            quotation_store=mock_quotation_store,
        )

    async def test_releases_only_outstanding_weight(
        self, use_case, mock_engine, mock_work_order_store, mock_quotation_store
    ):
        mock_work_order_store.get_work_order.return_value = _work_order(
            records=[
                AllocationRecord(id=1, material_id=1, lot_id=10, allocated_quantity=30,
                                 consumed_quantity=12),
                AllocationRecord(id=2, material_id=1, lot_id=11, allocated_quantity=5,
                                 consumed_quantity=5, is_consumed=True),
                AllocationRecord(id=3, material_id=2, lot_id=12, allocated_quantity=8),
            ]
        )
        mock_quotation_store.get_quotation.return_value = Quotation(
            id=2, quote_number="QT-00002", work_order_id=4
        )

        result = await use_case.execute(4)

        assert result.released_allocations == 2
        assert mock_engine.deallocate.await_args_list == [call(12, 8), call(10, 18)]
        mock_quotation_store.set_work_order.assert_awaited_once_with(2, None)
        mock_work_order_store.delete_work_order.assert_awaited_once_with(4)

    async def test_relinked_quotation_left_alone(
        self, use_case, mock_work_order_store, mock_quotation_store
    ):
        mock_work_order_store.get_work_order.return_value = _work_order()
        mock_quotation_store.get_quotation.return_value = Quotation(
            id=2, quote_number="QT-00002", work_order_id=99
        )

        await use_case.execute(4)

        mock_quotation_store.set_work_order.assert_not_called()

    async def test_not_found(self, use_case, mock_work_order_store):
        mock_work_order_store.get_work_order.return_value = None
        with pytest.raises(WorkOrderNotFoundError):
            await use_case.execute(4)
        mock_work_order_store.delete_work_order.assert_not_called()


class TestRecordMaterialUsageUseCase:
    @pytest.fixture
    def use_case(self, mock_engine, mock_work_order_store):
        return RecordMaterialUsageUseCase(
            engine=mock_engine, work_order_store=mock_work_order_store
        )

    async def test_settles_oldest_record_first(
        self, use_case, mock_engine, mock_work_order_store
    ):
        first = AllocationRecord(id=1, material_id=1, lot_id=10, allocated_quantity=5)
        second = AllocationRecord(id=2, material_id=1, lot_id=10, allocated_quantity=10)
        mock_work_order_store.get_work_order.return_value = _work_order(records=[first, second])

        await use_case.execute(4, 10, 8)

        mock_engine.convert_allocation_to_usage_locked.assert_awaited_once_with(
            10, 8, reserved_limit=15
        )
        mock_engine.material_lock.assert_called_once_with(1)
        updated = [c.args[0] for c in mock_work_order_store.update_allocation.await_args_list]
        assert [(r.id, r.consumed_quantity, r.is_consumed) for r in updated] == [
            (1, 5, True),
            (2, 3, False),
        ]

    async def test_more_than_outstanding_rejected(
        self, use_case, mock_engine, mock_work_order_store
    ):
        mock_work_order_store.get_work_order.return_value = _work_order(
            records=[AllocationRecord(id=1, material_id=1, lot_id=10, allocated_quantity=5)]
        )
        with pytest.raises(ValidationError):
            await use_case.execute(4, 10, 6)
        mock_engine.convert_allocation_to_usage_locked.assert_not_called()

    async def test_records_settled_while_waiting_for_lock(
        self, use_case, mock_engine, mock_work_order_store
    ):
        open_record = AllocationRecord(id=1, material_id=1, lot_id=10, allocated_quantity=5)
        settled = AllocationRecord(
            id=1,
            material_id=1,
            lot_id=10,
            allocated_quantity=5,
            consumed_quantity=5,
            is_consumed=True,
        )
        mock_work_order_store.get_work_order.side_effect = [
            _work_order(records=[open_record]),
            _work_order(records=[settled]),
        ]

        with pytest.raises(ValidationError):
            await use_case.execute(4, 10, 5)
        mock_engine.convert_allocation_to_usage_locked.assert_not_called()
        mock_work_order_store.update_allocation.assert_not_called()

    async def test_lot_not_held_by_work_order(self, use_case, mock_work_order_store):
        mock_work_order_store.get_work_order.return_value = _work_order()
        with pytest.raises(ValidationError) as exc_info:
            await use_case.execute(4, 10, 1)
        assert exc_info.value.details["field"] == "lot_id"

    async def test_non_positive_quantity(self, use_case, mock_work_order_store):
        with pytest.raises(ValidationError):
            await use_case.execute(4, 10, 0)
        mock_work_order_store.get_work_order.assert_not_called()


class TestUpdateWorkOrderUseCase:
    @pytest.fixture
    def use_case(self, mock_work_order_store):
        return UpdateWorkOrderUseCase(work_order_store=mock_work_order_store)

    async def test_status_and_notes(self, use_case, mock_work_order_store):
        mock_work_order_store.get_work_order.return_value = _work_order()

        work_order = await use_case.execute(
            4, UpdateWorkOrderRequest(status=WorkOrderStatus.IN_PROGRESS, notes="line 2")
        )

        assert work_order.status == WorkOrderStatus.IN_PROGRESS
        assert work_order.notes == "line 2"
        mock_work_order_store.update_work_order.assert_awaited_once()

    async def test_camel_case_process_assignments(self, use_case, mock_work_order_store):
        mock_work_order_store.get_work_order.return_value = _work_order()

        request = UpdateWorkOrderRequest.model_validate(
            {"processAssignments": [{"process": "extrusion", "machine": "EX-2"}]}
        )
        work_order = await use_case.execute(4, request)

        assert work_order.process_assignments == [{"process": "extrusion", "machine": "EX-2"}]

    async def test_back_to_provisional_rejected(self, use_case, mock_work_order_store):
        mock_work_order_store.get_work_order.return_value = _work_order()
        with pytest.raises(ValidationError):
            await use_case.execute(
                4, UpdateWorkOrderRequest(status=WorkOrderStatus.PROVISIONAL)
            )

    async def test_closed_work_order_status_locked(self, use_case, mock_work_order_store):
        mock_work_order_store.get_work_order.return_value = _work_order(
            status=WorkOrderStatus.COMPLETED
        )
        with pytest.raises(StateConflictError):
            await use_case.execute(4, UpdateWorkOrderRequest(status=WorkOrderStatus.PENDING))

    async def test_closed_work_order_notes_editable(self, use_case, mock_work_order_store):
        mock_work_order_store.get_work_order.return_value = _work_order(
            status=WorkOrderStatus.CANCELLED
        )
        work_order = await use_case.execute(4, UpdateWorkOrderRequest(notes="archived"))
        assert work_order.notes == "archived"

    async def test_empty_update_skips_write(self, use_case, mock_work_order_store):
        mock_work_order_store.get_work_order.return_value = _work_order()
        await use_case.execute(4, UpdateWorkOrderRequest())
        mock_work_order_store.update_work_order.assert_not_called()
