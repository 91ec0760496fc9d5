"""
Integration tests for LIFO allocation, usage and costing.

These run the services against a migrated SQLite database so the guarded
lot updates and the LIFO ordering come from the real SQL.
"""

import asyncio
from datetime import date

import pytest

from src.core.entities.allocation import MaterialRequirement
from src.core.entities.lot import LotDelta
from src.core.exceptions import InsufficientStockError, ValidationError
from src.core.services import AllocationSaga

D1 = date(2024, 1, 1)
D2 = date(2024, 1, 2)
D3 = date(2024, 1, 3)


class TestAllocate:
    async def test_newest_lot_drawn_first(self, engine, ledger, make_material, make_lot):
        material = await make_material()
        oldest = await make_lot(material.id, 10, D1)
        middle = await make_lot(material.id, 10, D2)
        newest = await make_lot(material.id, 10, D3)

        allocations = await engine.allocate(material.id, 15)

        assert [(a.lot_id, a.allocated_quantity) for a in allocations] == [
            (newest.id, 10),
            (middle.id, 5),
        ]
        assert (await ledger.get_lot(oldest.id)).allocated_quantity.weight == 0

    async def test_two_lot_split(self, engine, make_material, make_lot):
        material = await make_material()
        first = await make_lot(material.id, 50, D1)
        second = await make_lot(material.id, 30, D2)

        allocations = await engine.allocate(material.id, 40)

        assert [(a.lot_id, a.allocated_quantity) for a in allocations] == [
            (second.id, 30),
            (first.id, 10),
        ]

    async def test_same_purchase_date_breaks_tie_by_newest_id(
        self, engine, make_material, make_lot
    ):
        material = await make_material()
        await make_lot(material.id, 10, D1)
        later = await make_lot(material.id, 10, D1)

        allocations = await engine.allocate(material.id, 5)

        assert allocations[0].lot_id == later.id

    async def test_zero_requirement_is_noop(self, engine, make_material, make_lot):
        material = await make_material()
        await make_lot(material.id, 10, D1)

        assert await engine.allocate(material.id, 0) == []

    async def test_allocation_does_not_change_remaining(
        self, engine, ledger, make_material, make_lot
    ):
        material = await make_material()
        lot = await make_lot(material.id, 25, D1)

        await engine.allocate(material.id, 20)
        await engine.deallocate(lot.id, 20)

        refreshed = await ledger.get_lot(lot.id)
        assert refreshed.remaining_quantity.weight == 25
        assert refreshed.allocated_quantity.weight == 0

    async def test_reserved_weight_is_skipped(self, engine, make_material, make_lot):
        material = await make_material()
        older = await make_lot(material.id, 20, D1)
        newer = await make_lot(material.id, 10, D2)

        first = await engine.allocate(material.id, 10)
        second = await engine.allocate(material.id, 5)

        assert [a.lot_id for a in first] == [newer.id]
        assert [a.lot_id for a in second] == [older.id]

    async def test_shortfall_reports_shortage_and_partial_reservations(
        self, engine, ledger, make_material, make_lot
    ):
        material = await make_material()
        lot = await make_lot(material.id, 40, D1)

        with pytest.raises(InsufficientStockError) as exc_info:
            await engine.allocate(material.id, 100)

        assert exc_info.value.shortage == pytest.approx(60)
        assert exc_info.value.material_id == material.id
        assert [a.lot_id for a in exc_info.value.allocations] == [lot.id]
        assert (await ledger.get_lot(lot.id)).allocated_quantity.weight == 40

    async def test_concurrent_allocations_never_overbook(
        self, engine, ledger, make_material, make_lot
    ):
        material = await make_material()
        lot = await make_lot(material.id, 50, D1)

        results = await asyncio.gather(
            engine.allocate(material.id, 30),
            engine.allocate(material.id, 30),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, InsufficientStockError)]
        assert len(failures) == 1
        assert failures[0].shortage == pytest.approx(10)

        refreshed = await ledger.get_lot(lot.id)
        assert refreshed.allocated_quantity.weight == pytest.approx(50)
        assert refreshed.allocated_quantity.weight <= refreshed.remaining_quantity.weight

    async def test_exact_fit_across_lots_despite_float_sum(
        self, engine, ledger, checker, make_material, make_lot
    ):
        material = await make_material()
        older = await make_lot(material.id, 0.1, D1)
        newer = await make_lot(material.id, 0.2, D2)

        report = await checker.check_availability(
            [{"materialId": material.id, "requiredWeight": 0.1 + 0.2}]
        )
        allocations = await engine.allocate(material.id, 0.1 + 0.2)

        assert report.all_sufficient is True
        assert [a.lot_id for a in allocations] == [newer.id, older.id]
        assert (await ledger.get_lot(older.id)).available_weight == pytest.approx(0)

    async def test_engine_and_ledger_share_material_lock(self, engine, ledger, make_material):
        material = await make_material()
        lock = engine.material_lock(material.id)

        assert ledger.locks.lock(material.id) is lock

    async def test_allocate_then_release_conserves_reservations(
        self, engine, ledger, make_material, make_lot
    ):
        material = await make_material()
        lot = await make_lot(material.id, 100, D1)
        await engine.allocate(material.id, 10)

        for amount in (25, 0.1, 64.9):
            allocations = await engine.allocate(material.id, amount)
            for allocation in allocations:
                await engine.deallocate(allocation.lot_id, allocation.allocated_quantity)

            refreshed = await ledger.get_lot(lot.id)
            assert refreshed.allocated_quantity.weight == pytest.approx(10)
            assert refreshed.remaining_quantity.weight == 100


class TestDeallocate:
    async def test_release_clamps_at_reserved(self, engine, make_material, make_lot):
        material = await make_material()
        lot = await make_lot(material.id, 10, D1)
        await engine.allocate(material.id, 4)

        refreshed = await engine.deallocate(lot.id, 100)

        assert refreshed.allocated_quantity.weight == 0
        assert refreshed.remaining_quantity.weight == 10

    async def test_release_without_reservation_is_noop(self, engine, make_material, make_lot):
        material = await make_material()
        lot = await make_lot(material.id, 10, D1)

        refreshed = await engine.deallocate(lot.id, 5)

        assert refreshed.allocated_quantity.weight == 0

    async def test_negative_amount_rejected(self, engine, make_material, make_lot):
        material = await make_material()
        lot = await make_lot(material.id, 10, D1)

        with pytest.raises(ValidationError):
            await engine.deallocate(lot.id, -1)


class TestConvertToUsage:
    async def test_usage_lowers_reserved_and_remaining(
        self, engine, make_material, make_lot
    ):
        material = await make_material()
        lot = await make_lot(material.id, 30, D1)
        await engine.allocate(material.id, 20)

        refreshed = await engine.convert_allocation_to_usage(lot.id, 12)

        assert refreshed.allocated_quantity.weight == pytest.approx(8)
        assert refreshed.remaining_quantity.weight == pytest.approx(18)
        assert refreshed.is_fully_consumed is False

    async def test_full_usage_marks_lot_consumed(
        self, engine, ledger, material_store, make_material, make_lot
    ):
        material = await make_material()
        lot = await make_lot(material.id, 10, D1)
        await engine.allocate(material.id, 10)

        refreshed = await engine.convert_allocation_to_usage(lot.id, 10)

        assert refreshed.remaining_quantity.weight == 0
        assert refreshed.allocated_quantity.weight == 0
        assert refreshed.is_fully_consumed is True
        assert await ledger.list_active_lots(material.id) == []
        stored = await material_store.get_material(material.id)
        assert stored.inventory.total_weight == 0

    async def test_non_positive_amount_rejected(self, engine, make_material, make_lot):
        material = await make_material()
        lot = await make_lot(material.id, 10, D1)

        with pytest.raises(ValidationError):
            await engine.convert_allocation_to_usage(lot.id, 0)


class TestConsume:
    async def test_consumption_updates_costing(
        self, engine, costing, material_store, make_material, make_lot
    ):
        material = await make_material()
        await make_lot(material.id, 100, D1, price_per_kg=10)
        await make_lot(material.id, 50, D2, price_per_kg=16)

        before = await costing.recompute_material_inventory(material.id)
        assert before.total_weight == 150
        assert before.avg_price_per_kg == pytest.approx(12)
        assert before.last_price_per_kg == 16

        result = await engine.consume(material.id, 50)

        assert result.total_cost == pytest.approx(800)
        assert result.avg_cost_per_kg == pytest.approx(16)
        stored = await material_store.get_material(material.id)
        assert stored.inventory.total_weight == pytest.approx(100)
        assert stored.inventory.avg_price_per_kg == pytest.approx(10)
        assert stored.inventory.last_price_per_kg == 10

    async def test_shortage_writes_nothing(self, engine, ledger, make_material, make_lot):
        material = await make_material()
        lot = await make_lot(material.id, 10, D1)

        with pytest.raises(InsufficientStockError):
            await engine.consume(material.id, 11)

        assert (await ledger.get_lot(lot.id)).remaining_quantity.weight == 10

    async def test_length_shrinks_with_weight(self, engine, ledger, make_material, make_lot):
        material = await make_material()
        lot = await make_lot(material.id, 100, D1, length=2000, price_per_km=50)

        await engine.consume(material.id, 25)

        refreshed = await ledger.get_lot(lot.id)
        assert refreshed.remaining_quantity.length == pytest.approx(1500)

    async def test_exact_fit_across_lots_despite_float_sum(
        self, engine, ledger, make_material, make_lot
    ):
        material = await make_material()
        older = await make_lot(material.id, 0.1, D1)
        newer = await make_lot(material.id, 0.2, D2)

        result = await engine.consume(material.id, 0.1 + 0.2)

        assert len(result.consumed_lots) == 2
        assert result.total_cost == pytest.approx(3)
        assert (await ledger.get_lot(older.id)).is_fully_consumed is True
        assert (await ledger.get_lot(newer.id)).is_fully_consumed is True


class TestPreview:
    async def test_preview_does_not_write(self, engine, ledger, make_material, make_lot):
        material = await make_material()
        older = await make_lot(material.id, 10, D1, price_per_kg=5)
        newer = await make_lot(material.id, 10, D2, price_per_kg=7)

        preview = await engine.preview_lifo(material.id, 15)

        assert [line.lot_id for line in preview.lines] == [newer.id, older.id]
        assert preview.total_cost == pytest.approx(70 + 25)
        assert preview.feasible is True
        assert (await ledger.get_lot(newer.id)).remaining_quantity.weight == 10

    async def test_infeasible_preview(self, engine, make_material, make_lot):
        material = await make_material()
        await make_lot(material.id, 10, D1)

        preview = await engine.preview_lifo(material.id, 25)

        assert preview.feasible is False

    async def test_exact_fit_is_feasible(self, engine, make_material, make_lot):
        material = await make_material()
        await make_lot(material.id, 0.1, D1)
        await make_lot(material.id, 0.2, D2)

        preview = await engine.preview_lifo(material.id, 0.1 + 0.2)

        assert preview.feasible is True

    async def test_length_preview_prices_per_km(self, engine, make_material, make_lot):
        material = await make_material()
        await make_lot(material.id, 100, D1, length=1000, price_per_km=200)

        preview = await engine.preview_lifo(material.id, 500, unit="length")

        assert preview.total_cost == pytest.approx(100)


class TestAvailability:
    async def test_zero_requirement_with_stock_is_sufficient(
        self, checker, make_material, make_lot
    ):
        material = await make_material()
        await make_lot(material.id, 10, D1)

        report = await checker.check_availability(
            [{"materialId": material.id, "requiredWeight": 0}]
        )

        assert report.materials[0].is_sufficient is True
        assert report.all_sufficient is True

    async def test_zero_requirement_without_stock_is_not_sufficient(
        self, checker, make_material
    ):
        material = await make_material()

        report = await checker.check_availability(
            [{"materialId": material.id, "requiredWeight": 0}]
        )

        assert report.materials[0].is_sufficient is False
        assert report.materials[0].is_available is False

    async def test_reserved_weight_is_not_available(
        self, checker, engine, make_material, make_lot
    ):
        material = await make_material()
        await make_lot(material.id, 10, D1)
        await engine.allocate(material.id, 6)

        report = await checker.check_availability(
            [MaterialRequirement(material_id=material.id, required_weight=5)]
        )

        detail = report.materials[0]
        assert detail.total_remaining == 10
        assert detail.total_allocated == 6
        assert detail.total_available == 4
        assert detail.is_sufficient is False

    async def test_unknown_material(self, checker):
        report = await checker.check_availability([{"materialId": 999, "requiredWeight": 1}])

        assert report.materials[0].material_name == "Unknown"
        assert report.all_available is False


class TestCostingProjection:
    async def test_recompute_is_idempotent(
        self, costing, material_store, make_material, make_lot
    ):
        material = await make_material()
        await make_lot(material.id, 100, D1, price_per_kg=10)
        await make_lot(material.id, 50, D2, price_per_kg=16)

        first = await costing.recompute_material_inventory(material.id)
        second = await costing.recompute_material_inventory(material.id)

        assert second == first
        stored = await material_store.get_material(material.id)
        assert stored.inventory.total_weight == first.total_weight
        assert stored.inventory.avg_price_per_kg == pytest.approx(first.avg_price_per_kg)

    async def test_reservation_cycle_leaves_costing_unchanged(
        self, engine, costing, make_material, make_lot
    ):
        material = await make_material()
        await make_lot(material.id, 100, D1, price_per_kg=10)
        lot = await make_lot(material.id, 50, D2, price_per_kg=16)
        before = await costing.recompute_material_inventory(material.id)

        await engine.allocate(material.id, 30)
        await engine.deallocate(lot.id, 30)

        after = await costing.recompute_material_inventory(material.id)
        assert after.total_weight == before.total_weight
        assert after.avg_price_per_kg == pytest.approx(before.avg_price_per_kg)

    async def test_usage_conserves_weight(
        self, engine, ledger, costing, make_material, make_lot
    ):
        material = await make_material()
        lot = await make_lot(material.id, 100, D1)
        await engine.allocate(material.id, 20)

        await engine.convert_allocation_to_usage(lot.id, 12)

        refreshed = await ledger.get_lot(lot.id)
        snapshot = await costing.recompute_material_inventory(material.id)
        assert refreshed.remaining_quantity.weight + 12 == pytest.approx(100)
        assert refreshed.allocated_quantity.weight == pytest.approx(8)
        assert snapshot.total_weight == pytest.approx(refreshed.remaining_quantity.weight)


class TestLotRemoval:
    async def test_removal_waits_for_in_flight_allocation(
        self, ledger, make_material, make_lot
    ):
        material = await make_material()
        lot = await make_lot(material.id, 50, D1)

        async with ledger.locks.lock(material.id):
            task = asyncio.create_task(ledger.remove_lot(lot.id))
            await asyncio.sleep(0.05)
            assert not task.done()
            await ledger.apply_delta(lot.id, LotDelta(allocated_weight=5))

        removed, deactivated = await task

        assert deactivated is True
        assert removed.is_active is False
        assert (await ledger.get_lot(lot.id)).allocated_quantity.weight == 5

    async def test_edit_keeps_concurrent_reservation(self, ledger, make_material, make_lot):
        material = await make_material()
        lot = await make_lot(material.id, 50, D1)

        async with ledger.locks.lock(material.id):
            task = asyncio.create_task(ledger.update_lot(lot.id, {"notes": "recounted"}))
            await asyncio.sleep(0.05)
            await ledger.apply_delta(lot.id, LotDelta(allocated_weight=7))

        updated = await task

        assert updated.notes == "recounted"
        assert updated.allocated_quantity.weight == 7


class TestSaga:
    async def test_failure_releases_every_reservation(
        self, engine, ledger, make_material, make_lot
    ):
        copper = await make_material()
        pvc = await make_material(name="PVC sheath")
        copper_lot = await make_lot(copper.id, 50, D1)
        pvc_lot = await make_lot(pvc.id, 5, D1)

        with pytest.raises(InsufficientStockError):
            async with AllocationSaga(engine) as saga:
                await saga.allocate(MaterialRequirement(material_id=copper.id, required_weight=30))
                await saga.allocate(MaterialRequirement(material_id=pvc.id, required_weight=10))

        assert (await ledger.get_lot(copper_lot.id)).allocated_quantity.weight == 0
        assert (await ledger.get_lot(pvc_lot.id)).allocated_quantity.weight == 0

    async def test_commit_keeps_reservations(self, engine, ledger, make_material, make_lot):
        material = await make_material()
        lot = await make_lot(material.id, 50, D1)

        async with AllocationSaga(engine) as saga:
            await saga.allocate(MaterialRequirement(material_id=material.id, required_weight=30))
            saga.commit()

        assert (await ledger.get_lot(lot.id)).allocated_quantity.weight == 30
