"""
LIFO allocation engine.

Reserves, releases and consumes lot weight for a material, always walking
lots newest purchase first. Every mutation for a material runs under that
material's lock, so two concurrent requests can never both reserve the same
available weight. Each individual lot write is a single atomic delta.
"""

import asyncio
from typing import Literal

from src.config import get_logger
from src.core.entities.allocation import (
    ConsumedLot,
    ConsumptionResult,
    LifoPreview,
    LifoPreviewLine,
    LotAllocation,
)
from src.core.entities.lot import EPSILON, LotDelta, MaterialLot
from src.core.exceptions import InsufficientStockError, ValidationError
from src.core.services.costing import CostingEngine
from src.core.services.lot_ledger import LotLedger, MaterialLockRegistry

logger = get_logger(__name__)


class AllocationEngine:
    """Allocate, deallocate and consume lot weight in LIFO order."""

    def __init__(
        self,
        ledger: LotLedger,
        costing: CostingEngine,
        locks: MaterialLockRegistry | None = None,
    ):
        self._ledger = ledger
        self._costing = costing
        self._locks = locks if locks is not None else ledger.locks

    async def allocate(self, material_id: int, required_weight: float) -> list[LotAllocation]:
        """
        Reserve ``required_weight`` kg of a material, newest lots first.

        A non-positive requirement is a no-op. When the lots run out the call
        raises InsufficientStockError carrying the shortage and the
        reservations it already applied; reversing those is up to the caller.
        """
        if required_weight <= 0:
            return []

        async with self._locks.lock(material_id):
            lots = await self._ledger.list_active_lots(material_id)
            remaining_to_allocate = required_weight
            allocations: list[LotAllocation] = []

            for lot in lots:
                if remaining_to_allocate <= EPSILON:
                    break

                available = lot.available_weight
                if available <= 0:
                    continue

                take = min(available, remaining_to_allocate)
                await self._ledger.apply_delta(lot.id, LotDelta(allocated_weight=take))  # type: ignore[arg-type]
                allocations.append(
                    LotAllocation(
                        lot_id=lot.id,  # type: ignore[arg-type]
                        lot_number=lot.lot_number,
                        material_id=material_id,
                        allocated_quantity=take,
                    )
                )
                remaining_to_allocate -= take

            if remaining_to_allocate > EPSILON:
                logger.warning(
                    "allocation_shortfall",
                    material_id=material_id,
                    requested=required_weight,
                    shortage=remaining_to_allocate,
                    partial_lots=len(allocations),
                )
                raise InsufficientStockError(
                    material_id=material_id,
                    shortage=remaining_to_allocate,
                    requested=required_weight,
                    available=required_weight - remaining_to_allocate,
                    allocations=allocations,
                )

        logger.info(
            "material_allocated",
            material_id=material_id,
            weight=required_weight,
            lots=[a.lot_id for a in allocations],
        )
        return allocations

    def material_lock(self, material_id: int) -> asyncio.Lock:
        """
        Lock serializing lot mutation for a material.

        Callers that must check and mutate as one step take it themselves and
        then use the ``*_locked`` variants. The lock is not reentrant.
        """
        return self._locks.lock(material_id)

    async def get_lot(self, lot_id: int) -> MaterialLot:
        return await self._ledger.get_lot(lot_id)

    async def deallocate(self, lot_id: int, amount: float) -> MaterialLot:
        """
        Release reserved weight on a lot.

        Releasing more than is reserved clamps at zero, so repeated or late
        compensation calls are harmless.
        """
        if amount < 0:
            raise ValidationError("amount", "must not be negative", amount)

        lot = await self._ledger.get_lot(lot_id)
        async with self._locks.lock(lot.material_id):
            return await self.deallocate_locked(lot_id, amount)

    async def deallocate_locked(self, lot_id: int, amount: float) -> MaterialLot:
        """Same as ``deallocate``; the caller holds the lot's material lock."""
        if amount < 0:
            raise ValidationError("amount", "must not be negative", amount)

        lot = await self._ledger.get_lot(lot_id)
        release = min(amount, lot.allocated_quantity.weight)
        if release <= 0:
            return lot

        lot = await self._ledger.apply_delta(lot_id, LotDelta(allocated_weight=-release))
        logger.info(
            "lot_deallocated",
            lot_id=lot_id,
            requested=amount,
            released=release,
            allocated=lot.allocated_quantity.weight,
        )
        return lot

    async def convert_allocation_to_usage(self, lot_id: int, amount_used: float) -> MaterialLot:
        """
        Turn reserved weight into actual consumption.

        Lowers both the reservation and the remaining stock by
        ``amount_used`` (each clamped at zero), then refreshes the owning
        material's costing.
        """
        if amount_used <= 0:
            raise ValidationError("quantity_used", "must be greater than 0", amount_used)

        lot = await self._ledger.get_lot(lot_id)
        async with self._locks.lock(lot.material_id):
            return await self.convert_allocation_to_usage_locked(lot_id, amount_used)

    async def convert_allocation_to_usage_locked(
        self,
        lot_id: int,
        amount_used: float,
        reserved_limit: float | None = None,
    ) -> MaterialLot:
        """
        Same as ``convert_allocation_to_usage``; the caller holds the lock.

        ``reserved_limit`` is the part of the lot's reservation the caller
        owns. Usage above it is rejected so other holders' reservations on
        the same lot are never drawn down.
        """
        if amount_used <= 0:
            raise ValidationError("quantity_used", "must be greater than 0", amount_used)
        if reserved_limit is not None and amount_used > reserved_limit + EPSILON:
            raise ValidationError(
                "quantity_used",
                f"exceeds the {reserved_limit}kg reservation held on this lot",
                amount_used,
            )

        lot = await self._ledger.get_lot(lot_id)
        delta = LotDelta(
            allocated_weight=-min(amount_used, lot.allocated_quantity.weight),
            remaining_weight=-min(amount_used, lot.remaining_quantity.weight),
        )
        lot = await self._ledger.apply_delta(lot_id, delta)
        await self._costing.recompute_material_inventory(lot.material_id)

        logger.info(
            "allocation_converted_to_usage",
            lot_id=lot_id,
            quantity_used=amount_used,
            remaining=lot.remaining_quantity.weight,
            allocated=lot.allocated_quantity.weight,
            fully_consumed=lot.is_fully_consumed,
        )
        return lot

    async def preview_lifo(
        self,
        material_id: int,
        quantity: float,
        unit: Literal["weight", "length"] = "weight",
    ) -> LifoPreview:
        """
        Show which lots a consumption of ``quantity`` would draw from.

        Weight previews use unreserved weight; length previews use remaining
        meters priced per km. Nothing is written.
        """
        if quantity <= 0:
            raise ValidationError("quantity", "must be greater than 0", quantity)
        if unit not in ("weight", "length"):
            raise ValidationError("unit", "must be 'weight' or 'length'", unit)

        lots = await self._ledger.list_active_lots(material_id)
        remaining_to_consume = quantity
        lines: list[LifoPreviewLine] = []
        total_cost = 0.0

        for lot in lots:
            if remaining_to_consume <= EPSILON:
                break

            if unit == "weight":
                available = max(0.0, lot.available_weight)
                price = lot.pricing.price_per_kg
            else:
                available = lot.remaining_quantity.length
                price = lot.pricing.price_per_km or 0.0
            if available <= 0:
                continue

            consumed = min(remaining_to_consume, available)
            cost = consumed * price if unit == "weight" else consumed / 1000 * price

            lines.append(
                LifoPreviewLine(
                    lot_id=lot.id,  # type: ignore[arg-type]
                    lot_number=lot.lot_number,
                    supplier_id=lot.supplier_id,
                    purchase_date=lot.purchase_date,
                    consumed=consumed,
                    remaining=available - consumed,
                    price=price,
                    cost=cost,
                )
            )
            total_cost += cost
            remaining_to_consume -= consumed

        return LifoPreview(
            material_id=material_id,
            requested_quantity=quantity,
            unit=unit,
            lines=lines,
            total_cost=total_cost,
            avg_cost_per_unit=total_cost / quantity,
            feasible=remaining_to_consume <= EPSILON,
        )

    async def consume(self, material_id: int, quantity: float) -> ConsumptionResult:
        """
        Consume unreserved stock directly, newest lots first.

        The whole quantity is planned before anything is written; a shortage
        raises InsufficientStockError with no lot touched. Lengths shrink in
        proportion to the weight left on each lot.
        """
        if quantity <= 0:
            raise ValidationError("quantity", "must be greater than 0", quantity)

        async with self._locks.lock(material_id):
            lots = await self._ledger.list_active_lots(material_id)

            plan: list[tuple[MaterialLot, float]] = []
            remaining_to_consume = quantity
            for lot in lots:
                if remaining_to_consume <= EPSILON:
                    break
                available = lot.available_weight
                if available <= 0:
                    continue
                take = min(available, remaining_to_consume)
                plan.append((lot, take))
                remaining_to_consume -= take

            if remaining_to_consume > EPSILON:
                raise InsufficientStockError(
                    material_id=material_id,
                    shortage=remaining_to_consume,
                    requested=quantity,
                    available=quantity - remaining_to_consume,
                )

            result = ConsumptionResult(material_id=material_id)
            for lot, take in plan:
                new_weight = lot.remaining_quantity.weight - take
                length_delta = 0.0
                if lot.remaining_quantity.length > 0 and lot.initial_quantity.weight > 0:
                    ratio = new_weight / lot.initial_quantity.weight
                    new_length = lot.initial_quantity.length * ratio
                    length_delta = min(0.0, new_length - lot.remaining_quantity.length)

                await self._ledger.apply_delta(
                    lot.id,  # type: ignore[arg-type]
                    LotDelta(remaining_weight=-take, remaining_length=length_delta),
                )
                cost = take * lot.pricing.price_per_kg
                result.consumed_lots.append(
                    ConsumedLot(
                        lot_id=lot.id,  # type: ignore[arg-type]
                        lot_number=lot.lot_number,
                        consumed=take,
                        price=lot.pricing.price_per_kg,
                        cost=cost,
                    )
                )
                result.total_cost += cost

            result.avg_cost_per_kg = result.total_cost / quantity
            await self._costing.recompute_material_inventory(material_id)

        logger.info(
            "material_consumed",
            material_id=material_id,
            quantity=quantity,
            lots=len(result.consumed_lots),
            total_cost=round(result.total_cost, 4),
        )
        return result
