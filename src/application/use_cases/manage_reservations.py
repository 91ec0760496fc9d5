"""
Manage Reservations Use Cases - direct release and usage of lot reservations.

Reservations made by work orders are owned by their allocation records.
Direct calls may only touch the unowned part of a lot's reservation, so a
work order's share is never released or consumed behind its back.
"""

from collections.abc import Iterable

from src.application.use_cases.record_material_usage import RecordMaterialUsageUseCase
from src.config import get_logger
from src.core.entities.lot import EPSILON, MaterialLot
from src.core.exceptions import StateConflictError
from src.core.interfaces.order_store import IWorkOrderStore
from src.core.services.allocation_engine import AllocationEngine

logger = get_logger(__name__)


class _ReservationUseCase:
    def __init__(
        self,
        engine: AllocationEngine | None = None,
        work_order_store: IWorkOrderStore | None = None,
    ):
        self._engine = engine
        self._work_order_store = work_order_store

    async def _get_engine(self) -> AllocationEngine:
        if self._engine is None:
            from src.application.services import get_allocation_engine

            self._engine = await get_allocation_engine()
        return self._engine

    async def _get_work_order_store(self) -> IWorkOrderStore:
        if self._work_order_store is None:
            from src.infrastructure.storage.sqlite import get_work_order_store

            self._work_order_store = await get_work_order_store()
        return self._work_order_store

    async def _unowned_reservation(self, lot: MaterialLot) -> float:
        """Reserved weight on the lot not held by any work order."""
        wo_store = await self._get_work_order_store()
        owned = await wo_store.outstanding_on_lot(lot.id)  # type: ignore[arg-type]
        return max(0.0, lot.allocated_quantity.weight - owned)

    @staticmethod
    def _refuse(lot: MaterialLot, requested: float, unowned: float) -> StateConflictError:
        return StateConflictError(
            f"Lot {lot.lot_number} has only {unowned}kg reserved outside work orders; "
            f"{requested}kg requested",
            status="reserved",
        )


class DeallocateLotsUseCase(_ReservationUseCase):
    """Release unowned reservations lot by lot."""

    async def execute(self, items: Iterable[tuple[int, float]]) -> list[MaterialLot]:
        """
        Release ``(lot_id, amount)`` pairs in order.

        Raises:
            LotNotFoundError: If a lot does not exist.
            StateConflictError: If an amount exceeds the lot's unowned
                reservation. Pairs before it stay released.
        """
        engine = await self._get_engine()
        lots: list[MaterialLot] = []
        for lot_id, amount in items:
            lot = await engine.get_lot(lot_id)
            async with engine.material_lock(lot.material_id):
                lot = await engine.get_lot(lot_id)
                unowned = await self._unowned_reservation(lot)
                if amount > unowned + EPSILON:
                    raise self._refuse(lot, amount, unowned)
                lots.append(await engine.deallocate_locked(lot_id, amount))

        logger.info("reservations_released", lots=[lot.id for lot in lots])
        return lots


class RecordLotUsageUseCase(_ReservationUseCase):
    """Consume reserved weight on a lot, on behalf of a work order or not."""

    async def execute(
        self,
        lot_id: int,
        quantity_used: float,
        work_order_id: int | None = None,
    ) -> MaterialLot:
        """
        Convert reserved weight into usage.

        With a work order the usage settles its allocation records. Without
        one only the lot's unowned reservation can be consumed.

        Raises:
            LotNotFoundError: If the lot does not exist.
            StateConflictError: If unowned usage exceeds the unowned reservation.
        """
        if work_order_id is not None:
            use_case = RecordMaterialUsageUseCase(
                engine=await self._get_engine(),
                work_order_store=await self._get_work_order_store(),
            )
            result = await use_case.execute(work_order_id, lot_id, quantity_used)
            return result.lot

        engine = await self._get_engine()
        lot = await engine.get_lot(lot_id)
        async with engine.material_lock(lot.material_id):
            lot = await engine.get_lot(lot_id)
            unowned = await self._unowned_reservation(lot)
            if quantity_used > unowned + EPSILON:
                raise self._refuse(lot, quantity_used, unowned)
            return await engine.convert_allocation_to_usage_locked(
                lot_id, quantity_used, reserved_limit=unowned
            )
