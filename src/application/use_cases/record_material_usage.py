"""Record Material Usage Use Case - turn a work order's reservation into consumption."""

from dataclasses import dataclass

from src.config import get_logger
from src.core.entities.allocation import AllocationRecord
from src.core.entities.lot import EPSILON, MaterialLot
from src.core.entities.work_order import WorkOrder
from src.core.exceptions import ValidationError, WorkOrderNotFoundError
from src.core.interfaces.order_store import IWorkOrderStore
from src.core.services.allocation_engine import AllocationEngine

logger = get_logger(__name__)

# Rounding slack when settling records against float weights
SETTLE_TOLERANCE = EPSILON


@dataclass
class RecordUsageResult:
    work_order: WorkOrder
    lot: MaterialLot
    quantity_used: float


class RecordMaterialUsageUseCase:
    """Consume reserved lot weight on behalf of a work order."""

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

    async def execute(
        self, work_order_id: int, lot_id: int, quantity_used: float
    ) -> RecordUsageResult:
        """
        Convert ``quantity_used`` kg reserved on ``lot_id`` into usage.

        The outstanding check, the lot write and the record settlement run
        under the material's lock, so concurrent usage against the same
        reservation cannot both pass the check.

        Raises:
            WorkOrderNotFoundError: If the work order does not exist.
            ValidationError: If the quantity is not positive or exceeds what
                the work order still holds on that lot.
        """
        if quantity_used <= 0:
            raise ValidationError("quantity_used", "must be greater than 0", quantity_used)

        wo_store = await self._get_work_order_store()
        work_order = await wo_store.get_work_order(work_order_id)
        if work_order is None:
            raise WorkOrderNotFoundError(work_order_id)
        records = self._records_on_lot(work_order, lot_id)

        engine = await self._get_engine()
        async with engine.material_lock(records[0].material_id):
            # Re-read: another usage call may have settled records while we waited
            work_order = await wo_store.get_work_order(work_order_id)
            if work_order is None:
                raise WorkOrderNotFoundError(work_order_id)
            records = self._records_on_lot(work_order, lot_id)
            outstanding = sum(r.outstanding_quantity for r in records)
            if quantity_used > outstanding + SETTLE_TOLERANCE:
                raise ValidationError(
                    "quantity_used",
                    f"exceeds outstanding allocation of {outstanding}kg",
                    quantity_used,
                )

            lot = await engine.convert_allocation_to_usage_locked(
                lot_id, quantity_used, reserved_limit=outstanding
            )

            # Settle the oldest records first
            left = quantity_used
            for record in records:
                if left <= 0:
                    break
                take = min(left, record.outstanding_quantity)
                record.consumed_quantity += take
                record.is_consumed = record.outstanding_quantity <= SETTLE_TOLERANCE
                await wo_store.update_allocation(record)
                left -= take

        logger.info(
            "work_order_usage_recorded",
            work_order_id=work_order_id,
            lot_id=lot_id,
            quantity_used=quantity_used,
        )
        return RecordUsageResult(work_order=work_order, lot=lot, quantity_used=quantity_used)

    @staticmethod
    def _records_on_lot(work_order: WorkOrder, lot_id: int) -> list[AllocationRecord]:
        records = [r for r in work_order.outstanding_allocations if r.lot_id == lot_id]
        if not records:
            raise ValidationError(
                "lot_id", "work order holds no outstanding allocation on this lot", lot_id
            )
        return records
