"""Delete Work Order Use Case - releases outstanding reservations first."""

from dataclasses import dataclass

from src.config import get_logger
from src.core.entities.allocation import LotAllocation
from src.core.exceptions import WorkOrderNotFoundError
from src.core.interfaces.order_store import IQuotationStore, IWorkOrderStore
from src.core.services.allocation_engine import AllocationEngine
from src.core.services.allocation_saga import AllocationSaga

logger = get_logger(__name__)


@dataclass
class DeleteWorkOrderResult:
    work_order_id: int
    released_allocations: int


class DeleteWorkOrderUseCase:
    """Delete a work order, returning its unconsumed weight to the lots."""

    def __init__(
        self,
        engine: AllocationEngine | None = None,
        work_order_store: IWorkOrderStore | None = None,
        quotation_store: IQuotationStore | None = None,
    ):
        self._engine = engine
        self._work_order_store = work_order_store
        self._quotation_store = quotation_store

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

    async def _get_quotation_store(self) -> IQuotationStore:
        if self._quotation_store is None:
            from src.infrastructure.storage.sqlite import get_quotation_store

            self._quotation_store = await get_quotation_store()
        return self._quotation_store

    async def execute(self, work_order_id: int) -> DeleteWorkOrderResult:
        wo_store = await self._get_work_order_store()
        work_order = await wo_store.get_work_order(work_order_id)
        if work_order is None:
            raise WorkOrderNotFoundError(work_order_id)

        outstanding = work_order.outstanding_allocations

        # Same compensation path as a failed provisioning, newest record last
        saga = AllocationSaga(await self._get_engine())
        saga.track(
            [
                LotAllocation(
                    lot_id=record.lot_id,
                    material_id=record.material_id,
                    allocated_quantity=record.outstanding_quantity,
                )
                for record in outstanding
            ]
        )
        await saga.compensate()

        quotation_store = await self._get_quotation_store()
        quotation = await quotation_store.get_quotation(work_order.quote_id)
        if quotation is not None and quotation.work_order_id == work_order_id:
            await quotation_store.set_work_order(work_order.quote_id, None)

        await wo_store.delete_work_order(work_order_id)

        logger.info(
            "work_order_deleted_with_release",
            work_order_id=work_order_id,
            released_allocations=len(outstanding),
        )
        return DeleteWorkOrderResult(
            work_order_id=work_order_id,
            released_allocations=len(outstanding),
        )
