"""Update Work Order Use Case - status, process assignments and notes."""

from datetime import datetime

from src.application.dto.requests import UpdateWorkOrderRequest
from src.config import get_logger
from src.core.entities.work_order import WorkOrder, WorkOrderStatus
from src.core.exceptions import StateConflictError, ValidationError, WorkOrderNotFoundError
from src.core.interfaces.order_store import IWorkOrderStore

logger = get_logger(__name__)

CLOSED_STATUSES = frozenset({WorkOrderStatus.COMPLETED, WorkOrderStatus.CANCELLED})


class UpdateWorkOrderUseCase:
    def __init__(self, work_order_store: IWorkOrderStore | None = None):
        self._work_order_store = work_order_store

    async def _get_work_order_store(self) -> IWorkOrderStore:
        if self._work_order_store is None:
            from src.infrastructure.storage.sqlite import get_work_order_store

            self._work_order_store = await get_work_order_store()
        return self._work_order_store

    async def execute(self, work_order_id: int, request: UpdateWorkOrderRequest) -> WorkOrder:
        """
        Apply a partial update.

        Raises:
            WorkOrderNotFoundError: If the work order does not exist.
            ValidationError: If the status is set back to provisional.
            StateConflictError: If a closed work order's status is changed.
        """
        store = await self._get_work_order_store()
        work_order = await store.get_work_order(work_order_id)
        if work_order is None:
            raise WorkOrderNotFoundError(work_order_id)

        changes = request.model_dump(exclude_unset=True)
        new_status = changes.get("status")
        if new_status is not None and new_status != work_order.status:
            if new_status == WorkOrderStatus.PROVISIONAL:
                raise ValidationError(
                    "status", "provisional is set only while provisioning", new_status.value
                )
            if work_order.status in CLOSED_STATUSES:
                raise StateConflictError(
                    f"Work order {work_order.work_order_number} is {work_order.status.value}",
                    status=work_order.status.value,
                )

        if not changes:
            return work_order

        for field, value in changes.items():
            setattr(work_order, field, value)
        work_order.updated_at = datetime.utcnow()
        work_order = await store.update_work_order(work_order)

        logger.info("work_order_updated", work_order_id=work_order_id, fields=sorted(changes))
        return work_order
