"""
Compensating log for multi-material allocations.

Work order provisioning reserves several materials one after another. If any
step fails, every reservation already made is released again, newest first.
"""

from types import TracebackType

from src.config import get_logger
from src.core.entities.allocation import LotAllocation, MaterialRequirement
from src.core.exceptions import InsufficientStockError, LotNotFoundError
from src.core.services.allocation_engine import AllocationEngine

logger = get_logger(__name__)


class AllocationSaga:
    """
    Track applied allocations and undo them unless committed.

    Usage:
        async with AllocationSaga(engine) as saga:
            for requirement in requirements:
                await saga.allocate(requirement)
            ...persist...
            saga.commit()
    """

    def __init__(self, engine: AllocationEngine):
        self._engine = engine
        self._applied: list[LotAllocation] = []
        self._committed = False

    @property
    def applied(self) -> list[LotAllocation]:
        return list(self._applied)

    async def allocate(self, requirement: MaterialRequirement) -> list[LotAllocation]:
        """Allocate one requirement, logging every lot touched (even on shortfall)."""
        try:
            allocations = await self._engine.allocate(
                requirement.material_id, requirement.required_weight
            )
        except InsufficientStockError as e:
            self._applied.extend(e.allocations)
            raise
        self._applied.extend(allocations)
        return allocations

    def track(self, allocations: list[LotAllocation]) -> None:
        """Record allocations made outside the saga so they are compensated too."""
        self._applied.extend(allocations)

    def commit(self) -> None:
        self._committed = True

    async def compensate(self) -> None:
        """Release every logged allocation in reverse order."""
        while self._applied:
            allocation = self._applied.pop()
            try:
                await self._engine.deallocate(allocation.lot_id, allocation.allocated_quantity)
            except LotNotFoundError:
                logger.warning(
                    "compensation_lot_missing",
                    lot_id=allocation.lot_id,
                    quantity=allocation.allocated_quantity,
                )

    async def __aenter__(self) -> "AllocationSaga":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is not None and not self._committed:
            count = len(self._applied)
            await self.compensate()
            logger.info("allocations_compensated", count=count, reason=str(exc))
