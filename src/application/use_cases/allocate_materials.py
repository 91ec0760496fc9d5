"""Allocate Materials Use Case - all-or-nothing multi-material reservation."""

from collections.abc import Iterable, Mapping
from typing import Any

from src.application.dto.responses import (
    AllocateMaterialsResponse,
    LotAllocationResponse,
    present,
)
from src.config import get_logger
from src.core.entities.allocation import (
    LotAllocation,
    MaterialRequirement,
    normalize_requirements,
)
from src.core.exceptions import ValidationError
from src.core.services.allocation_engine import AllocationEngine
from src.core.services.allocation_saga import AllocationSaga

logger = get_logger(__name__)


class AllocateMaterialsUseCase:
    """Reserve several materials; a shortage on any one releases them all."""

    def __init__(self, engine: AllocationEngine | None = None):
        self._engine = engine

    async def _get_engine(self) -> AllocationEngine:
        if self._engine is None:
            from src.application.services import get_allocation_engine

            self._engine = await get_allocation_engine()
        return self._engine

    async def execute(
        self,
        requirements: Iterable[MaterialRequirement | Mapping[str, Any]],
    ) -> list[LotAllocation]:
        normalized = normalize_requirements(requirements)
        if not normalized:
            raise ValidationError("materials", "at least one requirement is required")

        engine = await self._get_engine()
        async with AllocationSaga(engine) as saga:
            for requirement in normalized:
                await saga.allocate(requirement)
            allocations = saga.applied
            saga.commit()

        logger.info(
            "materials_allocated",
            materials=len(normalized),
            lots=len(allocations),
        )
        return allocations

    def to_response(self, allocations: list[LotAllocation]) -> AllocateMaterialsResponse:
        return AllocateMaterialsResponse(
            allocations=[LotAllocationResponse.from_entity(a) for a in allocations],
            total_allocated=present(sum(a.allocated_quantity for a in allocations)),
        )
