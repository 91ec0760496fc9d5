"""
Provision Work Order Use Case.

Creates a work order from a quotation and reserves every required material
in LIFO order. Provisioning is all-or-nothing: on any failure the
reservations already made are released, the provisional work order is
removed and the error surfaces.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from src.application.dto.responses import WorkOrderResponse
from src.config import get_logger
from src.core.entities.allocation import (
    AllocationRecord,
    LotAllocation,
    MaterialRequirement,
    normalize_requirements,
)
from src.core.entities.work_order import WorkOrder, WorkOrderStatus
from src.core.exceptions import (
    MaterialNotFoundError,
    QuotationNotFoundError,
    StateConflictError,
)
from src.core.interfaces.material_store import IMaterialStore
from src.core.interfaces.order_store import IQuotationStore, IWorkOrderStore
from src.core.services.allocation_engine import AllocationEngine
from src.core.services.allocation_saga import AllocationSaga

logger = get_logger(__name__)


@dataclass
class ProvisionResult:
    """Result of provisioning a work order."""

    work_order: WorkOrder
    allocations: list[LotAllocation] = field(default_factory=list)


class ProvisionWorkOrderUseCase:
    """Create a work order and reserve its materials atomically."""

    def __init__(
        self,
        engine: AllocationEngine | None = None,
        work_order_store: IWorkOrderStore | None = None,
        quotation_store: IQuotationStore | None = None,
        material_store: IMaterialStore | None = None,
    ):
        self._engine = engine
        self._work_order_store = work_order_store
        self._quotation_store = quotation_store
        self._material_store = material_store

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

    async def _get_material_store(self) -> IMaterialStore:
        if self._material_store is None:
            from src.infrastructure.storage.sqlite import get_material_store

            self._material_store = await get_material_store()
        return self._material_store

    async def execute(
        self,
        quote_id: int,
        requirements: Iterable[MaterialRequirement | Mapping[str, Any]],
        process_assignments: list[dict[str, Any]] | None = None,
        notes: str = "",
    ) -> ProvisionResult:
        """
        Provision a work order for a quotation.

        Raises:
            QuotationNotFoundError: If the quotation does not exist.
            StateConflictError: If the quotation already has a work order.
            MaterialNotFoundError: If a required material does not exist.
            InsufficientStockError: If any material is short (after rollback).
        """
        quotation_store = await self._get_quotation_store()
        quotation = await quotation_store.get_quotation(quote_id)
        if quotation is None:
            raise QuotationNotFoundError(quote_id)
        if quotation.work_order_id is not None:
            raise StateConflictError(
                f"Quotation {quotation.quote_number} already has work order "
                f"{quotation.work_order_id}",
                status="converted",
            )

        normalized = normalize_requirements(requirements)
        names = await self._resolve_material_names(normalized)

        logger.info(
            "work_order_provisioning_started",
            quote_id=quote_id,
            materials=len(normalized),
        )

        wo_store = await self._get_work_order_store()
        work_order = await wo_store.create_work_order(
            WorkOrder(
                quote_id=quote_id,
                quote_number=quotation.quote_number or "",
                customer_id=quotation.customer_id,
                cable_length=quotation.cable_length,
                status=WorkOrderStatus.PROVISIONAL,
                process_assignments=process_assignments or [],
                notes=notes,
            )
        )

        engine = await self._get_engine()
        linked = False
        try:
            async with AllocationSaga(engine) as saga:
                for requirement in normalized:
                    await saga.allocate(requirement)

                records = [
                    AllocationRecord(
                        work_order_id=work_order.id,
                        material_id=allocation.material_id,
                        lot_id=allocation.lot_id,
                        material_name=names.get(allocation.material_id),
                        allocated_quantity=allocation.allocated_quantity,
                    )
                    for allocation in saga.applied
                ]
                work_order.allocated_materials = await wo_store.save_allocations(
                    work_order.id, records  # type: ignore[arg-type]
                )
                # A concurrent provisioning may have converted the quotation meanwhile
                if not await quotation_store.link_work_order(quote_id, work_order.id):  # type: ignore[arg-type]
                    raise StateConflictError(
                        f"Quotation {quotation.quote_number} was converted concurrently",
                        status="converted",
                    )
                linked = True
                work_order.status = WorkOrderStatus.PENDING
                work_order = await wo_store.update_work_order(work_order)
                allocations = saga.applied
                saga.commit()
        except Exception as e:
            if linked:
                await quotation_store.set_work_order(quote_id, None)
            await wo_store.delete_work_order(work_order.id)  # type: ignore[arg-type]
            logger.warning(
                "work_order_provisioning_rolled_back",
                quote_id=quote_id,
                work_order_id=work_order.id,
                error=str(e),
            )
            raise

        logger.info(
            "work_order_provisioned",
            work_order_id=work_order.id,
            work_order_number=work_order.work_order_number,
            allocations=len(allocations),
        )
        return ProvisionResult(work_order=work_order, allocations=allocations)

    async def _resolve_material_names(
        self, requirements: list[MaterialRequirement]
    ) -> dict[int, str]:
        store = await self._get_material_store()
        names: dict[int, str] = {}
        for requirement in requirements:
            material = await store.get_material(requirement.material_id)
            if material is None:
                raise MaterialNotFoundError(requirement.material_id)
            names[requirement.material_id] = requirement.material_name or material.name
        return names

    def to_response(self, result: ProvisionResult) -> WorkOrderResponse:
        return WorkOrderResponse.from_entity(result.work_order)
