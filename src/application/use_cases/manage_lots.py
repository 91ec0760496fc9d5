"""Lot intake and maintenance use cases.

Every lot change ends with a costing recompute of the owning material so
its stored inventory snapshot matches the live lots.
"""

from dataclasses import dataclass

from src.application.dto.requests import CreateLotRequest, UpdateLotRequest
from src.config import get_logger
from src.core.entities.lot import LotPricing, LotStorage, MaterialLot, Quantity
from src.core.services.costing import CostingEngine
from src.core.services.lot_ledger import LotLedger

logger = get_logger(__name__)


class _LotUseCase:
    def __init__(
        self,
        ledger: LotLedger | None = None,
        costing: CostingEngine | None = None,
    ):
        self._ledger = ledger
        self._costing = costing

    async def _get_ledger(self) -> LotLedger:
        if self._ledger is None:
            from src.application.services import get_lot_ledger

            self._ledger = await get_lot_ledger()
        return self._ledger

    async def _get_costing(self) -> CostingEngine:
        if self._costing is None:
            from src.application.services import get_costing_engine

            self._costing = await get_costing_engine()
        return self._costing


class CreateLotUseCase(_LotUseCase):
    """Record a new procurement lot."""

    async def execute(self, request: CreateLotRequest) -> MaterialLot:
        ledger = await self._get_ledger()
        lot = await ledger.create_lot(
            material_id=request.material_id,
            supplier_id=request.supplier_id,
            purchase_date=request.purchase_date,
            initial_quantity=Quantity(**request.initial_quantity.model_dump()),
            pricing=LotPricing(**request.pricing.model_dump()),
            storage=LotStorage(**request.storage.model_dump()),
            invoice_number=request.invoice_number,
            invoice_date=request.invoice_date,
            po_number=request.po_number,
            notes=request.notes,
        )
        costing = await self._get_costing()
        await costing.recompute_material_inventory(lot.material_id)
        return lot


class UpdateLotUseCase(_LotUseCase):
    """Edit lot metadata (supplier, pricing, storage, documents)."""

    async def execute(self, lot_id: int, request: UpdateLotRequest) -> MaterialLot:
        changes = request.model_dump(exclude_unset=True)
        ledger = await self._get_ledger()
        if not changes:
            return await ledger.get_lot(lot_id)

        lot = await ledger.update_lot(lot_id, changes)
        costing = await self._get_costing()
        await costing.recompute_material_inventory(lot.material_id)
        return lot


@dataclass
class RemoveLotResult:
    lot: MaterialLot
    deactivated: bool


class RemoveLotUseCase(_LotUseCase):
    """Delete a lot, or deactivate it while work orders still hold reservations."""

    async def execute(self, lot_id: int) -> RemoveLotResult:
        ledger = await self._get_ledger()
        lot, deactivated = await ledger.remove_lot(lot_id)
        costing = await self._get_costing()
        await costing.recompute_material_inventory(lot.material_id)
        return RemoveLotResult(lot=lot, deactivated=deactivated)
