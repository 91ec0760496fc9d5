"""
Lot ledger service.

Owns every procurement lot record: intake, LIFO listing and the atomic
quantity deltas that allocation and consumption are built from. Derived
projections register as listeners and are told which material changed.
"""

import asyncio
import weakref
from collections.abc import Callable
from datetime import date
from typing import Any

from src.config import get_logger
from src.core.entities.lot import (
    LotDelta,
    LotFilter,
    LotPricing,
    LotStorage,
    MaterialLot,
    Quantity,
)
from src.core.exceptions import LotNotFoundError, MaterialNotFoundError, ValidationError
from src.core.interfaces.lot_store import ILotStore
from src.core.interfaces.material_store import IMaterialStore

logger = get_logger(__name__)

MutationListener = Callable[[int], None]

# Descriptive fields that may be edited after intake
EDITABLE_LOT_FIELDS = frozenset(
    {
        "supplier_id",
        "purchase_date",
        "pricing",
        "storage",
        "invoice_number",
        "invoice_date",
        "po_number",
        "notes",
        "is_active",
    }
)


class MaterialLockRegistry:
    """
    One asyncio lock per material id.

    Locks are held weakly: a material nobody is waiting on drops its entry,
    so the registry stays as small as the set of materials in flight.
    Locks are not reentrant.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[int, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def lock(self, material_id: int) -> asyncio.Lock:
        lock = self._locks.get(material_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[material_id] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)


class LotLedger:
    """Record of procurement lots and their running quantities."""

    def __init__(
        self,
        lot_store: ILotStore,
        material_store: IMaterialStore,
        locks: MaterialLockRegistry | None = None,
    ):
        self._lot_store = lot_store
        self._material_store = material_store
        self._listeners: list[MutationListener] = []
        # Shared with the allocation engine; serializes lot mutation per material
        self.locks = locks if locks is not None else MaterialLockRegistry()

    def subscribe(self, listener: MutationListener) -> None:
        """Register a callback invoked with the material id after any lot mutation."""
        self._listeners.append(listener)

    def _notify(self, material_id: int) -> None:
        for listener in self._listeners:
            listener(material_id)

    async def create_lot(
        self,
        material_id: int,
        supplier_id: int,
        purchase_date: date,
        initial_quantity: Quantity,
        pricing: LotPricing,
        storage: LotStorage,
        *,
        invoice_number: str | None = None,
        invoice_date: date | None = None,
        po_number: str | None = None,
        notes: str | None = None,
    ) -> MaterialLot:
        """
        Record a new lot with its full quantity unreserved.

        Raises:
            ValidationError: If the weight is negative or storage location is empty.
            MaterialNotFoundError: If the material does not exist.
        """
        if initial_quantity.weight < 0:
            raise ValidationError(
                "initial_quantity.weight", "must not be negative", initial_quantity.weight
            )
        if initial_quantity.length < 0:
            raise ValidationError(
                "initial_quantity.length", "must not be negative", initial_quantity.length
            )
        if storage.location is None:
            raise ValidationError("storage.location", "storage location is required")

        material = await self._material_store.get_material(material_id)
        if material is None:
            raise MaterialNotFoundError(material_id)

        if not pricing.total_cost and pricing.price_per_kg:
            pricing = pricing.model_copy(
                update={"total_cost": initial_quantity.weight * pricing.price_per_kg}
            )

        lot = MaterialLot(
            material_id=material_id,
            supplier_id=supplier_id,
            purchase_date=purchase_date,
            initial_quantity=initial_quantity.model_copy(),
            remaining_quantity=initial_quantity.model_copy(),
            allocated_quantity=Quantity(),
            pricing=pricing,
            storage=storage,
            invoice_number=invoice_number,
            invoice_date=invoice_date,
            po_number=po_number,
            notes=notes,
            is_fully_consumed=initial_quantity.weight == 0,
        )
        lot = await self._lot_store.create_lot(lot)

        logger.info(
            "lot_created",
            lot_id=lot.id,
            lot_number=lot.lot_number,
            material_id=material_id,
            weight=initial_quantity.weight,
        )
        self._notify(material_id)
        return lot

    async def get_lot(self, lot_id: int) -> MaterialLot:
        """Get a lot or raise LotNotFoundError."""
        lot = await self._lot_store.get_lot(lot_id)
        if lot is None:
            raise LotNotFoundError(lot_id)
        return lot

    async def list_active_lots(self, material_id: int) -> list[MaterialLot]:
        """Active, unconsumed lots in LIFO order (newest purchase first)."""
        return await self._lot_store.list_active_lots(material_id)

    async def list_lots(self, filters: LotFilter | None = None) -> list[MaterialLot]:
        return await self._lot_store.list_lots(filters)

    async def apply_delta(self, lot_id: int, delta: LotDelta) -> MaterialLot:
        """
        Atomically adjust a lot's remaining and allocated quantities.

        Callers size deltas so the lot stays within
        0 <= allocated <= remaining; the store refuses anything else.
        """
        lot = await self._lot_store.apply_delta(lot_id, delta)
        logger.debug(
            "lot_delta_applied",
            lot_id=lot_id,
            remaining_delta=delta.remaining_weight,
            allocated_delta=delta.allocated_weight,
            remaining=lot.remaining_quantity.weight,
            allocated=lot.allocated_quantity.weight,
        )
        self._notify(lot.material_id)
        return lot

    async def update_lot(self, lot_id: int, changes: dict[str, Any]) -> MaterialLot:
        """
        Edit descriptive lot fields.

        Quantities are never hand-edited; they move only through deltas.
        The row is re-read under the material lock so a concurrent
        allocation's quantities are never written back stale.
        """
        illegal = set(changes) - EDITABLE_LOT_FIELDS
        if illegal:
            raise ValidationError(
                ",".join(sorted(illegal)), "field cannot be edited after intake"
            )

        lot = await self.get_lot(lot_id)
        async with self.locks.lock(lot.material_id):
            lot = await self.get_lot(lot_id)
            data = lot.model_dump()
            for key, value in changes.items():
                # Nested pricing/storage changes are partial
                if isinstance(value, dict) and isinstance(data.get(key), dict):
                    data[key] = {**data[key], **value}
                else:
                    data[key] = value
            updated = MaterialLot.model_validate(data)
            if updated.storage.location is None:
                raise ValidationError("storage.location", "storage location is required")

            updated = await self._lot_store.update_lot(updated)
        logger.info("lot_updated", lot_id=lot_id, fields=sorted(changes))
        self._notify(updated.material_id)
        return updated

    async def remove_lot(self, lot_id: int) -> tuple[MaterialLot, bool]:
        """
        Remove a lot from the ledger.

        Lots still holding reservations are deactivated instead of deleted.

        Returns:
            The lot and whether it was only deactivated.
        """
        lot = await self.get_lot(lot_id)

        async with self.locks.lock(lot.material_id):
            lot = await self.get_lot(lot_id)
            if lot.allocated_quantity.weight > 0:
                lot.is_active = False
                lot = await self._lot_store.update_lot(lot)
                logger.info(
                    "lot_deactivated",
                    lot_id=lot_id,
                    allocated=lot.allocated_quantity.weight,
                )
                self._notify(lot.material_id)
                return lot, True

            await self._lot_store.delete_lot(lot_id)
        logger.info("lot_deleted", lot_id=lot_id)
        self._notify(lot.material_id)
        return lot, False
