"""Abstract interface for material lot storage."""

from abc import ABC, abstractmethod

from src.core.entities.lot import LotDelta, LotFilter, MaterialLot


class ILotStore(ABC):
    """Interface for material lot persistence."""

    @abstractmethod
    async def create_lot(self, lot: MaterialLot) -> MaterialLot:
        """Insert a lot, assigning id and lot number."""
        pass

    @abstractmethod
    async def get_lot(self, lot_id: int) -> MaterialLot | None:
        """Get lot by ID."""
        pass

    @abstractmethod
    async def list_active_lots(self, material_id: int) -> list[MaterialLot]:
        """Active, unconsumed lots of a material, newest purchase first."""
        pass

    @abstractmethod
    async def list_lots(self, filters: LotFilter | None = None) -> list[MaterialLot]:
        """List lots matching filters, newest purchase first."""
        pass

    @abstractmethod
    async def apply_delta(self, lot_id: int, delta: LotDelta) -> MaterialLot:
        """Atomically adjust running quantities and return the updated lot.

        Raises LotNotFoundError when the lot is absent and
        LedgerInvariantError when the result would break lot invariants.
        """
        pass

    @abstractmethod
    async def update_lot(self, lot: MaterialLot) -> MaterialLot:
        """Update descriptive fields (pricing, storage, documents, flags)."""
        pass

    @abstractmethod
    async def delete_lot(self, lot_id: int) -> bool:
        """Physically delete a lot. Returns False when absent."""
        pass

    @abstractmethod
    async def count_lots(self, material_id: int) -> int:
        """Count every lot ever recorded for a material."""
        pass
