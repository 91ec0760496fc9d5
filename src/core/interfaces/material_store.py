"""Abstract interface for material catalog storage."""

from abc import ABC, abstractmethod

from src.core.entities.material import (
    InventorySnapshot,
    Material,
    MaterialCategory,
    ReprocessInventory,
)


class IMaterialStore(ABC):
    """Interface for material catalog persistence."""

    @abstractmethod
    async def create_material(self, material: Material) -> Material:
        """Create a new material, generating its code."""
        pass

    @abstractmethod
    async def get_material(self, material_id: int) -> Material | None:
        """Get material by ID."""
        pass

    @abstractmethod
    async def list_materials(
        self,
        category: MaterialCategory | None = None,
        is_active: bool | None = None,
        search: str | None = None,
        low_stock: bool = False,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Material]:
        """List materials with optional filters, newest first."""
        pass

    @abstractmethod
    async def update_material(self, material: Material) -> Material:
        """Update descriptive material fields."""
        pass

    @abstractmethod
    async def delete_material(self, material_id: int) -> bool:
        """Delete a material. Returns False when absent."""
        pass

    @abstractmethod
    async def save_inventory_snapshot(
        self, material_id: int, snapshot: InventorySnapshot
    ) -> None:
        """Persist the derived inventory snapshot."""
        pass

    @abstractmethod
    async def save_reprocess_inventory(
        self, material_id: int, reprocess: ReprocessInventory
    ) -> None:
        """Persist the reprocess bucket."""
        pass
