"""
SQLite implementation of material catalog storage.

Materials carry two denormalized projections as plain columns: the costing
snapshot (``inventory_*``) and the reprocess bucket (``reprocess_*``).
"""

from datetime import datetime

import aiosqlite

from src.config import get_logger
from src.core.entities.material import (
    CATEGORY_PREFIX,
    InventorySnapshot,
    Material,
    MaterialCategory,
    ReprocessInventory,
)
from src.core.interfaces.material_store import IMaterialStore
from src.infrastructure.storage.sqlite.connection import (
    get_connection,
    get_transaction,
    next_sequence,
)

logger = get_logger(__name__)


class SQLiteMaterialStore(IMaterialStore):
    """SQLite implementation of material catalog storage."""

    async def create_material(self, material: Material) -> Material:
        """Create a new material record, generating its code."""
        now = datetime.utcnow()
        material.created_at = now
        material.updated_at = now
        async with get_transaction(immediate=True) as conn:
            if not material.material_code:
                material.material_code = await next_sequence(
                    conn, "materials", "material_code", f"{CATEGORY_PREFIX[material.category]}-"
                )
            cursor = await conn.execute(
                """
                INSERT INTO materials (
                    material_code, material_type_id, name, category,
                    measurement_type, reorder_level, is_active, notes,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    material.material_code,
                    material.material_type_id,
                    material.name,
                    material.category.value,
                    material.measurement_type.value,
                    material.reorder_level,
                    int(material.is_active),
                    material.notes,
                    material.created_at.isoformat(),
                    material.updated_at.isoformat(),
                ),
            )
            material.id = cursor.lastrowid
            logger.info(
                "material_created",
                material_id=material.id,
                material_code=material.material_code,
                name=material.name,
            )
            return material

    async def get_material(self, material_id: int) -> Material | None:
        """Get material by ID."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM materials WHERE id = ?", (material_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_material(row)

    async def list_materials(
        self,
        category: MaterialCategory | None = None,
        is_active: bool | None = None,
        search: str | None = None,
        low_stock: bool = False,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Material]:
        """List materials ordered by name, with optional filters."""
        clauses: list[str] = []
        params: list = []

        if category is not None:
            clauses.append("category = ?")
            params.append(category.value)
        if is_active is not None:
            clauses.append("is_active = ?")
            params.append(int(is_active))
        if search:
            clauses.append("(name LIKE ? OR material_code LIKE ?)")
            params.extend([f"%{search}%", f"%{search}%"])
        if low_stock:
            clauses.append("inventory_total_weight < reorder_level")

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        params.extend([limit, offset])

        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT * FROM materials
                {where}
                ORDER BY name
                LIMIT ? OFFSET ?
                """,
                params,
            )
            rows = await cursor.fetchall()
            return [self._row_to_material(row) for row in rows]

    async def update_material(self, material: Material) -> Material:
        """Update catalog fields of an existing material."""
        material.updated_at = datetime.utcnow()
        async with get_transaction() as conn:
            await conn.execute(
                """
                UPDATE materials SET
                    material_type_id = ?, name = ?, category = ?,
                    measurement_type = ?, reorder_level = ?,
                    is_active = ?, notes = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    material.material_type_id,
                    material.name,
                    material.category.value,
                    material.measurement_type.value,
                    material.reorder_level,
                    int(material.is_active),
                    material.notes,
                    material.updated_at.isoformat(),
                    material.id,
                ),
            )
            logger.info("material_updated", material_id=material.id)
            return material

    async def delete_material(self, material_id: int) -> bool:
        async with get_transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM materials WHERE id = ?", (material_id,)
            )
            deleted = cursor.rowcount > 0
            if deleted:
                logger.info("material_deleted", material_id=material_id)
            return deleted

    async def save_inventory_snapshot(
        self, material_id: int, snapshot: InventorySnapshot
    ) -> None:
        """Overwrite the material's costing snapshot columns."""
        async with get_transaction() as conn:
            await conn.execute(
                """
                UPDATE materials SET
                    inventory_total_weight = ?,
                    inventory_total_length = ?,
                    inventory_avg_price_per_kg = ?,
                    inventory_avg_price_per_km = ?,
                    inventory_last_price_per_kg = ?,
                    inventory_last_price_per_km = ?,
                    inventory_last_purchase_date = ?,
                    inventory_active_lots = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    snapshot.total_weight,
                    snapshot.total_length,
                    snapshot.avg_price_per_kg,
                    snapshot.avg_price_per_km,
                    snapshot.last_price_per_kg,
                    snapshot.last_price_per_km,
                    snapshot.last_purchase_date.isoformat()
                    if snapshot.last_purchase_date
                    else None,
                    snapshot.active_lots,
                    datetime.utcnow().isoformat(),
                    material_id,
                ),
            )

    async def save_reprocess_inventory(
        self, material_id: int, reprocess: ReprocessInventory
    ) -> None:
        async with get_transaction() as conn:
            await conn.execute(
                """
                UPDATE materials SET
                    reprocess_total_weight = ?,
                    reprocess_price_per_kg = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    reprocess.total_weight,
                    reprocess.price_per_kg,
                    datetime.utcnow().isoformat(),
                    material_id,
                ),
            )

    @staticmethod
    def _row_to_material(row: aiosqlite.Row) -> Material:
        """Convert database row to Material entity."""
        return Material(
            id=row["id"],
            material_code=row["material_code"],
            material_type_id=row["material_type_id"],
            name=row["name"],
            category=MaterialCategory(row["category"]),
            measurement_type=row["measurement_type"],
            reorder_level=float(row["reorder_level"]),
            is_active=bool(row["is_active"]),
            notes=row["notes"],
            inventory=InventorySnapshot(
                total_weight=float(row["inventory_total_weight"]),
                total_length=float(row["inventory_total_length"]),
                avg_price_per_kg=float(row["inventory_avg_price_per_kg"]),
                avg_price_per_km=float(row["inventory_avg_price_per_km"]),
                last_price_per_kg=float(row["inventory_last_price_per_kg"]),
                last_price_per_km=float(row["inventory_last_price_per_km"]),
                last_purchase_date=row["inventory_last_purchase_date"],
                active_lots=row["inventory_active_lots"],
            ),
            reprocess_inventory=ReprocessInventory(
                total_weight=float(row["reprocess_total_weight"]),
                price_per_kg=float(row["reprocess_price_per_kg"]),
            ),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
