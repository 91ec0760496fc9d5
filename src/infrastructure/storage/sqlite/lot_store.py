"""
SQLite implementation of lot storage.

Quantity changes go through ``apply_delta`` only: one conditional UPDATE
whose WHERE clause refuses any result that breaks
``0 <= allocated <= remaining``.
"""

from datetime import date, datetime

import aiosqlite

from src.config import get_logger
from src.core.entities.lot import (
    EPSILON,
    LotDelta,
    LotFilter,
    LotPricing,
    LotStorage,
    MaterialLot,
    Quantity,
)
from src.core.exceptions import LedgerInvariantError, LotNotFoundError
from src.core.interfaces.lot_store import ILotStore
from src.infrastructure.storage.sqlite.connection import (
    get_connection,
    get_transaction,
    next_sequence,
)

logger = get_logger(__name__)

LIFO_ORDER = "ORDER BY purchase_date DESC, id DESC"

_APPLY_DELTA_SQL = """
UPDATE material_lots SET
    remaining_weight = CASE
        WHEN remaining_weight + :dr < :eps THEN 0.0
        ELSE remaining_weight + :dr END,
    allocated_weight = MIN(
        CASE WHEN allocated_weight + :da < :eps THEN 0.0 ELSE allocated_weight + :da END,
        CASE WHEN remaining_weight + :dr < :eps THEN 0.0 ELSE remaining_weight + :dr END
    ),
    remaining_length = MAX(remaining_length + :dl, 0.0),
    is_fully_consumed = CASE WHEN remaining_weight + :dr < :eps THEN 1 ELSE 0 END,
    version = version + 1,
    updated_at = :now
WHERE id = :id
  AND remaining_weight + :dr >= -:eps
  AND allocated_weight + :da >= -:eps
  AND allocated_weight + :da <= remaining_weight + :dr + :eps
"""


async def _next_lot_number(conn: aiosqlite.Connection, day: date) -> str:
    """Next ``LOT-YYYYMMDD-NNNN`` number for the day."""
    return await next_sequence(
        conn, "material_lots", "lot_number", f"LOT-{day.strftime('%Y%m%d')}-", width=4
    )


class SQLiteLotStore(ILotStore):
    """SQLite implementation of material lot storage."""

    async def create_lot(self, lot: MaterialLot) -> MaterialLot:
        """Insert a lot, generating its lot number."""
        now = datetime.utcnow()
        lot.created_at = now
        lot.updated_at = now
        async with get_transaction(immediate=True) as conn:
            if not lot.lot_number:
                lot.lot_number = await _next_lot_number(conn, now.date())
            cursor = await conn.execute(
                """
                INSERT INTO material_lots (
                    lot_number, material_id, supplier_id, purchase_date,
                    initial_weight, initial_length,
                    remaining_weight, remaining_length,
                    allocated_weight, allocated_length,
                    price_per_kg, price_per_km, total_cost, currency,
                    storage_location, storage_location_details, container_count,
                    invoice_number, invoice_date, po_number, notes,
                    is_active, is_fully_consumed, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    lot.lot_number,
                    lot.material_id,
                    lot.supplier_id,
                    lot.purchase_date.isoformat(),
                    lot.initial_quantity.weight,
                    lot.initial_quantity.length,
                    lot.remaining_quantity.weight,
                    lot.remaining_quantity.length,
                    lot.allocated_quantity.weight,
                    lot.allocated_quantity.length,
                    lot.pricing.price_per_kg,
                    lot.pricing.price_per_km,
                    lot.pricing.total_cost,
                    lot.pricing.currency,
                    lot.storage.location.value if lot.storage.location else None,
                    lot.storage.location_details,
                    lot.storage.container_count,
                    lot.invoice_number,
                    lot.invoice_date.isoformat() if lot.invoice_date else None,
                    lot.po_number,
                    lot.notes,
                    int(lot.is_active),
                    int(lot.is_fully_consumed),
                    lot.created_at.isoformat(),
                    lot.updated_at.isoformat(),
                ),
            )
            lot.id = cursor.lastrowid
            return lot

    async def get_lot(self, lot_id: int) -> MaterialLot | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM material_lots WHERE id = ?", (lot_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_lot(row)

    async def list_active_lots(self, material_id: int) -> list[MaterialLot]:
        """Active, unconsumed lots of a material, newest purchase first."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT * FROM material_lots
                WHERE material_id = ? AND is_active = 1 AND is_fully_consumed = 0
                {LIFO_ORDER}
                """,
                (material_id,),
            )
            rows = await cursor.fetchall()
            return [self._row_to_lot(row) for row in rows]

    async def list_lots(self, filters: LotFilter | None = None) -> list[MaterialLot]:
        """Browse lots with optional filters, newest purchase first."""
        filters = filters or LotFilter()
        clauses: list[str] = []
        params: list = []

        if filters.material_id is not None:
            clauses.append("material_id = ?")
            params.append(filters.material_id)
        if filters.supplier_id is not None:
            clauses.append("supplier_id = ?")
            params.append(filters.supplier_id)
        if filters.is_fully_consumed is not None:
            clauses.append("is_fully_consumed = ?")
            params.append(int(filters.is_fully_consumed))
        if filters.search:
            clauses.append("(lot_number LIKE ? OR invoice_number LIKE ? OR po_number LIKE ?)")
            params.extend([f"%{filters.search}%"] * 3)
        if filters.start_date:
            clauses.append("purchase_date >= ?")
            params.append(filters.start_date.isoformat())
        if filters.end_date:
            clauses.append("purchase_date <= ?")
            params.append(filters.end_date.isoformat())

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"SELECT * FROM material_lots {where} {LIFO_ORDER}", params
            )
            rows = await cursor.fetchall()
            return [self._row_to_lot(row) for row in rows]

    async def apply_delta(self, lot_id: int, delta: LotDelta) -> MaterialLot:
        """
        Apply a signed quantity delta in one guarded UPDATE.

        Raises:
            LotNotFoundError: If the lot does not exist.
            LedgerInvariantError: If the delta would break lot invariants.
        """
        async with get_transaction(immediate=True) as conn:
            cursor = await conn.execute(
                _APPLY_DELTA_SQL,
                {
                    "dr": delta.remaining_weight,
                    "da": delta.allocated_weight,
                    "dl": delta.remaining_length,
                    "eps": EPSILON,
                    "now": datetime.utcnow().isoformat(),
                    "id": lot_id,
                },
            )
            if cursor.rowcount == 0:
                check = await conn.execute(
                    "SELECT remaining_weight, allocated_weight FROM material_lots WHERE id = ?",
                    (lot_id,),
                )
                row = await check.fetchone()
                if row is None:
                    raise LotNotFoundError(lot_id)
                raise LedgerInvariantError(
                    lot_id,
                    f"delta remaining={delta.remaining_weight} allocated={delta.allocated_weight} "
                    f"on remaining={row['remaining_weight']} allocated={row['allocated_weight']}",
                )

            cursor = await conn.execute(
                "SELECT * FROM material_lots WHERE id = ?", (lot_id,)
            )
            row = await cursor.fetchone()
            return self._row_to_lot(row)

    async def update_lot(self, lot: MaterialLot) -> MaterialLot:
        """Update descriptive fields; quantity columns are left untouched."""
        lot.updated_at = datetime.utcnow()
        async with get_transaction() as conn:
            await conn.execute(
                """
                UPDATE material_lots SET
                    supplier_id = ?, purchase_date = ?,
                    price_per_kg = ?, price_per_km = ?, total_cost = ?, currency = ?,
                    storage_location = ?, storage_location_details = ?, container_count = ?,
                    invoice_number = ?, invoice_date = ?, po_number = ?, notes = ?,
                    is_active = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    lot.supplier_id,
                    lot.purchase_date.isoformat(),
                    lot.pricing.price_per_kg,
                    lot.pricing.price_per_km,
                    lot.pricing.total_cost,
                    lot.pricing.currency,
                    lot.storage.location.value if lot.storage.location else None,
                    lot.storage.location_details,
                    lot.storage.container_count,
                    lot.invoice_number,
                    lot.invoice_date.isoformat() if lot.invoice_date else None,
                    lot.po_number,
                    lot.notes,
                    int(lot.is_active),
                    lot.updated_at.isoformat(),
                    lot.id,
                ),
            )
            return lot

    async def delete_lot(self, lot_id: int) -> bool:
        async with get_transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM material_lots WHERE id = ?", (lot_id,)
            )
            return cursor.rowcount > 0

    async def count_lots(self, material_id: int) -> int:
        """Count every lot of a material, consumed or not."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT COUNT(*) FROM material_lots WHERE material_id = ?",
                (material_id,),
            )
            row = await cursor.fetchone()
            return row[0]

    @staticmethod
    def _row_to_lot(row: aiosqlite.Row) -> MaterialLot:
        """Convert a database row to a MaterialLot entity."""
        return MaterialLot(
            id=row["id"],
            lot_number=row["lot_number"],
            material_id=row["material_id"],
            supplier_id=row["supplier_id"],
            purchase_date=date.fromisoformat(row["purchase_date"]),
            initial_quantity=Quantity(
                weight=float(row["initial_weight"]),
                length=float(row["initial_length"]),
            ),
            remaining_quantity=Quantity(
                weight=float(row["remaining_weight"]),
                length=float(row["remaining_length"]),
            ),
            allocated_quantity=Quantity(
                weight=float(row["allocated_weight"]),
                length=float(row["allocated_length"]),
            ),
            pricing=LotPricing(
                price_per_kg=float(row["price_per_kg"]),
                price_per_km=row["price_per_km"],
                total_cost=float(row["total_cost"]),
                currency=row["currency"],
            ),
            storage=LotStorage(
                location=row["storage_location"],
                location_details=row["storage_location_details"],
                container_count=row["container_count"],
            ),
            invoice_number=row["invoice_number"],
            invoice_date=date.fromisoformat(row["invoice_date"]) if row["invoice_date"] else None,
            po_number=row["po_number"],
            notes=row["notes"],
            is_active=bool(row["is_active"]),
            is_fully_consumed=bool(row["is_fully_consumed"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
