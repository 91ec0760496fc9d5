"""SQLite implementation of work order and allocation record storage."""

import json
from datetime import datetime

import aiosqlite

from src.config import get_logger
from src.core.entities.allocation import AllocationRecord
from src.core.entities.work_order import WorkOrder, WorkOrderStatus
from src.core.interfaces.order_store import IWorkOrderStore
from src.infrastructure.storage.sqlite.connection import (
    get_connection,
    get_transaction,
    next_sequence,
)

logger = get_logger(__name__)


class SQLiteWorkOrderStore(IWorkOrderStore):
    """Work orders with their per-lot allocation records."""

    async def create_work_order(self, work_order: WorkOrder) -> WorkOrder:
        now = datetime.utcnow()
        work_order.created_at = now
        work_order.updated_at = now
        async with get_transaction(immediate=True) as conn:
            if not work_order.work_order_number:
                work_order.work_order_number = await next_sequence(
                    conn, "work_orders", "work_order_number", "WO-"
                )
            cursor = await conn.execute(
                """
                INSERT INTO work_orders (
                    work_order_number, quote_id, quote_number, customer_id,
                    cable_length, status, process_assignments, notes,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    work_order.work_order_number,
                    work_order.quote_id,
                    work_order.quote_number,
                    work_order.customer_id,
                    work_order.cable_length,
                    work_order.status.value,
                    json.dumps(work_order.process_assignments),
                    work_order.notes,
                    work_order.created_at.isoformat(),
                    work_order.updated_at.isoformat(),
                ),
            )
            work_order.id = cursor.lastrowid
            logger.info(
                "work_order_created",
                work_order_id=work_order.id,
                work_order_number=work_order.work_order_number,
                status=work_order.status.value,
            )
            return work_order

    async def get_work_order(self, work_order_id: int) -> WorkOrder | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM work_orders WHERE id = ?", (work_order_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None

            work_order = self._row_to_work_order(row)
            work_order.allocated_materials = await self._load_allocations(conn, work_order_id)
            return work_order

    async def list_work_orders(
        self,
        status: WorkOrderStatus | None = None,
        search: str | None = None,
    ) -> list[WorkOrder]:
        clauses: list[str] = []
        params: list = []
        if status is not None:
            clauses.append("status = ?")
            params.append(status.value)
        if search:
            clauses.append("(work_order_number LIKE ? OR quote_number LIKE ?)")
            params.extend([f"%{search}%", f"%{search}%"])
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        async with get_connection() as conn:
            cursor = await conn.execute(
                f"SELECT * FROM work_orders {where} ORDER BY created_at DESC, id DESC",
                params,
            )
            rows = await cursor.fetchall()
            orders = []
            for row in rows:
                work_order = self._row_to_work_order(row)
                work_order.allocated_materials = await self._load_allocations(conn, row["id"])
                orders.append(work_order)
            return orders

    async def update_work_order(self, work_order: WorkOrder) -> WorkOrder:
        work_order.updated_at = datetime.utcnow()
        async with get_transaction() as conn:
            await conn.execute(
                """
                UPDATE work_orders SET
                    customer_id = ?, cable_length = ?, status = ?,
                    process_assignments = ?, notes = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    work_order.customer_id,
                    work_order.cable_length,
                    work_order.status.value,
                    json.dumps(work_order.process_assignments),
                    work_order.notes,
                    work_order.updated_at.isoformat(),
                    work_order.id,
                ),
            )
            logger.info(
                "work_order_updated",
                work_order_id=work_order.id,
                status=work_order.status.value,
            )
            return work_order

    async def save_allocations(
        self, work_order_id: int, records: list[AllocationRecord]
    ) -> list[AllocationRecord]:
        """Replace the work order's allocation records."""
        async with get_transaction() as conn:
            await conn.execute(
                "DELETE FROM work_order_allocations WHERE work_order_id = ?",
                (work_order_id,),
            )
            for record in records:
                record.work_order_id = work_order_id
                cursor = await conn.execute(
                    """
                    INSERT INTO work_order_allocations (
                        work_order_id, material_id, lot_id, material_name,
                        allocated_quantity, consumed_quantity, is_consumed, allocated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        work_order_id,
                        record.material_id,
                        record.lot_id,
                        record.material_name,
                        record.allocated_quantity,
                        record.consumed_quantity,
                        int(record.is_consumed),
                        record.allocated_at.isoformat(),
                    ),
                )
                record.id = cursor.lastrowid
            return records

    async def update_allocation(self, record: AllocationRecord) -> AllocationRecord:
        async with get_transaction() as conn:
            await conn.execute(
                """
                UPDATE work_order_allocations SET
                    consumed_quantity = ?, is_consumed = ?
                WHERE id = ?
                """,
                (record.consumed_quantity, int(record.is_consumed), record.id),
            )
            return record

    async def outstanding_on_lot(self, lot_id: int) -> float:
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT COALESCE(SUM(allocated_quantity - consumed_quantity), 0.0)
                FROM work_order_allocations
                WHERE lot_id = ? AND is_consumed = 0
                """,
                (lot_id,),
            )
            row = await cursor.fetchone()
            return max(0.0, float(row[0]))

    async def delete_work_order(self, work_order_id: int) -> bool:
        async with get_transaction() as conn:
            await conn.execute(
                "DELETE FROM work_order_allocations WHERE work_order_id = ?",
                (work_order_id,),
            )
            cursor = await conn.execute(
                "DELETE FROM work_orders WHERE id = ?", (work_order_id,)
            )
            deleted = cursor.rowcount > 0
            if deleted:
                logger.info("work_order_deleted", work_order_id=work_order_id)
            return deleted

    async def _load_allocations(
        self, conn: aiosqlite.Connection, work_order_id: int
    ) -> list[AllocationRecord]:
        cursor = await conn.execute(
            "SELECT * FROM work_order_allocations WHERE work_order_id = ? ORDER BY id",
            (work_order_id,),
        )
        rows = await cursor.fetchall()
        return [
            AllocationRecord(
                id=row["id"],
                work_order_id=row["work_order_id"],
                material_id=row["material_id"],
                lot_id=row["lot_id"],
                material_name=row["material_name"],
                allocated_quantity=float(row["allocated_quantity"]),
                consumed_quantity=float(row["consumed_quantity"]),
                is_consumed=bool(row["is_consumed"]),
                allocated_at=datetime.fromisoformat(row["allocated_at"]),
            )
            for row in rows
        ]

    @staticmethod
    def _row_to_work_order(row: aiosqlite.Row) -> WorkOrder:
        return WorkOrder(
            id=row["id"],
            work_order_number=row["work_order_number"],
            quote_id=row["quote_id"],
            quote_number=row["quote_number"],
            customer_id=row["customer_id"],
            cable_length=float(row["cable_length"]),
            status=WorkOrderStatus(row["status"]),
            process_assignments=json.loads(row["process_assignments"] or "[]"),
            notes=row["notes"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
