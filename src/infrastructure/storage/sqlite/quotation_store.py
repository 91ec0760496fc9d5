"""SQLite implementation of quotation storage."""

from datetime import datetime

import aiosqlite

from src.config import get_logger
from src.core.entities.quotation import Quotation, QuotationStatus
from src.core.interfaces.order_store import IQuotationStore
from src.infrastructure.storage.sqlite.connection import (
    get_connection,
    get_transaction,
    next_sequence,
)

logger = get_logger(__name__)


class SQLiteQuotationStore(IQuotationStore):
    """SQLite implementation of quotation storage."""

    async def create_quotation(self, quotation: Quotation) -> Quotation:
        now = datetime.utcnow()
        quotation.created_at = now
        quotation.updated_at = now
        async with get_transaction(immediate=True) as conn:
            if not quotation.quote_number:
                quotation.quote_number = await next_sequence(
                    conn, "quotations", "quote_number", "QT-"
                )
            cursor = await conn.execute(
                """
                INSERT INTO quotations (
                    quote_number, customer_id, status, cable_length, notes,
                    work_order_id, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    quotation.quote_number,
                    quotation.customer_id,
                    quotation.status.value,
                    quotation.cable_length,
                    quotation.notes,
                    quotation.work_order_id,
                    quotation.created_at.isoformat(),
                    quotation.updated_at.isoformat(),
                ),
            )
            quotation.id = cursor.lastrowid
            logger.info(
                "quotation_created",
                quote_id=quotation.id,
                quote_number=quotation.quote_number,
            )
            return quotation

    async def get_quotation(self, quote_id: int) -> Quotation | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM quotations WHERE id = ?", (quote_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_quotation(row)

    async def set_work_order(self, quote_id: int, work_order_id: int | None) -> None:
        async with get_transaction() as conn:
            await conn.execute(
                "UPDATE quotations SET work_order_id = ?, updated_at = ? WHERE id = ?",
                (work_order_id, datetime.utcnow().isoformat(), quote_id),
            )

    async def link_work_order(self, quote_id: int, work_order_id: int) -> bool:
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE quotations SET work_order_id = ?, updated_at = ?
                WHERE id = ? AND work_order_id IS NULL
                """,
                (work_order_id, datetime.utcnow().isoformat(), quote_id),
            )
            linked = cursor.rowcount > 0
            if not linked:
                logger.warning(
                    "quotation_link_refused", quote_id=quote_id, work_order_id=work_order_id
                )
            return linked

    @staticmethod
    def _row_to_quotation(row: aiosqlite.Row) -> Quotation:
        return Quotation(
            id=row["id"],
            quote_number=row["quote_number"],
            customer_id=row["customer_id"],
            status=QuotationStatus(row["status"]),
            cable_length=float(row["cable_length"]),
            notes=row["notes"],
            work_order_id=row["work_order_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
