"""SQLite implementation of purchase order storage."""

from datetime import date, datetime

import aiosqlite

from src.config import get_logger
from src.core.entities.lot import LotPricing, LotStorage, Quantity
from src.core.entities.purchase_order import (
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
)
from src.core.interfaces.order_store import IPurchaseOrderStore
from src.infrastructure.storage.sqlite.connection import (
    get_connection,
    get_transaction,
    next_sequence,
)

logger = get_logger(__name__)


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value else None


class SQLitePurchaseOrderStore(IPurchaseOrderStore):
    """Purchase orders with their line items."""

    async def create_purchase_order(self, order: PurchaseOrder) -> PurchaseOrder:
        now = datetime.utcnow()
        order.created_at = now
        order.updated_at = now
        async with get_transaction(immediate=True) as conn:
            if not order.po_number:
                order.po_number = await next_sequence(conn, "purchase_orders", "po_number", "PO-")
            cursor = await conn.execute(
                """
                INSERT INTO purchase_orders (
                    po_number, supplier_id, order_date, expected_delivery_date,
                    status, invoice_number, invoice_date, invoice_url,
                    total_amount, notes, received_at, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    order.po_number,
                    order.supplier_id,
                    order.order_date.isoformat(),
                    _iso(order.expected_delivery_date),
                    order.status.value,
                    order.invoice_number,
                    _iso(order.invoice_date),
                    order.invoice_url,
                    order.total_amount,
                    order.notes,
                    _iso(order.received_at),
                    order.created_at.isoformat(),
                    order.updated_at.isoformat(),
                ),
            )
            order.id = cursor.lastrowid
            await self._write_items(conn, order)
            logger.info(
                "purchase_order_created",
                purchase_order_id=order.id,
                po_number=order.po_number,
                items=len(order.items),
            )
            return order

    async def get_purchase_order(self, order_id: int) -> PurchaseOrder | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM purchase_orders WHERE id = ?", (order_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            order = self._row_to_order(row)
            order.items = await self._load_items(conn, order_id)
            return order

    async def list_purchase_orders(
        self,
        status: PurchaseOrderStatus | None = None,
        supplier_id: int | None = None,
        search: str | None = None,
    ) -> list[PurchaseOrder]:
        clauses: list[str] = []
        params: list = []
        if status is not None:
            clauses.append("status = ?")
            params.append(status.value)
        if supplier_id is not None:
            clauses.append("supplier_id = ?")
            params.append(supplier_id)
        if search:
            clauses.append("(po_number LIKE ? OR invoice_number LIKE ?)")
            params.extend([f"%{search}%", f"%{search}%"])
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        async with get_connection() as conn:
            cursor = await conn.execute(
                f"SELECT * FROM purchase_orders {where} ORDER BY order_date DESC, id DESC",
                params,
            )
            rows = await cursor.fetchall()
            orders = []
            for row in rows:
                order = self._row_to_order(row)
                order.items = await self._load_items(conn, row["id"])
                orders.append(order)
            return orders

    async def update_purchase_order(self, order: PurchaseOrder) -> PurchaseOrder:
        """Update header fields and replace the items."""
        order.updated_at = datetime.utcnow()
        async with get_transaction() as conn:
            await conn.execute(
                """
                UPDATE purchase_orders SET
                    supplier_id = ?, order_date = ?, expected_delivery_date = ?,
                    status = ?, invoice_number = ?, invoice_date = ?, invoice_url = ?,
                    total_amount = ?, notes = ?, received_at = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    order.supplier_id,
                    order.order_date.isoformat(),
                    _iso(order.expected_delivery_date),
                    order.status.value,
                    order.invoice_number,
                    _iso(order.invoice_date),
                    order.invoice_url,
                    order.total_amount,
                    order.notes,
                    _iso(order.received_at),
                    order.updated_at.isoformat(),
                    order.id,
                ),
            )
            await conn.execute(
                "DELETE FROM purchase_order_items WHERE purchase_order_id = ?",
                (order.id,),
            )
            await self._write_items(conn, order)
            logger.info(
                "purchase_order_updated",
                purchase_order_id=order.id,
                status=order.status.value,
            )
            return order

    @staticmethod
    async def _write_items(conn: aiosqlite.Connection, order: PurchaseOrder) -> None:
        for line_number, item in enumerate(order.items, start=1):
            cursor = await conn.execute(
                """
                INSERT INTO purchase_order_items (
                    purchase_order_id, line_number, material_id, weight, length,
                    price_per_kg, price_per_km, total_cost, currency,
                    storage_location, storage_location_details, container_count,
                    lot_id, notes
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    order.id,
                    line_number,
                    item.material_id,
                    item.quantity.weight,
                    item.quantity.length,
                    item.pricing.price_per_kg,
                    item.pricing.price_per_km,
                    item.pricing.total_cost,
                    item.pricing.currency,
                    item.storage.location.value if item.storage.location else None,
                    item.storage.location_details,
                    item.storage.container_count,
                    item.lot_id,
                    item.notes,
                ),
            )
            item.id = cursor.lastrowid

    @staticmethod
    async def _load_items(conn: aiosqlite.Connection, order_id: int) -> list[PurchaseOrderItem]:
        cursor = await conn.execute(
            "SELECT * FROM purchase_order_items WHERE purchase_order_id = ? ORDER BY line_number",
            (order_id,),
        )
        rows = await cursor.fetchall()
        return [
            PurchaseOrderItem(
                id=row["id"],
                material_id=row["material_id"],
                quantity=Quantity(weight=float(row["weight"]), length=float(row["length"])),
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
                lot_id=row["lot_id"],
                notes=row["notes"],
            )
            for row in rows
        ]

    @staticmethod
    def _row_to_order(row: aiosqlite.Row) -> PurchaseOrder:
        return PurchaseOrder(
            id=row["id"],
            po_number=row["po_number"],
            supplier_id=row["supplier_id"],
            order_date=date.fromisoformat(row["order_date"]),
            expected_delivery_date=row["expected_delivery_date"],
            status=PurchaseOrderStatus(row["status"]),
            invoice_number=row["invoice_number"],
            invoice_date=row["invoice_date"],
            invoice_url=row["invoice_url"],
            total_amount=float(row["total_amount"]),
            notes=row["notes"],
            received_at=row["received_at"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
