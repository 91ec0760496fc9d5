"""Abstract interfaces for work order, purchase order and quotation storage."""

from abc import ABC, abstractmethod

from src.core.entities.allocation import AllocationRecord
from src.core.entities.purchase_order import PurchaseOrder, PurchaseOrderStatus
from src.core.entities.quotation import Quotation
from src.core.entities.work_order import WorkOrder, WorkOrderStatus


class IWorkOrderStore(ABC):
    """Interface for work order and allocation record persistence."""

    @abstractmethod
    async def create_work_order(self, work_order: WorkOrder) -> WorkOrder:
        """Create a work order, generating its number."""
        pass

    @abstractmethod
    async def get_work_order(self, work_order_id: int) -> WorkOrder | None:
        """Get work order by ID, with allocation records."""
        pass

    @abstractmethod
    async def list_work_orders(
        self,
        status: WorkOrderStatus | None = None,
        search: str | None = None,
    ) -> list[WorkOrder]:
        """List work orders, newest first."""
        pass

    @abstractmethod
    async def update_work_order(self, work_order: WorkOrder) -> WorkOrder:
        """Update work order fields (not allocation records)."""
        pass

    @abstractmethod
    async def save_allocations(
        self, work_order_id: int, records: list[AllocationRecord]
    ) -> list[AllocationRecord]:
        """Replace the work order's allocation records."""
        pass

    @abstractmethod
    async def update_allocation(self, record: AllocationRecord) -> AllocationRecord:
        """Update consumption state of one allocation record."""
        pass

    @abstractmethod
    async def outstanding_on_lot(self, lot_id: int) -> float:
        """Weight reserved on a lot by work orders and not yet consumed."""
        pass

    @abstractmethod
    async def delete_work_order(self, work_order_id: int) -> bool:
        """Delete a work order and its records. Returns False when absent."""
        pass


class IPurchaseOrderStore(ABC):
    """Interface for purchase order persistence."""

    @abstractmethod
    async def create_purchase_order(self, order: PurchaseOrder) -> PurchaseOrder:
        """Create a purchase order, generating its number."""
        pass

    @abstractmethod
    async def get_purchase_order(self, order_id: int) -> PurchaseOrder | None:
        """Get purchase order by ID, with items."""
        pass

    @abstractmethod
    async def list_purchase_orders(
        self,
        status: PurchaseOrderStatus | None = None,
        supplier_id: int | None = None,
        search: str | None = None,
    ) -> list[PurchaseOrder]:
        """List purchase orders, newest first."""
        pass

    @abstractmethod
    async def update_purchase_order(self, order: PurchaseOrder) -> PurchaseOrder:
        """Update a purchase order and replace its items."""
        pass


class IQuotationStore(ABC):
    """Interface for quotation persistence."""

    @abstractmethod
    async def create_quotation(self, quotation: Quotation) -> Quotation:
        """Create a quotation, generating its number."""
        pass

    @abstractmethod
    async def get_quotation(self, quote_id: int) -> Quotation | None:
        """Get quotation by ID."""
        pass

    @abstractmethod
    async def set_work_order(self, quote_id: int, work_order_id: int | None) -> None:
        """Link (or unlink, with None) the quotation's work order."""
        pass

    @abstractmethod
    async def link_work_order(self, quote_id: int, work_order_id: int) -> bool:
        """Link a work order only if the quotation has none. Returns False otherwise."""
        pass
