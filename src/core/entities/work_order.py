"""Work order domain entities."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from src.core.entities.allocation import AllocationRecord


class WorkOrderStatus(str, Enum):
    """Work order lifecycle states."""

    PROVISIONAL = "provisional"  # created, allocations not yet committed
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class WorkOrder(BaseModel):
    """A production order that owns material allocations."""

    id: int | None = None
    work_order_number: str | None = None
    quote_id: int
    quote_number: str
    customer_id: int | None = None
    cable_length: float = 0.0
    status: WorkOrderStatus = WorkOrderStatus.PROVISIONAL
    process_assignments: list[dict[str, Any]] = Field(default_factory=list)
    allocated_materials: list[AllocationRecord] = Field(default_factory=list)
    notes: str = ""
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def outstanding_allocations(self) -> list[AllocationRecord]:
        """Records still holding reserved weight on their lot."""
        return [
            record
            for record in self.allocated_materials
            if not record.is_consumed and record.outstanding_quantity > 0
        ]
