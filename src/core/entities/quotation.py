"""Quotation domain entity (the parts provisioning relies on)."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class QuotationStatus(str, Enum):
    ENQUIRED = "enquired"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Quotation(BaseModel):
    """A customer quote that can be converted into a work order."""

    id: int | None = None
    quote_number: str | None = None
    customer_id: int | None = None
    status: QuotationStatus = QuotationStatus.ENQUIRED
    cable_length: float = 100.0
    notes: str = ""
    work_order_id: int | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
