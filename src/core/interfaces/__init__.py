"""Core interfaces (ports) for dependency injection."""

from src.core.interfaces.lot_store import ILotStore
from src.core.interfaces.material_store import IMaterialStore
from src.core.interfaces.order_store import (
    IPurchaseOrderStore,
    IQuotationStore,
    IWorkOrderStore,
)

__all__ = [
    "ILotStore",
    "IMaterialStore",
    "IPurchaseOrderStore",
    "IQuotationStore",
    "IWorkOrderStore",
]
