"""
Domain exceptions for the cableworks back-office.

Every error carries a machine-readable code and a details mapping so the API
layer can render it without knowing the concrete type.
"""

from typing import Any


class CableworksError(Exception):
    """Base exception for all back-office errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Validation Exceptions
class ValidationError(CableworksError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


# Lookup Exceptions
class NotFoundError(CableworksError):
    """Referenced record does not exist."""

    entity = "record"

    def __init__(self, entity_id: Any):
        name = self.entity.replace("_", " ")
        super().__init__(
            f"{name.capitalize()} not found: {entity_id}",
            code=f"{self.entity.upper()}_NOT_FOUND",
            details={f"{self.entity}_id": entity_id},
        )


class MaterialNotFoundError(NotFoundError):
    entity = "material"


class LotNotFoundError(NotFoundError):
    entity = "lot"


class WorkOrderNotFoundError(NotFoundError):
    entity = "work_order"


class PurchaseOrderNotFoundError(NotFoundError):
    entity = "purchase_order"


class QuotationNotFoundError(NotFoundError):
    entity = "quotation"


# Inventory Exceptions
class InsufficientStockError(CableworksError):
    """Allocation or consumption could not be satisfied from available lots.

    ``allocations`` holds any lot reservations the failing call already
    applied, so a caller can compensate them.
    """

    def __init__(
        self,
        material_id: int,
        shortage: float,
        requested: float | None = None,
        available: float | None = None,
        allocations: list | None = None,
    ):
        super().__init__(
            f"Insufficient material: {shortage}kg shortage for material {material_id}",
            code="INSUFFICIENT_STOCK",
            details={
                "material_id": material_id,
                "shortage": shortage,
                "requested": requested,
                "available": available,
            },
        )
        self.material_id = material_id
        self.shortage = shortage
        self.allocations = allocations or []


class StateConflictError(CableworksError):
    """Operation is not allowed in the record's current status."""

    def __init__(self, message: str, status: str | None = None):
        super().__init__(
            message,
            code="STATE_CONFLICT",
            details={"status": status},
        )


class LedgerInvariantError(CableworksError):
    """A lot write would break the quantity invariants.

    Raised only on programming errors; never expected from valid input.
    """

    def __init__(self, lot_id: int, reason: str):
        super().__init__(
            f"Lot ledger invariant violated for lot {lot_id}: {reason}",
            code="LEDGER_INVARIANT",
            details={"lot_id": lot_id, "reason": reason},
        )


# Storage Exceptions
class StorageError(CableworksError):
    """Base exception for storage operations."""

    pass


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


class ConfigurationError(CableworksError):
    """Configuration error."""

    pass
