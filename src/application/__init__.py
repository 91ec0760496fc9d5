"""
Application layer - Use cases, DTOs, and service factories.

This layer orchestrates business logic by:
1. Defining request/response DTOs for API contracts
2. Implementing use cases that coordinate core services
3. Providing factory functions for dependency injection

Writes go through use cases; read-only endpoints may query stores directly.
"""

from src.application.dto.responses import ErrorResponse, HealthResponse
from src.application.services import (
    get_allocation_engine,
    get_availability_checker,
    get_costing_engine,
    get_lot_ledger,
    reset_services,
)
from src.application.use_cases import (
    AllocateMaterialsUseCase,
    DeleteWorkOrderUseCase,
    ProvisionWorkOrderUseCase,
    ReceivePurchaseOrderUseCase,
    RecordMaterialUsageUseCase,
)

__all__ = [
    # Response DTOs
    "HealthResponse",
    "ErrorResponse",
    # Use Cases
    "AllocateMaterialsUseCase",
    "ProvisionWorkOrderUseCase",
    "DeleteWorkOrderUseCase",
    "RecordMaterialUsageUseCase",
    "ReceivePurchaseOrderUseCase",
    # Service factories
    "get_lot_ledger",
    "get_costing_engine",
    "get_allocation_engine",
    "get_availability_checker",
    "reset_services",
]
