"""
Error handling middleware.

Standardizes all API error responses to include:
- error_code: machine-readable identifier
- message: human-readable description
- hint: suggested recovery action
- detail: structured context of domain errors, JSON encoded
"""

import json
import traceback
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from src.application.dto.responses import ErrorResponse
from src.config import get_logger
from src.core.exceptions import (
    CableworksError,
    ConfigurationError,
    InsufficientStockError,
    LedgerInvariantError,
    NotFoundError,
    StateConflictError,
    StorageError,
    ValidationError,
)

logger = get_logger(__name__)


# Map exceptions to HTTP status codes; first isinstance match wins
EXCEPTION_STATUS_MAP: dict[type[Exception], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InsufficientStockError: status.HTTP_409_CONFLICT,
    StateConflictError: status.HTTP_409_CONFLICT,
    LedgerInvariantError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ValueError: status.HTTP_400_BAD_REQUEST,
}

# Hint messages per error code / exception type
HINT_MAP: dict[str, str] = {
    "MATERIAL_NOT_FOUND": "Check the material ID and try GET /api/materials to list materials.",
    "LOT_NOT_FOUND": "Check the lot ID and try GET /api/lots to list lots.",
    "WORK_ORDER_NOT_FOUND": "Check the work order ID and try GET /api/work-orders.",
    "PURCHASE_ORDER_NOT_FOUND": "Check the order ID and try GET /api/purchase-orders.",
    "QUOTATION_NOT_FOUND": "Check the quotation ID.",
    "INSUFFICIENT_STOCK": "Receive more stock or reduce the required weight; nothing was reserved.",
    "STATE_CONFLICT": "The record's current status does not allow this operation.",
    "LEDGER_INVARIANT": "A lot quantity invariant was violated. Check server logs.",
    "VALIDATION_ERROR": "Check the request body against the API schema.",
    "DATABASE_ERROR": "A database operation failed. Check server logs.",
    "ValueError": "A parameter value is invalid. Check the request.",
}

# Default hints by HTTP status code
STATUS_HINTS: dict[int, str] = {
    400: "Check the request parameters and body.",
    404: "The requested resource was not found. Verify the ID.",
    409: "The request conflicts with the current state of the resource.",
    422: "The request could not be processed. Check the input format.",
    500: "An internal error occurred. Check server logs.",
}


def _get_hint(error_code: str, status_code: int) -> str:
    """Resolve hint from error code, falling back to status-based hint."""
    return HINT_MAP.get(error_code) or STATUS_HINTS.get(status_code, "")


def _status_for(exc: Exception) -> int:
    for exc_type, code in EXCEPTION_STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def build_error_response(request: Request, exc: Exception) -> JSONResponse:
    """Convert an exception to the standardized JSON error response."""
    status_code = _status_for(exc)

    # Get error code: prefer CableworksError.code, fall back to class name
    detail = None
    if isinstance(exc, CableworksError):
        error_code = exc.code
        message = exc.message
        if exc.details:
            detail = json.dumps(exc.details, default=str)
    else:
        error_code = exc.__class__.__name__
        message = str(exc)

    request_id = getattr(request.state, "request_id", None)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "request_error",
        request_id=request_id,
        path=request.url.path,
        error_type=error_code,
        error=message,
        traceback=traceback.format_exc() if status_code >= 500 else None,
    )

    error_response = ErrorResponse(
        error_code=error_code,
        message=message,
        hint=_get_hint(error_code, status_code),
        detail=detail,
        path=request.url.path,
    )

    return JSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json"),
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Converts exceptions to standardized JSON error responses.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Handle request with error catching."""
        try:
            return await call_next(request)

        except Exception as e:
            return build_error_response(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    """Set up FastAPI exception handlers."""
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException

    @app.exception_handler(CableworksError)
    async def domain_exception_handler(
        request: Request,
        exc: CableworksError,
    ) -> JSONResponse:
        """Render domain errors raised inside route handlers."""
        return build_error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Handle Pydantic validation errors."""
        errors = []
        for error in exc.errors():
            loc = " -> ".join(str(part) for part in error["loc"])
            errors.append(f"{loc}: {error['msg']}")

        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error_code="VALIDATION_ERROR",
                message="Request validation failed",
                hint="Check the request body fields and types.",
                detail="; ".join(errors),
                path=request.url.path,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request,
        exc: HTTPException,
    ) -> JSONResponse:
        """Handle HTTP exceptions with standardized format."""
        error_code = _infer_error_code(exc.status_code)
        hint = _get_hint(error_code, exc.status_code)

        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error_code=error_code,
                message=exc.detail or "An error occurred",
                hint=hint,
                path=request.url.path,
            ).model_dump(mode="json"),
        )


def _infer_error_code(status_code: int) -> str:
    """Infer a machine-readable error code from an HTTPException status."""
    if status_code == 404:
        return "NOT_FOUND"
    if status_code == 400:
        return "BAD_REQUEST"
    if status_code == 405:
        return "METHOD_NOT_ALLOWED"
    if status_code == 422:
        return "UNPROCESSABLE_ENTITY"
    return "HTTP_ERROR"
