"""Quotation endpoints (the subset work order provisioning relies on)."""

from fastapi import APIRouter, Depends, status

from src.api.dependencies import get_quote_store
from src.application.dto.requests import CreateQuotationRequest
from src.application.dto.responses import ErrorResponse, QuotationResponse
from src.core.entities.quotation import Quotation
from src.core.exceptions import QuotationNotFoundError
from src.infrastructure.storage.sqlite import SQLiteQuotationStore

router = APIRouter(prefix="/api/quotations", tags=["quotations"])


@router.post(
    "",
    response_model=QuotationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_quotation(
    request: CreateQuotationRequest,
    store: SQLiteQuotationStore = Depends(get_quote_store),
) -> QuotationResponse:
    quotation = await store.create_quotation(Quotation(**request.model_dump()))
    return QuotationResponse.from_entity(quotation)


@router.get(
    "/{quote_id}",
    response_model=QuotationResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_quotation(
    quote_id: int,
    store: SQLiteQuotationStore = Depends(get_quote_store),
) -> QuotationResponse:
    quotation = await store.get_quotation(quote_id)
    if quotation is None:
        raise QuotationNotFoundError(quote_id)
    return QuotationResponse.from_entity(quotation)
