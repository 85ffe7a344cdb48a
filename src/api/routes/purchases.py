"""Purchase invoice endpoints."""

from fastapi import APIRouter, Depends, status

from src.api.dependencies import get_purchase_invoice_use_case
from src.application.dto.requests import PurchaseInvoiceRequest
from src.application.dto.responses import ErrorResponse, PurchaseInvoiceResponse
from src.application.use_cases import ProcessPurchaseInvoiceUseCase

router = APIRouter(prefix="/api/purchases", tags=["purchases"])


@router.post(
    "/invoices",
    response_model=PurchaseInvoiceResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def receive_purchase_invoice(
    request: PurchaseInvoiceRequest,
    use_case: ProcessPurchaseInvoiceUseCase = Depends(get_purchase_invoice_use_case),
) -> PurchaseInvoiceResponse:
    """Receive every line of a supplier invoice into stock."""
    result = await use_case.execute(request)
    return use_case.to_response(result)
