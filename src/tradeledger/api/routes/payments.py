"""Customer payment endpoints."""

from fastapi import APIRouter, Depends, Query, status

from tradeledger.api.dependencies import (
    CurrentUser,
    get_current_user,
    get_record_payment_use_case,
    get_store,
)
from tradeledger.application.dto.requests import RecordPaymentRequest
from tradeledger.application.dto.responses import (
    ErrorResponse,
    PaymentResponse,
    RecordPaymentResponse,
)
from tradeledger.application.use_cases.payments import RecordPaymentUseCase
from tradeledger.core.interfaces import IRecordStore

router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.post(
    "",
    response_model=RecordPaymentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def record_payment(
    request: RecordPaymentRequest,
    user: CurrentUser = Depends(get_current_user),
    use_case: RecordPaymentUseCase = Depends(get_record_payment_use_case),
) -> RecordPaymentResponse:
    """Record a payment against an order's invoice."""
    result = await use_case.execute(request, collected_by=user.id)
    return use_case.to_response(result)


@router.get("", response_model=list[PaymentResponse])
async def list_payments(
    customer_id: int | None = Query(default=None, alias="customerId"),
    invoice_id: int | None = Query(default=None, alias="invoiceId"),
    limit: int = Query(default=100, ge=1, le=1000),
    store: IRecordStore = Depends(get_store),
) -> list[PaymentResponse]:
    """List payments, newest first."""
    filters = {}
    if customer_id is not None:
        filters["customer_id"] = customer_id
    if invoice_id is not None:
        filters["invoice_id"] = invoice_id
    rows = await store.fetch("payments", filters, order_by="id", descending=True, limit=limit)
    return [PaymentResponse.model_validate(row) for row in rows]
