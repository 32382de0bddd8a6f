"""Invoice endpoints: create, edit, recalculate and read."""

from fastapi import APIRouter, Depends, Query, status

from tradeledger.api.dependencies import (
    get_create_invoice_use_case,
    get_recalculate_invoice_use_case,
    get_store,
    get_update_invoice_use_case,
)
from tradeledger.application.dto.requests import CreateInvoiceRequest, UpdateInvoiceRequest
from tradeledger.application.dto.responses import (
    CreateInvoiceResponse,
    ErrorResponse,
    InventoryReturnResponse,
    InvoiceHistoryResponse,
    InvoiceResponse,
    OrderItemResponse,
    RecalculateInvoiceResponse,
    UpdateInvoiceResponse,
)
from tradeledger.application.use_cases.create_invoice import CreateInvoiceUseCase
from tradeledger.application.use_cases.update_invoice import (
    RecalculateInvoiceUseCase,
    UpdateInvoiceUseCase,
)
from tradeledger.core.entities import InvoiceStatus
from tradeledger.core.exceptions import InvoiceNotFoundError
from tradeledger.core.interfaces import IRecordStore

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


@router.post(
    "",
    response_model=CreateInvoiceResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def create_invoice(
    request: CreateInvoiceRequest,
    use_case: CreateInvoiceUseCase = Depends(get_create_invoice_use_case),
) -> CreateInvoiceResponse:
    """Create an order with its invoice, deduct stock and charge the customer."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.get("", response_model=list[InvoiceResponse])
async def list_invoices(
    customer_id: int | None = Query(default=None, alias="customerId"),
    invoice_status: InvoiceStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=100, ge=1, le=1000),
    store: IRecordStore = Depends(get_store),
) -> list[InvoiceResponse]:
    """List invoices, newest first."""
    filters = {}
    if customer_id is not None:
        filters["customer_id"] = customer_id
    if invoice_status is not None:
        filters["status"] = invoice_status.value
    rows = await store.fetch("invoices", filters, order_by="id", descending=True, limit=limit)
    return [InvoiceResponse.model_validate(row) for row in rows]


@router.get(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_invoice(
    invoice_id: int,
    store: IRecordStore = Depends(get_store),
) -> InvoiceResponse:
    """Get an invoice with its lines."""
    row = await store.get("invoices", invoice_id)
    if row is None:
        raise InvoiceNotFoundError(invoice_id)
    items = await store.fetch("order_items", {"order_id": row["order_id"]}, order_by="id")
    return InvoiceResponse.model_validate(
        {**row, "items": [OrderItemResponse.model_validate(item) for item in items]}
    )


@router.patch(
    "/{invoice_id}",
    response_model=UpdateInvoiceResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def update_invoice(
    invoice_id: int,
    request: UpdateInvoiceRequest,
    use_case: UpdateInvoiceUseCase = Depends(get_update_invoice_use_case),
) -> UpdateInvoiceResponse:
    """Replace an invoice's lines, moving balance and stock by the difference."""
    result = await use_case.execute(invoice_id, request)
    return use_case.to_response(result)


@router.post(
    "/{invoice_id}/recalculate",
    response_model=RecalculateInvoiceResponse,
    responses={404: {"model": ErrorResponse}},
)
async def recalculate_invoice(
    invoice_id: int,
    use_case: RecalculateInvoiceUseCase = Depends(get_recalculate_invoice_use_case),
) -> RecalculateInvoiceResponse:
    """Re-sum an invoice from its lines."""
    result = await use_case.execute(invoice_id)
    return use_case.to_response(result)


@router.get(
    "/{invoice_id}/history",
    response_model=list[InvoiceHistoryResponse],
    responses={404: {"model": ErrorResponse}},
)
async def get_invoice_history(
    invoice_id: int,
    store: IRecordStore = Depends(get_store),
) -> list[InvoiceHistoryResponse]:
    """Snapshots taken before each total-changing edit, newest first."""
    if await store.get("invoices", invoice_id) is None:
        raise InvoiceNotFoundError(invoice_id)
    rows = await store.fetch(
        "invoice_history", {"invoice_id": invoice_id}, order_by="id", descending=True
    )
    return [InvoiceHistoryResponse.model_validate(row) for row in rows]


@router.get(
    "/{invoice_id}/returns",
    response_model=list[InventoryReturnResponse],
    responses={404: {"model": ErrorResponse}},
)
async def get_invoice_returns(
    invoice_id: int,
    store: IRecordStore = Depends(get_store),
) -> list[InventoryReturnResponse]:
    """Returns recorded against an invoice."""
    if await store.get("invoices", invoice_id) is None:
        raise InvoiceNotFoundError(invoice_id)
    rows = await store.fetch("inventory_returns", {"invoice_id": invoice_id}, order_by="id")
    return [InventoryReturnResponse.model_validate(row) for row in rows]
