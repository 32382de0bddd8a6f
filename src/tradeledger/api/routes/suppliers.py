"""Supplier endpoints: purchases, payments, cheques, returns and claims."""

from fastapi import APIRouter, Depends, Query, status

from tradeledger.api.dependencies import (
    get_create_purchase_use_case,
    get_mark_loss_use_case,
    get_return_stock_use_case,
    get_settle_claim_use_case,
    get_store,
    get_supplier_cheque_use_case,
    get_supplier_payment_use_case,
)
from tradeledger.application.dto.requests import (
    CreatePurchaseRequest,
    CreateSupplierRequest,
    MarkLossRequest,
    ReturnStockRequest,
    SettleClaimRequest,
    SupplierChequeActionRequest,
    SupplierPaymentRequest,
)
from tradeledger.application.dto.responses import (
    CreatePurchaseResponse,
    ErrorResponse,
    MarkLossResponse,
    PurchaseResponse,
    ReturnStockResponse,
    SettleClaimResponse,
    SupplierPaymentResultResponse,
    SupplierResponse,
)
from tradeledger.application.use_cases.suppliers import (
    CreatePurchaseUseCase,
    MarkBusinessLossUseCase,
    RecordSupplierPaymentUseCase,
    ReturnStockToSupplierUseCase,
    SettleSupplierClaimUseCase,
    SupplierChequeActionUseCase,
)
from tradeledger.core.interfaces import IRecordStore

purchases_router = APIRouter(prefix="/api/purchases", tags=["purchases"])
router = APIRouter(prefix="/api/suppliers", tags=["suppliers"])

ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


@purchases_router.post(
    "",
    response_model=CreatePurchaseResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERRORS,
)
async def create_purchase(
    request: CreatePurchaseRequest,
    use_case: CreatePurchaseUseCase = Depends(get_create_purchase_use_case),
) -> CreatePurchaseResponse:
    """Receive goods from a supplier."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@purchases_router.get("", response_model=list[PurchaseResponse])
async def list_purchases(
    supplier_id: int | None = Query(default=None, alias="supplierId"),
    store: IRecordStore = Depends(get_store),
) -> list[PurchaseResponse]:
    """List purchases, newest first."""
    filters = {"supplier_id": supplier_id} if supplier_id is not None else None
    rows = await store.fetch("purchases", filters, order_by="id", descending=True)
    return [PurchaseResponse.model_validate(row) for row in rows]


@router.post("", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
async def create_supplier(
    request: CreateSupplierRequest,
    store: IRecordStore = Depends(get_store),
) -> SupplierResponse:
    """Register a supplier."""
    row = await store.insert("suppliers", {**request.model_dump(), "due_payment": 0})
    return SupplierResponse.model_validate(row)


@router.get("", response_model=list[SupplierResponse])
async def list_suppliers(store: IRecordStore = Depends(get_store)) -> list[SupplierResponse]:
    """List suppliers with what is owed to them."""
    rows = await store.fetch("suppliers", order_by="name")
    return [SupplierResponse.model_validate(row) for row in rows]


@router.post(
    "/payments",
    response_model=SupplierPaymentResultResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERRORS,
)
async def record_supplier_payment(
    request: SupplierPaymentRequest,
    use_case: RecordSupplierPaymentUseCase = Depends(get_supplier_payment_use_case),
) -> SupplierPaymentResultResponse:
    """Pay a supplier against a purchase."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.put("/payments", response_model=SupplierPaymentResultResponse, responses=ERRORS)
async def supplier_cheque_action(
    request: SupplierChequeActionRequest,
    use_case: SupplierChequeActionUseCase = Depends(get_supplier_cheque_use_case),
) -> SupplierPaymentResultResponse:
    """Mark a supplier cheque as passed or returned."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.post("/return-stock", response_model=ReturnStockResponse, responses=ERRORS)
async def return_stock(
    request: ReturnStockRequest,
    use_case: ReturnStockToSupplierUseCase = Depends(get_return_stock_use_case),
) -> ReturnStockResponse:
    """Send damaged items back to the supplier under one gate pass."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.post("/mark-loss", response_model=MarkLossResponse, responses=ERRORS)
async def mark_loss(
    request: MarkLossRequest,
    use_case: MarkBusinessLossUseCase = Depends(get_mark_loss_use_case),
) -> MarkLossResponse:
    """Write damaged items off as a business loss."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.post("/claims", response_model=SettleClaimResponse, responses=ERRORS)
async def settle_claim(
    request: SettleClaimRequest,
    use_case: SettleSupplierClaimUseCase = Depends(get_settle_claim_use_case),
) -> SettleClaimResponse:
    """Settle a returned batch's credit against open purchases."""
    result = await use_case.execute(request)
    return use_case.to_response(result)
