"""Inventory endpoints: returns, damage, stock-take adjustments and transfers."""

from fastapi import APIRouter, Depends, Query, status

from tradeledger.api.dependencies import (
    CurrentUser,
    get_adjust_stock_use_case,
    get_current_user,
    get_inventory_return_use_case,
    get_report_damage_use_case,
    get_store,
    get_transfer_stock_use_case,
)
from tradeledger.application.dto.requests import (
    DamageReportRequest,
    InventoryReturnRequest,
    StockAdjustmentRequest,
    StockTransferRequest,
)
from tradeledger.application.dto.responses import (
    BatchResultResponse,
    ErrorResponse,
    InventoryReturnResponse,
    ReturnResultResponse,
)
from tradeledger.application.use_cases.inventory import (
    AdjustStockUseCase,
    RecordInventoryReturnUseCase,
    ReportDamageUseCase,
    TransferStockUseCase,
)
from tradeledger.core.entities import ReturnType
from tradeledger.core.interfaces import IRecordStore

router = APIRouter(prefix="/api/inventory", tags=["inventory"])


@router.post(
    "/returns",
    response_model=ReturnResultResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def record_return(
    request: InventoryReturnRequest,
    user: CurrentUser = Depends(get_current_user),
    use_case: RecordInventoryReturnUseCase = Depends(get_inventory_return_use_case),
) -> ReturnResultResponse:
    """Take returned goods back into a location."""
    result = await use_case.execute(request, returned_by=user.id)
    return use_case.to_response(result)


@router.get("/returns", response_model=list[InventoryReturnResponse])
async def list_returns(
    customer_id: int | None = Query(default=None, alias="customerId"),
    location_id: int | None = Query(default=None, alias="locationId"),
    return_type: ReturnType | None = Query(default=None, alias="returnType"),
    limit: int = Query(default=100, ge=1, le=1000),
    store: IRecordStore = Depends(get_store),
) -> list[InventoryReturnResponse]:
    """Returns and damage records, newest first."""
    filters: dict = {}
    if customer_id is not None:
        filters["customer_id"] = customer_id
    if return_type is not None:
        filters["return_type"] = return_type.value
    if location_id is not None:
        filters["location_id"] = location_id
    rows = await store.fetch(
        "inventory_returns", filters, order_by="id", descending=True, limit=limit
    )
    return [InventoryReturnResponse.model_validate(row) for row in rows]


@router.post(
    "/damage",
    response_model=BatchResultResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def report_damage(
    request: DamageReportRequest,
    user: CurrentUser = Depends(get_current_user),
    use_case: ReportDamageUseCase = Depends(get_report_damage_use_case),
) -> BatchResultResponse:
    """Move good stock found damaged into damaged stock, item by item."""
    if request.business_id is None:
        request.business_id = user.business_id
    outcome = await use_case.execute(request, reported_by=user.id)
    return use_case.to_response(outcome)


@router.get("/damage", response_model=list[InventoryReturnResponse])
async def list_damage(
    location_id: int | None = Query(default=None, alias="locationId"),
    limit: int = Query(default=100, ge=1, le=1000),
    store: IRecordStore = Depends(get_store),
) -> list[InventoryReturnResponse]:
    """Damaged stock records, newest first."""
    filters: dict = {"return_type": ReturnType.DAMAGE.value}
    if location_id is not None:
        filters["location_id"] = location_id
    rows = await store.fetch(
        "inventory_returns", filters, order_by="id", descending=True, limit=limit
    )
    return [InventoryReturnResponse.model_validate(row) for row in rows]


@router.post(
    "/adjust",
    response_model=BatchResultResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def adjust_stock(
    request: StockAdjustmentRequest,
    user: CurrentUser = Depends(get_current_user),
    use_case: AdjustStockUseCase = Depends(get_adjust_stock_use_case),
) -> BatchResultResponse:
    """Set counted quantities at a location."""
    outcome = await use_case.execute(request, adjusted_by=user.id)
    return use_case.to_response(outcome)


@router.post(
    "/transfer",
    response_model=BatchResultResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def transfer_stock(
    request: StockTransferRequest,
    user: CurrentUser = Depends(get_current_user),
    use_case: TransferStockUseCase = Depends(get_transfer_stock_use_case),
) -> BatchResultResponse:
    """Move good stock between two locations."""
    outcome = await use_case.execute(request, moved_by=user.id)
    return use_case.to_response(outcome)
