"""Order status and loading sheet endpoints."""

from fastapi import APIRouter, Depends, status

from tradeledger.api.dependencies import (
    get_create_loading_sheet_use_case,
    get_reconcile_loading_use_case,
    get_update_order_status_use_case,
)
from tradeledger.application.dto.requests import (
    CreateLoadingSheetRequest,
    ReconcileLoadingRequest,
    UpdateOrderStatusRequest,
)
from tradeledger.application.dto.responses import (
    ErrorResponse,
    LoadingSheetResponse,
    OrderStatusResponse,
    ReconcileLoadingResponse,
)
from tradeledger.application.use_cases.orders import (
    CreateLoadingSheetUseCase,
    ReconcileLoadingUseCase,
    UpdateOrderStatusUseCase,
)

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post(
    "/loading",
    response_model=LoadingSheetResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def create_loading_sheet(
    request: CreateLoadingSheetRequest,
    use_case: CreateLoadingSheetUseCase = Depends(get_create_loading_sheet_use_case),
) -> LoadingSheetResponse:
    """Put orders on a lorry."""
    sheet = await use_case.execute(request)
    return use_case.to_response(sheet)


@router.post(
    "/loading/reconcile",
    response_model=ReconcileLoadingResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def reconcile_loading(
    request: ReconcileLoadingRequest,
    use_case: ReconcileLoadingUseCase = Depends(get_reconcile_loading_use_case),
) -> ReconcileLoadingResponse:
    """Record delivery outcomes for the orders on a lorry."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.patch(
    "/{order_id}",
    response_model=OrderStatusResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def update_order_status(
    order_id: int,
    request: UpdateOrderStatusRequest,
    use_case: UpdateOrderStatusUseCase = Depends(get_update_order_status_use_case),
) -> OrderStatusResponse:
    """Change an order's status; cancelling puts its stock back."""
    result = await use_case.execute(order_id, request)
    return use_case.to_response(result)
