"""Monthly inter-branch billing endpoint, one per agency."""

from fastapi import APIRouter, Depends

from tradeledger.api.dependencies import get_inter_branch_bill_use_case
from tradeledger.application.dto.requests import InterBranchBillRequest
from tradeledger.application.dto.responses import ErrorResponse, InterBranchBillResponse
from tradeledger.application.use_cases.inter_branch import InterBranchBillUseCase
from tradeledger.core.entities import Agency

router = APIRouter(prefix="/api", tags=["inter-branch"])


@router.post(
    "/{agency}/inter-branch/bill",
    response_model=InterBranchBillResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def generate_bill(
    agency: Agency,
    request: InterBranchBillRequest,
    use_case: InterBranchBillUseCase = Depends(get_inter_branch_bill_use_case),
) -> InterBranchBillResponse:
    """Create or refresh the agency's bill to a branch for a month."""
    result = await use_case.execute(agency, request)
    return use_case.to_response(result)
