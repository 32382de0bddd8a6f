"""Sales rep endpoints."""

from fastapi import APIRouter, Depends, Query

from tradeledger.api.dependencies import get_rep_commissions_use_case
from tradeledger.application.dto.responses import RepCommissionSummaryResponse
from tradeledger.application.use_cases.finance import GetRepCommissionsUseCase

router = APIRouter(prefix="/api/rep", tags=["rep"])


@router.get("/commission", response_model=RepCommissionSummaryResponse)
async def get_commission(
    rep_id: int = Query(..., alias="repId"),
    use_case: GetRepCommissionsUseCase = Depends(get_rep_commissions_use_case),
) -> RepCommissionSummaryResponse:
    """A rep's commission rows with pending and paid totals."""
    commissions = await use_case.execute(rep_id)
    return use_case.to_response(rep_id, commissions)
