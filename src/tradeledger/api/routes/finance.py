"""Finance endpoints: cheques, company accounts, transfers and the balance audit."""

from typing import Literal

from fastapi import APIRouter, Depends, Query, status

from tradeledger.api.dependencies import (
    get_account_balance_use_case,
    get_audit_balances_use_case,
    get_cheque_action_use_case,
    get_store,
    get_transfer_funds_use_case,
)
from tradeledger.application.dto.requests import (
    ChequeActionRequest,
    CreateAccountRequest,
    TransferFundsRequest,
)
from tradeledger.application.dto.responses import (
    AccountBalanceResponse,
    BalanceAuditResponse,
    BankAccountResponse,
    ChequeActionResponse,
    ErrorResponse,
    PaymentResponse,
    TransferFundsResponse,
)
from tradeledger.application.use_cases.finance import (
    AuditBalancesUseCase,
    GetAccountBalanceUseCase,
    TransferFundsUseCase,
)
from tradeledger.application.use_cases.payments import ChequeActionUseCase
from tradeledger.core.entities import ChequeStatus, PaymentMethod
from tradeledger.core.interfaces import IRecordStore

router = APIRouter(prefix="/api/finance", tags=["finance"])

CHEQUE_VIEWS: dict[str, list[str]] = {
    "pending": [ChequeStatus.PENDING.value],
    "deposited": [ChequeStatus.DEPOSITED.value],
    "history": [ChequeStatus.PASSED.value, ChequeStatus.RETURNED.value],
}


@router.put(
    "/cheques",
    response_model=ChequeActionResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def cheque_action(
    request: ChequeActionRequest,
    use_case: ChequeActionUseCase = Depends(get_cheque_action_use_case),
) -> ChequeActionResponse:
    """Deposit, clear or bounce a customer cheque."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.get("/cheques", response_model=list[PaymentResponse])
async def list_cheques(
    view: Literal["pending", "deposited", "history"] = Query(default="pending", alias="status"),
    store: IRecordStore = Depends(get_store),
) -> list[PaymentResponse]:
    """Customer cheques waiting to be deposited, waiting to clear, or settled."""
    rows = await store.fetch(
        "payments",
        {"method": PaymentMethod.CHEQUE.value, "cheque_status": CHEQUE_VIEWS[view]},
        order_by="id",
        descending=True,
    )
    return [PaymentResponse.model_validate(row) for row in rows]


@router.post(
    "/transfer",
    response_model=TransferFundsResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def transfer_funds(
    request: TransferFundsRequest,
    use_case: TransferFundsUseCase = Depends(get_transfer_funds_use_case),
) -> TransferFundsResponse:
    """Move money between two company accounts."""
    transaction = await use_case.execute(request)
    return use_case.to_response(transaction)


@router.post(
    "/accounts",
    response_model=BankAccountResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_account(
    request: CreateAccountRequest,
    store: IRecordStore = Depends(get_store),
) -> BankAccountResponse:
    """Open a company cash, bank or cheque account."""
    row = await store.insert("bank_accounts", request.model_dump())
    return BankAccountResponse.model_validate(row)


@router.get(
    "/accounts/{account_id}",
    response_model=AccountBalanceResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_account(
    account_id: int,
    use_case: GetAccountBalanceUseCase = Depends(get_account_balance_use_case),
) -> AccountBalanceResponse:
    """Account balance computed from the ledger, with its transactions."""
    result = await use_case.execute(account_id)
    return use_case.to_response(result)


@router.get("/balance-audit", response_model=BalanceAuditResponse)
async def balance_audit(
    customer_id: int | None = Query(default=None, alias="customerId"),
    use_case: AuditBalancesUseCase = Depends(get_audit_balances_use_case),
) -> BalanceAuditResponse:
    """Customers whose stored balance has drifted from their invoices."""
    audits = await use_case.execute(customer_id)
    return use_case.to_response(audits)
