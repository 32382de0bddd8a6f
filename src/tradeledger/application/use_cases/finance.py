"""Company accounts, fund transfers, rep commissions and the balance audit."""

from dataclasses import dataclass, field
from datetime import date

from tradeledger.application.dto.requests import TransferFundsRequest
from tradeledger.application.dto.responses import (
    AccountBalanceResponse,
    AccountTransactionResponse,
    BalanceAuditEntry,
    BalanceAuditResponse,
    BankAccountResponse,
    RepCommissionResponse,
    RepCommissionSummaryResponse,
    TransferFundsResponse,
)
from tradeledger.application.postings import record_transaction
from tradeledger.application.use_cases.base import StoreUseCase
from tradeledger.config import get_logger
from tradeledger.core.entities import (
    CommissionStatus,
    Customer,
    Invoice,
    RepCommission,
    TransactionType,
)
from tradeledger.core.exceptions import AccountNotFoundError, ValidationError
from tradeledger.core.interfaces.record_store import Row
from tradeledger.core.services.balance import BalanceAudit, audit_balance
from tradeledger.core.services.cheques import LedgerEntry
from tradeledger.core.services.totals import round_money

logger = get_logger(__name__)


class TransferFundsUseCase(StoreUseCase):
    """Move money between two company accounts."""

    async def execute(self, request: TransferFundsRequest) -> Row:
        if request.from_account_id == request.to_account_id:
            raise ValidationError(
                "toAccountId", "Cannot transfer to the same account", request.to_account_id
            )

        store = await self._get_store()
        async with store.transaction() as tx:
            for account_id in (request.from_account_id, request.to_account_id):
                if await tx.get("bank_accounts", account_id) is None:
                    raise AccountNotFoundError(account_id)
            transaction = await record_transaction(
                tx,
                LedgerEntry(
                    transaction_type=TransactionType.TRANSFER,
                    amount=request.amount,
                    from_account_id=request.from_account_id,
                    to_account_id=request.to_account_id,
                    description=request.description or "Fund transfer",
                ),
                prefix="TRF",
                transaction_date=request.transfer_date or date.today(),
            )

        logger.info(
            "funds_transferred",
            from_account=request.from_account_id,
            to_account=request.to_account_id,
            amount=request.amount,
        )
        return transaction

    def to_response(self, transaction: Row) -> TransferFundsResponse:
        return TransferFundsResponse(
            message="Transfer completed",
            transaction=AccountTransactionResponse.model_validate(transaction),
        )


@dataclass
class AccountBalanceResult:
    account: Row
    balance: float
    transactions: list[Row] = field(default_factory=list)


class GetAccountBalanceUseCase(StoreUseCase):
    """An account's balance as money in minus money out over the whole ledger."""

    async def execute(self, account_id: int) -> AccountBalanceResult:
        store = await self._get_store()
        account = await store.get("bank_accounts", account_id)
        if account is None:
            raise AccountNotFoundError(account_id)

        incoming = await store.fetch("account_transactions", {"to_account_id": account_id})
        outgoing = await store.fetch("account_transactions", {"from_account_id": account_id})
        balance = round_money(
            sum(row["amount"] for row in incoming) - sum(row["amount"] for row in outgoing)
        )
        transactions = sorted(incoming + outgoing, key=lambda row: row["id"], reverse=True)
        return AccountBalanceResult(account=account, balance=balance, transactions=transactions)

    def to_response(self, result: AccountBalanceResult) -> AccountBalanceResponse:
        return AccountBalanceResponse(
            account=BankAccountResponse.model_validate(result.account),
            balance=result.balance,
            transactions=[
                AccountTransactionResponse.model_validate(row) for row in result.transactions
            ],
        )


class GetRepCommissionsUseCase(StoreUseCase):
    """Commission rows for one sales rep with pending and paid totals."""

    async def execute(self, rep_id: int) -> list[RepCommission]:
        store = await self._get_store()
        rows = await store.fetch(
            "rep_commissions", {"rep_id": rep_id}, order_by="id", descending=True
        )
        return [RepCommission.model_validate(row) for row in rows]

    def to_response(self, rep_id: int, commissions: list[RepCommission]) -> RepCommissionSummaryResponse:
        def total(status: CommissionStatus) -> float:
            return round_money(
                sum(c.total_commission_amount for c in commissions if c.status == status)
            )

        return RepCommissionSummaryResponse(
            rep_id=rep_id,
            total_pending=total(CommissionStatus.PENDING),
            total_paid=total(CommissionStatus.PAID),
            commissions=[
                RepCommissionResponse.model_validate(c.model_dump(mode="json"))
                for c in commissions
            ],
        )


class AuditBalancesUseCase(StoreUseCase):
    """
    Compare each customer's stored balance with the sum of their invoices'
    ``total - paid``. Read only; drift is reported, never corrected.
    """

    async def execute(self, customer_id: int | None = None) -> list[BalanceAudit]:
        store = await self._get_store()
        filters = {"id": customer_id} if customer_id is not None else None
        customers = [Customer.model_validate(row) for row in await store.fetch("customers", filters)]

        audits = []
        for customer in customers:
            invoices = [
                Invoice.model_validate(row)
                for row in await store.fetch("invoices", {"customer_id": customer.id})
            ]
            audits.append(audit_balance(customer.id, customer.outstanding_balance, invoices))

        drifted = [audit for audit in audits if not audit.consistent]
        if drifted:
            logger.warning(
                "balance_drift_detected",
                customers=[audit.customer_id for audit in drifted],
            )
        return audits

    def to_response(self, audits: list[BalanceAudit]) -> BalanceAuditResponse:
        drifted = [audit for audit in audits if not audit.consistent]
        return BalanceAuditResponse(
            checked=len(audits),
            consistent=not drifted,
            drifted=[
                BalanceAuditEntry(
                    customer_id=audit.customer_id,
                    stored=audit.stored,
                    expected=audit.expected,
                    drift=audit.drift,
                )
                for audit in drifted
            ],
        )
