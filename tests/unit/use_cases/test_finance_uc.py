"""Tests for transfers, account balances, commissions and the balance audit."""

import pytest

from tradeledger.application.dto.requests import (
    CreateInvoiceRequest,
    InvoiceItemRequest,
    RecordPaymentRequest,
    TransferFundsRequest,
)
from tradeledger.application.use_cases import (
    AuditBalancesUseCase,
    CreateInvoiceUseCase,
    GetAccountBalanceUseCase,
    GetRepCommissionsUseCase,
    RecordPaymentUseCase,
    TransferFundsUseCase,
)
from tradeledger.core.exceptions import AccountNotFoundError, ValidationError


class TestTransferFunds:
    async def test_transfer_and_balances(self, store, seed):
        cash = await seed.account("Main Cash", "cash")
        bank = await seed.account("BOC Current", "bank")
        customer = await seed.customer()
        product = await seed.product()
        sale = await CreateInvoiceUseCase(store).execute(
            CreateInvoiceRequest(
                customer_id=customer["id"],
                items=[InvoiceItemRequest(product_id=product["id"], quantity=10, total=1000)],
                grand_total=1000,
            )
        )
        await RecordPaymentUseCase(store).execute(
            RecordPaymentRequest(
                order_id=sale.order["id"], amount=1000, method="cash", deposit_account_id=cash["id"]
            )
        )

        transaction = await TransferFundsUseCase(store).execute(
            TransferFundsRequest(from_account_id=cash["id"], to_account_id=bank["id"], amount=700)
        )
        assert transaction["transaction_type"] == "Transfer"
        assert transaction["transaction_no"].startswith("TRF-")

        balances = GetAccountBalanceUseCase(store)
        assert (await balances.execute(cash["id"])).balance == 300
        bank_balance = await balances.execute(bank["id"])
        assert bank_balance.balance == 700
        assert len(bank_balance.transactions) == 1

    async def test_same_account(self, store, seed):
        cash = await seed.account()

        with pytest.raises(ValidationError):
            await TransferFundsUseCase(store).execute(
                TransferFundsRequest(from_account_id=cash["id"], to_account_id=cash["id"], amount=5)
            )

    async def test_unknown_account(self, store, seed):
        cash = await seed.account()

        with pytest.raises(AccountNotFoundError):
            await TransferFundsUseCase(store).execute(
                TransferFundsRequest(from_account_id=cash["id"], to_account_id=42, amount=5)
            )
        with pytest.raises(AccountNotFoundError):
            await GetAccountBalanceUseCase(store).execute(42)


class TestRepCommissions:
    async def test_totals_by_status(self, store):
        await store.insert(
            "rep_commissions",
            {"rep_id": 7, "order_id": 1, "total_commission_amount": 50, "status": "Pending"},
        )
        await store.insert(
            "rep_commissions",
            {"rep_id": 7, "order_id": 2, "total_commission_amount": 20, "status": "Paid"},
        )
        await store.insert(
            "rep_commissions",
            {"rep_id": 8, "order_id": 3, "total_commission_amount": 99, "status": "Pending"},
        )
        use_case = GetRepCommissionsUseCase(store)

        commissions = await use_case.execute(7)
        response = use_case.to_response(7, commissions)

        assert [c.order_id for c in commissions] == [2, 1]
        assert response.total_pending == 50
        assert response.total_paid == 20


class TestAuditBalances:
    async def test_detects_drift(self, store, seed):
        good = await seed.customer("Silva Stores")
        bad = await seed.customer("Perera Hardware")
        product = await seed.product()
        for customer in (good, bad):
            await CreateInvoiceUseCase(store).execute(
                CreateInvoiceRequest(
                    customer_id=customer["id"],
                    items=[InvoiceItemRequest(product_id=product["id"], quantity=1, total=100)],
                    grand_total=100,
                )
            )
        await store.update("customers", {"id": bad["id"]}, {"outstanding_balance": 175})
        use_case = AuditBalancesUseCase(store)

        audits = await use_case.execute()
        response = use_case.to_response(audits)

        assert response.checked == 2
        assert not response.consistent
        assert [(e.customer_id, e.drift) for e in response.drifted] == [(bad["id"], 75)]

    async def test_single_customer(self, store, seed):
        customer = await seed.customer(balance=0)

        audits = await AuditBalancesUseCase(store).execute(customer["id"])

        assert len(audits) == 1
        assert audits[0].consistent
