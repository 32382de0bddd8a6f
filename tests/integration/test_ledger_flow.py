"""End-to-end ledger flows against the in-memory store."""

from datetime import date

import pytest

from tradeledger.application.dto.requests import (
    ChequeActionRequest,
    CreateInvoiceRequest,
    DamageItemRequest,
    DamageReportRequest,
    InterBranchBillRequest,
    InventoryReturnRequest,
    InvoiceItemRequest,
    RecordPaymentRequest,
    UpdateInvoiceRequest,
)
from tradeledger.application.use_cases import (
    AuditBalancesUseCase,
    ChequeActionUseCase,
    CreateInvoiceUseCase,
    InterBranchBillUseCase,
    RecordInventoryReturnUseCase,
    RecordPaymentUseCase,
    ReportDamageUseCase,
    UpdateInvoiceUseCase,
)
from tradeledger.core.entities import Agency, InvoiceStatus


def line(product_id: int, quantity: float, price: float = 100) -> InvoiceItemRequest:
    return InvoiceItemRequest(
        product_id=product_id, quantity=quantity, unit_price=price, total=quantity * price
    )


async def sell(store, customer_id: int, product_id: int, quantity: float, **extra):
    return await CreateInvoiceUseCase(store).execute(
        CreateInvoiceRequest(
            customer_id=customer_id,
            items=[line(product_id, quantity)],
            grand_total=quantity * 100,
            **extra,
        )
    )


async def pay(store, order_id: int, amount: float, method: str = "cash", **extra):
    return await RecordPaymentUseCase(store).execute(
        RecordPaymentRequest(order_id=order_id, amount=amount, method=method, **extra)
    )


class TestBalanceConservation:
    """Stored balance equals the sum of invoice dues after every kind of event."""

    async def test_scripted_sequence(self, store, seed):
        customer = await seed.customer()
        product = await seed.product(stock=100)
        location = await seed.location()
        account = await seed.account()
        audit = AuditBalancesUseCase(store)

        async def assert_consistent(expected_balance: float):
            assert await seed.balance_of(customer["id"]) == expected_balance
            audits = await audit.execute(customer["id"])
            assert audits[0].consistent
            assert audits[0].expected == expected_balance

        first = await sell(
            store, customer["id"], product["id"], 10, payment_type="cash", paid_amount=300
        )
        await assert_consistent(700)

        second = await sell(store, customer["id"], product["id"], 5)
        await assert_consistent(1200)

        await pay(store, second.order["id"], 200, method="bank")
        await assert_consistent(1000)

        cheque = await pay(store, first.order["id"], 700, method="cheque", cheque_no="004512")
        assert cheque.invoice.status == InvoiceStatus.PAID
        await assert_consistent(300)

        cheques = ChequeActionUseCase(store)
        await cheques.execute(
            ChequeActionRequest(
                payment_id=cheque.payment["id"], action="deposit", deposit_account_id=account["id"]
            )
        )
        bounced = await cheques.execute(
            ChequeActionRequest(payment_id=cheque.payment["id"], action="return")
        )
        assert bounced.invoice.paid_amount == 300
        await assert_consistent(1000)

        await RecordInventoryReturnUseCase(store).execute(
            InventoryReturnRequest(
                product_id=product["id"],
                location_id=location["id"],
                quantity=2,
                return_type="Good",
                customer_id=customer["id"],
                invoice_id=first.invoice.id,
            )
        )
        await assert_consistent(800)

        await UpdateInvoiceUseCase(store).execute(
            second.invoice.id,
            UpdateInvoiceRequest(user_id=1, items=[line(product["id"], 3)], grand_total=300),
        )
        await assert_consistent(600)

        # 100 - 10 - 5 + 2 returned + 2 edited off
        assert await seed.stock_of(product["id"]) == (89, 0)


class TestStockConservation:
    async def test_sale_then_good_return_restores_stock(self, store, seed):
        customer = await seed.customer()
        product = await seed.product(stock=40)
        location = await seed.location()
        await seed.stock(product["id"], location["id"], 0)

        await sell(store, customer["id"], product["id"], 5)
        assert await seed.stock_of(product["id"]) == (35, 0)

        await RecordInventoryReturnUseCase(store).execute(
            InventoryReturnRequest(
                product_id=product["id"], location_id=location["id"], quantity=5, return_type="Good"
            )
        )

        assert await seed.stock_of(product["id"]) == (40, 0)

    async def test_damage_scenario(self, store, seed):
        product = await seed.product(stock=50, cost=25)
        location = await seed.location()
        await seed.stock(product["id"], location["id"], 50)

        outcome = await ReportDamageUseCase(store).execute(
            DamageReportRequest(
                location_id=location["id"],
                items=[DamageItemRequest(product_id=product["id"], quantity=3)],
            )
        )

        assert outcome.processed == 1
        assert await seed.stock_of(product["id"]) == (47, 3)
        good, damaged = await seed.stock_of(product["id"])
        assert good + damaged == 50
        ledger = await store.fetch("account_transactions")
        assert [(row["transaction_type"], row["amount"]) for row in ledger] == [
            ("INVENTORY_DAMAGE", 0)
        ]


class TestInvoiceStatusBoundary:
    @pytest.mark.parametrize(
        ("paid", "expected"),
        [
            (1000, InvoiceStatus.PAID),
            (999.99, InvoiceStatus.PARTIAL),
            (0, InvoiceStatus.UNPAID),
        ],
    )
    async def test_status_at_creation(self, store, seed, paid, expected):
        customer = await seed.customer()
        product = await seed.product()

        result = await sell(
            store, customer["id"], product["id"], 10, payment_type="cash", paid_amount=paid
        )

        assert result.invoice.status == expected

    async def test_last_cent_makes_it_paid(self, store, seed):
        customer = await seed.customer()
        product = await seed.product()
        sale = await sell(
            store, customer["id"], product["id"], 10, payment_type="cash", paid_amount=999.99
        )
        assert sale.invoice.due_amount == pytest.approx(0.01)

        result = await pay(store, sale.order["id"], 0.01)

        assert result.invoice.status == InvoiceStatus.PAID
        assert await seed.balance_of(customer["id"]) == pytest.approx(0)

    async def test_partial_then_settled(self, store, seed):
        customer = await seed.customer()
        product = await seed.product(stock=200)

        sale = await sell(
            store, customer["id"], product["id"], 100, payment_type="cash", paid_amount=4000
        )

        assert sale.invoice.total_amount == 10000
        assert sale.invoice.status == InvoiceStatus.PARTIAL
        assert sale.invoice.due_amount == 6000
        assert await seed.balance_of(customer["id"]) == 6000

        result = await pay(store, sale.order["id"], 6000)

        assert result.invoice.status == InvoiceStatus.PAID
        assert await seed.balance_of(customer["id"]) == 0


class TestChequeRoundTrip:
    async def test_deposit_then_return_is_a_full_reversal(self, store, seed):
        customer = await seed.customer()
        product = await seed.product()
        account = await seed.account()
        sale = await sell(store, customer["id"], product["id"], 10)
        before = (await store.get("invoices", sale.invoice.id))["paid_amount"]

        cheque = await pay(store, sale.order["id"], 1000, method="cheque")
        use_case = ChequeActionUseCase(store)
        await use_case.execute(
            ChequeActionRequest(
                payment_id=cheque.payment["id"], action="deposit", deposit_account_id=account["id"]
            )
        )
        await use_case.execute(ChequeActionRequest(payment_id=cheque.payment["id"], action="return"))

        invoice = await store.get("invoices", sale.invoice.id)
        assert invoice["paid_amount"] == before
        assert invoice["status"] == InvoiceStatus.UNPAID.value
        assert await seed.balance_of(customer["id"]) == 1000
        ledger = await store.fetch("account_transactions", order_by="id")
        assert [row["transaction_type"] for row in ledger] == ["Deposit", "Withdrawal"]


class TestMonthlyBill:
    async def test_rerun_does_not_duplicate_lines(self, store, seed):
        buyer = await seed.customer("Silva Stores")
        branch = await seed.customer("Retail Branch")
        switch = await seed.product("Orange Switch", cost=50, supplier_name="Orange Electric")
        await sell(
            store, buyer["id"], switch["id"], 4, business_id=2, invoice_date=date(2024, 3, 5)
        )
        request = InterBranchBillRequest(
            customer_id=branch["id"], branch="retail", year=2024, month=3
        )
        use_case = InterBranchBillUseCase(store)

        first = await use_case.execute(Agency.ORANGE, request)
        lines = await store.count("order_items")
        second = await use_case.execute(Agency.ORANGE, request)

        assert second.difference == 0
        assert second.invoice_id == first.invoice_id
        assert await store.count("order_items") == lines
        assert await seed.balance_of(branch["id"]) == 200
