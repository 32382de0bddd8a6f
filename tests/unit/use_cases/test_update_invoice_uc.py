"""Tests for invoice edits and recalculation."""

import pytest

from tradeledger.application.dto.requests import (
    CreateInvoiceRequest,
    InvoiceItemRequest,
    RecordPaymentRequest,
    UpdateInvoiceRequest,
)
from tradeledger.application.use_cases import (
    CreateInvoiceUseCase,
    RecalculateInvoiceUseCase,
    RecordPaymentUseCase,
    UpdateInvoiceUseCase,
)
from tradeledger.core.entities import InvoiceStatus
from tradeledger.core.exceptions import InvalidTransitionError, InvoiceNotFoundError


@pytest.fixture
async def sale(store, seed):
    """A 10 x 100 credit sale of the default product."""
    customer = await seed.customer()
    cable = await seed.product(stock=100)
    bulb = await seed.product(name="LED Bulb", stock=100, price=20)
    result = await CreateInvoiceUseCase(store).execute(
        CreateInvoiceRequest(
            customer_id=customer["id"],
            items=[InvoiceItemRequest(product_id=cable["id"], quantity=10, total=1000)],
            grand_total=1000,
        )
    )
    return {"customer": customer, "cable": cable, "bulb": bulb, "result": result}


def edit(items: list[InvoiceItemRequest], grand_total: float, **extra) -> UpdateInvoiceRequest:
    return UpdateInvoiceRequest(user_id=3, items=items, grand_total=grand_total, **extra)


class TestUpdateInvoice:
    async def test_balance_and_stock_move_by_difference(self, store, seed, sale):
        invoice_id = sale["result"].invoice.id
        cable, bulb = sale["cable"]["id"], sale["bulb"]["id"]

        result = await UpdateInvoiceUseCase(store).execute(
            invoice_id,
            edit(
                [
                    InvoiceItemRequest(product_id=cable, quantity=8, total=800),
                    InvoiceItemRequest(product_id=bulb, quantity=5, total=100),
                ],
                900,
            ),
        )

        assert result.balance_delta == -100
        assert result.stock_changes == {cable: -2, bulb: 5}
        assert result.invoice.total_amount == 900
        assert await seed.balance_of(sale["customer"]["id"]) == 900
        assert await seed.stock_of(cable) == (92, 0)
        assert await seed.stock_of(bulb) == (95, 0)
        assert await store.count("order_items", {"order_id": result.invoice.order_id}) == 2

    async def test_history_snapshot(self, store, sale):
        invoice_id = sale["result"].invoice.id

        await UpdateInvoiceUseCase(store).execute(
            invoice_id,
            edit(
                [InvoiceItemRequest(product_id=sale["cable"]["id"], quantity=5, total=500)],
                500,
                change_reason="Customer changed mind",
            ),
        )

        history = await store.fetch("invoice_history", {"invoice_id": invoice_id})
        assert len(history) == 1
        assert history[0]["previous_data"]["total_amount"] == 1000
        assert history[0]["changed_by"] == 3
        assert history[0]["change_reason"] == "Customer changed mind"

    async def test_paid_amount_is_kept(self, store, seed, sale):
        invoice = sale["result"].invoice
        await RecordPaymentUseCase(store).execute(
            RecordPaymentRequest(order_id=invoice.order_id, amount=600, method="cash")
        )

        result = await UpdateInvoiceUseCase(store).execute(
            invoice.id,
            edit([InvoiceItemRequest(product_id=sale["cable"]["id"], quantity=6, total=600)], 600),
        )

        assert result.invoice.paid_amount == 600
        assert result.invoice.status == InvoiceStatus.PAID
        assert await seed.balance_of(sale["customer"]["id"]) == 0

    async def test_cancelled_order_cannot_be_edited(self, store, sale):
        invoice = sale["result"].invoice
        await store.update("orders", {"id": invoice.order_id}, {"status": "Cancelled"})

        with pytest.raises(InvalidTransitionError):
            await UpdateInvoiceUseCase(store).execute(
                invoice.id,
                edit([InvoiceItemRequest(product_id=sale["cable"]["id"], quantity=1, total=100)], 100),
            )

    async def test_unknown_invoice(self, store, sale):
        with pytest.raises(InvoiceNotFoundError):
            await UpdateInvoiceUseCase(store).execute(
                99,
                edit([InvoiceItemRequest(product_id=sale["cable"]["id"], quantity=1, total=100)], 100),
            )


class TestRecalculateInvoice:
    async def test_resums_lines(self, store, seed, sale):
        invoice = sale["result"].invoice
        await store.update("order_items", {"order_id": invoice.order_id}, {"total_price": 750})

        result = await RecalculateInvoiceUseCase(store).execute(invoice.id)

        assert result.old_total == 1000
        assert result.new_total == 750
        assert result.difference == -250
        assert result.invoice.due_amount == 750
        assert await seed.balance_of(sale["customer"]["id"]) == 750

    async def test_no_change_is_a_no_op(self, store, seed, sale):
        result = await RecalculateInvoiceUseCase(store).execute(sale["result"].invoice.id)

        assert result.difference == 0
        assert await seed.balance_of(sale["customer"]["id"]) == 1000
