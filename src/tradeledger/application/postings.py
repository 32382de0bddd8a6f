"""
Store-bound postings shared by the use cases.

Every helper takes the transaction-bound store and applies one already
computed change: a balance delta, new invoice amounts, a stock movement or a
ledger entry. None of them decides anything; the rules live in
``tradeledger.core.services``.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any

from tradeledger.config import get_logger, get_settings
from tradeledger.core.entities import (
    Customer,
    Invoice,
    OrderItem,
    Product,
    ProductStock,
    Supplier,
)
from tradeledger.core.exceptions import (
    CustomerNotFoundError,
    ProductNotFoundError,
    SupplierNotFoundError,
)
from tradeledger.core.interfaces.record_store import IRecordStore, Row
from tradeledger.core.services import numbering
from tradeledger.core.services.balance import InvoiceAmounts
from tradeledger.core.services.cheques import LedgerEntry
from tradeledger.core.services.stock_rules import (
    DeductionOrder,
    StockLevels,
    allocate_sale,
    apply_sale,
    pick_deduction_order,
)
from tradeledger.core.services.totals import round_money

logger = get_logger(__name__)


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class LockedRows:
    """Rows loaded in canonical lock order."""

    customers: dict[int, Row] = field(default_factory=dict)
    invoices: dict[int, Row] = field(default_factory=dict)
    products: dict[int, Row] = field(default_factory=dict)


async def lock_rows(
    tx: IRecordStore,
    *,
    customers: Iterable[int] = (),
    invoices: Iterable[int] = (),
    products: Iterable[int] = (),
) -> LockedRows:
    """Touch Customer, then Invoice, then Product rows, each ascending by id."""
    return LockedRows(
        customers=await tx.lock("customers", customers),
        invoices=await tx.lock("invoices", invoices),
        products=await tx.lock("products", products),
    )


# Tables whose rows carry a PREFIX-NNNN number, and the column holding it
NUMBER_COLUMNS = {
    "orders": "order_no",
    "invoices": "invoice_no",
    "purchases": "purchase_no",
    "supplier_payments": "payment_number",
    "inventory_returns": "return_number",
}


async def next_sequential(tx: IRecordStore, table: str, prefix: str) -> str:
    """Next number in the ``prefix`` series; prefixes sharing a table count separately."""
    start = get_settings().ledger.number_start
    existing = await tx.count(table, {f"{NUMBER_COLUMNS[table]}__startswith": f"{prefix}-"})
    return numbering.sequential(prefix, existing, start)


# Customers and suppliers


async def load_customer(tx: IRecordStore, customer_id: int) -> Customer:
    row = await tx.get("customers", customer_id)
    if row is None:
        raise CustomerNotFoundError(customer_id)
    return Customer.model_validate(row)


async def adjust_customer_balance(tx: IRecordStore, customer_id: int, delta: float) -> float:
    """Move a customer's outstanding balance by an exact signed delta."""
    customer = await load_customer(tx, customer_id)
    if not delta:
        return customer.outstanding_balance
    new_balance = round_money(customer.outstanding_balance + delta)
    await tx.update("customers", {"id": customer_id}, {"outstanding_balance": new_balance})
    logger.debug(
        "customer_balance_adjusted",
        customer_id=customer_id,
        delta=delta,
        balance=new_balance,
    )
    return new_balance


async def load_supplier(tx: IRecordStore, supplier_id: int) -> Supplier:
    row = await tx.get("suppliers", supplier_id)
    if row is None:
        raise SupplierNotFoundError(supplier_id)
    return Supplier.model_validate(row)


async def adjust_supplier_due(
    tx: IRecordStore, supplier_id: int, delta: float, floor_at_zero: bool = True
) -> float:
    supplier = await load_supplier(tx, supplier_id)
    new_due = round_money(supplier.due_payment + delta)
    if floor_at_zero:
        new_due = max(0.0, new_due)
    await tx.update("suppliers", {"id": supplier_id}, {"due_payment": new_due})
    return new_due


# Invoices


async def write_invoice_amounts(
    tx: IRecordStore, invoice_id: int, amounts: InvoiceAmounts, **extra: Any
) -> None:
    await tx.update(
        "invoices",
        {"id": invoice_id},
        {**amounts.as_patch(), "updated_at": utcnow_iso(), **extra},
    )


async def snapshot_invoice(
    tx: IRecordStore, invoice: Invoice, changed_by: int, reason: str | None
) -> Row:
    """Record the invoice as it was before a total-changing edit."""
    return await tx.insert(
        "invoice_history",
        {
            "invoice_id": invoice.id,
            "previous_data": {
                "total_amount": invoice.total_amount,
                "paid_amount": invoice.paid_amount,
                "status": invoice.status.value,
            },
            "changed_by": changed_by,
            "change_reason": reason,
            "changed_at": utcnow_iso(),
        },
    )


async def load_order_items(tx: IRecordStore, order_id: int) -> list[OrderItem]:
    rows = await tx.fetch("order_items", {"order_id": order_id}, order_by="id")
    return [OrderItem.model_validate(row) for row in rows]


async def replace_order_items(
    tx: IRecordStore, order_id: int, items: Iterable[OrderItem]
) -> list[OrderItem]:
    await tx.delete("order_items", {"order_id": order_id})
    created = []
    for item in items:
        row = item.model_dump(exclude={"id"})
        row["order_id"] = order_id
        created.append(OrderItem.model_validate(await tx.insert("order_items", row)))
    return created


async def sync_rep_commission(
    tx: IRecordStore, order_id: int, rep_id: int | None, total_commission: float
) -> None:
    """Keep the order's single commission row equal to its items' sum."""
    existing = await tx.fetch_one("rep_commissions", {"order_id": order_id})
    if existing is not None:
        await tx.update(
            "rep_commissions",
            {"id": existing["id"]},
            {"total_commission_amount": round_money(total_commission)},
        )
    elif rep_id is not None and total_commission > 0:
        await tx.insert(
            "rep_commissions",
            {
                "rep_id": rep_id,
                "order_id": order_id,
                "total_commission_amount": round_money(total_commission),
                "status": "Pending",
            },
        )


# Stock


async def load_product(tx: IRecordStore, product_id: int) -> Product:
    row = await tx.get("products", product_id)
    if row is None:
        raise ProductNotFoundError(product_id)
    return Product.model_validate(row)


def product_levels(product: Product) -> StockLevels:
    return StockLevels(good=product.stock_quantity, damaged=product.damaged_quantity)


async def write_product_levels(
    tx: IRecordStore, product_id: int, levels: StockLevels, **extra: Any
) -> None:
    await tx.update(
        "products",
        {"id": product_id},
        {"stock_quantity": levels.good, "damaged_quantity": levels.damaged, **extra},
    )


async def load_location_stock(
    tx: IRecordStore, product_id: int, location_id: int
) -> ProductStock | None:
    row = await tx.fetch_one(
        "product_stocks", {"product_id": product_id, "location_id": location_id}
    )
    return ProductStock.model_validate(row) if row else None


async def write_location_levels(
    tx: IRecordStore, product_id: int, location_id: int, levels: StockLevels
) -> None:
    """Update the location row, inserting it when missing."""
    patch = {
        "quantity": levels.good,
        "damaged_quantity": levels.damaged,
        "last_updated": utcnow_iso(),
    }
    changed = await tx.update(
        "product_stocks", {"product_id": product_id, "location_id": location_id}, patch
    )
    if not changed:
        await tx.insert(
            "product_stocks", {"product_id": product_id, "location_id": location_id, **patch}
        )


def location_levels(stock: ProductStock | None) -> StockLevels:
    if stock is None:
        return StockLevels()
    return StockLevels(good=stock.quantity, damaged=stock.damaged_quantity)


async def deduct_sale_stock(
    tx: IRecordStore,
    product: Product,
    units: float,
    sales_rep_id: int | None,
    order: DeductionOrder = pick_deduction_order,
) -> dict[int, float]:
    """
    Take sold units out of stock.

    Global stock is clamped at zero. The rep's assigned locations give up
    their share as decided by ``allocate_sale``.
    """
    await write_product_levels(tx, product.id, apply_sale(product_levels(product), units))

    if sales_rep_id is None:
        return {}
    assignments = await tx.fetch("location_assignments", {"user_id": sales_rep_id})
    location_ids = [a["location_id"] for a in assignments]
    if not location_ids:
        return {}

    rows = await tx.fetch(
        "product_stocks", {"product_id": product.id, "location_id": location_ids}
    )
    stocks = [ProductStock.model_validate(row) for row in rows]
    allocation = allocate_sale(stocks, units, order)
    by_location = {stock.location_id: stock for stock in stocks}
    for location_id, taken in allocation.items():
        stock = by_location[location_id]
        await write_location_levels(
            tx,
            product.id,
            location_id,
            StockLevels(good=stock.quantity - taken, damaged=stock.damaged_quantity),
        )
    return allocation


async def shift_global_stock(tx: IRecordStore, product_id: int, good_delta: float) -> None:
    """Add (or with a negative delta, remove) good units without clamping."""
    product = await load_product(tx, product_id)
    levels = product_levels(product)
    await write_product_levels(
        tx, product_id, StockLevels(good=levels.good + good_delta, damaged=levels.damaged)
    )


# Ledger


async def record_transaction(
    tx: IRecordStore,
    entry: LedgerEntry,
    *,
    prefix: str,
    transaction_date: str | date | None = None,
    reference_no: str | None = None,
    business_id: int | None = None,
    cheque_status: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> Row:
    """Append one row to the account transaction ledger."""
    row = await tx.insert(
        "account_transactions",
        {
            "transaction_no": numbering.unique(prefix),
            "transaction_type": entry.transaction_type.value,
            "from_account_id": entry.from_account_id,
            "to_account_id": entry.to_account_id,
            "amount": round_money(entry.amount),
            "description": entry.description,
            "transaction_date": str(transaction_date or date.today()),
            "reference_no": reference_no,
            "cheque_status": cheque_status,
            "business_id": business_id,
            "metadata": metadata or {},
        },
    )
    logger.info(
        "ledger_entry_recorded",
        transaction_no=row["transaction_no"],
        transaction_type=row["transaction_type"],
        amount=row["amount"],
    )
    return row
