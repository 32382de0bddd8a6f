"""
Balance propagation.

Customer and supplier balances are stored counters. They are only ever moved
by an exact signed delta computed here, never recomputed from the invoices.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from tradeledger.core.entities.invoice import Invoice, InvoiceStatus
from tradeledger.core.entities.supplier import PurchaseStatus
from tradeledger.core.services.totals import round_money


def invoice_status(
    paid: float, total: float, current: InvoiceStatus | str | None = None
) -> InvoiceStatus:
    """
    Paid iff paid >= total, else Partial if anything was paid, else Unpaid.

    An Overdue flag set by the caller is kept until the invoice is paid.
    """
    if paid >= total:
        return InvoiceStatus.PAID
    if current is not None and InvoiceStatus(current) == InvoiceStatus.OVERDUE:
        return InvoiceStatus.OVERDUE
    if paid > 0:
        return InvoiceStatus.PARTIAL
    return InvoiceStatus.UNPAID


def purchase_status(paid: float, total: float) -> PurchaseStatus:
    if paid >= total:
        return PurchaseStatus.PAID
    if paid > 0:
        return PurchaseStatus.PARTIAL
    return PurchaseStatus.UNPAID


@dataclass(frozen=True)
class InvoiceAmounts:
    """Money fields of an invoice after a change."""

    total_amount: float
    paid_amount: float
    due_amount: float
    status: InvoiceStatus

    def as_patch(self) -> dict:
        return {
            "total_amount": self.total_amount,
            "paid_amount": self.paid_amount,
            "due_amount": self.due_amount,
            "status": self.status.value,
        }


def invoice_amounts(
    total: float, paid: float, current: InvoiceStatus | str | None = None
) -> InvoiceAmounts:
    total = round_money(total)
    paid = round_money(paid)
    return InvoiceAmounts(
        total_amount=total,
        paid_amount=paid,
        due_amount=round_money(total - paid),
        status=invoice_status(paid, total, current),
    )


def apply_payment(invoice: Invoice, amount: float) -> InvoiceAmounts:
    return invoice_amounts(invoice.total_amount, invoice.paid_amount + amount, invoice.status)


def reverse_payment(invoice: Invoice, amount: float) -> InvoiceAmounts:
    """Take a bounced payment back off an invoice; paid never goes negative."""
    return invoice_amounts(
        invoice.total_amount, max(0.0, invoice.paid_amount - amount), invoice.status
    )


def retotal(invoice: Invoice, new_total: float) -> InvoiceAmounts:
    return invoice_amounts(new_total, invoice.paid_amount, invoice.status)


def new_order_delta(grand_total: float, paid_amount: float) -> float:
    return round_money(grand_total - paid_amount)


def payment_delta(amount: float) -> float:
    return round_money(-amount)


def retotal_delta(old_total: float, new_total: float) -> float:
    """Balance falls by exactly what the invoice total fell by."""
    return round_money(new_total - old_total)


@dataclass(frozen=True)
class OrderSnapshot:
    """What an order contributes to balance and stock."""

    total: float
    units: Mapping[int, float] = field(default_factory=dict)


@dataclass(frozen=True)
class LedgerDelta:
    """
    Net effect of a change.

    ``stock`` holds units consumed per product: positive takes stock,
    negative gives it back.
    """

    balance: float = 0.0
    stock: Mapping[int, float] = field(default_factory=dict)

    def __add__(self, other: "LedgerDelta") -> "LedgerDelta":
        stock = dict(self.stock)
        for product_id, units in other.stock.items():
            stock[product_id] = stock.get(product_id, 0.0) + units
        return LedgerDelta(
            balance=round_money(self.balance + other.balance),
            stock={pid: units for pid, units in stock.items() if units},
        )


def compute_reversal(old: OrderSnapshot) -> LedgerDelta:
    """Undo an order entirely: take its total off, put its stock back."""
    return LedgerDelta(
        balance=round_money(-old.total),
        stock={pid: -units for pid, units in old.units.items()},
    )


def compute_application(new: OrderSnapshot) -> LedgerDelta:
    """Apply an order as if it were fresh."""
    return LedgerDelta(balance=round_money(new.total), stock=dict(new.units))


def edit_delta(old: OrderSnapshot, new: OrderSnapshot) -> LedgerDelta:
    return compute_reversal(old) + compute_application(new)


def supplier_due_after_payment(due: float, amount: float) -> float:
    return round_money(max(0.0, due - amount))


@dataclass(frozen=True)
class BalanceAudit:
    """Stored balance against the sum of open invoice amounts."""

    customer_id: int
    stored: float
    expected: float

    @property
    def drift(self) -> float:
        return round_money(self.stored - self.expected)

    @property
    def consistent(self) -> bool:
        return abs(self.drift) < 0.005


def audit_balance(customer_id: int, stored: float, invoices: Iterable[Invoice]) -> BalanceAudit:
    expected = sum(inv.total_amount - inv.paid_amount for inv in invoices)
    return BalanceAudit(customer_id=customer_id, stored=round_money(stored), expected=round_money(expected))
