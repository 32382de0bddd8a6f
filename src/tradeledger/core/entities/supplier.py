"""Supplier-side entities, mirroring customers and invoices."""

from enum import Enum

from pydantic import BaseModel


class Supplier(BaseModel):
    id: int | None = None
    name: str
    business_id: int | None = None
    due_payment: float = 0.0


class PurchaseStatus(str, Enum):
    """Payment status of a purchase."""

    UNPAID = "Unpaid"
    PARTIAL = "Partial"
    PAID = "Paid"


class Purchase(BaseModel):
    """Goods bought from a supplier."""

    id: int | None = None
    purchase_no: str
    supplier_id: int
    business_id: int | None = None
    invoice_no: str | None = None
    purchase_date: str | None = None
    total_amount: float = 0.0
    paid_amount: float = 0.0
    payment_status: PurchaseStatus = PurchaseStatus.UNPAID
    status: str = "Received"


class PurchaseItem(BaseModel):
    id: int | None = None
    purchase_id: int
    product_id: int
    quantity: float
    free_quantity: float = 0.0
    unit_cost: float = 0.0
    actual_unit_cost: float = 0.0
    total_cost: float = 0.0


class SupplierChequeStatus(str, Enum):
    """Supplier cheques use lowercase states."""

    PENDING = "pending"
    PASSED = "passed"
    RETURNED = "returned"


class SupplierPayment(BaseModel):
    """Money paid to a supplier, or a credit note from a settled claim."""

    id: int | None = None
    payment_number: str
    purchase_id: int
    supplier_id: int
    company_account_id: int | None = None
    amount: float
    payment_date: str | None = None
    payment_method: str
    cheque_number: str | None = None
    cheque_date: str | None = None
    cheque_status: SupplierChequeStatus | None = None
    notes: str | None = None

    @property
    def is_cheque(self) -> bool:
        return self.payment_method == "cheque"


class ReturnBatchStatus(str, Enum):
    PENDING_CREDIT = "Pending Credit"
    COMPLETED = "Completed"


class SupplierReturnBatch(BaseModel):
    """Damaged stock sent back to a supplier awaiting credit (gate pass)."""

    id: int | None = None
    batch_number: str
    supplier_id: int
    total_items: int = 0
    total_value: float = 0.0
    status: ReturnBatchStatus = ReturnBatchStatus.PENDING_CREDIT
