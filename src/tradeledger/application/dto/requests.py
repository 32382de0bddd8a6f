"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation. Bodies arrive in camelCase
(``customerId``, ``grandTotal``) and are exposed to use cases in snake_case.
These are the ONLY contracts between API and use cases.
"""

from datetime import date
from typing import Annotated, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tradeledger.core.entities import (
    Branch,
    CommissionType,
    InvoiceStatus,
    OrderStatus,
    PaymentMethod,
    ReturnType,
)
from tradeledger.core.services.cheques import ChequeAction, SupplierChequeAction


class CamelModel(BaseModel):
    """Accepts camelCase keys (and snake_case, for internal callers)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _lower(value: object) -> object:
    return value.lower() if isinstance(value, str) else value


CaseInsensitive = BeforeValidator(_lower)


# --- Invoices ---


class InvoiceItemRequest(CamelModel):
    """One line of an invoice. ``total`` is stored as given."""

    product_id: int = Field(..., description="Product ID")
    quantity: float = Field(..., ge=0, description="Paid quantity")
    free_quantity: float = Field(default=0, ge=0, description="Free units given")
    unit_price: float = Field(default=0, ge=0, description="Selling price per unit")
    mrp: float = Field(default=0, ge=0, description="Printed retail price")
    discount_percent: float = Field(default=0, ge=0, le=100)
    discount_amount: float = Field(default=0, ge=0)
    total: float = Field(..., ge=0, description="Line total after line discount")


class CreateInvoiceRequest(CamelModel):
    """Create an order with its invoice (and first payment)."""

    customer_id: int = Field(..., description="Customer ID")
    sales_rep_id: int | None = Field(default=None, description="Sales rep user ID")
    business_id: int | None = Field(default=None, description="Selling business unit")
    items: list[InvoiceItemRequest] = Field(..., min_length=1)
    grand_total: float = Field(..., ge=0, description="Invoice total as priced by the caller")
    extra_discount_amount: float = Field(default=0, ge=0)
    extra_discount_percent: float = Field(default=0, ge=0, le=100)
    payment_type: Annotated[PaymentMethod, CaseInsensitive] = Field(default=PaymentMethod.CREDIT)
    paid_amount: float = Field(default=0, ge=0)
    payment_status: InvoiceStatus | None = Field(
        default=None, description="Only 'Overdue' is kept; other statuses are derived"
    )
    order_status: OrderStatus = Field(default=OrderStatus.PENDING)
    invoice_date: date | None = Field(default=None, description="Defaults to today")
    due_date: date | None = Field(default=None, description="Defaults to invoice date + 30 days")
    cheque_no: str | None = None
    cheque_date: date | None = None
    deposit_account_id: int | None = None
    notes: str | None = None


class UpdateInvoiceRequest(CamelModel):
    """Replace an invoice's lines. The caller is recorded in the history."""

    user_id: int = Field(..., description="User making the change")
    items: list[InvoiceItemRequest] = Field(..., min_length=1)
    grand_total: float = Field(..., ge=0)
    extra_discount_amount: float = Field(default=0, ge=0)
    extra_discount_percent: float = Field(default=0, ge=0, le=100)
    due_date: date | None = None
    change_reason: str | None = Field(default=None, description="Why the invoice was edited")


class InvoiceReturnRequest(CamelModel):
    """Units of one invoiced product coming back."""

    product_id: int
    location_id: int
    quantity: float = Field(..., gt=0)
    return_type: ReturnType = Field(default=ReturnType.GOOD)
    reason: str | None = None


# --- Payments ---


class RecordPaymentRequest(CamelModel):
    """Payment received against an order's invoice."""

    order_id: int = Field(..., description="Order being paid")
    amount: float = Field(..., ge=0.01, description="Amount received")
    payment_date: date | None = Field(
        default=None, alias="date", description="Payment date (defaults to today)"
    )
    method: Annotated[PaymentMethod, CaseInsensitive]
    notes: str | None = None
    cheque_no: str | None = None
    cheque_date: date | None = None
    deposit_account_id: int | None = Field(
        default=None, description="Account cash or bank money lands in"
    )


class ChequeActionRequest(CamelModel):
    """Drive a customer cheque through its lifecycle."""

    payment_id: int
    action: Annotated[ChequeAction, CaseInsensitive]
    action_date: date | None = Field(default=None, alias="date")
    deposit_account_id: int | None = None
    reversal_note: str | None = None


# --- Orders and loading ---


class UpdateOrderStatusRequest(CamelModel):
    status: OrderStatus


class CreateLoadingSheetRequest(CamelModel):
    """Dispatch a set of orders on one lorry."""

    lorry_number: str = Field(..., min_length=1)
    driver_id: int | None = None
    helper_name: str | None = None
    loading_date: date | None = None
    order_ids: list[int] = Field(..., min_length=1)


class LoadingUpdate(CamelModel):
    """Outcome of one delivered order."""

    order_id: int
    status: OrderStatus | Literal["Returned"] | None = None
    final_amount: float | None = Field(default=None, ge=0)
    payment_status: Literal["Paid", "Partial", "Unpaid"] | None = None


class ReconcileLoadingRequest(CamelModel):
    load_id: int
    updates: list[LoadingUpdate] = Field(default_factory=list)
    close_load: bool = False
    user_id: int | None = Field(default=None, description="Recorded on invoice history")


# --- Inventory ---


class InventoryReturnRequest(CamelModel):
    """Goods returned to a location, optionally against an invoice."""

    product_id: int
    location_id: int
    quantity: float = Field(..., gt=0)
    return_type: ReturnType
    reason: str | None = None
    business_id: int | None = None
    customer_id: int | None = None
    invoice_id: int | None = None


class DamageItemRequest(CamelModel):
    product_id: int
    quantity: float = Field(..., gt=0)
    damage_type: str = Field(default="General", description="Broken, Expired, ...")


class DamageReportRequest(CamelModel):
    """Good stock found damaged at a location."""

    location_id: int
    items: list[DamageItemRequest] = Field(..., min_length=1)
    reason: str | None = None
    business_id: int | None = None


class StockAdjustmentItem(CamelModel):
    product_id: int
    new_quantity: float


class StockAdjustmentRequest(CamelModel):
    """Stock count correction at a location."""

    location_id: int
    items: list[StockAdjustmentItem] = Field(..., min_length=1)
    reason: str | None = None
    business_id: int | None = None


class StockTransferItem(CamelModel):
    product_id: int
    quantity: float = Field(..., gt=0)


class StockTransferRequest(CamelModel):
    """Move good stock between two locations."""

    source_location_id: int
    dest_location_id: int
    items: list[StockTransferItem] = Field(..., min_length=1)
    reason: str | None = None


# --- Inter-branch billing ---


class InterBranchBillRequest(CamelModel):
    """Generate or refresh an agency's monthly bill to a branch."""

    customer_id: int = Field(..., description="Customer record representing the branch")
    branch: Annotated[Branch, CaseInsensitive]
    year: int | None = Field(default=None, ge=2000, le=2100)
    month: int | None = Field(default=None, ge=1, le=12)


# --- Suppliers ---


class PurchaseItemRequest(CamelModel):
    product_id: int
    quantity: float = Field(..., gt=0)
    free_quantity: float = Field(default=0, ge=0)
    unit_price: float = Field(default=0, ge=0, description="Cost per paid unit")
    mrp: float | None = Field(default=None, ge=0)
    selling_price: float | None = Field(default=None, ge=0)
    discount_percent: float = Field(default=0, ge=0, le=100)
    discount_amount: float = Field(default=0, ge=0)
    total: float = Field(..., ge=0)


class CreatePurchaseRequest(CamelModel):
    """Goods received from a supplier."""

    supplier_id: int
    business_id: int | None = None
    invoice_number: str | None = Field(default=None, description="Supplier's invoice number")
    purchase_date: date | None = None
    total_amount: float = Field(..., ge=0)
    items: list[PurchaseItemRequest] = Field(..., min_length=1)
    location_id: int | None = Field(
        default=None, description="Receiving location (defaults to the main warehouse)"
    )


class SupplierPaymentRequest(CamelModel):
    purchase_id: int
    account_id: int | None = Field(default=None, description="Company account paying out")
    amount: float = Field(..., ge=0.01)
    payment_date: date | None = Field(default=None, alias="date")
    method: Annotated[Literal["cash", "bank", "cheque"], CaseInsensitive]
    cheque_number: str | None = None
    cheque_date: date | None = None
    notes: str | None = None


class SupplierChequeActionRequest(CamelModel):
    payment_id: int
    action: Annotated[SupplierChequeAction, CaseInsensitive]
    action_date: date | None = Field(default=None, alias="date")


class ReturnStockRequest(CamelModel):
    """Send damaged return items back to their supplier."""

    item_ids: list[int] = Field(..., min_length=1)
    supplier_id: int


class MarkLossRequest(CamelModel):
    """Write damaged return items off."""

    item_ids: list[int] = Field(..., min_length=1)
    reason: str | None = None


class ClaimAllocation(CamelModel):
    purchase_id: int
    amount: float = Field(..., gt=0)


class SettleClaimRequest(CamelModel):
    """Credit a returned batch against open purchases."""

    supplier_id: int
    batch_id: int
    allocations: list[ClaimAllocation] = Field(..., min_length=1)
    negotiated_amount: float = Field(..., ge=0)
    approval_note: str | None = None
    settlement_date: date | None = Field(default=None, alias="date")


# --- Finance ---


class TransferFundsRequest(CamelModel):
    from_account_id: int
    to_account_id: int
    amount: float = Field(..., gt=0)
    transfer_date: date | None = Field(default=None, alias="date")
    description: str | None = None


# --- Master data ---


class CreateCustomerRequest(CamelModel):
    name: str = Field(..., min_length=1)
    owner_name: str | None = None
    phone: str | None = None
    business_id: int | None = None


class CreateProductRequest(CamelModel):
    name: str = Field(..., min_length=1)
    sku: str | None = None
    supplier_name: str | None = None
    cost_price: float = Field(default=0, ge=0)
    selling_price: float = Field(default=0, ge=0)
    mrp: float = Field(default=0, ge=0)
    stock_quantity: float = Field(default=0, ge=0)
    commission_type: Annotated[CommissionType | None, CaseInsensitive] = None
    commission_value: float = Field(default=0, ge=0)


class CreateLocationRequest(CamelModel):
    name: str = Field(..., min_length=1)
    business_id: int | None = None


class AssignLocationRequest(CamelModel):
    user_id: int


class CreateSupplierRequest(CamelModel):
    name: str = Field(..., min_length=1)
    business_id: int | None = None


class CreateAccountRequest(CamelModel):
    account_name: str = Field(..., min_length=1)
    account_type: Literal["cash", "bank", "cheque"] = "bank"
    business_id: int | None = None
