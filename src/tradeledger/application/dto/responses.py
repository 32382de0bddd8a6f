"""Response DTOs for API endpoints.

Serialised in camelCase. Row-shaped responses are built straight from store
rows with ``model_validate``; unknown columns are ignored.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from tradeledger.application.dto.requests import CamelModel

# --- Rows ---


class OrderItemResponse(CamelModel):
    id: int
    product_id: int
    quantity: float
    free_quantity: float = 0
    unit_price: float = 0
    actual_unit_price: float = 0
    actual_unit_cost: float = 0
    discount_percent: float = 0
    discount_amount: float = 0
    total_price: float = 0
    commission_earned: float = 0


class InvoiceResponse(CamelModel):
    id: int
    invoice_no: str
    order_id: int
    customer_id: int
    total_amount: float
    paid_amount: float
    due_amount: float
    status: str
    due_date: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    items: list[OrderItemResponse] | None = None


class OrderResponse(CamelModel):
    id: int
    order_no: str
    customer_id: int
    sales_rep_id: int | None = None
    business_id: int | None = None
    status: str
    total_amount: float
    order_date: str | None = None
    load_id: int | None = None


class InvoiceHistoryResponse(CamelModel):
    id: int
    invoice_id: int
    previous_data: dict[str, Any]
    changed_by: int
    change_reason: str | None = None
    changed_at: str | None = None


class PaymentResponse(CamelModel):
    id: int
    invoice_id: int
    customer_id: int
    amount: float
    payment_date: str | None = None
    method: str
    cheque_no: str | None = None
    cheque_date: str | None = None
    cheque_status: str | None = None
    deposit_account_id: int | None = None
    collected_by: int | None = None
    notes: str | None = None


class InventoryReturnResponse(CamelModel):
    id: int
    return_number: str
    product_id: int
    location_id: int
    business_id: int | None = None
    customer_id: int | None = None
    invoice_id: int | None = None
    quantity: float
    return_type: str
    reason: str | None = None
    status: str
    return_batch_id: int | None = None
    created_at: str | None = None


class AccountTransactionResponse(CamelModel):
    id: int
    transaction_no: str
    transaction_type: str
    from_account_id: int | None = None
    to_account_id: int | None = None
    amount: float
    description: str | None = None
    transaction_date: str | None = None
    reference_no: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class RepCommissionResponse(CamelModel):
    id: int
    rep_id: int
    order_id: int
    total_commission_amount: float
    status: str
    created_at: str | None = None


class LoadingSheetResponse(CamelModel):
    id: int
    load_no: str
    lorry_number: str
    driver_id: int | None = None
    helper_name: str | None = None
    loading_date: str | None = None
    status: str


class PurchaseResponse(CamelModel):
    id: int
    purchase_no: str
    supplier_id: int
    invoice_no: str | None = None
    purchase_date: str | None = None
    total_amount: float
    paid_amount: float
    payment_status: str


class SupplierPaymentResponse(CamelModel):
    id: int
    payment_number: str
    purchase_id: int
    supplier_id: int
    company_account_id: int | None = None
    amount: float
    payment_date: str | None = None
    payment_method: str
    cheque_number: str | None = None
    cheque_status: str | None = None


class ReturnBatchResponse(CamelModel):
    id: int
    batch_number: str
    supplier_id: int
    total_items: int
    total_value: float
    status: str


class CustomerResponse(CamelModel):
    id: int
    name: str
    owner_name: str | None = None
    phone: str | None = None
    business_id: int | None = None
    outstanding_balance: float


class ProductResponse(CamelModel):
    id: int
    sku: str | None = None
    name: str
    supplier_name: str | None = None
    cost_price: float
    actual_cost_price: float | None = None
    selling_price: float
    mrp: float
    stock_quantity: float
    damaged_quantity: float
    commission_type: str | None = None
    commission_value: float


class LocationResponse(CamelModel):
    id: int
    name: str
    business_id: int | None = None


class ProductStockResponse(CamelModel):
    id: int
    product_id: int
    location_id: int
    quantity: float
    damaged_quantity: float


class SupplierResponse(CamelModel):
    id: int
    name: str
    business_id: int | None = None
    due_payment: float


class BankAccountResponse(CamelModel):
    id: int
    account_name: str
    account_type: str
    business_id: int | None = None


# --- Operation results ---


class CreateInvoiceResponse(CamelModel):
    message: str
    invoice_no: str
    order_id: str = Field(..., description="Order number, e.g. ORD-1001")
    invoice_id: int
    order_record_id: int
    status: str
    due_amount: float
    customer_balance: float


class UpdateInvoiceResponse(CamelModel):
    message: str
    invoice: InvoiceResponse
    balance_delta: float
    stock_changes: dict[int, float]


class RecalculateInvoiceResponse(CamelModel):
    message: str
    old_total: float
    new_total: float
    difference: float
    invoice: InvoiceResponse


class RecordPaymentResponse(CamelModel):
    message: str
    payment: PaymentResponse
    invoice_status: str
    paid_amount: float
    due_amount: float
    customer_balance: float
    transaction_no: str | None = None


class ChequeActionResponse(CamelModel):
    message: str
    payment: PaymentResponse
    transaction_no: str | None = None
    invoice_status: str | None = None
    customer_balance: float | None = None


class ReturnResultResponse(CamelModel):
    message: str
    return_record: InventoryReturnResponse
    invoice: InvoiceResponse | None = None
    balance_delta: float = 0


class BatchResultResponse(CamelModel):
    """Result of a per-item batch where some items may fail."""

    success: bool
    message: str
    processed: int
    errors: list[str] | None = None
    references: list[str] = Field(default_factory=list)


class OrderStatusResponse(CamelModel):
    message: str
    order: OrderResponse
    restored: dict[int, float] = Field(default_factory=dict)


class ReconcileLoadingResponse(CamelModel):
    message: str
    load: LoadingSheetResponse
    updated_orders: list[int]
    balance_changes: dict[int, float] = Field(default_factory=dict)


class InterBranchBillResponse(CamelModel):
    message: str
    invoice_no: str | None = None
    invoice_id: int | None = None
    total: float = 0
    previous_total: float = 0
    difference: float = 0
    item_count: int = 0
    created: bool = False


class CreatePurchaseResponse(CamelModel):
    message: str
    purchase: PurchaseResponse
    supplier_due: float


class SupplierPaymentResultResponse(CamelModel):
    message: str
    payment: SupplierPaymentResponse
    purchase: PurchaseResponse
    supplier_due: float
    transaction_no: str | None = None


class ReturnStockResponse(CamelModel):
    message: str
    batch: ReturnBatchResponse
    processed: int
    skipped: int


class MarkLossResponse(CamelModel):
    message: str
    processed: int
    skipped: int


class SettleClaimResponse(CamelModel):
    message: str
    credit_notes: list[str]
    total_allocated: float
    supplier_due: float


class TransferFundsResponse(CamelModel):
    message: str
    transaction: AccountTransactionResponse


class AccountBalanceResponse(CamelModel):
    account: BankAccountResponse
    balance: float
    transactions: list[AccountTransactionResponse]


class BalanceAuditEntry(CamelModel):
    customer_id: int
    stored: float
    expected: float
    drift: float


class BalanceAuditResponse(CamelModel):
    checked: int
    consistent: bool
    drifted: list[BalanceAuditEntry]


class RepCommissionSummaryResponse(CamelModel):
    rep_id: int
    total_pending: float
    total_paid: float
    commissions: list[RepCommissionResponse]


# --- Health ---


class ProviderHealthResponse(BaseModel):
    """Health of a single backing service."""

    name: str
    available: bool
    latency_ms: float | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: ProviderHealthResponse | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error: human-readable message (kept for existing clients)
    - error_code: machine-readable code (e.g. INVOICE_NOT_FOUND)
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error: str = Field(..., description="Human-readable error description")
    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)
