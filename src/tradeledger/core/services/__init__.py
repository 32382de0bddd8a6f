"""
Ledger rules.

Layer-pure functions that depend only on:
- tradeledger/core/entities/*
- tradeledger/core/exceptions.py

NO infrastructure imports. Use cases load rows, call these, and write back.
"""

from tradeledger.core.services.balance import (
    BalanceAudit,
    InvoiceAmounts,
    LedgerDelta,
    OrderSnapshot,
    audit_balance,
    compute_application,
    compute_reversal,
    edit_delta,
    invoice_status,
    purchase_status,
)
from tradeledger.core.services.billing import (
    AGENCY_PROFILES,
    AgencyProfile,
    BillingPeriod,
    BillLine,
    aggregate_sales,
    bill_number,
)
from tradeledger.core.services.cheques import (
    ChequeAction,
    SupplierChequeAction,
    plan_cheque_action,
    plan_supplier_cheque_action,
)
from tradeledger.core.services.stock_rules import (
    StockLevels,
    allocate_sale,
    pick_deduction_order,
)
from tradeledger.core.services.totals import (
    LineInput,
    PricedOrder,
    price_order,
    round_money,
)

__all__ = [
    # Totals
    "LineInput",
    "PricedOrder",
    "price_order",
    "round_money",
    # Stock
    "StockLevels",
    "allocate_sale",
    "pick_deduction_order",
    # Balance
    "BalanceAudit",
    "InvoiceAmounts",
    "LedgerDelta",
    "OrderSnapshot",
    "audit_balance",
    "compute_application",
    "compute_reversal",
    "edit_delta",
    "invoice_status",
    "purchase_status",
    # Cheques
    "ChequeAction",
    "SupplierChequeAction",
    "plan_cheque_action",
    "plan_supplier_cheque_action",
    # Billing
    "AGENCY_PROFILES",
    "AgencyProfile",
    "BillingPeriod",
    "BillLine",
    "aggregate_sales",
    "bill_number",
]
