"""
Dependency injection container for FastAPI.

Provides the record store, the calling user and use case instances to route
handlers. Tests swap the store through ``app.dependency_overrides``.
"""

from functools import lru_cache

from fastapi import Depends, Header
from pydantic import BaseModel

from tradeledger.application.use_cases import (
    AdjustStockUseCase,
    AuditBalancesUseCase,
    ChequeActionUseCase,
    CreateInvoiceUseCase,
    CreateLoadingSheetUseCase,
    CreatePurchaseUseCase,
    GetAccountBalanceUseCase,
    GetRepCommissionsUseCase,
    InterBranchBillUseCase,
    MarkBusinessLossUseCase,
    RecalculateInvoiceUseCase,
    ReconcileLoadingUseCase,
    RecordInventoryReturnUseCase,
    RecordPaymentUseCase,
    RecordSupplierPaymentUseCase,
    ReportDamageUseCase,
    ReturnStockToSupplierUseCase,
    SettleSupplierClaimUseCase,
    SupplierChequeActionUseCase,
    TransferFundsUseCase,
    TransferStockUseCase,
    UpdateInvoiceUseCase,
    UpdateOrderStatusUseCase,
)
from tradeledger.config import Settings, get_settings
from tradeledger.core.interfaces import IRecordStore
from tradeledger.infrastructure.storage import get_record_store


@lru_cache
def get_app_settings() -> Settings:
    """Get cached application settings."""
    return get_settings()


class CurrentUser(BaseModel):
    """Caller identity forwarded by the auth proxy in front of the API."""

    id: int | None = None
    role: str | None = None
    business_id: int | None = None


def get_current_user(
    x_user_id: int | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
    x_business_id: int | None = Header(default=None),
) -> CurrentUser:
    """Read the caller from ``X-User-Id``, ``X-User-Role`` and ``X-Business-Id``."""
    return CurrentUser(id=x_user_id, role=x_user_role, business_id=x_business_id)


# Store dependency
async def get_store() -> IRecordStore:
    """Get the record store."""
    return await get_record_store()


# Invoice use cases
def get_create_invoice_use_case(
    store: IRecordStore = Depends(get_store),
) -> CreateInvoiceUseCase:
    return CreateInvoiceUseCase(store)


def get_update_invoice_use_case(
    store: IRecordStore = Depends(get_store),
) -> UpdateInvoiceUseCase:
    return UpdateInvoiceUseCase(store)


def get_recalculate_invoice_use_case(
    store: IRecordStore = Depends(get_store),
) -> RecalculateInvoiceUseCase:
    return RecalculateInvoiceUseCase(store)


# Payment use cases
def get_record_payment_use_case(
    store: IRecordStore = Depends(get_store),
) -> RecordPaymentUseCase:
    return RecordPaymentUseCase(store)


def get_cheque_action_use_case(
    store: IRecordStore = Depends(get_store),
) -> ChequeActionUseCase:
    return ChequeActionUseCase(store)


# Inventory use cases
def get_inventory_return_use_case(
    store: IRecordStore = Depends(get_store),
) -> RecordInventoryReturnUseCase:
    return RecordInventoryReturnUseCase(store)


def get_report_damage_use_case(
    store: IRecordStore = Depends(get_store),
) -> ReportDamageUseCase:
    return ReportDamageUseCase(store)


def get_adjust_stock_use_case(
    store: IRecordStore = Depends(get_store),
) -> AdjustStockUseCase:
    return AdjustStockUseCase(store)


def get_transfer_stock_use_case(
    store: IRecordStore = Depends(get_store),
) -> TransferStockUseCase:
    return TransferStockUseCase(store)


# Order use cases
def get_update_order_status_use_case(
    store: IRecordStore = Depends(get_store),
) -> UpdateOrderStatusUseCase:
    return UpdateOrderStatusUseCase(store)


def get_create_loading_sheet_use_case(
    store: IRecordStore = Depends(get_store),
) -> CreateLoadingSheetUseCase:
    return CreateLoadingSheetUseCase(store)


def get_reconcile_loading_use_case(
    store: IRecordStore = Depends(get_store),
) -> ReconcileLoadingUseCase:
    return ReconcileLoadingUseCase(store)


# Billing
def get_inter_branch_bill_use_case(
    store: IRecordStore = Depends(get_store),
) -> InterBranchBillUseCase:
    return InterBranchBillUseCase(store)


# Supplier use cases
def get_create_purchase_use_case(
    store: IRecordStore = Depends(get_store),
) -> CreatePurchaseUseCase:
    return CreatePurchaseUseCase(store)


def get_supplier_payment_use_case(
    store: IRecordStore = Depends(get_store),
) -> RecordSupplierPaymentUseCase:
    return RecordSupplierPaymentUseCase(store)


def get_supplier_cheque_use_case(
    store: IRecordStore = Depends(get_store),
) -> SupplierChequeActionUseCase:
    return SupplierChequeActionUseCase(store)


def get_return_stock_use_case(
    store: IRecordStore = Depends(get_store),
) -> ReturnStockToSupplierUseCase:
    return ReturnStockToSupplierUseCase(store)


def get_mark_loss_use_case(
    store: IRecordStore = Depends(get_store),
) -> MarkBusinessLossUseCase:
    return MarkBusinessLossUseCase(store)


def get_settle_claim_use_case(
    store: IRecordStore = Depends(get_store),
) -> SettleSupplierClaimUseCase:
    return SettleSupplierClaimUseCase(store)


# Finance
def get_transfer_funds_use_case(
    store: IRecordStore = Depends(get_store),
) -> TransferFundsUseCase:
    return TransferFundsUseCase(store)


def get_account_balance_use_case(
    store: IRecordStore = Depends(get_store),
) -> GetAccountBalanceUseCase:
    return GetAccountBalanceUseCase(store)


def get_rep_commissions_use_case(
    store: IRecordStore = Depends(get_store),
) -> GetRepCommissionsUseCase:
    return GetRepCommissionsUseCase(store)


def get_audit_balances_use_case(
    store: IRecordStore = Depends(get_store),
) -> AuditBalancesUseCase:
    return AuditBalancesUseCase(store)
