"""Application use cases."""

from tradeledger.application.use_cases.create_invoice import CreateInvoiceUseCase
from tradeledger.application.use_cases.finance import (
    AuditBalancesUseCase,
    GetAccountBalanceUseCase,
    GetRepCommissionsUseCase,
    TransferFundsUseCase,
)
from tradeledger.application.use_cases.inter_branch import InterBranchBillUseCase
from tradeledger.application.use_cases.inventory import (
    AdjustStockUseCase,
    RecordInventoryReturnUseCase,
    ReportDamageUseCase,
    TransferStockUseCase,
)
from tradeledger.application.use_cases.orders import (
    CreateLoadingSheetUseCase,
    ReconcileLoadingUseCase,
    UpdateOrderStatusUseCase,
)
from tradeledger.application.use_cases.payments import ChequeActionUseCase, RecordPaymentUseCase
from tradeledger.application.use_cases.suppliers import (
    CreatePurchaseUseCase,
    MarkBusinessLossUseCase,
    RecordSupplierPaymentUseCase,
    ReturnStockToSupplierUseCase,
    SettleSupplierClaimUseCase,
    SupplierChequeActionUseCase,
)
from tradeledger.application.use_cases.update_invoice import (
    RecalculateInvoiceUseCase,
    UpdateInvoiceUseCase,
)

__all__ = [
    "CreateInvoiceUseCase",
    "UpdateInvoiceUseCase",
    "RecalculateInvoiceUseCase",
    "RecordPaymentUseCase",
    "ChequeActionUseCase",
    "RecordInventoryReturnUseCase",
    "ReportDamageUseCase",
    "AdjustStockUseCase",
    "TransferStockUseCase",
    "UpdateOrderStatusUseCase",
    "CreateLoadingSheetUseCase",
    "ReconcileLoadingUseCase",
    "InterBranchBillUseCase",
    "CreatePurchaseUseCase",
    "RecordSupplierPaymentUseCase",
    "SupplierChequeActionUseCase",
    "ReturnStockToSupplierUseCase",
    "MarkBusinessLossUseCase",
    "SettleSupplierClaimUseCase",
    "TransferFundsUseCase",
    "GetAccountBalanceUseCase",
    "GetRepCommissionsUseCase",
    "AuditBalancesUseCase",
]
