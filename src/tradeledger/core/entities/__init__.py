"""Core domain entities."""

from tradeledger.core.entities.business import Agency, Branch
from tradeledger.core.entities.customer import Customer
from tradeledger.core.entities.inventory_return import (
    InventoryReturn,
    ReturnStatus,
    ReturnType,
)
from tradeledger.core.entities.invoice import (
    Invoice,
    InvoiceHistory,
    InvoiceStatus,
)
from tradeledger.core.entities.ledger import (
    AccountTransaction,
    BankAccount,
    TransactionType,
)
from tradeledger.core.entities.order import (
    CommissionStatus,
    LoadingSheet,
    LoadingStatus,
    Order,
    OrderItem,
    OrderStatus,
    RepCommission,
)
from tradeledger.core.entities.payment import (
    ChequeStatus,
    Payment,
    PaymentMethod,
)
from tradeledger.core.entities.product import (
    CommissionType,
    Location,
    LocationAssignment,
    Product,
    ProductStock,
)
from tradeledger.core.entities.supplier import (
    Purchase,
    PurchaseItem,
    PurchaseStatus,
    ReturnBatchStatus,
    Supplier,
    SupplierChequeStatus,
    SupplierPayment,
    SupplierReturnBatch,
)

__all__ = [
    # Business
    "Agency",
    "Branch",
    # Customer
    "Customer",
    # Inventory returns
    "InventoryReturn",
    "ReturnStatus",
    "ReturnType",
    # Invoice
    "Invoice",
    "InvoiceHistory",
    "InvoiceStatus",
    # Ledger
    "AccountTransaction",
    "BankAccount",
    "TransactionType",
    # Order
    "CommissionStatus",
    "LoadingSheet",
    "LoadingStatus",
    "Order",
    "OrderItem",
    "OrderStatus",
    "RepCommission",
    # Payment
    "ChequeStatus",
    "Payment",
    "PaymentMethod",
    # Product
    "CommissionType",
    "Location",
    "LocationAssignment",
    "Product",
    "ProductStock",
    # Supplier
    "Purchase",
    "PurchaseItem",
    "PurchaseStatus",
    "ReturnBatchStatus",
    "Supplier",
    "SupplierChequeStatus",
    "SupplierPayment",
    "SupplierReturnBatch",
]
