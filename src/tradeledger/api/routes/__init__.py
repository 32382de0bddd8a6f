"""API route modules."""

from tradeledger.api.routes.finance import router as finance_router
from tradeledger.api.routes.health import router as health_router
from tradeledger.api.routes.inter_branch import router as inter_branch_router
from tradeledger.api.routes.inventory import router as inventory_router
from tradeledger.api.routes.invoices import router as invoices_router
from tradeledger.api.routes.master_data import router as master_data_router
from tradeledger.api.routes.orders import router as orders_router
from tradeledger.api.routes.payments import router as payments_router
from tradeledger.api.routes.rep import router as rep_router
from tradeledger.api.routes.suppliers import purchases_router
from tradeledger.api.routes.suppliers import router as suppliers_router

__all__ = [
    "health_router",
    "invoices_router",
    "orders_router",
    "payments_router",
    "finance_router",
    "inventory_router",
    "inter_branch_router",
    "purchases_router",
    "suppliers_router",
    "rep_router",
    "master_data_router",
]
