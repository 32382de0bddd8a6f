"""Inter-Branch Bill Use Case: an agency's monthly bill to a sales branch."""

from dataclasses import dataclass
from datetime import date

from tradeledger.application.dto.requests import InterBranchBillRequest
from tradeledger.application.dto.responses import InterBranchBillResponse
from tradeledger.application.postings import (
    adjust_customer_balance,
    lock_rows,
    next_sequential,
    replace_order_items,
    utcnow_iso,
    write_invoice_amounts,
)
from tradeledger.application.use_cases.base import StoreUseCase
from tradeledger.config import get_logger, get_settings
from tradeledger.core.entities import (
    Agency,
    Branch,
    Invoice,
    OrderItem,
    OrderStatus,
    Product,
)
from tradeledger.core.exceptions import CustomerNotFoundError
from tradeledger.core.services.balance import invoice_amounts, retotal, retotal_delta
from tradeledger.core.services.billing import (
    AGENCY_PROFILES,
    BillingPeriod,
    aggregate_sales,
    bill_number,
    bill_total,
)

logger = get_logger(__name__)


@dataclass
class InterBranchBillResult:
    """Result of generating a bill."""

    message: str
    invoice_no: str
    invoice_id: int | None = None
    total: float = 0.0
    previous_total: float = 0.0
    item_count: int = 0
    created: bool = False

    @property
    def difference(self) -> float:
        return retotal_delta(self.previous_total, self.total)


class InterBranchBillUseCase(StoreUseCase):
    """
    Bill a branch for the agency's goods it sold in a month, priced at cost.

    The invoice number is fixed per agency, branch and month. Running the bill
    again replaces the lines and moves the branch's balance by the difference
    only, so repeated runs never double-charge.
    """

    def _business_ids(self, agency: Agency, branch: Branch) -> tuple[int, int]:
        business = get_settings().business
        agency_id = {
            Agency.ORANGE: business.orange_agency_id,
            Agency.WIREMAN: business.wireman_agency_id,
        }[agency]
        branch_id = {
            Branch.RETAIL: business.retail_id,
            Branch.DISTRIBUTION: business.distribution_id,
        }[branch]
        return agency_id, branch_id

    async def execute(
        self, agency: Agency, request: InterBranchBillRequest
    ) -> InterBranchBillResult:
        today = date.today()
        if request.year and request.month:
            period = BillingPeriod(request.year, request.month)
        else:
            period = BillingPeriod.containing(today)
        profile = AGENCY_PROFILES[agency]
        invoice_no = bill_number(agency, request.branch, period)
        agency_business_id, branch_business_id = self._business_ids(agency, request.branch)

        logger.info(
            "inter_branch_bill_started",
            agency=agency.value,
            branch=request.branch.value,
            period=period.label,
            invoice_no=invoice_no,
        )

        store = await self._get_store()
        async with store.transaction() as tx:
            orders = await tx.fetch(
                "orders",
                {
                    "business_id": branch_business_id,
                    "status__ne": OrderStatus.CANCELLED.value,
                    "order_date__gte": period.first_day.isoformat(),
                    "order_date__lte": f"{period.last_day.isoformat()}T23:59:59",
                },
            )
            order_ids = [order["id"] for order in orders]
            item_rows = (
                await tx.fetch("order_items", {"order_id": order_ids}) if order_ids else []
            )
            items = [OrderItem.model_validate(row) for row in item_rows]
            product_ids = sorted({item.product_id for item in items})
            products = {
                row["id"]: Product.model_validate(row)
                for row in (
                    await tx.fetch("products", {"id": product_ids}) if product_ids else []
                )
            }

            lines = aggregate_sales(items, products, profile.supplier_keyword)
            total = bill_total(lines)
            if not lines or total <= 0:
                logger.info("inter_branch_bill_empty", invoice_no=invoice_no)
                return InterBranchBillResult(
                    message=f"No {profile.supplier_keyword} sales found for {period.label}",
                    invoice_no=invoice_no,
                )

            existing = await tx.fetch_one("invoices", {"invoice_no": invoice_no})
            bill_items = [line.to_order_item() for line in lines]

            if existing is not None:
                locked = await lock_rows(
                    tx, customers=[existing["customer_id"]], invoices=[existing["id"]]
                )
                invoice = Invoice.model_validate(locked.invoices[existing["id"]])
                previous = invoice.total_amount
                await replace_order_items(tx, invoice.order_id, bill_items)
                await tx.update(
                    "orders",
                    {"id": invoice.order_id},
                    {"total_amount": total, "updated_at": utcnow_iso()},
                )
                await write_invoice_amounts(tx, invoice.id, retotal(invoice, total))
                await adjust_customer_balance(
                    tx, invoice.customer_id, retotal_delta(previous, total)
                )
                result = InterBranchBillResult(
                    message="Bill Updated",
                    invoice_no=invoice_no,
                    invoice_id=invoice.id,
                    total=total,
                    previous_total=previous,
                    item_count=len(lines),
                )
            else:
                locked = await lock_rows(tx, customers=[request.customer_id])
                if request.customer_id not in locked.customers:
                    raise CustomerNotFoundError(request.customer_id)

                order = await tx.insert(
                    "orders",
                    {
                        "order_no": await next_sequential(tx, "orders", "ORD"),
                        "customer_id": request.customer_id,
                        "business_id": agency_business_id,
                        "status": OrderStatus.COMPLETED.value,
                        "total_amount": total,
                        "order_date": min(today, period.last_day).isoformat(),
                        "notes": f"{profile.label} bill for {period.label}",
                        "updated_at": utcnow_iso(),
                    },
                )
                await replace_order_items(tx, order["id"], bill_items)
                invoice_row = await tx.insert(
                    "invoices",
                    {
                        "invoice_no": invoice_no,
                        "order_id": order["id"],
                        "customer_id": request.customer_id,
                        "due_date": period.last_day.isoformat(),
                        "updated_at": utcnow_iso(),
                        **invoice_amounts(total, 0).as_patch(),
                    },
                )
                await adjust_customer_balance(tx, request.customer_id, total)
                result = InterBranchBillResult(
                    message="Bill Created",
                    invoice_no=invoice_no,
                    invoice_id=invoice_row["id"],
                    total=total,
                    item_count=len(lines),
                    created=True,
                )

        logger.info(
            "inter_branch_bill_completed",
            invoice_no=invoice_no,
            total=result.total,
            difference=result.difference,
            created=result.created,
        )
        return result

    def to_response(self, result: InterBranchBillResult) -> InterBranchBillResponse:
        return InterBranchBillResponse(
            message=result.message,
            invoice_no=result.invoice_no,
            invoice_id=result.invoice_id,
            total=result.total,
            previous_total=result.previous_total,
            difference=result.difference,
            item_count=result.item_count,
            created=result.created,
        )
