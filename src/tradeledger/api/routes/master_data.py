"""Master data endpoints: customers, products, locations and rep assignments."""

from fastapi import APIRouter, Depends, Query, status

from tradeledger.api.dependencies import get_store
from tradeledger.application.dto.requests import (
    AssignLocationRequest,
    CreateCustomerRequest,
    CreateLocationRequest,
    CreateProductRequest,
)
from tradeledger.application.dto.responses import (
    CustomerResponse,
    ErrorResponse,
    LocationResponse,
    ProductResponse,
    ProductStockResponse,
)
from tradeledger.core.exceptions import (
    CustomerNotFoundError,
    LocationNotFoundError,
    ProductNotFoundError,
)
from tradeledger.core.interfaces import IRecordStore

router = APIRouter(prefix="/api", tags=["master-data"])


@router.post("/customers", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(
    request: CreateCustomerRequest,
    store: IRecordStore = Depends(get_store),
) -> CustomerResponse:
    row = await store.insert("customers", {**request.model_dump(), "outstanding_balance": 0})
    return CustomerResponse.model_validate(row)


@router.get("/customers", response_model=list[CustomerResponse])
async def list_customers(
    search: str | None = Query(default=None),
    store: IRecordStore = Depends(get_store),
) -> list[CustomerResponse]:
    filters = {"name__contains": search} if search else None
    rows = await store.fetch("customers", filters, order_by="name")
    return [CustomerResponse.model_validate(row) for row in rows]


@router.get(
    "/customers/{customer_id}",
    response_model=CustomerResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_customer(
    customer_id: int,
    store: IRecordStore = Depends(get_store),
) -> CustomerResponse:
    row = await store.get("customers", customer_id)
    if row is None:
        raise CustomerNotFoundError(customer_id)
    return CustomerResponse.model_validate(row)


@router.post("/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    request: CreateProductRequest,
    store: IRecordStore = Depends(get_store),
) -> ProductResponse:
    row = await store.insert(
        "products",
        {**request.model_dump(mode="json"), "actual_cost_price": request.cost_price, "damaged_quantity": 0},
    )
    return ProductResponse.model_validate(row)


@router.get("/products", response_model=list[ProductResponse])
async def list_products(
    search: str | None = Query(default=None),
    store: IRecordStore = Depends(get_store),
) -> list[ProductResponse]:
    filters = {"name__contains": search} if search else None
    rows = await store.fetch("products", filters, order_by="name")
    return [ProductResponse.model_validate(row) for row in rows]


@router.get(
    "/products/{product_id}/stock",
    response_model=list[ProductStockResponse],
    responses={404: {"model": ErrorResponse}},
)
async def get_product_stock(
    product_id: int,
    store: IRecordStore = Depends(get_store),
) -> list[ProductStockResponse]:
    """Per-location stock for a product."""
    if await store.get("products", product_id) is None:
        raise ProductNotFoundError(product_id)
    rows = await store.fetch("product_stocks", {"product_id": product_id}, order_by="location_id")
    return [ProductStockResponse.model_validate(row) for row in rows]


@router.post("/locations", response_model=LocationResponse, status_code=status.HTTP_201_CREATED)
async def create_location(
    request: CreateLocationRequest,
    store: IRecordStore = Depends(get_store),
) -> LocationResponse:
    row = await store.insert("locations", request.model_dump())
    return LocationResponse.model_validate(row)


@router.get("/locations", response_model=list[LocationResponse])
async def list_locations(store: IRecordStore = Depends(get_store)) -> list[LocationResponse]:
    rows = await store.fetch("locations", order_by="name")
    return [LocationResponse.model_validate(row) for row in rows]


@router.post(
    "/locations/{location_id}/assignments",
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def assign_location(
    location_id: int,
    request: AssignLocationRequest,
    store: IRecordStore = Depends(get_store),
) -> dict:
    """Assign a sales rep to a location; their sales draw stock from it."""
    if await store.get("locations", location_id) is None:
        raise LocationNotFoundError(location_id)
    row = await store.insert(
        "location_assignments", {"user_id": request.user_id, "location_id": location_id}
    )
    return {"id": row["id"], "userId": row["user_id"], "locationId": row["location_id"]}
