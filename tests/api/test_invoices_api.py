"""API tests for invoice endpoints."""


def sale_body(customer_id: int, product_id: int, **extra) -> dict:
    body = {
        "customerId": customer_id,
        "items": [{"productId": product_id, "quantity": 10, "unitPrice": 100, "total": 1000}],
        "grandTotal": 1000,
    }
    body.update(extra)
    return body


async def store_is_untouched(seed, customer_id: int, product_id: int, stock: float) -> bool:
    return (
        await seed.balance_of(customer_id) == 0
        and await seed.stock_of(product_id) == (stock, 0)
        and await seed.store.count("invoices") == 0
    )


class TestCreateInvoice:
    async def test_create_returns_numbers_and_balance(self, client, seed):
        customer = await seed.customer()
        product = await seed.product()

        response = await client.post("/api/invoices", json=sale_body(customer["id"], product["id"]))

        assert response.status_code == 201
        data = response.json()
        assert data["invoiceNo"] == "INV-1001"
        assert data["orderId"] == "ORD-1001"
        assert data["status"] == "Unpaid"
        assert data["dueAmount"] == 1000
        assert data["customerBalance"] == 1000
        assert await seed.stock_of(product["id"]) == (90, 0)

    async def test_payment_type_is_case_insensitive(self, client, seed):
        customer = await seed.customer()
        product = await seed.product()

        response = await client.post(
            "/api/invoices",
            json=sale_body(customer["id"], product["id"], paymentType="CASH", paidAmount=1000),
        )

        assert response.status_code == 201
        assert response.json()["status"] == "Paid"
        assert await seed.balance_of(customer["id"]) == 0

    async def test_missing_items_is_400(self, client, seed):
        customer = await seed.customer()

        response = await client.post(
            "/api/invoices", json={"customerId": customer["id"], "grandTotal": 10}
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error_code"] == "VALIDATION_ERROR"
        assert data["message"].startswith("items")

    async def test_unknown_customer_is_404(self, client, seed):
        product = await seed.product()

        response = await client.post("/api/invoices", json=sale_body(999, product["id"]))

        assert response.status_code == 404
        assert response.json()["error_code"] == "CUSTOMER_NOT_FOUND"
        assert await seed.stock_of(product["id"]) == (100, 0)

    async def test_unknown_product_rolls_back(self, client, seed):
        customer = await seed.customer()
        product = await seed.product()
        body = sale_body(customer["id"], product["id"])
        body["items"].append({"productId": 999, "quantity": 1, "total": 100})

        response = await client.post("/api/invoices", json=body)

        assert response.status_code == 404
        assert response.json()["error_code"] == "PRODUCT_NOT_FOUND"
        assert await store_is_untouched(seed, customer["id"], product["id"], 100)


class TestReadInvoices:
    async def test_get_with_lines(self, client, seed):
        customer = await seed.customer()
        product = await seed.product()
        created = (
            await client.post("/api/invoices", json=sale_body(customer["id"], product["id"]))
        ).json()

        response = await client.get(f"/api/invoices/{created['invoiceId']}")

        assert response.status_code == 200
        data = response.json()
        assert data["invoiceNo"] == "INV-1001"
        assert data["totalAmount"] == 1000
        assert len(data["items"]) == 1
        assert data["items"][0]["productId"] == product["id"]

    async def test_list_by_customer(self, client, seed):
        silva = await seed.customer("Silva Stores")
        perera = await seed.customer("Perera Hardware")
        product = await seed.product()
        await client.post("/api/invoices", json=sale_body(silva["id"], product["id"]))
        await client.post("/api/invoices", json=sale_body(perera["id"], product["id"]))

        response = await client.get("/api/invoices", params={"customerId": perera["id"]})

        assert response.status_code == 200
        assert [row["customerId"] for row in response.json()] == [perera["id"]]

    async def test_unknown_invoice_is_404(self, client):
        response = await client.get("/api/invoices/42")

        assert response.status_code == 404
        data = response.json()
        assert data["error_code"] == "INVOICE_NOT_FOUND"
        assert data["path"] == "/api/invoices/42"
        assert data["hint"]


class TestEditInvoice:
    async def test_edit_moves_balance_and_stock(self, client, seed):
        customer = await seed.customer()
        product = await seed.product()
        created = (
            await client.post("/api/invoices", json=sale_body(customer["id"], product["id"]))
        ).json()

        response = await client.patch(
            f"/api/invoices/{created['invoiceId']}",
            json={
                "userId": 3,
                "items": [{"productId": product["id"], "quantity": 8, "unitPrice": 100, "total": 800}],
                "grandTotal": 800,
                "changeReason": "Customer kept 8",
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["balanceDelta"] == -200
        assert data["invoice"]["totalAmount"] == 800
        assert await seed.balance_of(customer["id"]) == 800
        assert await seed.stock_of(product["id"]) == (92, 0)

        history = (await client.get(f"/api/invoices/{created['invoiceId']}/history")).json()
        assert len(history) == 1
        assert history[0]["changedBy"] == 3
        assert history[0]["changeReason"] == "Customer kept 8"

    async def test_edit_unknown_invoice(self, client, seed):
        product = await seed.product()

        response = await client.patch(
            "/api/invoices/7",
            json={
                "userId": 1,
                "items": [{"productId": product["id"], "quantity": 1, "total": 100}],
                "grandTotal": 100,
            },
        )

        assert response.status_code == 404

    async def test_recalculate_unchanged_invoice(self, client, seed):
        customer = await seed.customer()
        product = await seed.product()
        created = (
            await client.post("/api/invoices", json=sale_body(customer["id"], product["id"]))
        ).json()

        response = await client.post(f"/api/invoices/{created['invoiceId']}/recalculate")

        assert response.status_code == 200
        data = response.json()
        assert data["oldTotal"] == 1000
        assert data["newTotal"] == 1000
        assert data["difference"] == 0

    async def test_returns_for_invoice_start_empty(self, client, seed):
        customer = await seed.customer()
        product = await seed.product()
        created = (
            await client.post("/api/invoices", json=sale_body(customer["id"], product["id"]))
        ).json()

        response = await client.get(f"/api/invoices/{created['invoiceId']}/returns")

        assert response.status_code == 200
        assert response.json() == []
