"""API tests for returns, damage reports, adjustments and transfers."""

USER = {"X-User-Id": "4", "X-Business-Id": "1"}


class TestReturns:
    async def test_good_return(self, client, seed):
        product = await seed.product(stock=10)
        location = await seed.location()
        await seed.stock(product["id"], location["id"], 4)

        response = await client.post(
            "/api/inventory/returns",
            headers=USER,
            json={
                "productId": product["id"],
                "locationId": location["id"],
                "quantity": 3,
                "returnType": "Good",
                "reason": "Unopened",
            },
        )

        assert response.status_code == 201
        record = response.json()["returnRecord"]
        assert record["returnNumber"].startswith("RET-")
        assert record["status"] == "Completed"
        assert response.json()["invoice"] is None
        assert await seed.stock_of(product["id"]) == (13, 0)

        listed = await client.get("/api/inventory/returns", params={"returnType": "Good"})
        assert [row["id"] for row in listed.json()] == [record["id"]]

    async def test_return_against_invoice_credits_customer(self, client, seed):
        customer = await seed.customer()
        product = await seed.product()
        location = await seed.location()
        sale = (
            await client.post(
                "/api/invoices",
                json={
                    "customerId": customer["id"],
                    "items": [
                        {"productId": product["id"], "quantity": 10, "unitPrice": 100, "total": 1000}
                    ],
                    "grandTotal": 1000,
                },
            )
        ).json()

        response = await client.post(
            "/api/inventory/returns",
            json={
                "productId": product["id"],
                "locationId": location["id"],
                "quantity": 2,
                "returnType": "Good",
                "customerId": customer["id"],
                "invoiceId": sale["invoiceId"],
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["balanceDelta"] == -200
        assert data["invoice"]["totalAmount"] == 800
        assert await seed.balance_of(customer["id"]) == 800

        returns = await client.get(f"/api/invoices/{sale['invoiceId']}/returns")
        assert len(returns.json()) == 1

    async def test_bad_return_type(self, client, seed):
        product = await seed.product()
        location = await seed.location()

        response = await client.post(
            "/api/inventory/returns",
            json={
                "productId": product["id"],
                "locationId": location["id"],
                "quantity": 1,
                "returnType": "Lost",
            },
        )

        assert response.status_code == 400


class TestDamage:
    async def test_partial_batch(self, client, seed):
        good = await seed.product("Switch", stock=50, cost=40)
        empty = await seed.product("Socket", stock=5)
        location = await seed.location()
        await seed.stock(good["id"], location["id"], 20)

        response = await client.post(
            "/api/inventory/damage",
            headers=USER,
            json={
                "locationId": location["id"],
                "reason": "Water leak",
                "items": [
                    {"productId": good["id"], "quantity": 3, "damageType": "Broken"},
                    {"productId": empty["id"], "quantity": 4},
                ],
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["processed"] == 1
        assert len(data["errors"]) == 1
        assert data["references"][0].startswith("DMG-")
        assert await seed.stock_of(good["id"]) == (47, 3)

        listed = await client.get("/api/inventory/damage", params={"locationId": location["id"]})
        assert len(listed.json()) == 1

    async def test_everything_failing_is_400(self, client, seed):
        product = await seed.product()
        location = await seed.location()

        response = await client.post(
            "/api/inventory/damage",
            headers=USER,
            json={
                "locationId": location["id"],
                "items": [{"productId": product["id"], "quantity": 1}],
            },
        )

        assert response.status_code == 400


class TestStockMoves:
    async def test_adjust(self, client, seed):
        product = await seed.product()
        location = await seed.location()
        await seed.stock(product["id"], location["id"], 10, damaged=2)

        response = await client.post(
            "/api/inventory/adjust",
            json={
                "locationId": location["id"],
                "items": [{"productId": product["id"], "newQuantity": 7}],
                "reason": "Stock take",
            },
        )

        assert response.status_code == 200
        assert response.json()["processed"] == 1
        assert await seed.location_stock_of(product["id"], location["id"]) == (7, 2)

    async def test_transfer(self, client, seed):
        product = await seed.product()
        shop = await seed.location("Shop")
        lorry = await seed.location("Lorry")
        await seed.stock(product["id"], shop["id"], 10)

        response = await client.post(
            "/api/inventory/transfer",
            json={
                "sourceLocationId": shop["id"],
                "destLocationId": lorry["id"],
                "items": [{"productId": product["id"], "quantity": 4}],
            },
        )

        assert response.status_code == 200
        stock = (await client.get(f"/api/products/{product['id']}/stock")).json()
        assert [(row["locationId"], row["quantity"]) for row in stock] == [
            (shop["id"], 6),
            (lorry["id"], 4),
        ]

    async def test_transfer_without_stock(self, client, seed):
        product = await seed.product()
        shop = await seed.location("Shop")
        lorry = await seed.location("Lorry")
        await seed.stock(product["id"], shop["id"], 1)

        response = await client.post(
            "/api/inventory/transfer",
            json={
                "sourceLocationId": shop["id"],
                "destLocationId": lorry["id"],
                "items": [{"productId": product["id"], "quantity": 4}],
            },
        )

        assert response.status_code == 400
        assert await seed.location_stock_of(product["id"], shop["id"]) == (1, 0)
