"""API tests for customers, products, locations and suppliers."""


class TestCustomers:
    async def test_create_starts_at_zero(self, client):
        response = await client.post(
            "/api/customers", json={"name": "Silva Stores", "ownerName": "K. Silva", "businessId": 2}
        )

        assert response.status_code == 201
        data = response.json()
        assert data["outstandingBalance"] == 0
        assert data["ownerName"] == "K. Silva"

        fetched = await client.get(f"/api/customers/{data['id']}")
        assert fetched.json()["name"] == "Silva Stores"

    async def test_search(self, client, seed):
        await seed.customer("Silva Stores")
        await seed.customer("Perera Hardware")

        response = await client.get("/api/customers", params={"search": "Perera"})

        assert [row["name"] for row in response.json()] == ["Perera Hardware"]

    async def test_unknown_customer(self, client):
        response = await client.get("/api/customers/31")

        assert response.status_code == 404
        assert response.json()["error_code"] == "CUSTOMER_NOT_FOUND"

    async def test_blank_name_is_400(self, client):
        response = await client.post("/api/customers", json={"name": ""})

        assert response.status_code == 400


class TestProducts:
    async def test_create(self, client):
        response = await client.post(
            "/api/products",
            json={
                "name": "LED Bulb 9W",
                "costPrice": 120,
                "sellingPrice": 180,
                "mrp": 200,
                "stockQuantity": 40,
                "commissionType": "FIXED",
                "commissionValue": 5,
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["actualCostPrice"] == 120
        assert data["damagedQuantity"] == 0
        assert data["commissionType"] == "fixed"

    async def test_stock_for_unknown_product(self, client):
        response = await client.get("/api/products/9/stock")

        assert response.status_code == 404


class TestLocations:
    async def test_create_and_assign(self, client):
        created = await client.post("/api/locations", json={"name": "Lorry 1", "businessId": 1})
        assert created.status_code == 201
        location_id = created.json()["id"]

        response = await client.post(
            f"/api/locations/{location_id}/assignments", json={"userId": 7}
        )

        assert response.status_code == 201
        listed = await client.get("/api/locations")
        assert [row["name"] for row in listed.json()] == ["Lorry 1"]

    async def test_assign_to_unknown_location(self, client):
        response = await client.post("/api/locations/5/assignments", json={"userId": 7})

        assert response.status_code == 404


class TestSuppliers:
    async def test_create(self, client):
        response = await client.post("/api/suppliers", json={"name": "Orange Electric"})

        assert response.status_code == 201
        assert response.json()["duePayment"] == 0
