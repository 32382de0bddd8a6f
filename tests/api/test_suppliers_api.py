"""API tests for purchases, supplier payments and damaged stock claims."""

import pytest


async def purchase(client, supplier_id: int, product_id: int, total: float = 1000) -> dict:
    response = await client.post(
        "/api/purchases",
        json={
            "supplierId": supplier_id,
            "totalAmount": total,
            "invoiceNumber": "OE-7781",
            "items": [
                {"productId": product_id, "quantity": 10, "unitPrice": total / 10, "total": total}
            ],
        },
    )
    assert response.status_code == 201
    return response.json()


class TestPurchases:
    async def test_create_and_list(self, client, seed):
        supplier = await seed.supplier()
        product = await seed.product(stock=5)

        data = await purchase(client, supplier["id"], product["id"])

        assert data["purchase"]["purchaseNo"] == "PO-1001"
        assert data["purchase"]["paymentStatus"] == "Unpaid"
        assert data["supplierDue"] == 1000
        assert await seed.stock_of(product["id"]) == (15, 0)

        listed = await client.get("/api/purchases", params={"supplierId": supplier["id"]})
        assert [row["invoiceNo"] for row in listed.json()] == ["OE-7781"]

    async def test_unknown_supplier(self, client, seed):
        product = await seed.product()

        response = await client.post(
            "/api/purchases",
            json={
                "supplierId": 8,
                "totalAmount": 10,
                "items": [{"productId": product["id"], "quantity": 1, "total": 10}],
            },
        )

        assert response.status_code == 404
        assert response.json()["error_code"] == "SUPPLIER_NOT_FOUND"


class TestSupplierPayments:
    async def test_cheque_then_passed(self, client, seed):
        supplier = await seed.supplier()
        product = await seed.product()
        account = await seed.account("BOC Current", "bank")
        bought = await purchase(client, supplier["id"], product["id"])

        paid = await client.post(
            "/api/suppliers/payments",
            json={
                "purchaseId": bought["purchase"]["id"],
                "accountId": account["id"],
                "amount": 1000,
                "method": "Cheque",
                "chequeNumber": "778",
            },
        )
        assert paid.status_code == 201
        assert paid.json()["payment"]["chequeStatus"] == "pending"
        assert paid.json()["transactionNo"] is None

        passed = await client.put(
            "/api/suppliers/payments",
            json={"paymentId": paid.json()["payment"]["id"], "action": "PASSED"},
        )
        assert passed.status_code == 200
        assert passed.json()["transactionNo"].startswith("CHQ-")
        assert passed.json()["supplierDue"] == 0

        suppliers = (await client.get("/api/suppliers")).json()
        assert suppliers[0]["duePayment"] == 0

    async def test_payment_needs_account(self, client, seed):
        supplier = await seed.supplier()
        product = await seed.product()
        bought = await purchase(client, supplier["id"], product["id"])

        response = await client.post(
            "/api/suppliers/payments",
            json={"purchaseId": bought["purchase"]["id"], "amount": 100, "method": "cash"},
        )

        assert response.status_code == 400


@pytest.fixture
async def damaged(client, seed) -> dict:
    """Two damaged returns of a 40-cost product."""
    supplier = await seed.supplier()
    product = await seed.product(stock=20, cost=40)
    location = await seed.location()
    await seed.stock(product["id"], location["id"], 20)
    ids = []
    for quantity in (2, 3):
        response = await client.post(
            "/api/inventory/returns",
            json={
                "productId": product["id"],
                "locationId": location["id"],
                "quantity": quantity,
                "returnType": "Damage",
            },
        )
        ids.append(response.json()["returnRecord"]["id"])
    return {"supplier": supplier, "product": product, "ids": ids}


class TestDamagedStockClaims:
    async def test_return_then_claim(self, client, seed, damaged):
        supplier_id = damaged["supplier"]["id"]

        returned = await client.post(
            "/api/suppliers/return-stock",
            json={"itemIds": damaged["ids"], "supplierId": supplier_id},
        )
        assert returned.status_code == 200
        batch = returned.json()["batch"]
        assert batch["batchNumber"].startswith("GP-")
        assert batch["totalValue"] == 200
        assert returned.json()["processed"] == 2

        bought = await purchase(client, supplier_id, damaged["product"]["id"], total=300)

        claim = await client.post(
            "/api/suppliers/claims",
            json={
                "supplierId": supplier_id,
                "batchId": batch["id"],
                "negotiatedAmount": 180,
                "allocations": [{"purchaseId": bought["purchase"]["id"], "amount": 180}],
            },
        )

        assert claim.status_code == 200
        assert claim.json()["creditNotes"] == ["CN-1001"]
        assert claim.json()["supplierDue"] == 120

        again = await client.post(
            "/api/suppliers/claims",
            json={
                "supplierId": supplier_id,
                "batchId": batch["id"],
                "negotiatedAmount": 10,
                "allocations": [{"purchaseId": bought["purchase"]["id"], "amount": 10}],
            },
        )
        assert again.status_code == 409

    async def test_mark_loss(self, client, seed, damaged):
        response = await client.post(
            "/api/suppliers/mark-loss",
            json={"itemIds": damaged["ids"][:1], "reason": "Supplier refused"},
        )

        assert response.status_code == 200
        assert response.json()["processed"] == 1
        assert response.json()["skipped"] == 0
        assert await seed.stock_of(damaged["product"]["id"]) == (15, 3)

    async def test_unknown_batch(self, client, seed, damaged):
        response = await client.post(
            "/api/suppliers/claims",
            json={
                "supplierId": damaged["supplier"]["id"],
                "batchId": 77,
                "negotiatedAmount": 10,
                "allocations": [{"purchaseId": 1, "amount": 10}],
            },
        )

        assert response.status_code == 404
