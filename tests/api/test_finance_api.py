"""API tests for company accounts, transfers, commissions and the balance audit."""


async def open_account(client, name: str, account_type: str = "cash") -> dict:
    response = await client.post(
        "/api/finance/accounts", json={"accountName": name, "accountType": account_type}
    )
    assert response.status_code == 201
    return response.json()


class TestAccounts:
    async def test_transfer_and_balances(self, client):
        cash = await open_account(client, "Main Cash")
        bank = await open_account(client, "BOC Current", "bank")

        response = await client.post(
            "/api/finance/transfer",
            json={"fromAccountId": cash["id"], "toAccountId": bank["id"], "amount": 300},
        )

        assert response.status_code == 201
        transaction = response.json()["transaction"]
        assert transaction["transactionNo"].startswith("TRF-")
        assert transaction["transactionType"] == "Transfer"

        bank_view = (await client.get(f"/api/finance/accounts/{bank['id']}")).json()
        assert bank_view["balance"] == 300
        assert bank_view["account"]["accountName"] == "BOC Current"
        assert len(bank_view["transactions"]) == 1
        cash_view = (await client.get(f"/api/finance/accounts/{cash['id']}")).json()
        assert cash_view["balance"] == -300

    async def test_transfer_to_same_account(self, client):
        cash = await open_account(client, "Main Cash")

        response = await client.post(
            "/api/finance/transfer",
            json={"fromAccountId": cash["id"], "toAccountId": cash["id"], "amount": 10},
        )

        assert response.status_code == 400

    async def test_unknown_account(self, client):
        response = await client.get("/api/finance/accounts/12")

        assert response.status_code == 404
        assert response.json()["error_code"] == "ACCOUNT_NOT_FOUND"

    async def test_bad_account_type(self, client):
        response = await client.post(
            "/api/finance/accounts", json={"accountName": "Wallet", "accountType": "crypto"}
        )

        assert response.status_code == 400


class TestBalanceAudit:
    async def test_reports_drift(self, client, seed):
        await seed.customer("Silva Stores")
        drifted = await seed.customer("Perera Hardware", balance=75)

        response = await client.get("/api/finance/balance-audit")

        assert response.status_code == 200
        data = response.json()
        assert data["checked"] == 2
        assert data["consistent"] is False
        assert data["drifted"] == [
            {"customerId": drifted["id"], "stored": 75, "expected": 0, "drift": 75}
        ]

    async def test_single_customer(self, client, seed):
        customer = await seed.customer()

        response = await client.get(
            "/api/finance/balance-audit", params={"customerId": customer["id"]}
        )

        assert response.json() == {"checked": 1, "consistent": True, "drifted": []}


class TestRepCommission:
    async def test_commission_from_sale(self, client, seed):
        customer = await seed.customer()
        product = await seed.product(commission_type="fixed", commission_value=5)
        await client.post(
            "/api/invoices",
            json={
                "customerId": customer["id"],
                "salesRepId": 9,
                "items": [{"productId": product["id"], "quantity": 10, "total": 1000}],
                "grandTotal": 1000,
            },
        )

        response = await client.get("/api/rep/commission", params={"repId": 9})

        assert response.status_code == 200
        data = response.json()
        assert data["repId"] == 9
        assert data["totalPending"] == 50
        assert data["totalPaid"] == 0
        assert len(data["commissions"]) == 1

    async def test_rep_id_is_required(self, client):
        response = await client.get("/api/rep/commission")

        assert response.status_code == 400
