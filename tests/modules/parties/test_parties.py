from httpx import AsyncClient


async def _create_party(client: AsyncClient, headers: dict, **overrides) -> dict:
    payload = {
        "party_type": "customer",
        "company_name": "Gulf Trading LLC",
        "trn_number": "100200300400003",
        "email": "buyer@gulftrading.com",
        "country": "UAE",
    }
    payload.update(overrides)
    response = await client.post("/api/v1/parties", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestPartyEndpoints:
    """Tests for /parties (customers and suppliers)."""

    async def test_create_and_get(self, client: AsyncClient, user_headers: dict):
        party = await _create_party(client, user_headers)

        response = await client.get(f"/api/v1/parties/{party['id']}", headers=user_headers)

        assert response.status_code == 200
        assert response.json()["data"]["company_name"] == "Gulf Trading LLC"
        assert response.json()["data"]["party_type"] == "customer"

    async def test_invalid_email_rejected(self, client: AsyncClient, user_headers: dict):
        response = await client.post(
            "/api/v1/parties",
            headers=user_headers,
            json={"party_type": "supplier", "company_name": "X", "email": "not-an-email"},
        )
        assert response.status_code == 422

    async def test_list_by_type(self, client: AsyncClient, user_headers: dict):
        await _create_party(client, user_headers)
        await _create_party(
            client, user_headers, party_type="supplier", company_name="Valve Works"
        )

        response = await client.get(
            "/api/v1/parties", headers=user_headers, params={"party_type": "supplier"}
        )

        data = response.json()["data"]
        assert data["total"] == 1
        assert data["items"][0]["company_name"] == "Valve Works"

    async def test_update(self, client: AsyncClient, user_headers: dict):
        party = await _create_party(client, user_headers)

        response = await client.put(
            f"/api/v1/parties/{party['id']}",
            headers=user_headers,
            json={"contact_person": "Omar"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["contact_person"] == "Omar"

    async def test_missing_party_is_404(self, client: AsyncClient, user_headers: dict):
        response = await client.get("/api/v1/parties/999", headers=user_headers)
        assert response.status_code == 404

    async def test_order_takes_party_name(self, client: AsyncClient, user_headers: dict):
        party = await _create_party(client, user_headers)

        response = await client.post(
            "/api/v1/purchase-orders",
            headers=user_headers,
            json={"po_number": "PO-1", "order_type": "customer", "customer_supplier_id": party["id"]},
        )

        assert response.status_code == 201
        assert response.json()["data"]["customer_supplier_name"] == "Gulf Trading LLC"

    async def test_order_party_type_must_match(self, client: AsyncClient, user_headers: dict):
        party = await _create_party(client, user_headers)

        response = await client.post(
            "/api/v1/purchase-orders",
            headers=user_headers,
            json={"po_number": "SUP-1", "order_type": "supplier", "customer_supplier_id": party["id"]},
        )

        assert response.status_code == 422
