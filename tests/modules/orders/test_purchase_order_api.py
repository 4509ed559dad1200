from decimal import Decimal

from httpx import AsyncClient

ORDER_ITEM = {
    "serial_no": "1",
    "project_no": "PRJ-7",
    "part_no": "P-1",
    "material_no": "M-1",
    "description": "Gate valve",
    "uom": "EA",
    "quantity": "10",
    "unit_price": "12.50",
    "due_date": "2026-12-31",
}


async def _create_order(client: AsyncClient, headers: dict, **overrides) -> dict:
    payload = {
        "po_number": "PO-100",
        "order_type": "customer",
        "customer_supplier_name": "Gulf Trading LLC",
        "items": [ORDER_ITEM],
    }
    payload.update(overrides)
    response = await client.post("/api/v1/purchase-orders", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestPurchaseOrderEndpoints:
    """Tests for /purchase-orders."""

    async def test_requires_auth(self, client: AsyncClient):
        response = await client.get("/api/v1/purchase-orders")
        assert response.status_code == 401

    async def test_create_purchase_order(self, client: AsyncClient, user_headers: dict):
        data = await _create_order(client, user_headers)

        assert data["status"] == "approved"
        assert data["order_type"] == "customer"
        assert Decimal(data["total_amount"]) == Decimal("125.00")
        assert Decimal(data["ordered_quantity"]) == Decimal("10")
        item = data["items"][0]
        assert Decimal(item["total_price"]) == Decimal("125.00")
        assert Decimal(item["balance_quantity_undelivered"]) == Decimal("10")
        assert item["delivered_quantity"] is None

    async def test_malformed_quantity_is_zero(self, client: AsyncClient, user_headers: dict):
        data = await _create_order(
            client, user_headers, items=[{**ORDER_ITEM, "quantity": "ten", "unit_price": "1,000"}]
        )

        item = data["items"][0]
        assert Decimal(item["quantity"]) == Decimal("0")
        assert Decimal(item["unit_price"]) == Decimal("1000")

    async def test_generated_po_number(self, client: AsyncClient, user_headers: dict):
        preview = await client.get("/api/v1/purchase-orders/next-po-number", headers=user_headers)
        expected = preview.json()["data"]["po_number"]

        data = await _create_order(client, user_headers, po_number=None)

        assert data["po_number"] == expected
        assert data["po_number"].startswith("PO-")

    async def test_duplicate_po_number(self, client: AsyncClient, user_headers: dict):
        await _create_order(client, user_headers)

        response = await client.post(
            "/api/v1/purchase-orders",
            headers=user_headers,
            json={"po_number": "PO-100", "order_type": "supplier"},
        )

        assert response.status_code == 409

    async def test_supplier_order_links_to_customer_order(
        self, client: AsyncClient, user_headers: dict
    ):
        customer = await _create_order(client, user_headers)

        supplier = await _create_order(
            client,
            user_headers,
            po_number="SUP-100",
            order_type="supplier",
            linked_customer_po_id=customer["id"],
        )
        assert supplier["linked_customer_po_id"] == customer["id"]

        response = await client.post(
            "/api/v1/purchase-orders",
            headers=user_headers,
            json={
                "po_number": "PO-101",
                "order_type": "customer",
                "linked_customer_po_id": customer["id"],
            },
        )
        assert response.status_code == 422

    async def test_list_filters(self, client: AsyncClient, user_headers: dict):
        await _create_order(client, user_headers)
        await _create_order(client, user_headers, po_number="SUP-1", order_type="supplier")

        response = await client.get(
            "/api/v1/purchase-orders", headers=user_headers, params={"order_type": "supplier"}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 1
        assert data["items"][0]["po_number"] == "SUP-1"

    async def test_replace_items_recomputes_totals(self, client: AsyncClient, user_headers: dict):
        order = await _create_order(client, user_headers)

        response = await client.put(
            f"/api/v1/purchase-orders/{order['id']}",
            headers=user_headers,
            json={"items": [{**ORDER_ITEM, "quantity": "2"}, {**ORDER_ITEM, "part_no": "P-2"}]},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert len(data["items"]) == 2
        assert Decimal(data["total_amount"]) == Decimal("150.00")

    async def test_status_override_is_admin_only(
        self, client: AsyncClient, user_headers: dict, admin_headers: dict
    ):
        order = await _create_order(client, user_headers)

        forbidden = await client.put(
            f"/api/v1/purchase-orders/{order['id']}",
            headers=user_headers,
            json={"status": "delivered_completed"},
        )
        assert forbidden.status_code == 403

        allowed = await client.put(
            f"/api/v1/purchase-orders/{order['id']}",
            headers=admin_headers,
            json={"status": "delivered_completed"},
        )
        assert allowed.status_code == 200
        assert allowed.json()["data"]["status"] == "delivered_completed"

        # The next recompute derives the status from deliveries again
        recomputed = await client.post(
            f"/api/v1/purchase-orders/{order['id']}/recompute-status", headers=admin_headers
        )
        assert recomputed.status_code == 200
        assert recomputed.json()["data"]["status"] == "approved"

    async def test_delete_is_admin_only(
        self, client: AsyncClient, user_headers: dict, admin_headers: dict
    ):
        order = await _create_order(client, user_headers)

        assert (
            await client.delete(f"/api/v1/purchase-orders/{order['id']}", headers=user_headers)
        ).status_code == 403
        assert (
            await client.delete(f"/api/v1/purchase-orders/{order['id']}", headers=admin_headers)
        ).status_code == 204
        assert (
            await client.get(f"/api/v1/purchase-orders/{order['id']}", headers=admin_headers)
        ).status_code == 404
