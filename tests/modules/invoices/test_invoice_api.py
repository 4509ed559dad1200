from decimal import Decimal

from httpx import AsyncClient

INVOICE_ITEM = {
    "part_no": "P-1",
    "material_no": "M-1",
    "description": "Gate valve",
    "uom": "EA",
    "quantity": "4",
    "unit_price": "12.50",
}


async def _create_customer_order(client: AsyncClient, headers: dict) -> dict:
    response = await client.post(
        "/api/v1/purchase-orders",
        headers=headers,
        json={
            "po_number": "PO-100",
            "order_type": "customer",
            "items": [
                {
                    "part_no": "P-1",
                    "material_no": "M-1",
                    "description": "Gate valve",
                    "uom": "EA",
                    "quantity": "10",
                    "unit_price": "12.50",
                }
            ],
        },
    )
    return response.json()["data"]


class TestSalesInvoiceEndpoints:
    """Tests for /sales-invoices."""

    async def test_create_invoice_computes_totals(self, client: AsyncClient, user_headers: dict):
        response = await client.post(
            "/api/v1/sales-invoices",
            headers=user_headers,
            json={"claim_percentage": "50", "items": [INVOICE_ITEM]},
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["invoice_number"].startswith("SINV-")
        assert Decimal(data["subtotal"]) == Decimal("50.00")
        assert Decimal(data["claim_amount"]) == Decimal("25.00")
        assert Decimal(data["vat_amount"]) == Decimal("1.25")
        assert Decimal(data["gross_total"]) == Decimal("26.25")
        assert Decimal(data["items"][0]["line_total"]) == Decimal("50.00")

    async def test_duplicate_invoice_number(self, client: AsyncClient, user_headers: dict):
        payload = {"invoice_number": "INV-1", "items": []}
        await client.post("/api/v1/sales-invoices", headers=user_headers, json=payload)

        response = await client.post("/api/v1/sales-invoices", headers=user_headers, json=payload)

        assert response.status_code == 409

    async def test_item_writes_report_linked_order_status(
        self, client: AsyncClient, user_headers: dict
    ):
        order = await _create_customer_order(client, user_headers)
        created = await client.post(
            "/api/v1/sales-invoices",
            headers=user_headers,
            json={"customer_po_number": "PO-100", "items": [INVOICE_ITEM]},
        )
        invoice_id = created.json()["data"]["id"]

        added = await client.post(
            f"/api/v1/sales-invoices/{invoice_id}/items",
            headers=user_headers,
            json={**INVOICE_ITEM, "quantity": "6"},
        )
        assert added.status_code == 201
        result = added.json()["data"]
        assert result["linked_order_id"] == order["id"]
        assert result["linked_order_status"] == "delivered_completed"

        removed = await client.delete(
            f"/api/v1/sales-invoices/{invoice_id}/items/{result['item_id']}",
            headers=user_headers,
        )
        assert removed.status_code == 200
        assert removed.json()["data"]["linked_order_status"] == "partially_delivered"

        order_response = await client.get(
            f"/api/v1/purchase-orders/{order['id']}", headers=user_headers
        )
        item = order_response.json()["data"]["items"][0]
        assert Decimal(item["balance_quantity_undelivered"]) == Decimal("6")

    async def test_unknown_item_is_404(self, client: AsyncClient, user_headers: dict):
        created = await client.post(
            "/api/v1/sales-invoices", headers=user_headers, json={"items": []}
        )
        invoice_id = created.json()["data"]["id"]

        response = await client.put(
            f"/api/v1/sales-invoices/{invoice_id}/items/999",
            headers=user_headers,
            json={"quantity": "1"},
        )

        assert response.status_code == 404

    async def test_list_by_po_number(self, client: AsyncClient, user_headers: dict):
        await client.post(
            "/api/v1/sales-invoices",
            headers=user_headers,
            json={"customer_po_number": "PO-100", "items": []},
        )
        await client.post(
            "/api/v1/sales-invoices",
            headers=user_headers,
            json={"customer_po_number": "PO-200", "items": []},
        )

        response = await client.get(
            "/api/v1/sales-invoices", headers=user_headers, params={"po_number": "PO-200"}
        )

        data = response.json()["data"]
        assert data["total"] == 1
        assert data["items"][0]["customer_po_number"] == "PO-200"

    async def test_delete_is_admin_only(
        self, client: AsyncClient, user_headers: dict, admin_headers: dict
    ):
        created = await client.post(
            "/api/v1/sales-invoices", headers=user_headers, json={"items": []}
        )
        invoice_id = created.json()["data"]["id"]

        forbidden = await client.delete(
            f"/api/v1/sales-invoices/{invoice_id}", headers=user_headers
        )
        deleted = await client.delete(
            f"/api/v1/sales-invoices/{invoice_id}", headers=admin_headers
        )

        assert forbidden.status_code == 403
        assert deleted.status_code == 204


class TestPurchaseInvoiceEndpoints:
    """Tests for /purchase-invoices."""

    async def test_purchase_invoice_updates_supplier_order(
        self, client: AsyncClient, user_headers: dict
    ):
        order_response = await client.post(
            "/api/v1/purchase-orders",
            headers=user_headers,
            json={
                "po_number": "SUP-1",
                "order_type": "supplier",
                "items": [{"part_no": "P-1", "material_no": "M-1", "quantity": "4"}],
            },
        )
        order_id = order_response.json()["data"]["id"]

        response = await client.post(
            "/api/v1/purchase-invoices",
            headers=user_headers,
            json={"po_number": "SUP-1", "items": [{**INVOICE_ITEM, "serial_no": "1"}]},
        )

        assert response.status_code == 201
        assert response.json()["data"]["invoice_number"].startswith("PINV-")
        order = await client.get(f"/api/v1/purchase-orders/{order_id}", headers=user_headers)
        assert order.json()["data"]["status"] == "delivered_completed"

    async def test_purchase_invoice_update_header(
        self, client: AsyncClient, user_headers: dict
    ):
        created = await client.post(
            "/api/v1/purchase-invoices", headers=user_headers, json={"items": [INVOICE_ITEM]}
        )
        invoice_id = created.json()["data"]["id"]

        response = await client.put(
            f"/api/v1/purchase-invoices/{invoice_id}",
            headers=user_headers,
            json={"status": "received", "project_number": "PRJ-7"},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "received"
        assert data["project_number"] == "PRJ-7"


async def _create_order(client: AsyncClient, headers: dict, **fields) -> dict:
    payload = {
        "order_type": "customer",
        "items": [
            {
                "project_no": project_no,
                "part_no": "P-1",
                "material_no": "M-1",
                "description": "Gate valve",
                "uom": "EA",
                "quantity": "10",
                "unit_price": "12.50",
            }
            for project_no in ("PRJ-A", "PRJ-B")
        ],
    }
    payload.update(fields)
    response = await client.post("/api/v1/purchase-orders", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestOrderLookupsForInvoicing:
    """Order pickers and remaining quantities used while entering an invoice."""

    async def test_customer_order_items_with_remaining_quantity(
        self, client: AsyncClient, user_headers: dict
    ):
        await _create_order(client, user_headers, po_number="PO-300")
        created = await client.post(
            "/api/v1/sales-invoices",
            headers=user_headers,
            json={
                "customer_po_number": "PO-300",
                "claim_percentage": "40",
                "items": [{**INVOICE_ITEM, "project_no": "PRJ-A", "quantity": "12"}],
            },
        )
        invoice_id = created.json()["data"]["id"]

        response = await client.get(
            "/api/v1/sales-invoices/customer-po/PO-300", headers=user_headers
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["order"]["po_number"] == "PO-300"
        assert Decimal(data["total_claim_percentage"]) == Decimal("40")
        by_project = {item["project_no"]: item for item in data["items"]}
        assert Decimal(by_project["PRJ-A"]["already_invoiced_quantity"]) == Decimal("12")
        # Over-invoiced lines never report a negative remainder
        assert Decimal(by_project["PRJ-A"]["remaining_quantity"]) == Decimal("0")
        assert Decimal(by_project["PRJ-B"]["already_invoiced_quantity"]) == Decimal("0")
        assert Decimal(by_project["PRJ-B"]["remaining_quantity"]) == Decimal("10")

        editing = await client.get(
            "/api/v1/sales-invoices/customer-po/PO-300",
            headers=user_headers,
            params={"exclude_invoice_id": invoice_id},
        )
        data = editing.json()["data"]
        assert Decimal(data["total_claim_percentage"]) == Decimal("0")
        assert all(Decimal(item["remaining_quantity"]) == Decimal("10") for item in data["items"])

    async def test_unknown_customer_po_is_404(self, client: AsyncClient, user_headers: dict):
        response = await client.get(
            "/api/v1/sales-invoices/customer-po/PO-NONE", headers=user_headers
        )

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Purchase order with po_number=PO-NONE not found"

    async def test_customer_open_orders_exclude_completed(
        self, client: AsyncClient, user_headers: dict
    ):
        party = await client.post(
            "/api/v1/parties",
            headers=user_headers,
            json={"party_type": "customer", "company_name": "Gulf Trading LLC"},
        )
        customer_id = party.json()["data"]["id"]
        await _create_order(
            client, user_headers, po_number="PO-OPEN", customer_supplier_id=customer_id
        )
        await _create_order(
            client, user_headers, po_number="PO-DONE", customer_supplier_id=customer_id
        )
        await _create_order(client, user_headers, po_number="PO-OTHER")
        await client.post(
            "/api/v1/sales-invoices",
            headers=user_headers,
            json={
                "customer_po_number": "PO-DONE",
                "items": [
                    {**INVOICE_ITEM, "project_no": project_no, "quantity": "10"}
                    for project_no in ("PRJ-A", "PRJ-B")
                ],
            },
        )

        response = await client.get(
            f"/api/v1/sales-invoices/customer/{customer_id}/po-numbers", headers=user_headers
        )

        assert response.status_code == 200
        assert [o["po_number"] for o in response.json()["data"]] == ["PO-OPEN"]

    async def test_supplier_order_lookups(self, client: AsyncClient, user_headers: dict):
        await _create_order(client, user_headers, po_number="SUP-300", order_type="supplier")
        await _create_order(client, user_headers, po_number="PO-301")
        await client.post(
            "/api/v1/purchase-invoices",
            headers=user_headers,
            json={
                "po_number": "SUP-300",
                "items": [{**INVOICE_ITEM, "project_no": "PRJ-B", "quantity": "3"}],
            },
        )

        listed = await client.get("/api/v1/purchase-invoices/po/list", headers=user_headers)
        assert [o["po_number"] for o in listed.json()["data"]] == ["SUP-300"]

        response = await client.get("/api/v1/purchase-invoices/po/SUP-300", headers=user_headers)
        assert response.status_code == 200
        by_project = {item["project_no"]: item for item in response.json()["data"]["items"]}
        assert Decimal(by_project["PRJ-B"]["already_invoiced_quantity"]) == Decimal("3")
        assert Decimal(by_project["PRJ-B"]["remaining_quantity"]) == Decimal("7")
        assert Decimal(by_project["PRJ-A"]["remaining_quantity"]) == Decimal("10")

        # A customer PO number is not a supplier order
        missing = await client.get("/api/v1/purchase-invoices/po/PO-301", headers=user_headers)
        assert missing.status_code == 404
