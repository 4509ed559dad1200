"""Tests for the database dashboard API: GET /api/v1/database-dashboard."""

from decimal import Decimal
from io import BytesIO

from httpx import AsyncClient
from openpyxl import load_workbook

ITEM = {
    "serial_no": "1",
    "project_no": "PRJ-7",
    "part_no": "P-1",
    "material_no": "M-1",
    "description": "Gate valve",
    "uom": "EA",
    "quantity": "10",
    "unit_price": "12.50",
    "due_date": "2099-01-31",
}


async def _order(client: AsyncClient, headers: dict, po_number: str, order_type: str, **item):
    response = await client.post(
        "/api/v1/purchase-orders",
        headers=headers,
        json={
            "po_number": po_number,
            "order_type": order_type,
            "customer_supplier_name": f"{order_type.title()} Co",
            "items": [{**ITEM, **item}],
        },
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def _sales_invoice(client: AsyncClient, headers: dict, po_number: str, quantity: str):
    response = await client.post(
        "/api/v1/sales-invoices",
        headers=headers,
        json={
            "customer_po_number": po_number,
            "items": [
                {"part_no": "P-1", "material_no": "M-1", "quantity": quantity, "unit_price": "12.50"}
            ],
        },
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def _dashboard(client: AsyncClient, headers: dict, **params) -> dict:
    response = await client.get("/api/v1/database-dashboard", headers=headers, params=params)
    assert response.status_code == 200, response.text
    return response.json()["data"]


class TestDatabaseDashboard:
    async def test_requires_auth(self, client: AsyncClient):
        response = await client.get("/api/v1/database-dashboard")
        assert response.status_code == 401

    async def test_empty(self, client: AsyncClient, user_headers: dict):
        data = await _dashboard(client, user_headers)

        assert data["rows"] == []
        assert data["pagination"]["total"] == 0
        assert data["summary"]["total_rows"] == 0

    async def test_supplier_only_item_has_no_customer_side(
        self, client: AsyncClient, user_headers: dict
    ):
        await _order(client, user_headers, "SUP-1", "supplier")

        row = (await _dashboard(client, user_headers))["rows"][0]

        assert row["part_no"] == "P-1"
        assert row["supplier_approved"]["po_number"] == "SUP-1"
        assert Decimal(row["supplier_approved"]["po_total_price"]) == Decimal("125.00")
        assert row["supplier_delivered"] is None
        assert row["customer_approved"] is None
        assert row["customer_delivered"] is None

    async def test_both_sides_share_one_row(self, client: AsyncClient, user_headers: dict):
        await _order(client, user_headers, "SUP-1", "supplier")
        await _order(client, user_headers, "PO-100", "customer")

        data = await _dashboard(client, user_headers)

        assert len(data["rows"]) == 1
        row = data["rows"][0]
        assert row["supplier_approved"]["customer_supplier_name"] == "Supplier Co"
        assert row["customer_approved"]["customer_supplier_name"] == "Customer Co"
        assert Decimal(data["summary"]["po_total_quantity"]) == Decimal("20")
        assert Decimal(data["summary"]["po_total_value"]) == Decimal("250.00")

    async def test_partial_then_completed(self, client: AsyncClient, user_headers: dict):
        await _order(client, user_headers, "PO-100", "customer")
        invoice = await _sales_invoice(client, user_headers, "PO-100", "4")

        row = (await _dashboard(client, user_headers))["rows"][0]
        assert row["customer_approved"]["status"] == "partially_delivered"
        assert Decimal(row["customer_approved"]["balance_quantity_undelivered"]) == Decimal("6")
        assert row["customer_approved"]["due_label"] == "2099-01-31"
        assert Decimal(row["customer_delivered"]["delivered_quantity"]) == Decimal("4")
        assert Decimal(row["customer_delivered"]["delivered_total_price"]) == Decimal("50.00")
        assert row["customer_delivered"]["invoice_no"] == invoice["invoice_number"]

        await _sales_invoice(client, user_headers, "PO-100", "6")

        row = (await _dashboard(client, user_headers))["rows"][0]
        assert row["customer_approved"]["status"] == "delivered_completed"
        assert row["customer_approved"]["due_label"] == "Completed"
        assert row["customer_approved"]["is_overdue"] is False
        assert Decimal(row["customer_delivered"]["delivered_quantity"]) == Decimal("10")

    async def test_search(self, client: AsyncClient, user_headers: dict):
        await _order(client, user_headers, "SUP-1", "supplier")
        await _order(client, user_headers, "SUP-2", "supplier", part_no="FLANGE-9")

        data = await _dashboard(client, user_headers, search="flange")

        assert [row["part_no"] for row in data["rows"]] == ["FLANGE-9"]

    async def test_as_of_date(self, client: AsyncClient, user_headers: dict):
        await _order(client, user_headers, "SUP-1", "supplier")
        await _order(client, user_headers, "SUP-2", "supplier", part_no="OLD", date_po="1999-06-01")

        data = await _dashboard(client, user_headers, as_of_date="2000-01-01")

        assert [row["part_no"] for row in data["rows"]] == ["OLD"]

    async def test_pagination(self, client: AsyncClient, user_headers: dict):
        await _order(client, user_headers, "SUP-1", "supplier")
        await _order(client, user_headers, "SUP-2", "supplier", part_no="P-2")

        data = await _dashboard(client, user_headers, page=2, limit=1)

        assert len(data["rows"]) == 1
        assert data["pagination"] == {"page": 2, "limit": 1, "total": 2, "pages": 2}
        assert data["summary"]["showing_rows"] == 1


class TestDatabaseDashboardExport:
    async def test_csv_export(self, client: AsyncClient, user_headers: dict):
        await _order(client, user_headers, "SUP-1", "supplier")

        response = await client.get(
            "/api/v1/database-dashboard/export", headers=user_headers, params={"format": "csv"}
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        text = response.content.decode("utf-8")
        assert text.startswith("\ufeff")
        header, row = text.lstrip("\ufeff").splitlines()[:2]
        assert header.startswith("Serial No,Project No")
        assert "SUP-1" in row
        # Customer side is missing
        assert ",-," in row

    async def test_xlsx_export(self, client: AsyncClient, user_headers: dict):
        await _order(client, user_headers, "SUP-1", "supplier")

        response = await client.get(
            "/api/v1/database-dashboard/export", headers=user_headers, params={"format": "xlsx"}
        )

        assert response.status_code == 200
        ws = load_workbook(BytesIO(response.content)).active
        assert ws.cell(1, 1).value == "Serial No"
        assert ws.cell(2, 8).value == "SUP-1"
        assert ws.cell(2, 11).value == 10.0

    async def test_overdue_is_flagged_in_exports(self, client: AsyncClient, user_headers: dict):
        await _order(client, user_headers, "SUP-LATE", "supplier", due_date="2020-01-31")

        csv_response = await client.get(
            "/api/v1/database-dashboard/export", headers=user_headers, params={"format": "csv"}
        )
        text = csv_response.content.decode("utf-8").lstrip("\ufeff")
        header, row = text.splitlines()[:2]
        columns = header.split(",")
        cells = row.split(",")
        assert cells[columns.index("Supplier Due Date")] == "2020-01-31"
        assert cells[columns.index("Supplier Overdue")] == "Yes"
        assert cells[columns.index("Customer Overdue")] == "-"

        xlsx_response = await client.get(
            "/api/v1/database-dashboard/export", headers=user_headers, params={"format": "xlsx"}
        )
        ws = load_workbook(BytesIO(xlsx_response.content)).active
        titles = [cell.value for cell in ws[1]]
        due_col = titles.index("Supplier Due Date") + 1
        assert ws.cell(2, titles.index("Supplier Overdue") + 1).value == "Yes"
        assert ws.cell(2, due_col).font.bold is True

    async def test_unknown_format(self, client: AsyncClient, user_headers: dict):
        response = await client.get(
            "/api/v1/database-dashboard/export", headers=user_headers, params={"format": "pdf"}
        )
        assert response.status_code == 422
