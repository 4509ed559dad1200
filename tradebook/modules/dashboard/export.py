"""Export dashboard rows to CSV and Excel (XLSX)."""

import csv
import io
from decimal import Decimal
from io import BytesIO
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Font

from tradebook.modules.dashboard.aggregator import MISSING
from tradebook.modules.dashboard.schemas import CombinedRowResponse

HEADERS = [
    "Serial No", "Project No", "Date PO", "Part No", "Material No", "Description", "UOM",
    # Supplier approved
    "Supplier PO No", "Supplier", "Supplier Status", "Supplier PO Qty", "Supplier Unit Price",
    "Supplier Total Price", "Supplier Lead Time", "Supplier Due Date", "Supplier Overdue",
    "Supplier Balance",
    # Supplier delivered
    "Supplier Delivered Qty", "Supplier Delivered Unit Price", "Supplier Delivered Total",
    "Supplier Penalty %", "Supplier Penalty Amount", "Supplier Invoice No",
    # Customer approved
    "Customer PO No", "Customer", "Customer Status", "Customer PO Qty", "Customer Unit Price",
    "Customer Total Price", "Customer Lead Time", "Customer Due Date", "Customer Overdue",
    "Customer Balance",
    # Customer delivered
    "Customer Delivered Qty", "Customer Delivered Unit Price", "Customer Delivered Total",
    "Customer Penalty %", "Customer Penalty Amount", "Customer Invoice No",
    "Error",
]

APPROVED_COLUMNS = 10
DELIVERED_COLUMNS = 6


def _approved_cells(block) -> list[Any]:
    if block is None:
        return [None] * APPROVED_COLUMNS
    return [
        block.po_number, block.customer_supplier_name, block.status, block.po_quantity,
        block.po_unit_price, block.po_total_price, block.lead_time, block.due_label,
        "Yes" if block.is_overdue else "No", block.balance_quantity_undelivered,
    ]


def _delivered_cells(block) -> list[Any]:
    if block is None:
        return [None] * DELIVERED_COLUMNS
    return [
        block.delivered_quantity, block.delivered_unit_price, block.delivered_total_price,
        block.penalty_percentage, block.penalty_amount, block.invoice_no,
    ]


def row_cells(row: CombinedRowResponse) -> list[Any]:
    """Flatten one row in HEADERS order; missing values stay None."""
    return [
        row.serial_no, row.project_no, row.date_po, row.part_no, row.material_no,
        row.description, row.uom,
        *_approved_cells(row.supplier_approved),
        *_delivered_cells(row.supplier_delivered),
        *_approved_cells(row.customer_approved),
        *_delivered_cells(row.customer_delivered),
        row.error,
    ]


def _cell_value(v: Any) -> Any:
    """Convert value for Excel (Decimal -> float, missing -> "-")."""
    if v is None or v == "":
        return MISSING
    if isinstance(v, Decimal):
        return float(v)
    return v


def _text_value(v: Any) -> str:
    if v is None or v == "":
        return MISSING
    if isinstance(v, Decimal):
        return f"{v:.2f}"
    if hasattr(v, "isoformat"):
        return v.isoformat()
    return str(v)


def _write_table(ws: Any, rows: list[list[Any]], start_row: int = 1) -> None:
    """Write list of rows to sheet starting at start_row."""
    for i, row in enumerate(rows, start=start_row):
        for j, val in enumerate(row, start=1):
            ws.cell(row=i, column=j, value=_cell_value(val))


def export_dashboard_csv(rows: list[CombinedRowResponse]) -> bytes:
    """UTF-8 CSV with BOM so Excel picks up the encoding."""
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(HEADERS)
    for row in rows:
        writer.writerow([_text_value(v) for v in row_cells(row)])
    return ("\ufeff" + buf.getvalue()).encode("utf-8")


def export_dashboard_xlsx(rows: list[CombinedRowResponse]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Database Dashboard"
    _write_table(ws, [HEADERS], 1)
    for c in range(1, len(HEADERS) + 1):
        ws.cell(1, c).font = Font(bold=True)
    _write_table(ws, [row_cells(row) for row in rows], 2)
    overdue_font = Font(color="C00000", bold=True)
    for side in ("Supplier", "Customer"):
        flag_col = HEADERS.index(f"{side} Overdue") + 1
        due_col = HEADERS.index(f"{side} Due Date") + 1
        for r in range(2, len(rows) + 2):
            if ws.cell(r, flag_col).value == "Yes":
                ws.cell(r, due_col).font = overdue_font
    ws.freeze_panes = "A2"
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()
