"""Schemas for the database dashboard."""

from datetime import date
from decimal import Decimal

from pydantic import Field

from tradebook.shared.schemas.base import BaseSchema


class DashboardFilters(BaseSchema):
    search: str | None = None
    as_of_date: date | None = None
    page: int = Field(1, ge=1)
    limit: int = Field(100, ge=1, le=500)


class ApprovedBlockResponse(BaseSchema):
    po_number: str
    customer_supplier_name: str | None
    status: str
    po_quantity: Decimal
    po_unit_price: Decimal
    po_total_price: Decimal
    lead_time: str | None
    due_date: date | None
    balance_quantity_undelivered: Decimal
    due_label: str
    is_overdue: bool
    order_count: int


class DeliveredBlockResponse(BaseSchema):
    po_number: str
    delivered_quantity: Decimal
    delivered_unit_price: Decimal | None
    delivered_total_price: Decimal
    penalty_percentage: Decimal | None
    penalty_amount: Decimal | None
    invoice_no: str | None


class CombinedRowResponse(BaseSchema):
    """One catalog item: supplier and customer activity side by side. Missing sides are null."""

    project_no: str | None
    part_no: str | None
    material_no: str | None
    description: str | None
    uom: str | None
    serial_no: str | None
    date_po: date | None
    supplier_approved: ApprovedBlockResponse | None
    supplier_delivered: DeliveredBlockResponse | None
    customer_approved: ApprovedBlockResponse | None
    customer_delivered: DeliveredBlockResponse | None
    error: str | None = None


class DashboardPagination(BaseSchema):
    page: int
    limit: int
    total: int
    pages: int


class DashboardSummary(BaseSchema):
    total_rows: int
    showing_rows: int
    po_total_quantity: Decimal
    po_total_value: Decimal


class DashboardResponse(BaseSchema):
    rows: list[CombinedRowResponse]
    pagination: DashboardPagination
    summary: DashboardSummary
