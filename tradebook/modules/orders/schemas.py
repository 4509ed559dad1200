"""Schemas for purchase orders."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import Field

from tradebook.modules.orders.models import OrderType, PurchaseOrderStatus
from tradebook.shared.schemas.base import BaseSchema, LenientDecimal, OptionalLenientDecimal


class PurchaseOrderItemCreate(BaseSchema):
    """Order line as entered by staff or produced by an import parser."""

    serial_no: str | None = Field(None, max_length=50)
    project_no: str | None = Field(None, max_length=100)
    date_po: date | None = None
    part_no: str | None = Field(None, max_length=100)
    material_no: str | None = Field(None, max_length=100)
    description: str | None = None
    uom: str | None = Field(None, max_length=50)
    quantity: LenientDecimal = Decimal("0")
    unit_price: LenientDecimal = Decimal("0")
    lead_time: str | None = Field(None, max_length=100)
    due_date: date | None = None
    penalty_percentage: OptionalLenientDecimal = None
    comments: str | None = None


class PurchaseOrderCreate(BaseSchema):
    """Schema for creating a purchase order. PO number is generated when omitted."""

    po_number: str | None = Field(None, min_length=1, max_length=100)
    order_type: OrderType
    customer_supplier_id: int | None = None
    customer_supplier_name: str | None = Field(None, max_length=300)
    penalty_percentage: OptionalLenientDecimal = None
    linked_customer_po_id: int | None = None
    notes: str | None = None
    items: list[PurchaseOrderItemCreate] = Field(default_factory=list)


class PurchaseOrderUpdate(BaseSchema):
    """Schema for updating a purchase order. `items` replaces all lines when given."""

    po_number: str | None = Field(None, min_length=1, max_length=100)
    customer_supplier_id: int | None = None
    customer_supplier_name: str | None = Field(None, max_length=300)
    penalty_percentage: OptionalLenientDecimal = None
    linked_customer_po_id: int | None = None
    notes: str | None = None
    items: list[PurchaseOrderItemCreate] | None = None
    # Administrative override of the derived status
    status: PurchaseOrderStatus | None = None


class PurchaseOrderItemResponse(BaseSchema):
    id: int
    serial_no: str | None
    project_no: str | None
    date_po: date | None
    part_no: str | None
    material_no: str | None
    description: str | None
    uom: str | None
    quantity: Decimal
    unit_price: Decimal
    total_price: Decimal
    lead_time: str | None
    due_date: date | None
    penalty_percentage: Decimal | None
    penalty_amount: Decimal | None
    invoice_no: str | None
    balance_quantity_undelivered: Decimal | None
    delivered_quantity: Decimal | None
    delivered_unit_price: Decimal | None
    delivered_total_price: Decimal | None
    comments: str | None
    line_order: int


class PurchaseOrderResponse(BaseSchema):
    id: int
    po_number: str
    order_type: str
    customer_supplier_id: int | None
    customer_supplier_name: str | None
    status: str
    total_amount: Decimal
    penalty_percentage: Decimal | None
    linked_customer_po_id: int | None
    notes: str | None
    created_by_id: int | None
    approved_by_id: int | None
    approved_at: datetime | None
    created_at: datetime
    updated_at: datetime
    ordered_quantity: Decimal
    delivered_quantity: Decimal
    items: list[PurchaseOrderItemResponse] = Field(default_factory=list)


class PurchaseOrderFilters(BaseSchema):
    """Filters for listing purchase orders."""

    order_type: OrderType | None = None
    status: PurchaseOrderStatus | None = None
    customer_supplier_id: int | None = None
    search: str | None = None
    page: int = Field(1, ge=1)
    limit: int = Field(50, ge=1, le=100)


class NextPONumberResponse(BaseSchema):
    po_number: str
