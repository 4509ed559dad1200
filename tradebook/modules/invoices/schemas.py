"""Schemas for sales and purchase tax invoices."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import Field

from tradebook.modules.invoices.models import PurchaseInvoiceStatus, SalesInvoiceStatus
from tradebook.shared.schemas.base import BaseSchema, LenientDecimal


class InvoiceItemCreate(BaseSchema):
    """Invoice line; counts against one order item (catalog key, else part/material)."""

    serial_no: str | None = Field(None, max_length=50)
    project_no: str | None = Field(None, max_length=100)
    part_no: str | None = Field(None, max_length=100)
    material_no: str | None = Field(None, max_length=100)
    description: str | None = None
    uom: str | None = Field(None, max_length=50)
    quantity: LenientDecimal = Decimal("0")
    unit_price: LenientDecimal = Decimal("0")


class InvoiceItemUpdate(BaseSchema):
    serial_no: str | None = Field(None, max_length=50)
    project_no: str | None = Field(None, max_length=100)
    part_no: str | None = Field(None, max_length=100)
    material_no: str | None = Field(None, max_length=100)
    description: str | None = None
    uom: str | None = Field(None, max_length=50)
    quantity: LenientDecimal | None = None
    unit_price: LenientDecimal | None = None


class InvoiceItemResponse(BaseSchema):
    id: int
    project_no: str | None
    part_no: str | None
    material_no: str | None
    description: str | None
    uom: str | None
    quantity: Decimal
    unit_price: Decimal
    line_total: Decimal
    line_order: int


# --- Sales tax invoices ---


class SalesInvoiceCreate(BaseSchema):
    invoice_number: str | None = Field(None, min_length=1, max_length=50)
    invoice_date: date | None = None
    customer_id: int | None = None
    customer_po_number: str | None = Field(None, max_length=100)
    customer_po_date: date | None = None
    payment_terms: str | None = Field(None, max_length=200)
    contract_number: str | None = Field(None, max_length=100)
    delivery_terms: str | None = Field(None, max_length=200)
    claim_percentage: LenientDecimal = Decimal("100")
    amount_paid: LenientDecimal = Decimal("0")
    status: SalesInvoiceStatus = SalesInvoiceStatus.DRAFT
    notes: str | None = None
    items: list[InvoiceItemCreate] = Field(default_factory=list)


class SalesInvoiceUpdate(BaseSchema):
    invoice_date: date | None = None
    customer_id: int | None = None
    customer_po_number: str | None = Field(None, max_length=100)
    customer_po_date: date | None = None
    payment_terms: str | None = Field(None, max_length=200)
    contract_number: str | None = Field(None, max_length=100)
    delivery_terms: str | None = Field(None, max_length=200)
    claim_percentage: LenientDecimal | None = None
    amount_paid: LenientDecimal | None = None
    status: SalesInvoiceStatus | None = None
    notes: str | None = None


class SalesInvoiceResponse(BaseSchema):
    id: int
    invoice_number: str
    invoice_date: date
    customer_id: int | None
    customer_po_number: str | None
    customer_po_date: date | None
    payment_terms: str | None
    contract_number: str | None
    delivery_terms: str | None
    claim_percentage: Decimal
    subtotal: Decimal
    claim_amount: Decimal
    vat_amount: Decimal
    gross_total: Decimal
    amount_paid: Decimal
    status: str
    notes: str | None
    created_by_id: int | None
    created_at: datetime
    updated_at: datetime
    items: list[InvoiceItemResponse] = Field(default_factory=list)


# --- Purchase tax invoices ---


class PurchaseInvoiceCreate(BaseSchema):
    invoice_number: str | None = Field(None, min_length=1, max_length=50)
    invoice_date: date | None = None
    supplier_id: int | None = None
    po_number: str | None = Field(None, max_length=100)
    project_number: str | None = Field(None, max_length=100)
    claim_percentage: LenientDecimal = Decimal("100")
    amount_paid: LenientDecimal = Decimal("0")
    status: PurchaseInvoiceStatus = PurchaseInvoiceStatus.DRAFT
    notes: str | None = None
    items: list[InvoiceItemCreate] = Field(default_factory=list)


class PurchaseInvoiceUpdate(BaseSchema):
    invoice_date: date | None = None
    supplier_id: int | None = None
    po_number: str | None = Field(None, max_length=100)
    project_number: str | None = Field(None, max_length=100)
    claim_percentage: LenientDecimal | None = None
    amount_paid: LenientDecimal | None = None
    status: PurchaseInvoiceStatus | None = None
    notes: str | None = None


class PurchaseInvoiceResponse(BaseSchema):
    id: int
    invoice_number: str
    invoice_date: date
    supplier_id: int | None
    po_number: str | None
    project_number: str | None
    claim_percentage: Decimal
    subtotal: Decimal
    claim_amount: Decimal
    vat_amount: Decimal
    gross_total: Decimal
    amount_paid: Decimal
    status: str
    notes: str | None
    created_by_id: int | None
    created_at: datetime
    updated_at: datetime
    items: list[InvoiceItemResponse] = Field(default_factory=list)


class InvoiceFilters(BaseSchema):
    po_number: str | None = None
    status: str | None = None
    search: str | None = None
    page: int = Field(1, ge=1)
    limit: int = Field(50, ge=1, le=100)


class InvoiceItemWriteResponse(BaseSchema):
    """Result of an item write: the invoice and the status of the order it touched."""

    invoice_id: int
    item_id: int | None
    linked_order_id: int | None
    linked_order_status: str | None


# --- Order lookups used while entering an invoice ---


class LinkableOrderResponse(BaseSchema):
    id: int
    po_number: str
    customer_supplier_id: int | None
    customer_supplier_name: str | None
    status: str
    created_at: datetime


class LinkedOrderItemResponse(BaseSchema):
    """An order line with how much of it other invoices already cover."""

    id: int
    serial_no: str | None
    project_no: str | None
    part_no: str | None
    material_no: str | None
    description: str | None
    uom: str | None
    quantity: Decimal
    unit_price: Decimal
    already_invoiced_quantity: Decimal
    remaining_quantity: Decimal


class LinkedOrderResponse(BaseSchema):
    order: LinkableOrderResponse
    items: list[LinkedOrderItemResponse]
    # Sum of claim percentages of the other (non-cancelled) invoices on this PO
    total_claim_percentage: Decimal
