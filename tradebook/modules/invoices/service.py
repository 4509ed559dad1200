"""Service layer for sales and purchase tax invoices.

Every item insert, update and delete runs the status propagation trigger for
the linked purchase order before the service commits.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Awaitable, Callable

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tradebook.core.audit import AuditAction, audit_value, create_audit_log
from tradebook.core.config import settings
from tradebook.core.documents import DocumentNumberGenerator, DocumentPrefix
from tradebook.core.exceptions import DuplicateError, NotFoundError
from tradebook.modules.invoices.models import (
    PurchaseInvoiceStatus,
    PurchaseTaxInvoice,
    PurchaseTaxInvoiceItem,
    SalesInvoiceStatus,
    SalesTaxInvoice,
    SalesTaxInvoiceItem,
)
from tradebook.modules.invoices.propagation import (
    propagate_purchase_invoice_item_change,
    propagate_sales_invoice_item_change,
    propagate_to_order,
)
from tradebook.modules.invoices.schemas import (
    InvoiceFilters,
    InvoiceItemCreate,
    InvoiceItemUpdate,
    LinkableOrderResponse,
    LinkedOrderItemResponse,
    LinkedOrderResponse,
    PurchaseInvoiceCreate,
    PurchaseInvoiceUpdate,
    SalesInvoiceCreate,
    SalesInvoiceUpdate,
)
from tradebook.modules.orders.models import OrderType, PurchaseOrder, PurchaseOrderStatus
from tradebook.modules.orders.reconciliation import DeliveryReconciler, allocate_lines
from tradebook.shared.utils.money import ZERO, round_money, to_decimal

logger = structlog.get_logger()


class TaxInvoiceService:
    """
    Shared behaviour of sales and purchase invoice services.

    Subclasses name the models, the column that links an invoice to a purchase
    order, and the order side that column refers to.
    """

    invoice_model: Any
    item_model: Any
    line_total_field: str
    link_field: str
    order_type: OrderType
    number_prefix: str
    entity_type: str
    # Statuses of orders that can still be invoiced against
    linkable_statuses: tuple[str, ...]
    cancelled_status: str
    item_change_trigger: Callable[..., Awaitable[PurchaseOrder | None]]

    def __init__(self, db: AsyncSession):
        self.db = db

    async def propagate(self, invoice_id: int, user_id: int | None) -> PurchaseOrder | None:
        return await self.item_change_trigger(self.db, invoice_id, user_id)

    # --- reads ---

    async def get_invoice_by_id(self, invoice_id: int):
        model = self.invoice_model
        result = await self.db.execute(
            select(model)
            .where(model.id == invoice_id)
            .options(selectinload(model.items))
            .execution_options(populate_existing=True)
        )
        invoice = result.scalar_one_or_none()
        if not invoice:
            raise NotFoundError(self.entity_type, invoice_id)
        return invoice

    async def list_invoices(self, filters: InvoiceFilters) -> tuple[list, int]:
        model = self.invoice_model
        link_column = getattr(model, self.link_field)
        query = select(model).options(selectinload(model.items))

        if filters.po_number:
            query = query.where(link_column == filters.po_number)
        if filters.status:
            query = query.where(model.status == filters.status)
        if filters.search:
            pattern = f"%{filters.search}%"
            query = query.where(
                or_(model.invoice_number.ilike(pattern), link_column.ilike(pattern))
            )

        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))
        query = query.order_by(model.invoice_date.desc(), model.id.desc())
        query = query.offset((filters.page - 1) * filters.limit).limit(filters.limit)

        result = await self.db.execute(query)
        return list(result.scalars().all()), total or 0

    # --- order lookups ---

    async def linkable_orders(self, party_id: int | None = None) -> list[PurchaseOrder]:
        """Orders of this side that invoices can be raised against, newest first."""
        query = select(PurchaseOrder).where(
            PurchaseOrder.order_type == self.order_type.value,
            PurchaseOrder.status.in_(self.linkable_statuses),
        )
        if party_id is not None:
            query = query.where(PurchaseOrder.customer_supplier_id == party_id)
        query = query.order_by(PurchaseOrder.created_at.desc(), PurchaseOrder.id.desc())
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def linked_order_items(
        self, po_number: str, exclude_invoice_id: int | None = None
    ) -> LinkedOrderResponse:
        """
        The order an invoice with this PO reference links to, with what is left to invoice.

        Invoiced quantities come from the same line allocation the reconciler
        uses, so an invoice line counts against one order item only. Pass
        `exclude_invoice_id` when editing an invoice to leave its own lines out.
        Remaining quantity is clamped at 0.
        """
        result = await self.db.execute(
            select(PurchaseOrder)
            .where(
                PurchaseOrder.po_number == po_number,
                PurchaseOrder.order_type == self.order_type.value,
            )
            .options(selectinload(PurchaseOrder.items))
        )
        order = result.scalar_one_or_none()
        if not order:
            raise NotFoundError("Purchase order", po_number, field="po_number")

        lines = await DeliveryReconciler(self.db).delivery_lines(order, exclude_invoice_id)
        items = list(order.items)
        item_responses = []
        for item, item_lines in zip(items, allocate_lines(items, lines)):
            quantity = to_decimal(item.quantity)
            invoiced = sum((line.quantity for line in item_lines), ZERO)
            item_responses.append(
                LinkedOrderItemResponse(
                    id=item.id,
                    serial_no=item.serial_no,
                    project_no=item.project_no,
                    part_no=item.part_no,
                    material_no=item.material_no,
                    description=item.description,
                    uom=item.uom,
                    quantity=quantity,
                    unit_price=to_decimal(item.unit_price),
                    already_invoiced_quantity=invoiced,
                    remaining_quantity=max(ZERO, quantity - invoiced),
                )
            )

        model = self.invoice_model
        claim_query = select(func.coalesce(func.sum(model.claim_percentage), 0)).where(
            getattr(model, self.link_field) == po_number,
            model.status != self.cancelled_status,
        )
        if exclude_invoice_id is not None:
            claim_query = claim_query.where(model.id != exclude_invoice_id)
        total_claim = to_decimal(await self.db.scalar(claim_query))

        return LinkedOrderResponse(
            order=LinkableOrderResponse.model_validate(order),
            items=item_responses,
            total_claim_percentage=total_claim,
        )

    # --- invoice writes ---

    async def create_invoice(self, data, created_by_id: int | None = None):
        """Create the invoice, then add its items one by one (one propagation per item)."""
        if data.invoice_number:
            await self._ensure_number_free(data.invoice_number)
            invoice_number = data.invoice_number
        else:
            invoice_number = await DocumentNumberGenerator(self.db).generate(self.number_prefix)

        header = data.model_dump(exclude={"items", "invoice_number"})
        header["invoice_date"] = header["invoice_date"] or date.today()
        header["status"] = str(header["status"])
        invoice = self.invoice_model(
            invoice_number=invoice_number, created_by_id=created_by_id, **header
        )
        self.db.add(invoice)
        await self.db.flush()

        for index, item_data in enumerate(data.items, start=1):
            self.db.add(self._build_item(invoice.id, item_data, index))
            await self.db.flush()
            await self.propagate(invoice.id, created_by_id)

        await self._recalculate_totals(invoice.id)
        await create_audit_log(
            session=self.db,
            action=AuditAction.CREATE,
            entity_type=self.entity_type,
            entity_id=invoice.id,
            user_id=created_by_id,
            entity_identifier=invoice_number,
            new_values={self.link_field: getattr(invoice, self.link_field), "items": len(data.items)},
        )
        await self.db.commit()
        logger.info(
            "tax_invoice_created",
            entity_type=self.entity_type,
            invoice_number=invoice_number,
            po_number=getattr(invoice, self.link_field),
        )
        return await self.get_invoice_by_id(invoice.id)

    async def update_invoice(self, invoice_id: int, data, updated_by_id: int | None = None):
        """
        Update header fields.

        When the PO reference changes, both the previously linked order and the
        newly linked one are recomputed. A status change (e.g. cancellation)
        recomputes the linked order.
        """
        invoice = await self.get_invoice_by_id(invoice_id)
        old_link = getattr(invoice, self.link_field)
        old_status = invoice.status

        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("status") is not None:
            update_data["status"] = str(update_data["status"])
        old_values = {field: audit_value(getattr(invoice, field)) for field in update_data}
        for field, value in update_data.items():
            setattr(invoice, field, value)
        await self.db.flush()

        await self._recalculate_totals(invoice.id)

        new_link = getattr(invoice, self.link_field)
        if new_link != old_link:
            await propagate_to_order(self.db, self.order_type, old_link, updated_by_id)
            await self.propagate(invoice.id, updated_by_id)
        elif invoice.status != old_status:
            await self.propagate(invoice.id, updated_by_id)

        await create_audit_log(
            session=self.db,
            action=AuditAction.UPDATE,
            entity_type=self.entity_type,
            entity_id=invoice.id,
            user_id=updated_by_id,
            entity_identifier=invoice.invoice_number,
            old_values=old_values or None,
            new_values={field: audit_value(value) for field, value in update_data.items()} or None,
        )
        await self.db.commit()
        return await self.get_invoice_by_id(invoice_id)

    async def delete_invoice(self, invoice_id: int, deleted_by_id: int | None = None) -> None:
        """Delete the invoice and its items; the linked order is recomputed per removed item."""
        invoice = await self.get_invoice_by_id(invoice_id)
        link = getattr(invoice, self.link_field)
        removed_items = len(invoice.items)

        await create_audit_log(
            session=self.db,
            action=AuditAction.DELETE,
            entity_type=self.entity_type,
            entity_id=invoice.id,
            user_id=deleted_by_id,
            entity_identifier=invoice.invoice_number,
            old_values={self.link_field: link, "items": removed_items},
        )
        await self.db.delete(invoice)
        await self.db.flush()

        for _ in range(removed_items):
            await propagate_to_order(self.db, self.order_type, link, deleted_by_id)

        await self.db.commit()

    # --- item writes ---

    async def add_item(
        self, invoice_id: int, data: InvoiceItemCreate, user_id: int | None = None
    ) -> tuple[Any, PurchaseOrder | None]:
        invoice = await self.get_invoice_by_id(invoice_id)
        line_order = max((item.line_order for item in invoice.items), default=0) + 1
        item = self._build_item(invoice.id, data, line_order)
        self.db.add(item)
        await self.db.flush()

        await self._recalculate_totals(invoice.id)
        order = await self.propagate(invoice.id, user_id)
        await self.db.commit()
        return item, order

    async def update_item(
        self, invoice_id: int, item_id: int, data: InvoiceItemUpdate, user_id: int | None = None
    ) -> tuple[Any, PurchaseOrder | None]:
        item = await self._get_item(invoice_id, item_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if hasattr(item, field):
                setattr(item, field, value)
        item.quantity = to_decimal(item.quantity)
        item.unit_price = to_decimal(item.unit_price)
        setattr(item, self.line_total_field, round_money(item.quantity * item.unit_price))
        await self.db.flush()

        await self._recalculate_totals(invoice_id)
        order = await self.propagate(invoice_id, user_id)
        await self.db.commit()
        return item, order

    async def delete_item(
        self, invoice_id: int, item_id: int, user_id: int | None = None
    ) -> PurchaseOrder | None:
        item = await self._get_item(invoice_id, item_id)
        await self.db.delete(item)
        await self.db.flush()

        await self._recalculate_totals(invoice_id)
        order = await self.propagate(invoice_id, user_id)
        await self.db.commit()
        return order

    # --- helpers ---

    def _build_item(self, invoice_id: int, data: InvoiceItemCreate, line_order: int):
        fields = {
            key: value
            for key, value in data.model_dump().items()
            if hasattr(self.item_model, key)
        }
        quantity = to_decimal(fields.pop("quantity", None))
        unit_price = to_decimal(fields.pop("unit_price", None))
        item = self.item_model(
            invoice_id=invoice_id,
            quantity=quantity,
            unit_price=unit_price,
            line_order=line_order,
            **fields,
        )
        setattr(item, self.line_total_field, round_money(quantity * unit_price))
        return item

    async def _get_item(self, invoice_id: int, item_id: int):
        model = self.item_model
        item = await self.db.scalar(
            select(model).where(model.id == item_id, model.invoice_id == invoice_id)
        )
        if not item:
            raise NotFoundError(f"{self.entity_type} item", item_id)
        return item

    async def _ensure_number_free(self, invoice_number: str) -> None:
        model = self.invoice_model
        existing = await self.db.scalar(
            select(model.id).where(model.invoice_number == invoice_number)
        )
        if existing is not None:
            raise DuplicateError(self.entity_type, "invoice_number", invoice_number)

    async def _recalculate_totals(self, invoice_id: int) -> None:
        """Subtotal from items; VAT on the claimed share of it."""
        await self.db.flush()
        invoice = await self.get_invoice_by_id(invoice_id)

        subtotal = sum(
            (to_decimal(getattr(item, self.line_total_field)) for item in invoice.items), ZERO
        )
        claim_pct = to_decimal(invoice.claim_percentage)
        claim_amount = round_money(subtotal * claim_pct / Decimal("100"))
        vat_amount = round_money(claim_amount * settings.vat_rate)

        invoice.subtotal = round_money(subtotal)
        invoice.claim_amount = claim_amount
        invoice.vat_amount = vat_amount
        invoice.gross_total = claim_amount + vat_amount
        await self.db.flush()


class SalesInvoiceService(TaxInvoiceService):
    """Sales tax invoices; linked to customer orders via customer_po_number."""

    invoice_model = SalesTaxInvoice
    item_model = SalesTaxInvoiceItem
    line_total_field = "total_amount"
    link_field = "customer_po_number"
    order_type = OrderType.CUSTOMER
    number_prefix = DocumentPrefix.SALES_INVOICE
    entity_type = "SalesTaxInvoice"

    linkable_statuses = (
        PurchaseOrderStatus.APPROVED.value,
        PurchaseOrderStatus.PARTIALLY_DELIVERED.value,
    )
    cancelled_status = SalesInvoiceStatus.CANCELLED.value
    item_change_trigger = staticmethod(propagate_sales_invoice_item_change)

    async def create_invoice(
        self, data: SalesInvoiceCreate, created_by_id: int | None = None
    ) -> SalesTaxInvoice:
        return await super().create_invoice(data, created_by_id)

    async def update_invoice(
        self, invoice_id: int, data: SalesInvoiceUpdate, updated_by_id: int | None = None
    ) -> SalesTaxInvoice:
        return await super().update_invoice(invoice_id, data, updated_by_id)


class PurchaseInvoiceService(TaxInvoiceService):
    """Purchase tax invoices; linked to supplier orders via po_number."""

    invoice_model = PurchaseTaxInvoice
    item_model = PurchaseTaxInvoiceItem
    line_total_field = "total_price"
    link_field = "po_number"
    order_type = OrderType.SUPPLIER
    number_prefix = DocumentPrefix.PURCHASE_INVOICE
    entity_type = "PurchaseTaxInvoice"

    linkable_statuses = tuple(status.value for status in PurchaseOrderStatus)
    cancelled_status = PurchaseInvoiceStatus.CANCELLED.value
    item_change_trigger = staticmethod(propagate_purchase_invoice_item_change)

    async def create_invoice(
        self, data: PurchaseInvoiceCreate, created_by_id: int | None = None
    ) -> PurchaseTaxInvoice:
        return await super().create_invoice(data, created_by_id)

    async def update_invoice(
        self, invoice_id: int, data: PurchaseInvoiceUpdate, updated_by_id: int | None = None
    ) -> PurchaseTaxInvoice:
        return await super().update_invoice(invoice_id, data, updated_by_id)
