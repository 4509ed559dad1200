"""Rebuild an order's delivered figures from its invoices and re-derive its status."""

from dataclasses import dataclass
from decimal import Decimal

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tradebook.core.audit import AuditAction, create_audit_log
from tradebook.core.exceptions import NotFoundError
from tradebook.modules.dashboard.catalog import catalog_key
from tradebook.modules.invoices.models import (
    PurchaseInvoiceStatus,
    PurchaseTaxInvoice,
    PurchaseTaxInvoiceItem,
    SalesInvoiceStatus,
    SalesTaxInvoice,
    SalesTaxInvoiceItem,
)
from tradebook.modules.orders.models import OrderType, PurchaseOrder, PurchaseOrderItem
from tradebook.modules.orders.status import derive_order_status
from tradebook.shared.utils.money import (
    QTY_TOLERANCE,
    ZERO,
    round_money,
    to_decimal,
    to_optional_decimal,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class DeliveryLine:
    """One invoiced line that counts as a delivery against an order."""

    invoice_number: str
    part_no: str | None
    material_no: str | None
    quantity: Decimal
    unit_price: Decimal
    project_no: str | None = None
    description: str | None = None
    uom: str | None = None

    @property
    def match_key(self) -> tuple[str, str]:
        return (self.part_no or "", self.material_no or "")


def item_match_key(item: PurchaseOrderItem) -> tuple[str, str]:
    return (item.part_no or "", item.material_no or "")


def is_compatible(line: DeliveryLine, item: PurchaseOrderItem) -> bool:
    """Same part/material, and project/description/uom agree wherever the line sets them."""
    if line.match_key != item_match_key(item):
        return False
    line_key, item_key = catalog_key(line), catalog_key(item)
    return all(
        not getattr(line_key, field) or getattr(line_key, field) == getattr(item_key, field)
        for field in ("project_no", "description", "uom")
    )


def allocate_lines(
    items: list[PurchaseOrderItem], lines: list[DeliveryLine]
) -> list[list[DeliveryLine]]:
    """
    Hand every invoice line to exactly one order item.

    Items with the same catalog key as the line are preferred over items that
    only share part/material. Among several candidates the first one (in line
    order) still short of its quantity takes the line; when all are filled the
    first candidate takes it, so over-delivery stays visible. Lines matching no
    item are dropped. Returns one list per item, in `items` order.
    """
    allocated: list[list[DeliveryLine]] = [[] for _ in items]
    filled = [ZERO for _ in items]

    for line in lines:
        key = catalog_key(line)
        candidates = [i for i, item in enumerate(items) if catalog_key(item) == key]
        if not candidates:
            candidates = [i for i, item in enumerate(items) if is_compatible(line, item)]
        if not candidates:
            continue
        target = next(
            (
                i
                for i in candidates
                if filled[i] < to_decimal(items[i].quantity) - QTY_TOLERANCE
            ),
            candidates[0],
        )
        allocated[target].append(line)
        filled[target] += to_decimal(line.quantity)

    return allocated


def apply_deliveries(
    item: PurchaseOrderItem,
    lines: list[DeliveryLine],
    order_penalty_percentage: Decimal | None = None,
) -> None:
    """
    Overwrite an order item's delivered fields from its matching invoice lines.

    `lines` must already be filtered to this item and sorted oldest invoice first.
    """
    quantity = to_decimal(item.quantity)

    if not lines:
        item.delivered_quantity = None
        item.delivered_unit_price = None
        item.delivered_total_price = None
        item.penalty_amount = None
        item.invoice_no = None
        item.balance_quantity_undelivered = quantity
        return

    delivered_qty = sum((to_decimal(line.quantity) for line in lines), ZERO)
    unit_price = next(
        (to_decimal(line.unit_price) for line in lines if to_decimal(line.unit_price) != 0),
        ZERO,
    )
    delivered_total = round_money(delivered_qty * unit_price)

    penalty_pct = to_optional_decimal(item.penalty_percentage)
    if penalty_pct is None:
        penalty_pct = to_optional_decimal(order_penalty_percentage)

    item.delivered_quantity = delivered_qty
    item.delivered_unit_price = unit_price
    item.delivered_total_price = delivered_total
    item.penalty_amount = (
        round_money(penalty_pct * delivered_total / 100)
        if penalty_pct is not None and delivered_total > 0
        else None
    )
    item.invoice_no = ", ".join(dict.fromkeys(line.invoice_number for line in lines))
    # Over-delivery shows up as a negative balance
    item.balance_quantity_undelivered = quantity - delivered_qty


class DeliveryReconciler:
    """Keeps purchase order items and status consistent with linked invoices."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load_order(self, order_id: int) -> PurchaseOrder:
        result = await self.db.execute(
            select(PurchaseOrder)
            .where(PurchaseOrder.id == order_id)
            .options(selectinload(PurchaseOrder.items))
            .execution_options(populate_existing=True)
        )
        order = result.scalar_one_or_none()
        if not order:
            raise NotFoundError("Purchase order", order_id)
        return order

    async def delivery_lines(
        self, order: PurchaseOrder, exclude_invoice_id: int | None = None
    ) -> list[DeliveryLine]:
        """Invoice lines (cancelled invoices excluded) linked to the order, oldest first."""
        if order.order_type == OrderType.CUSTOMER.value:
            invoice_model = SalesTaxInvoice
            stmt = (
                select(SalesTaxInvoice.invoice_number, SalesTaxInvoiceItem)
                .join(SalesTaxInvoice, SalesTaxInvoiceItem.invoice_id == SalesTaxInvoice.id)
                .where(
                    SalesTaxInvoice.customer_po_number == order.po_number,
                    SalesTaxInvoice.status != SalesInvoiceStatus.CANCELLED.value,
                )
                .order_by(SalesTaxInvoice.id, SalesTaxInvoiceItem.id)
            )
        else:
            invoice_model = PurchaseTaxInvoice
            stmt = (
                select(PurchaseTaxInvoice.invoice_number, PurchaseTaxInvoiceItem)
                .join(
                    PurchaseTaxInvoice,
                    PurchaseTaxInvoiceItem.invoice_id == PurchaseTaxInvoice.id,
                )
                .where(
                    PurchaseTaxInvoice.po_number == order.po_number,
                    PurchaseTaxInvoice.status != PurchaseInvoiceStatus.CANCELLED.value,
                )
                .order_by(PurchaseTaxInvoice.id, PurchaseTaxInvoiceItem.id)
            )

        if exclude_invoice_id is not None:
            stmt = stmt.where(invoice_model.id != exclude_invoice_id)

        result = await self.db.execute(stmt)
        return [
            DeliveryLine(
                invoice_number=invoice_number,
                part_no=line.part_no,
                material_no=line.material_no,
                quantity=to_decimal(line.quantity),
                unit_price=to_decimal(line.unit_price),
                project_no=line.project_no,
                description=line.description,
                uom=line.uom,
            )
            for invoice_number, line in result.all()
        ]

    async def recompute_order_status(
        self, order_id: int, user_id: int | None = None
    ) -> PurchaseOrder:
        """
        Recompute delivered data for every item of the order, then its status.

        Idempotent: the result depends only on the current order items and invoices.
        A status change (forward or backward) is audited.
        """
        # Session runs with autoflush=False; pending invoice writes must be visible.
        await self.db.flush()

        order = await self._load_order(order_id)
        lines = await self.delivery_lines(order)

        items = list(order.items)
        for item, item_lines in zip(items, allocate_lines(items, lines)):
            apply_deliveries(item, item_lines, order.penalty_percentage)

        new_status = derive_order_status(order.items)
        old_status = order.status
        if new_status.value != old_status:
            order.status = new_status.value
            await create_audit_log(
                session=self.db,
                action=AuditAction.UPDATE_STATUS,
                entity_type="PurchaseOrder",
                entity_id=order.id,
                user_id=user_id,
                entity_identifier=order.po_number,
                old_values={"status": old_status},
                new_values={"status": new_status.value},
            )
            logger.info(
                "purchase_order_status_changed",
                po_number=order.po_number,
                order_type=order.order_type,
                old_status=old_status,
                new_status=new_status.value,
            )

        await self.db.flush()
        return order
