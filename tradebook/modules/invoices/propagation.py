"""Invoice item change -> linked purchase order recompute.

Called by the invoice services after every item insert, update or delete,
inside the same session and before commit, so the order status is committed
atomically with the invoice change.
"""

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tradebook.modules.invoices.models import PurchaseTaxInvoice, SalesTaxInvoice
from tradebook.modules.orders.models import OrderType, PurchaseOrder
from tradebook.modules.orders.reconciliation import DeliveryReconciler

logger = structlog.get_logger()


async def resolve_linked_order(
    db: AsyncSession, order_type: OrderType, po_number: str | None
) -> PurchaseOrder | None:
    """Find the order of the given side whose po_number equals the invoice's reference."""
    if not po_number:
        return None
    result = await db.execute(
        select(PurchaseOrder).where(
            PurchaseOrder.po_number == po_number,
            PurchaseOrder.order_type == order_type.value,
        )
    )
    return result.scalar_one_or_none()


async def propagate_to_order(
    db: AsyncSession,
    order_type: OrderType,
    po_number: str | None,
    user_id: int | None = None,
) -> PurchaseOrder | None:
    """Recompute the linked order, or do nothing when the invoice is not linked to one."""
    order = await resolve_linked_order(db, order_type, po_number)
    if order is None:
        logger.debug(
            "invoice_propagation_skipped",
            order_type=order_type.value,
            po_number=po_number,
        )
        return None
    return await DeliveryReconciler(db).recompute_order_status(order.id, user_id)


async def propagate_sales_invoice_item_change(
    db: AsyncSession, invoice_id: int, user_id: int | None = None
) -> PurchaseOrder | None:
    po_number = await db.scalar(
        select(SalesTaxInvoice.customer_po_number).where(SalesTaxInvoice.id == invoice_id)
    )
    return await propagate_to_order(db, OrderType.CUSTOMER, po_number, user_id)


async def propagate_purchase_invoice_item_change(
    db: AsyncSession, invoice_id: int, user_id: int | None = None
) -> PurchaseOrder | None:
    po_number = await db.scalar(
        select(PurchaseTaxInvoice.po_number).where(PurchaseTaxInvoice.id == invoice_id)
    )
    return await propagate_to_order(db, OrderType.SUPPLIER, po_number, user_id)
