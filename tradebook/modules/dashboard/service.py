"""Database dashboard: one row per catalog item with supplier and customer sides."""

from datetime import datetime, time, timedelta

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tradebook.modules.dashboard.aggregator import (
    APPROVED_STATUSES,
    ApprovedBlock,
    CombinedRow,
    DeliveredBlock,
    OrderLine,
    aggregate,
    sort_rows,
)
from tradebook.modules.dashboard.schemas import (
    ApprovedBlockResponse,
    CombinedRowResponse,
    DashboardFilters,
    DashboardPagination,
    DashboardResponse,
    DashboardSummary,
    DeliveredBlockResponse,
)
from tradebook.modules.orders.models import PurchaseOrder, PurchaseOrderItem
from tradebook.shared.utils.money import ZERO, round_money


def _round_optional(value):
    return round_money(value) if value is not None else None


def approved_to_response(block: ApprovedBlock | None) -> ApprovedBlockResponse | None:
    if block is None:
        return None
    return ApprovedBlockResponse(
        po_number=block.po_number,
        customer_supplier_name=block.customer_supplier_name,
        status=block.status,
        po_quantity=round_money(block.po_quantity),
        po_unit_price=round_money(block.po_unit_price),
        po_total_price=round_money(block.po_total_price),
        lead_time=block.lead_time,
        due_date=block.due_date,
        balance_quantity_undelivered=round_money(block.balance_quantity_undelivered),
        due_label=block.due_label,
        is_overdue=block.is_overdue,
        order_count=block.order_count,
    )


def delivered_to_response(block: DeliveredBlock | None) -> DeliveredBlockResponse | None:
    if block is None:
        return None
    return DeliveredBlockResponse(
        po_number=block.po_number,
        delivered_quantity=round_money(block.delivered_quantity),
        delivered_unit_price=_round_optional(block.delivered_unit_price),
        delivered_total_price=round_money(block.delivered_total_price),
        penalty_percentage=_round_optional(block.penalty_percentage),
        penalty_amount=_round_optional(block.penalty_amount),
        invoice_no=block.invoice_no,
    )


def row_to_response(row: CombinedRow) -> CombinedRowResponse:
    return CombinedRowResponse(
        **row.key.display(),
        serial_no=row.serial_no,
        date_po=row.date_po,
        supplier_approved=approved_to_response(row.supplier_approved),
        supplier_delivered=delivered_to_response(row.supplier_delivered),
        customer_approved=approved_to_response(row.customer_approved),
        customer_delivered=delivered_to_response(row.customer_delivered),
        error=row.error,
    )


class DashboardService:
    """Reads order lines, aggregates them per catalog item and pages the result."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def load_lines(self, filters: DashboardFilters) -> list[OrderLine]:
        query = (
            select(PurchaseOrderItem, PurchaseOrder)
            .join(PurchaseOrder, PurchaseOrderItem.po_id == PurchaseOrder.id)
            .where(PurchaseOrder.status.in_(APPROVED_STATUSES))
        )

        if filters.search:
            pattern = f"%{filters.search}%"
            query = query.where(
                or_(
                    PurchaseOrderItem.serial_no.ilike(pattern),
                    PurchaseOrderItem.project_no.ilike(pattern),
                    PurchaseOrderItem.part_no.ilike(pattern),
                    PurchaseOrderItem.material_no.ilike(pattern),
                    PurchaseOrderItem.description.ilike(pattern),
                    PurchaseOrder.po_number.ilike(pattern),
                )
            )
        if filters.as_of_date:
            # Order created on/before the date, or the PO line itself dated on/before it
            next_day = datetime.combine(filters.as_of_date + timedelta(days=1), time.min)
            query = query.where(
                or_(
                    PurchaseOrder.created_at < next_day,
                    PurchaseOrderItem.date_po <= filters.as_of_date,
                )
            )

        query = query.order_by(PurchaseOrder.created_at, PurchaseOrder.id, PurchaseOrderItem.id)
        result = await self.db.execute(query)

        return [
            OrderLine(
                item_id=item.id,
                order_id=order.id,
                po_number=order.po_number,
                order_type=order.order_type,
                status=order.status,
                order_created_at=order.created_at,
                customer_supplier_name=order.customer_supplier_name,
                order_penalty_percentage=order.penalty_percentage,
                serial_no=item.serial_no,
                project_no=item.project_no,
                date_po=item.date_po,
                part_no=item.part_no,
                material_no=item.material_no,
                description=item.description,
                uom=item.uom,
                quantity=item.quantity,
                unit_price=item.unit_price,
                lead_time=item.lead_time,
                due_date=item.due_date,
                delivered_quantity=item.delivered_quantity,
                delivered_unit_price=item.delivered_unit_price,
                delivered_total_price=item.delivered_total_price,
                penalty_percentage=item.penalty_percentage,
                penalty_amount=item.penalty_amount,
                invoice_no=item.invoice_no,
            )
            for item, order in result.all()
        ]

    async def get_rows(self, filters: DashboardFilters) -> list[CombinedRow]:
        """All aggregated rows, sorted; `as_of_date` also drives the overdue check."""
        lines = await self.load_lines(filters)
        return sort_rows(aggregate(lines, reference_date=filters.as_of_date))

    async def get_dashboard(self, filters: DashboardFilters) -> DashboardResponse:
        rows = await self.get_rows(filters)
        total = len(rows)
        start = (filters.page - 1) * filters.limit
        page_rows = rows[start : start + filters.limit]

        po_total_quantity = ZERO
        po_total_value = ZERO
        for row in page_rows:
            for block in (row.supplier_approved, row.customer_approved):
                if block is not None:
                    po_total_quantity += block.po_quantity
                    po_total_value += block.po_total_price

        pages = (total + filters.limit - 1) // filters.limit if filters.limit > 0 else 0
        return DashboardResponse(
            rows=[row_to_response(row) for row in page_rows],
            pagination=DashboardPagination(
                page=filters.page, limit=filters.limit, total=total, pages=pages
            ),
            summary=DashboardSummary(
                total_rows=total,
                showing_rows=len(page_rows),
                po_total_quantity=round_money(po_total_quantity),
                po_total_value=round_money(po_total_value),
            ),
        )
