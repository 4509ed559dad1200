"""Dual-side aggregation of order lines into one reporting row per catalog item.

Pure functions over plain records: no database access, so the rules can be
tested directly. All arithmetic stays in unrounded Decimal; rounding to two
places happens when a row is serialized.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any

import structlog

from tradebook.modules.dashboard.catalog import CatalogKey, catalog_key
from tradebook.modules.orders.models import OrderType, PurchaseOrderStatus
from tradebook.modules.orders.status import combine_side_status, is_balance_settled
from tradebook.shared.utils.money import ZERO, to_decimal, to_optional_decimal

logger = structlog.get_logger()

APPROVED_STATUSES = frozenset(
    {
        PurchaseOrderStatus.APPROVED.value,
        PurchaseOrderStatus.PARTIALLY_DELIVERED.value,
        PurchaseOrderStatus.DELIVERED_COMPLETED.value,
    }
)
# Subset of APPROVED_STATUSES: delivered lines are counted on both views.
DELIVERED_STATUSES = frozenset(
    {
        PurchaseOrderStatus.PARTIALLY_DELIVERED.value,
        PurchaseOrderStatus.DELIVERED_COMPLETED.value,
    }
)

COMPLETED_LABEL = "Completed"
MISSING = "-"


@dataclass
class OrderLine:
    """An order item joined with the fields of its parent order."""

    item_id: int | None = None
    order_id: int | None = None
    po_number: str | None = None
    order_type: str | None = None
    status: str | None = None
    order_created_at: datetime | None = None
    customer_supplier_name: str | None = None
    order_penalty_percentage: Any = None

    serial_no: str | None = None
    project_no: str | None = None
    date_po: date | None = None
    part_no: str | None = None
    material_no: str | None = None
    description: str | None = None
    uom: str | None = None

    quantity: Any = None
    unit_price: Any = None
    lead_time: str | None = None
    due_date: date | None = None

    delivered_quantity: Any = None
    delivered_unit_price: Any = None
    delivered_total_price: Any = None
    penalty_percentage: Any = None
    penalty_amount: Any = None
    invoice_no: str | None = None


@dataclass
class ApprovedBlock:
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


@dataclass
class DeliveredBlock:
    po_number: str
    delivered_quantity: Decimal
    delivered_unit_price: Decimal | None
    delivered_total_price: Decimal
    penalty_percentage: Decimal | None
    penalty_amount: Decimal | None
    invoice_no: str | None


@dataclass
class CombinedRow:
    key: CatalogKey
    serial_no: str | None = None
    date_po: date | None = None
    first_created_at: datetime | None = None
    supplier_approved: ApprovedBlock | None = None
    supplier_delivered: DeliveredBlock | None = None
    customer_approved: ApprovedBlock | None = None
    customer_delivered: DeliveredBlock | None = None
    error: str | None = None
    line_count: int = field(default=0)


def is_orphan(line: OrderLine) -> bool:
    """A line whose parent order could not be resolved."""
    return (
        line.order_id is None
        or line.order_type not in (OrderType.CUSTOMER.value, OrderType.SUPPLIER.value)
        or line.status is None
    )


def first_order_key(line: OrderLine) -> tuple:
    """'First' line: earliest order creation, then lowest order id, then lowest item id."""
    created = line.order_created_at
    return (
        created is None,
        created,
        line.order_id if line.order_id is not None else 0,
        line.item_id if line.item_id is not None else 0,
    )


def join_distinct(values: Iterable[str | None]) -> str:
    """Comma-join non-empty values, first occurrence order, no repeats."""
    return ", ".join(dict.fromkeys(v for v in values if v))


def due_date_label(
    due_date: date | None,
    side_status: str,
    balance: Decimal,
    reference_date: date,
) -> tuple[str, bool]:
    """
    Text for the due-date cell and whether it is overdue.

    "Completed" only when the side is delivered_completed and nothing is left
    undelivered; a completed status with a leftover balance keeps showing the
    due date so the inconsistency stays visible.
    """
    if side_status == PurchaseOrderStatus.DELIVERED_COMPLETED.value and is_balance_settled(
        balance
    ):
        return COMPLETED_LABEL, False
    if due_date is None:
        return MISSING, False
    return due_date.isoformat(), due_date < reference_date


def build_delivered_block(lines: list[OrderLine]) -> DeliveredBlock:
    """`lines` are the delivered partition of one side, already in first-order."""
    first = lines[0]
    delivered_qty = sum((to_decimal(line.delivered_quantity) for line in lines), ZERO)
    delivered_total = sum((to_decimal(line.delivered_total_price) for line in lines), ZERO)

    # Order-level penalty wins over the item-level one
    penalty_pct = next(
        (
            pct
            for pct in (to_optional_decimal(line.order_penalty_percentage) for line in lines)
            if pct is not None
        ),
        None,
    )
    if penalty_pct is None:
        penalty_pct = next(
            (
                pct
                for pct in (to_optional_decimal(line.penalty_percentage) for line in lines)
                if pct is not None
            ),
            None,
        )

    amounts = [
        amount
        for amount in (to_optional_decimal(line.penalty_amount) for line in lines)
        if amount is not None
    ]

    invoice_numbers = (
        part.strip() for line in lines for part in (line.invoice_no or "").split(",")
    )

    return DeliveredBlock(
        po_number=join_distinct(line.po_number for line in lines),
        delivered_quantity=delivered_qty,
        delivered_unit_price=to_optional_decimal(first.delivered_unit_price),
        delivered_total_price=delivered_total,
        penalty_percentage=penalty_pct,
        penalty_amount=sum(amounts, ZERO) if amounts else None,
        invoice_no=join_distinct(invoice_numbers) or None,
    )


def build_side(
    lines: list[OrderLine], reference_date: date
) -> tuple[ApprovedBlock | None, DeliveredBlock | None]:
    """
    Approved and delivered blocks for one side (customer or supplier) of a catalog item.

    A side with no lines gives (None, None); a side with no delivered orders
    gives a None delivered block. Nothing is zero-filled.
    """
    approved = sorted(
        (line for line in lines if line.status in APPROVED_STATUSES), key=first_order_key
    )
    if not approved:
        return None, None
    delivered = [line for line in approved if line.status in DELIVERED_STATUSES]

    first = approved[0]
    side_status = combine_side_status(line.status for line in approved).value
    po_quantity = sum((to_decimal(line.quantity) for line in approved), ZERO)
    po_unit_price = to_decimal(first.unit_price)

    delivered_block = build_delivered_block(delivered) if delivered else None
    delivered_qty = delivered_block.delivered_quantity if delivered_block else ZERO
    # Never clamped: negative means over-delivery
    balance = po_quantity - delivered_qty

    label, overdue = due_date_label(first.due_date, side_status, balance, reference_date)

    approved_block = ApprovedBlock(
        po_number=join_distinct(line.po_number for line in approved),
        customer_supplier_name=first.customer_supplier_name,
        status=side_status,
        po_quantity=po_quantity,
        po_unit_price=po_unit_price,
        po_total_price=po_quantity * po_unit_price,
        lead_time=first.lead_time,
        due_date=first.due_date,
        balance_quantity_undelivered=balance,
        due_label=label,
        is_overdue=overdue,
        order_count=len({line.order_id for line in approved}),
    )
    return approved_block, delivered_block


def build_row(key: CatalogKey, lines: list[OrderLine], reference_date: date) -> CombinedRow:
    ordered = sorted(lines, key=first_order_key)
    first = ordered[0]
    supplier_lines = [line for line in ordered if line.order_type == OrderType.SUPPLIER.value]
    customer_lines = [line for line in ordered if line.order_type == OrderType.CUSTOMER.value]

    supplier_approved, supplier_delivered = build_side(supplier_lines, reference_date)
    customer_approved, customer_delivered = build_side(customer_lines, reference_date)

    return CombinedRow(
        key=key,
        serial_no=first.serial_no,
        date_po=first.date_po,
        first_created_at=first.order_created_at,
        supplier_approved=supplier_approved,
        supplier_delivered=supplier_delivered,
        customer_approved=customer_approved,
        customer_delivered=customer_delivered,
        line_count=len(ordered),
    )


def aggregate(
    lines: Iterable[OrderLine], reference_date: date | None = None
) -> list[CombinedRow]:
    """
    Group lines by catalog key and build one CombinedRow per key.

    Orphaned lines are skipped. A group that fails to compute yields a row
    carrying only its catalog fields and the error; other rows are unaffected.
    """
    reference_date = reference_date or date.today()

    groups: dict[CatalogKey, list[OrderLine]] = {}
    for line in lines:
        if is_orphan(line):
            logger.debug("orphaned_order_item_skipped", item_id=line.item_id, order_id=line.order_id)
            continue
        groups.setdefault(catalog_key(line), []).append(line)

    rows: list[CombinedRow] = []
    for key, group in groups.items():
        try:
            rows.append(build_row(key, group, reference_date))
        except (ArithmeticError, TypeError, ValueError) as exc:
            logger.warning(
                "dashboard_row_degraded",
                catalog_key=key._asdict(),
                error=str(exc),
            )
            first = min(group, key=lambda line: line.item_id or 0)
            rows.append(
                CombinedRow(
                    key=key,
                    serial_no=first.serial_no,
                    date_po=first.date_po,
                    first_created_at=first.order_created_at,
                    error=f"Could not aggregate this item: {exc}",
                    line_count=len(group),
                )
            )
    return rows


def sort_rows(rows: list[CombinedRow]) -> list[CombinedRow]:
    """Newest first (by the row's earliest order), then serial number ascending."""
    rows = sorted(rows, key=lambda row: row.serial_no or "")
    return sorted(
        rows,
        key=lambda row: (row.first_created_at is not None, row.first_created_at),
        reverse=True,
    )
