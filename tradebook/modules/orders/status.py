"""Order status derivation.

The status of a purchase order is never patched incrementally: it is always
derived from the current ordered and delivered totals, so recomputing it any
number of times gives the same answer.
"""

from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from tradebook.modules.orders.models import PurchaseOrderStatus
from tradebook.shared.utils.money import QTY_TOLERANCE, ZERO, to_decimal


def derive_status(ordered_qty: Any, delivered_qty: Any) -> PurchaseOrderStatus:
    """
    Map (ordered, delivered) quantities to an order status.

    Examples:
        >>> derive_status(10, 0)
        <PurchaseOrderStatus.APPROVED: 'approved'>
        >>> derive_status(10, 4)
        <PurchaseOrderStatus.PARTIALLY_DELIVERED: 'partially_delivered'>
        >>> derive_status(10, "9.995")
        <PurchaseOrderStatus.DELIVERED_COMPLETED: 'delivered_completed'>
    """
    ordered = to_decimal(ordered_qty)
    delivered = to_decimal(delivered_qty)

    if delivered < QTY_TOLERANCE:
        return PurchaseOrderStatus.APPROVED
    if delivered >= ordered - QTY_TOLERANCE:
        return PurchaseOrderStatus.DELIVERED_COMPLETED
    return PurchaseOrderStatus.PARTIALLY_DELIVERED


def order_quantities(items: Iterable[Any]) -> tuple[Decimal, Decimal]:
    """Sum (quantity, delivered_quantity) over order items; missing values count as 0."""
    ordered = ZERO
    delivered = ZERO
    for item in items:
        ordered += to_decimal(item.quantity)
        delivered += to_decimal(item.delivered_quantity)
    return ordered, delivered


def derive_order_status(items: Iterable[Any]) -> PurchaseOrderStatus:
    return derive_status(*order_quantities(items))


def is_balance_settled(balance: Any) -> bool:
    """True when an undelivered balance is zero within tolerance."""
    return abs(to_decimal(balance)) < QTY_TOLERANCE


def combine_side_status(statuses: Iterable[str]) -> PurchaseOrderStatus:
    """
    Status of one side of a catalog item spanning several orders.

    Any partially delivered order makes the side partial; otherwise any completed
    order makes it completed; otherwise it is approved.
    """
    seen = set(statuses)
    if PurchaseOrderStatus.PARTIALLY_DELIVERED.value in seen:
        return PurchaseOrderStatus.PARTIALLY_DELIVERED
    if PurchaseOrderStatus.DELIVERED_COMPLETED.value in seen:
        return PurchaseOrderStatus.DELIVERED_COMPLETED
    return PurchaseOrderStatus.APPROVED
