from decimal import Decimal
from types import SimpleNamespace

from tradebook.modules.orders.models import PurchaseOrderItem, PurchaseOrderStatus
from tradebook.modules.orders.reconciliation import DeliveryLine, allocate_lines, apply_deliveries
from tradebook.modules.orders.status import (
    combine_side_status,
    derive_order_status,
    derive_status,
    is_balance_settled,
)


def _line(
    invoice_number: str, quantity: str, unit_price: str = "10", **fields
) -> DeliveryLine:
    return DeliveryLine(
        invoice_number=invoice_number,
        part_no=fields.pop("part_no", "P-1"),
        material_no="M-1",
        quantity=Decimal(quantity),
        unit_price=Decimal(unit_price),
        **fields,
    )


class TestDeriveStatus:
    def test_nothing_delivered_is_approved(self):
        assert derive_status(10, 0) == PurchaseOrderStatus.APPROVED
        assert derive_status(10, "0.005") == PurchaseOrderStatus.APPROVED

    def test_partial_delivery(self):
        assert derive_status(10, 4) == PurchaseOrderStatus.PARTIALLY_DELIVERED
        assert derive_status(10, "9.98") == PurchaseOrderStatus.PARTIALLY_DELIVERED

    def test_complete_within_tolerance(self):
        assert derive_status(10, 10) == PurchaseOrderStatus.DELIVERED_COMPLETED
        assert derive_status(10, "9.995") == PurchaseOrderStatus.DELIVERED_COMPLETED

    def test_over_delivery_is_complete(self):
        assert derive_status(10, 12) == PurchaseOrderStatus.DELIVERED_COMPLETED

    def test_zero_ordered_with_delivery_is_complete(self):
        assert derive_status(0, 1) == PurchaseOrderStatus.DELIVERED_COMPLETED

    def test_malformed_quantities_count_as_zero(self):
        assert derive_status("ten", None) == PurchaseOrderStatus.APPROVED

    def test_order_status_sums_items(self):
        items = [
            SimpleNamespace(quantity=Decimal("5"), delivered_quantity=Decimal("5")),
            SimpleNamespace(quantity=Decimal("5"), delivered_quantity=None),
        ]
        assert derive_order_status(items) == PurchaseOrderStatus.PARTIALLY_DELIVERED

    def test_balance_settled(self):
        assert is_balance_settled(Decimal("0.005"))
        assert is_balance_settled(Decimal("-0.005"))
        assert not is_balance_settled(Decimal("0.5"))

    def test_combine_side_status(self):
        assert combine_side_status(["approved", "delivered_completed"]) == (
            PurchaseOrderStatus.DELIVERED_COMPLETED
        )
        assert combine_side_status(["delivered_completed", "partially_delivered"]) == (
            PurchaseOrderStatus.PARTIALLY_DELIVERED
        )
        assert combine_side_status(["approved"]) == PurchaseOrderStatus.APPROVED


class TestApplyDeliveries:
    def _item(self, **kwargs) -> PurchaseOrderItem:
        defaults = {"part_no": "P-1", "material_no": "M-1", "quantity": Decimal("10")}
        defaults.update(kwargs)
        return PurchaseOrderItem(**defaults)

    def test_no_lines_resets_delivered_fields(self):
        item = self._item(delivered_quantity=Decimal("3"), invoice_no="SINV-1")

        apply_deliveries(item, [])

        assert item.delivered_quantity is None
        assert item.invoice_no is None
        assert item.balance_quantity_undelivered == Decimal("10")

    def test_sums_quantities_and_joins_invoice_numbers(self):
        item = self._item()

        apply_deliveries(
            item, [_line("INV-1", "4"), _line("INV-2", "3"), _line("INV-1", "1")]
        )

        assert item.delivered_quantity == Decimal("8")
        assert item.delivered_unit_price == Decimal("10")
        assert item.delivered_total_price == Decimal("80.00")
        assert item.invoice_no == "INV-1, INV-2"
        assert item.balance_quantity_undelivered == Decimal("2")

    def test_unit_price_is_first_non_zero(self):
        item = self._item()

        apply_deliveries(item, [_line("INV-1", "2", "0"), _line("INV-2", "2", "12.5")])

        assert item.delivered_unit_price == Decimal("12.5")
        assert item.delivered_total_price == Decimal("50.00")

    def test_penalty_from_item_then_order(self):
        item = self._item()
        apply_deliveries(item, [_line("INV-1", "10")], order_penalty_percentage=Decimal("5"))
        assert item.penalty_amount == Decimal("5.00")

        item = self._item(penalty_percentage=Decimal("2"))
        apply_deliveries(item, [_line("INV-1", "10")], order_penalty_percentage=Decimal("5"))
        assert item.penalty_amount == Decimal("2.00")

    def test_over_delivery_gives_negative_balance(self):
        item = self._item()

        apply_deliveries(item, [_line("INV-1", "12")])

        assert item.balance_quantity_undelivered == Decimal("-2")


class TestAllocateLines:
    def _item(self, project_no: str, quantity: str = "10", **kwargs) -> PurchaseOrderItem:
        return PurchaseOrderItem(
            project_no=project_no,
            part_no=kwargs.pop("part_no", "P-1"),
            material_no="M-1",
            description="Gate valve",
            uom="EA",
            quantity=Decimal(quantity),
            **kwargs,
        )

    def test_line_goes_to_item_with_same_catalog_key(self):
        items = [self._item("PRJ-A"), self._item("PRJ-B")]
        line = _line("INV-1", "10", project_no="PRJ-B", description="Gate valve", uom="EA")

        allocated = allocate_lines(items, [line])

        assert allocated == [[], [line]]

    def test_line_is_never_shared_between_items(self):
        items = [self._item("PRJ-A"), self._item("PRJ-B")]
        line = _line("INV-1", "10")

        allocated = allocate_lines(items, [line])

        assert sum(len(lines) for lines in allocated) == 1
        assert allocated[0] == [line]

    def test_part_material_lines_fill_items_in_line_order(self):
        items = [self._item("PRJ-A", "4"), self._item("PRJ-B", "6")]
        first, second, extra = _line("INV-1", "4"), _line("INV-2", "6"), _line("INV-3", "1")

        allocated = allocate_lines(items, [first, second, extra])

        # Both filled: the surplus line stays on the first candidate
        assert allocated == [[first, extra], [second]]

    def test_conflicting_project_does_not_match(self):
        items = [self._item("PRJ-A")]

        allocated = allocate_lines(items, [_line("INV-1", "5", project_no="PRJ-Z")])

        assert allocated == [[]]

    def test_other_part_is_ignored(self):
        items = [self._item("PRJ-A")]

        allocated = allocate_lines(items, [_line("INV-1", "5", part_no="P-9")])

        assert allocated == [[]]
