from datetime import date, datetime
from decimal import Decimal

from tradebook.modules.dashboard.aggregator import (
    COMPLETED_LABEL,
    MISSING,
    OrderLine,
    aggregate,
    due_date_label,
    sort_rows,
)
from tradebook.modules.dashboard.catalog import CatalogKey, catalog_key

TODAY = date(2026, 3, 1)

_ids = iter(range(1, 10_000))


def _line(order_type: str, status: str, **kwargs) -> OrderLine:
    item_id = next(_ids)
    defaults = {
        "item_id": item_id,
        "order_id": item_id,
        "po_number": f"PO-{item_id}",
        "order_type": order_type,
        "status": status,
        "order_created_at": datetime(2026, 1, 1, 9, 0),
        "serial_no": "1",
        "project_no": "PRJ-1",
        "part_no": "P-1",
        "material_no": "M-1",
        "description": "Valve",
        "uom": "EA",
        "quantity": Decimal("10"),
        "unit_price": Decimal("5"),
    }
    defaults.update(kwargs)
    return OrderLine(**defaults)


class TestCatalogKey:
    def test_none_and_empty_are_the_same(self):
        a = CatalogKey.from_item({"project_no": None, "part_no": "P", "material_no": "",
                                  "description": "d", "uom": "EA"})
        b = CatalogKey.from_item({"project_no": "", "part_no": "P", "material_no": None,
                                  "description": "d", "uom": "EA"})
        assert a == b

    def test_exact_match_only(self):
        a = catalog_key(_line("supplier", "approved", part_no="ABC"))
        b = catalog_key(_line("supplier", "approved", part_no="abc "))
        assert a != b

    def test_display_shows_missing_as_none(self):
        key = CatalogKey("", "P", "M", "d", "")
        assert key.display()["project_no"] is None
        assert key.display()["part_no"] == "P"


class TestAggregate:
    def test_one_row_per_catalog_item(self):
        lines = [
            _line("supplier", "approved"),
            _line("customer", "approved"),
            _line("supplier", "approved", part_no="P-2"),
        ]
        rows = aggregate(lines, TODAY)
        assert len(rows) == 2

    def test_missing_side_is_not_fabricated(self):
        rows = aggregate([_line("supplier", "approved")], TODAY)

        row = rows[0]
        assert row.supplier_approved is not None
        assert row.supplier_delivered is None
        assert row.customer_approved is None
        assert row.customer_delivered is None

    def test_delivered_order_counts_in_both_views(self):
        line = _line(
            "customer",
            "partially_delivered",
            delivered_quantity=Decimal("4"),
            delivered_unit_price=Decimal("5"),
            delivered_total_price=Decimal("20"),
            invoice_no="SINV-1",
        )
        row = aggregate([line], TODAY)[0]

        assert row.customer_approved.po_quantity == Decimal("10")
        assert row.customer_approved.balance_quantity_undelivered == Decimal("6")
        assert row.customer_delivered.delivered_quantity == Decimal("4")
        assert row.customer_delivered.delivered_total_price == Decimal("20")
        assert row.customer_delivered.invoice_no == "SINV-1"

    def test_approved_only_order_has_no_delivered_block(self):
        row = aggregate([_line("customer", "approved")], TODAY)[0]
        assert row.customer_delivered is None
        assert row.customer_approved.balance_quantity_undelivered == Decimal("10")

    def test_sums_across_orders_and_first_order_wins(self):
        first = _line(
            "supplier",
            "approved",
            order_created_at=datetime(2026, 1, 1),
            unit_price=Decimal("5"),
            customer_supplier_name="Acme",
            due_date=date(2026, 4, 1),
        )
        second = _line(
            "supplier",
            "approved",
            order_created_at=datetime(2026, 2, 1),
            unit_price=Decimal("7"),
            customer_supplier_name="Other",
        )
        row = aggregate([second, first], TODAY)[0]
        block = row.supplier_approved

        assert block.po_quantity == Decimal("20")
        assert block.po_unit_price == Decimal("5")
        assert block.po_total_price == Decimal("100")
        assert block.customer_supplier_name == "Acme"
        assert block.po_number == f"{first.po_number}, {second.po_number}"
        assert block.order_count == 2
        assert block.due_date == date(2026, 4, 1)

    def test_completed_label(self):
        line = _line(
            "customer",
            "delivered_completed",
            delivered_quantity=Decimal("10"),
            delivered_total_price=Decimal("50"),
            due_date=date(2026, 1, 15),
        )
        block = aggregate([line], TODAY)[0].customer_approved

        assert block.due_label == COMPLETED_LABEL
        assert block.is_overdue is False

    def test_overdue_due_date(self):
        line = _line("supplier", "approved", due_date=date(2026, 2, 1))
        block = aggregate([line], TODAY)[0].supplier_approved

        assert block.due_label == "2026-02-01"
        assert block.is_overdue is True

    def test_due_label_without_date(self):
        assert due_date_label(None, "approved", Decimal("5"), TODAY) == (MISSING, False)

    def test_completed_status_with_leftover_balance_keeps_date(self):
        label, _ = due_date_label(date(2026, 5, 1), "delivered_completed", Decimal("3"), TODAY)
        assert label == "2026-05-01"

    def test_order_penalty_and_invoice_numbers(self):
        a = _line(
            "supplier",
            "partially_delivered",
            order_penalty_percentage=Decimal("3"),
            penalty_percentage=Decimal("1"),
            penalty_amount=Decimal("0.60"),
            delivered_quantity=Decimal("4"),
            delivered_total_price=Decimal("20"),
            invoice_no="PINV-1, PINV-2",
        )
        b = _line(
            "supplier",
            "delivered_completed",
            order_created_at=datetime(2026, 1, 5),
            penalty_amount=Decimal("0.40"),
            delivered_quantity=Decimal("10"),
            delivered_total_price=Decimal("50"),
            invoice_no="PINV-2",
        )
        delivered = aggregate([a, b], TODAY)[0].supplier_delivered

        assert delivered.penalty_percentage == Decimal("3")
        assert delivered.penalty_amount == Decimal("1.00")
        assert delivered.invoice_no == "PINV-1, PINV-2"
        assert delivered.delivered_quantity == Decimal("14")

    def test_orphaned_lines_are_skipped(self):
        orphan = _line("supplier", "approved", order_id=None)
        assert aggregate([orphan], TODAY) == []

    def test_malformed_numbers_count_as_zero(self):
        line = _line("supplier", "approved", quantity="n/a", unit_price="")
        block = aggregate([line], TODAY)[0].supplier_approved
        assert block.po_quantity == Decimal("0")
        assert block.po_total_price == Decimal("0")

    def test_failing_group_degrades_only_its_row(self):
        good = _line("supplier", "approved")
        # A datetime due date cannot be compared with the date reference
        bad = _line(
            "supplier", "approved", part_no="BROKEN", due_date=datetime(2026, 1, 1, 12, 0)
        )

        rows = aggregate([good, bad], TODAY)

        assert len(rows) == 2
        broken = next(r for r in rows if r.key.part_no == "BROKEN")
        assert broken.error
        assert broken.supplier_approved is None
        ok = next(r for r in rows if r.key.part_no == "P-1")
        assert ok.error is None
        assert ok.supplier_approved is not None


class TestSortRows:
    def test_newest_first_then_serial(self):
        old = _line("supplier", "approved", order_created_at=datetime(2026, 1, 1), serial_no="1")
        new_b = _line(
            "supplier", "approved", part_no="P-2",
            order_created_at=datetime(2026, 2, 1), serial_no="2",
        )
        new_a = _line(
            "supplier", "approved", part_no="P-3",
            order_created_at=datetime(2026, 2, 1), serial_no="1",
        )

        rows = sort_rows(aggregate([old, new_b, new_a], TODAY))

        assert [r.key.part_no for r in rows] == ["P-3", "P-2", "P-1"]
