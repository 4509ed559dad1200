"""Initial schema: users, parties, purchase orders, tax invoices; seed Admin

Revision ID: 001_initial
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from tradebook.core.auth.password import hash_password

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(with_updated: bool = True) -> list[sa.Column]:
    columns = [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        )
    ]
    if with_updated:
        columns.append(
            sa.Column(
                "updated_at",
                sa.DateTime(timezone=True),
                server_default=sa.func.now(),
                nullable=False,
            )
        )
    return columns


def _money(name: str, nullable: bool = False, default: str | None = "0.00") -> sa.Column:
    return sa.Column(
        name,
        sa.Numeric(15, 2),
        nullable=nullable,
        server_default=None if nullable else default,
    )


def upgrade() -> None:
    # Users table
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(200), nullable=False),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # Document sequences table
    op.create_table(
        "document_sequences",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("prefix", sa.String(20), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("last_number", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("prefix", "year", name="uq_document_sequence_prefix_year"),
    )

    # Audit logs table
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("entity_type", sa.String(100), nullable=False),
        sa.Column("entity_id", sa.BigInteger(), nullable=False),
        sa.Column("entity_identifier", sa.String(200), nullable=True),
        sa.Column("old_values", sa.JSON(), nullable=True),
        sa.Column("new_values", sa.JSON(), nullable=True),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        *_timestamps(with_updated=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_entity_type", "audit_logs", ["entity_type"])
    op.create_index("ix_audit_logs_entity_id", "audit_logs", ["entity_id"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])

    # Customers and suppliers
    op.create_table(
        "customers_suppliers",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("party_type", sa.String(20), nullable=False),
        sa.Column("company_name", sa.String(300), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("trn_number", sa.String(50), nullable=True),
        sa.Column("contact_person", sa.String(200), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_customers_suppliers_party_type", "customers_suppliers", ["party_type"])
    op.create_index("ix_customers_suppliers_company_name", "customers_suppliers", ["company_name"])

    # Purchase orders (customer and supplier side)
    op.create_table(
        "purchase_orders",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("po_number", sa.String(100), nullable=False),
        sa.Column("order_type", sa.String(20), nullable=False),
        sa.Column("customer_supplier_id", sa.BigInteger(), nullable=True),
        sa.Column("customer_supplier_name", sa.String(300), nullable=True),
        sa.Column("status", sa.String(30), nullable=False, server_default="approved"),
        _money("total_amount"),
        _money("penalty_percentage", nullable=True),
        sa.Column("linked_customer_po_id", sa.BigInteger(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by_id", sa.BigInteger(), nullable=True),
        sa.Column("approved_by_id", sa.BigInteger(), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["customer_supplier_id"], ["customers_suppliers.id"], ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(
            ["linked_customer_po_id"], ["purchase_orders.id"], ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(["created_by_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["approved_by_id"], ["users.id"]),
    )
    op.create_index("ix_purchase_orders_po_number", "purchase_orders", ["po_number"], unique=True)
    op.create_index("ix_purchase_orders_order_type", "purchase_orders", ["order_type"])
    op.create_index(
        "ix_purchase_orders_customer_supplier_id", "purchase_orders", ["customer_supplier_id"]
    )
    op.create_index("ix_purchase_orders_status", "purchase_orders", ["status"])
    op.create_index("ix_purchase_orders_created_at", "purchase_orders", ["created_at"])

    op.create_table(
        "purchase_order_items",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("po_id", sa.BigInteger(), nullable=False),
        sa.Column("serial_no", sa.String(50), nullable=True),
        sa.Column("project_no", sa.String(100), nullable=True),
        sa.Column("date_po", sa.Date(), nullable=True),
        sa.Column("part_no", sa.String(100), nullable=True),
        sa.Column("material_no", sa.String(100), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("uom", sa.String(50), nullable=True),
        _money("quantity"),
        _money("unit_price"),
        _money("total_price"),
        sa.Column("lead_time", sa.String(100), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        _money("penalty_percentage", nullable=True),
        _money("penalty_amount", nullable=True),
        sa.Column("invoice_no", sa.Text(), nullable=True),
        _money("balance_quantity_undelivered", nullable=True),
        _money("delivered_quantity", nullable=True),
        _money("delivered_unit_price", nullable=True),
        _money("delivered_total_price", nullable=True),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("line_order", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(with_updated=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["po_id"], ["purchase_orders.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_purchase_order_items_po_id", "purchase_order_items", ["po_id"])
    op.create_index(
        "ix_purchase_order_items_catalog_key",
        "purchase_order_items",
        ["project_no", "part_no", "material_no", "uom"],
    )
    op.create_index(
        "ix_purchase_order_items_part_material",
        "purchase_order_items",
        ["part_no", "material_no"],
    )

    # Sales tax invoices (issued to customers)
    op.create_table(
        "sales_tax_invoices",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("invoice_number", sa.String(50), nullable=False),
        sa.Column("invoice_date", sa.Date(), nullable=False),
        sa.Column("customer_id", sa.BigInteger(), nullable=True),
        sa.Column("customer_po_number", sa.String(100), nullable=True),
        sa.Column("customer_po_date", sa.Date(), nullable=True),
        sa.Column("payment_terms", sa.String(200), nullable=True),
        sa.Column("contract_number", sa.String(100), nullable=True),
        sa.Column("delivery_terms", sa.String(200), nullable=True),
        _money("claim_percentage", default="100.00"),
        _money("subtotal"),
        _money("claim_amount"),
        _money("vat_amount"),
        _money("gross_total"),
        _money("amount_paid"),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by_id", sa.BigInteger(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["customer_id"], ["customers_suppliers.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["created_by_id"], ["users.id"]),
    )
    op.create_index(
        "ix_sales_tax_invoices_invoice_number", "sales_tax_invoices", ["invoice_number"], unique=True
    )
    op.create_index(
        "ix_sales_tax_invoices_customer_po_number", "sales_tax_invoices", ["customer_po_number"]
    )
    op.create_index("ix_sales_tax_invoices_status", "sales_tax_invoices", ["status"])

    op.create_table(
        "sales_tax_invoice_items",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("invoice_id", sa.BigInteger(), nullable=False),
        sa.Column("project_no", sa.String(100), nullable=True),
        sa.Column("part_no", sa.String(100), nullable=True),
        sa.Column("material_no", sa.String(100), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("uom", sa.String(50), nullable=True),
        _money("quantity"),
        _money("unit_price"),
        _money("total_amount"),
        sa.Column("line_order", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["invoice_id"], ["sales_tax_invoices.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_sales_tax_invoice_items_invoice_id", "sales_tax_invoice_items", ["invoice_id"])
    op.create_index("ix_sales_tax_invoice_items_part_no", "sales_tax_invoice_items", ["part_no"])
    op.create_index(
        "ix_sales_tax_invoice_items_material_no", "sales_tax_invoice_items", ["material_no"]
    )

    # Purchase tax invoices (received from suppliers)
    op.create_table(
        "purchase_tax_invoices",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("invoice_number", sa.String(50), nullable=False),
        sa.Column("invoice_date", sa.Date(), nullable=False),
        sa.Column("supplier_id", sa.BigInteger(), nullable=True),
        sa.Column("po_number", sa.String(100), nullable=True),
        sa.Column("project_number", sa.String(100), nullable=True),
        _money("claim_percentage", default="100.00"),
        _money("subtotal"),
        _money("claim_amount"),
        _money("vat_amount"),
        _money("gross_total"),
        _money("amount_paid"),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by_id", sa.BigInteger(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["supplier_id"], ["customers_suppliers.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["created_by_id"], ["users.id"]),
    )
    op.create_index(
        "ix_purchase_tax_invoices_invoice_number",
        "purchase_tax_invoices",
        ["invoice_number"],
        unique=True,
    )
    op.create_index("ix_purchase_tax_invoices_po_number", "purchase_tax_invoices", ["po_number"])
    op.create_index("ix_purchase_tax_invoices_status", "purchase_tax_invoices", ["status"])

    op.create_table(
        "purchase_tax_invoice_items",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("invoice_id", sa.BigInteger(), nullable=False),
        sa.Column("serial_no", sa.String(50), nullable=True),
        sa.Column("project_no", sa.String(100), nullable=True),
        sa.Column("part_no", sa.String(100), nullable=True),
        sa.Column("material_no", sa.String(100), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("uom", sa.String(50), nullable=True),
        _money("quantity"),
        _money("unit_price"),
        _money("total_price"),
        sa.Column("line_order", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["invoice_id"], ["purchase_tax_invoices.id"], ondelete="CASCADE"),
    )
    op.create_index(
        "ix_purchase_tax_invoice_items_invoice_id", "purchase_tax_invoice_items", ["invoice_id"]
    )
    op.create_index("ix_purchase_tax_invoice_items_part_no", "purchase_tax_invoice_items", ["part_no"])
    op.create_index(
        "ix_purchase_tax_invoice_items_material_no", "purchase_tax_invoice_items", ["material_no"]
    )

    # Seed first Admin user
    # Password: Admin123! (change in production!)
    op.execute(
        sa.text(
            """
            INSERT INTO users (email, password_hash, full_name, role, is_active, created_at, updated_at)
            VALUES (
                'admin@tradebook.com',
                :password_hash,
                'System Administrator',
                'Admin',
                true,
                NOW(),
                NOW()
            )
            """
        ).bindparams(password_hash=hash_password("Admin123!"))
    )


def downgrade() -> None:
    op.drop_table("purchase_tax_invoice_items")
    op.drop_table("purchase_tax_invoices")
    op.drop_table("sales_tax_invoice_items")
    op.drop_table("sales_tax_invoices")
    op.drop_table("purchase_order_items")
    op.drop_table("purchase_orders")
    op.drop_table("customers_suppliers")
    op.drop_table("audit_logs")
    op.drop_table("document_sequences")
    op.drop_table("users")
