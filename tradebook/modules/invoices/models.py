"""Tax invoices: sales (issued to customers) and purchase (received from suppliers)."""

from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum

from sqlalchemy import (
    BigInteger,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tradebook.core.database.base import Amount, Base, BigIntPK


class SalesInvoiceStatus(StrEnum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    CANCELLED = "cancelled"


class PurchaseInvoiceStatus(StrEnum):
    DRAFT = "draft"
    RECEIVED = "received"
    PAID = "paid"
    CANCELLED = "cancelled"


class SalesTaxInvoice(Base):
    """Tax invoice issued to a customer, optionally against the customer's PO."""

    __tablename__ = "sales_tax_invoices"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    invoice_number: Mapped[str] = mapped_column(
        String(50), nullable=False, unique=True, index=True
    )
    invoice_date: Mapped[date] = mapped_column(Date, nullable=False)

    customer_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("customers_suppliers.id", ondelete="SET NULL"), nullable=True
    )
    # Matches purchase_orders.po_number of a customer order
    customer_po_number: Mapped[str | None] = mapped_column(
        String(100), nullable=True, index=True
    )
    customer_po_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    payment_terms: Mapped[str | None] = mapped_column(String(200), nullable=True)
    contract_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    delivery_terms: Mapped[str | None] = mapped_column(String(200), nullable=True)

    claim_percentage: Mapped[Decimal] = mapped_column(
        Amount, nullable=False, default=Decimal("100.00")
    )
    subtotal: Mapped[Decimal] = mapped_column(Amount, nullable=False, default=Decimal("0.00"))
    claim_amount: Mapped[Decimal] = mapped_column(
        Amount, nullable=False, default=Decimal("0.00")
    )
    vat_amount: Mapped[Decimal] = mapped_column(Amount, nullable=False, default=Decimal("0.00"))
    gross_total: Mapped[Decimal] = mapped_column(
        Amount, nullable=False, default=Decimal("0.00")
    )
    amount_paid: Mapped[Decimal] = mapped_column(
        Amount, nullable=False, default=Decimal("0.00")
    )

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SalesInvoiceStatus.DRAFT.value, index=True
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_by_id: Mapped[int | None] = mapped_column(
        BigIntPK, ForeignKey("users.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    items: Mapped[list["SalesTaxInvoiceItem"]] = relationship(
        "SalesTaxInvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="SalesTaxInvoiceItem.line_order",
    )


class SalesTaxInvoiceItem(Base):
    __tablename__ = "sales_tax_invoice_items"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    invoice_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("sales_tax_invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    project_no: Mapped[str | None] = mapped_column(String(100), nullable=True)
    part_no: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    material_no: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    uom: Mapped[str | None] = mapped_column(String(50), nullable=True)

    quantity: Mapped[Decimal] = mapped_column(Amount, nullable=False, default=Decimal("0"))
    unit_price: Mapped[Decimal] = mapped_column(Amount, nullable=False, default=Decimal("0"))
    total_amount: Mapped[Decimal] = mapped_column(
        Amount, nullable=False, default=Decimal("0")
    )
    line_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    invoice: Mapped["SalesTaxInvoice"] = relationship(
        "SalesTaxInvoice", back_populates="items"
    )


class PurchaseTaxInvoice(Base):
    """Tax invoice received from a supplier against one of our supplier orders."""

    __tablename__ = "purchase_tax_invoices"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    invoice_number: Mapped[str] = mapped_column(
        String(50), nullable=False, unique=True, index=True
    )
    invoice_date: Mapped[date] = mapped_column(Date, nullable=False)

    supplier_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("customers_suppliers.id", ondelete="SET NULL"), nullable=True
    )
    # Matches purchase_orders.po_number of a supplier order
    po_number: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    project_number: Mapped[str | None] = mapped_column(String(100), nullable=True)

    claim_percentage: Mapped[Decimal] = mapped_column(
        Amount, nullable=False, default=Decimal("100.00")
    )
    subtotal: Mapped[Decimal] = mapped_column(Amount, nullable=False, default=Decimal("0.00"))
    claim_amount: Mapped[Decimal] = mapped_column(
        Amount, nullable=False, default=Decimal("0.00")
    )
    vat_amount: Mapped[Decimal] = mapped_column(Amount, nullable=False, default=Decimal("0.00"))
    gross_total: Mapped[Decimal] = mapped_column(
        Amount, nullable=False, default=Decimal("0.00")
    )
    amount_paid: Mapped[Decimal] = mapped_column(
        Amount, nullable=False, default=Decimal("0.00")
    )

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PurchaseInvoiceStatus.DRAFT.value, index=True
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_by_id: Mapped[int | None] = mapped_column(
        BigIntPK, ForeignKey("users.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    items: Mapped[list["PurchaseTaxInvoiceItem"]] = relationship(
        "PurchaseTaxInvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="PurchaseTaxInvoiceItem.line_order",
    )


class PurchaseTaxInvoiceItem(Base):
    __tablename__ = "purchase_tax_invoice_items"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    invoice_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("purchase_tax_invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    serial_no: Mapped[str | None] = mapped_column(String(50), nullable=True)
    project_no: Mapped[str | None] = mapped_column(String(100), nullable=True)
    part_no: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    material_no: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    uom: Mapped[str | None] = mapped_column(String(50), nullable=True)

    quantity: Mapped[Decimal] = mapped_column(Amount, nullable=False, default=Decimal("0"))
    unit_price: Mapped[Decimal] = mapped_column(Amount, nullable=False, default=Decimal("0"))
    total_price: Mapped[Decimal] = mapped_column(Amount, nullable=False, default=Decimal("0"))
    line_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    invoice: Mapped["PurchaseTaxInvoice"] = relationship(
        "PurchaseTaxInvoice", back_populates="items"
    )
