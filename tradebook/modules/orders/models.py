"""Purchase orders: customer-side (sales) and supplier-side (purchase)."""

from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum

from sqlalchemy import (
    BigInteger,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tradebook.core.database.base import Amount, Base, BigIntPK
from tradebook.modules.parties.models import CustomerSupplier


class OrderType(StrEnum):
    """Which side of the business an order belongs to."""

    CUSTOMER = "customer"
    SUPPLIER = "supplier"


class PurchaseOrderStatus(StrEnum):
    """Purchase order lifecycle status (derived from delivered quantities)."""

    APPROVED = "approved"
    PARTIALLY_DELIVERED = "partially_delivered"
    DELIVERED_COMPLETED = "delivered_completed"


class PurchaseOrder(Base):
    """Purchase order received from a customer or placed with a supplier."""

    __tablename__ = "purchase_orders"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    po_number: Mapped[str] = mapped_column(
        String(100), nullable=False, unique=True, index=True
    )
    order_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    customer_supplier_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("customers_suppliers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    # Name as it was when the order was saved
    customer_supplier_name: Mapped[str | None] = mapped_column(String(300), nullable=True)

    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default=PurchaseOrderStatus.APPROVED.value, index=True
    )

    total_amount: Mapped[Decimal] = mapped_column(
        Amount, nullable=False, default=Decimal("0.00")
    )
    penalty_percentage: Mapped[Decimal | None] = mapped_column(Amount, nullable=True)

    linked_customer_po_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("purchase_orders.id", ondelete="SET NULL"), nullable=True
    )

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_by_id: Mapped[int | None] = mapped_column(
        BigIntPK, ForeignKey("users.id"), nullable=True
    )
    approved_by_id: Mapped[int | None] = mapped_column(
        BigIntPK, ForeignKey("users.id"), nullable=True
    )
    approved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # Relationships
    items: Mapped[list["PurchaseOrderItem"]] = relationship(
        "PurchaseOrderItem",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        order_by="PurchaseOrderItem.line_order",
    )
    customer_supplier: Mapped[CustomerSupplier | None] = relationship(CustomerSupplier)


class PurchaseOrderItem(Base):
    """Order line; identified across orders by its catalog key fields."""

    __tablename__ = "purchase_order_items"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    po_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("purchase_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    serial_no: Mapped[str | None] = mapped_column(String(50), nullable=True)
    project_no: Mapped[str | None] = mapped_column(String(100), nullable=True)
    date_po: Mapped[date | None] = mapped_column(Date, nullable=True)
    part_no: Mapped[str | None] = mapped_column(String(100), nullable=True)
    material_no: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    uom: Mapped[str | None] = mapped_column(String(50), nullable=True)

    quantity: Mapped[Decimal] = mapped_column(Amount, nullable=False, default=Decimal("0"))
    unit_price: Mapped[Decimal] = mapped_column(Amount, nullable=False, default=Decimal("0"))
    total_price: Mapped[Decimal] = mapped_column(Amount, nullable=False, default=Decimal("0"))

    lead_time: Mapped[str | None] = mapped_column(String(100), nullable=True)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    penalty_percentage: Mapped[Decimal | None] = mapped_column(Amount, nullable=True)
    penalty_amount: Mapped[Decimal | None] = mapped_column(Amount, nullable=True)
    invoice_no: Mapped[str | None] = mapped_column(Text, nullable=True)
    balance_quantity_undelivered: Mapped[Decimal | None] = mapped_column(Amount, nullable=True)
    delivered_quantity: Mapped[Decimal | None] = mapped_column(Amount, nullable=True)
    delivered_unit_price: Mapped[Decimal | None] = mapped_column(Amount, nullable=True)
    delivered_total_price: Mapped[Decimal | None] = mapped_column(Amount, nullable=True)

    comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    line_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    purchase_order: Mapped["PurchaseOrder"] = relationship(
        "PurchaseOrder", back_populates="items"
    )

    __table_args__ = (
        Index(
            "ix_purchase_order_items_catalog_key",
            "project_no",
            "part_no",
            "material_no",
            "uom",
        ),
        Index("ix_purchase_order_items_part_material", "part_no", "material_no"),
    )

