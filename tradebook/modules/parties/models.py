"""Customers and suppliers."""

from enum import StrEnum

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tradebook.core.database.base import BaseModel


class PartyType(StrEnum):
    CUSTOMER = "customer"
    SUPPLIER = "supplier"


class CustomerSupplier(BaseModel):
    """A company we sell to (customer) or buy from (supplier)."""

    __tablename__ = "customers_suppliers"

    party_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    company_name: Mapped[str] = mapped_column(String(300), nullable=False, index=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    trn_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    contact_person: Mapped[str | None] = mapped_column(String(200), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
