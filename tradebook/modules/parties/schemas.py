"""Schemas for customers and suppliers."""

from datetime import datetime

from pydantic import EmailStr, Field

from tradebook.modules.parties.models import PartyType
from tradebook.shared.schemas.base import BaseSchema


class CustomerSupplierCreate(BaseSchema):
    party_type: PartyType
    company_name: str = Field(..., min_length=1, max_length=300)
    address: str | None = None
    trn_number: str | None = Field(None, max_length=50)
    contact_person: str | None = Field(None, max_length=200)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)
    country: str | None = Field(None, max_length=100)


class CustomerSupplierUpdate(BaseSchema):
    company_name: str | None = Field(None, min_length=1, max_length=300)
    address: str | None = None
    trn_number: str | None = Field(None, max_length=50)
    contact_person: str | None = Field(None, max_length=200)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)
    country: str | None = Field(None, max_length=100)


class CustomerSupplierResponse(BaseSchema):
    id: int
    party_type: str
    company_name: str
    address: str | None
    trn_number: str | None
    contact_person: str | None
    email: str | None
    phone: str | None
    country: str | None
    created_at: datetime
    updated_at: datetime


class CustomerSupplierFilters(BaseSchema):
    party_type: PartyType | None = None
    search: str | None = None
    page: int = Field(1, ge=1)
    limit: int = Field(50, ge=1, le=100)
