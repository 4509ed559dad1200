"""Service layer for customers and suppliers."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tradebook.core.audit import AuditAction, create_audit_log
from tradebook.core.exceptions import NotFoundError
from tradebook.modules.parties.models import CustomerSupplier
from tradebook.modules.parties.schemas import (
    CustomerSupplierCreate,
    CustomerSupplierFilters,
    CustomerSupplierUpdate,
)


class CustomerSupplierService:
    """Plain CRUD for customers and suppliers."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_party(
        self, data: CustomerSupplierCreate, created_by_id: int | None = None
    ) -> CustomerSupplier:
        party = CustomerSupplier(**data.model_dump())
        party.party_type = data.party_type.value
        self.db.add(party)
        await self.db.flush()

        await create_audit_log(
            session=self.db,
            action=AuditAction.CREATE,
            entity_type="CustomerSupplier",
            entity_id=party.id,
            user_id=created_by_id,
            entity_identifier=party.company_name,
            new_values={"party_type": party.party_type, "company_name": party.company_name},
        )
        await self.db.commit()
        return await self.get_party_by_id(party.id)

    async def update_party(
        self, party_id: int, data: CustomerSupplierUpdate
    ) -> CustomerSupplier:
        party = await self.get_party_by_id(party_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(party, field, value)
        await self.db.commit()
        return await self.get_party_by_id(party_id)

    async def get_party_by_id(self, party_id: int) -> CustomerSupplier:
        party = await self.db.get(CustomerSupplier, party_id, populate_existing=True)
        if not party:
            raise NotFoundError("Customer/supplier", party_id)
        return party

    async def list_parties(
        self, filters: CustomerSupplierFilters
    ) -> tuple[list[CustomerSupplier], int]:
        query = select(CustomerSupplier)
        if filters.party_type:
            query = query.where(CustomerSupplier.party_type == filters.party_type.value)
        if filters.search:
            query = query.where(CustomerSupplier.company_name.ilike(f"%{filters.search}%"))

        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))
        query = query.order_by(CustomerSupplier.company_name)
        query = query.offset((filters.page - 1) * filters.limit).limit(filters.limit)

        result = await self.db.execute(query)
        return list(result.scalars().all()), total or 0
