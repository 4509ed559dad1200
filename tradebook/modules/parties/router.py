"""API endpoints for customers and suppliers."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tradebook.core.auth.dependencies import require_roles
from tradebook.core.auth.models import User, UserRole
from tradebook.core.database.session import get_db
from tradebook.modules.parties.models import PartyType
from tradebook.modules.parties.schemas import (
    CustomerSupplierCreate,
    CustomerSupplierFilters,
    CustomerSupplierResponse,
    CustomerSupplierUpdate,
)
from tradebook.modules.parties.service import CustomerSupplierService
from tradebook.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/parties", tags=["Customers & Suppliers"])


@router.post(
    "",
    response_model=ApiResponse[CustomerSupplierResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_party(
    data: CustomerSupplierCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.ADMIN, UserRole.USER)),
):
    party = await CustomerSupplierService(db).create_party(data, current_user.id)
    return ApiResponse(
        message="Customer/supplier created successfully",
        data=CustomerSupplierResponse.model_validate(party),
    )


@router.get("", response_model=ApiResponse[PaginatedResponse[CustomerSupplierResponse]])
async def list_parties(
    party_type: PartyType | None = Query(None),
    search: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.ADMIN, UserRole.USER)),
):
    filters = CustomerSupplierFilters(
        party_type=party_type, search=search, page=page, limit=limit
    )
    parties, total = await CustomerSupplierService(db).list_parties(filters)
    return ApiResponse(
        data=PaginatedResponse.create(
            items=[CustomerSupplierResponse.model_validate(p) for p in parties],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.get("/{party_id}", response_model=ApiResponse[CustomerSupplierResponse])
async def get_party(
    party_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.ADMIN, UserRole.USER)),
):
    party = await CustomerSupplierService(db).get_party_by_id(party_id)
    return ApiResponse(data=CustomerSupplierResponse.model_validate(party))


@router.put("/{party_id}", response_model=ApiResponse[CustomerSupplierResponse])
async def update_party(
    party_id: int,
    data: CustomerSupplierUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.ADMIN, UserRole.USER)),
):
    party = await CustomerSupplierService(db).update_party(party_id, data)
    return ApiResponse(
        message="Customer/supplier updated successfully",
        data=CustomerSupplierResponse.model_validate(party),
    )
