"""API endpoints for purchase orders."""

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from tradebook.core.auth.dependencies import require_roles
from tradebook.core.auth.models import User, UserRole
from tradebook.core.database.session import get_db
from tradebook.core.exceptions import AuthorizationError
from tradebook.modules.orders.models import OrderType, PurchaseOrder, PurchaseOrderStatus
from tradebook.modules.orders.schemas import (
    NextPONumberResponse,
    PurchaseOrderCreate,
    PurchaseOrderFilters,
    PurchaseOrderItemResponse,
    PurchaseOrderResponse,
    PurchaseOrderUpdate,
)
from tradebook.modules.orders.service import PurchaseOrderService
from tradebook.modules.orders.status import order_quantities
from tradebook.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/purchase-orders", tags=["Purchase Orders"])


def _order_to_response(order: PurchaseOrder) -> PurchaseOrderResponse:
    ordered_qty, delivered_qty = order_quantities(order.items)
    return PurchaseOrderResponse(
        id=order.id,
        po_number=order.po_number,
        order_type=order.order_type,
        customer_supplier_id=order.customer_supplier_id,
        customer_supplier_name=order.customer_supplier_name,
        status=order.status,
        total_amount=order.total_amount,
        penalty_percentage=order.penalty_percentage,
        linked_customer_po_id=order.linked_customer_po_id,
        notes=order.notes,
        created_by_id=order.created_by_id,
        approved_by_id=order.approved_by_id,
        approved_at=order.approved_at,
        created_at=order.created_at,
        updated_at=order.updated_at,
        ordered_quantity=ordered_qty,
        delivered_quantity=delivered_qty,
        items=[PurchaseOrderItemResponse.model_validate(item) for item in order.items],
    )


@router.post(
    "",
    response_model=ApiResponse[PurchaseOrderResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_purchase_order(
    data: PurchaseOrderCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.ADMIN, UserRole.USER)),
):
    """Create a customer or supplier purchase order."""
    order = await PurchaseOrderService(db).create_purchase_order(data, current_user.id)
    return ApiResponse(
        message="Purchase order created successfully",
        data=_order_to_response(order),
    )


@router.get(
    "",
    response_model=ApiResponse[PaginatedResponse[PurchaseOrderResponse]],
)
async def list_purchase_orders(
    order_type: OrderType | None = Query(None),
    status: PurchaseOrderStatus | None = Query(None),
    customer_supplier_id: int | None = Query(None),
    search: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.ADMIN, UserRole.USER)),
):
    filters = PurchaseOrderFilters(
        order_type=order_type,
        status=status,
        customer_supplier_id=customer_supplier_id,
        search=search,
        page=page,
        limit=limit,
    )
    orders, total = await PurchaseOrderService(db).list_purchase_orders(filters)
    return ApiResponse(
        data=PaginatedResponse.create(
            items=[_order_to_response(order) for order in orders],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.get("/next-po-number", response_model=ApiResponse[NextPONumberResponse])
async def get_next_po_number(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.ADMIN, UserRole.USER)),
):
    """Preview the number a new order would get if none is entered."""
    po_number = await PurchaseOrderService(db).next_po_number()
    return ApiResponse(data=NextPONumberResponse(po_number=po_number))


@router.get("/{order_id}", response_model=ApiResponse[PurchaseOrderResponse])
async def get_purchase_order(
    order_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.ADMIN, UserRole.USER)),
):
    order = await PurchaseOrderService(db).get_purchase_order_by_id(order_id)
    return ApiResponse(data=_order_to_response(order))


@router.put("/{order_id}", response_model=ApiResponse[PurchaseOrderResponse])
async def update_purchase_order(
    order_id: int,
    data: PurchaseOrderUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.ADMIN, UserRole.USER)),
):
    """Update a purchase order. Setting `status` directly is reserved for admins."""
    if data.status is not None and not current_user.is_admin:
        raise AuthorizationError("Only admins can set the order status directly")
    order = await PurchaseOrderService(db).update_purchase_order(order_id, data, current_user.id)
    return ApiResponse(
        message="Purchase order updated successfully",
        data=_order_to_response(order),
    )


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_purchase_order(
    order_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.ADMIN)),
):
    await PurchaseOrderService(db).delete_purchase_order(order_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{order_id}/recompute-status",
    response_model=ApiResponse[PurchaseOrderResponse],
)
async def recompute_order_status(
    order_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.ADMIN)),
):
    """Rebuild delivered quantities from linked invoices and re-derive the status."""
    order = await PurchaseOrderService(db).recompute_order_status(order_id, current_user.id)
    return ApiResponse(
        message="Purchase order status recomputed",
        data=_order_to_response(order),
    )
