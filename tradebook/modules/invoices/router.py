"""API endpoints for sales and purchase tax invoices."""

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from tradebook.core.auth.dependencies import require_roles
from tradebook.core.auth.models import User, UserRole
from tradebook.core.database.session import get_db
from tradebook.modules.invoices.models import PurchaseTaxInvoice, SalesTaxInvoice
from tradebook.modules.invoices.schemas import (
    InvoiceFilters,
    InvoiceItemCreate,
    InvoiceItemResponse,
    InvoiceItemUpdate,
    InvoiceItemWriteResponse,
    LinkableOrderResponse,
    LinkedOrderResponse,
    PurchaseInvoiceCreate,
    PurchaseInvoiceResponse,
    PurchaseInvoiceUpdate,
    SalesInvoiceCreate,
    SalesInvoiceResponse,
    SalesInvoiceUpdate,
)
from tradebook.modules.invoices.service import PurchaseInvoiceService, SalesInvoiceService
from tradebook.modules.orders.models import PurchaseOrder
from tradebook.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/sales-invoices", tags=["Sales Tax Invoices"])
purchase_router = APIRouter(prefix="/purchase-invoices", tags=["Purchase Tax Invoices"])

staff = require_roles(UserRole.ADMIN, UserRole.USER)


def _items_to_response(items, line_total_field: str) -> list[InvoiceItemResponse]:
    return [
        InvoiceItemResponse(
            id=item.id,
            project_no=item.project_no,
            part_no=item.part_no,
            material_no=item.material_no,
            description=item.description,
            uom=item.uom,
            quantity=item.quantity,
            unit_price=item.unit_price,
            line_total=getattr(item, line_total_field),
            line_order=item.line_order,
        )
        for item in items
    ]


def _sales_invoice_to_response(invoice: SalesTaxInvoice) -> SalesInvoiceResponse:
    data = {
        field: getattr(invoice, field)
        for field in SalesInvoiceResponse.model_fields
        if field != "items"
    }
    return SalesInvoiceResponse(
        **data, items=_items_to_response(invoice.items, "total_amount")
    )


def _purchase_invoice_to_response(invoice: PurchaseTaxInvoice) -> PurchaseInvoiceResponse:
    data = {
        field: getattr(invoice, field)
        for field in PurchaseInvoiceResponse.model_fields
        if field != "items"
    }
    return PurchaseInvoiceResponse(
        **data, items=_items_to_response(invoice.items, "total_price")
    )


def _item_write_response(
    invoice_id: int, item_id: int | None, order: PurchaseOrder | None
) -> InvoiceItemWriteResponse:
    return InvoiceItemWriteResponse(
        invoice_id=invoice_id,
        item_id=item_id,
        linked_order_id=order.id if order else None,
        linked_order_status=order.status if order else None,
    )


# --- Sales tax invoices ---


@router.post(
    "",
    response_model=ApiResponse[SalesInvoiceResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_sales_invoice(
    data: SalesInvoiceCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(staff),
):
    """Create a sales tax invoice; linked customer order status is updated in the same transaction."""
    invoice = await SalesInvoiceService(db).create_invoice(data, current_user.id)
    return ApiResponse(
        message="Sales invoice created successfully",
        data=_sales_invoice_to_response(invoice),
    )


@router.get("", response_model=ApiResponse[PaginatedResponse[SalesInvoiceResponse]])
async def list_sales_invoices(
    po_number: str | None = Query(None),
    status: str | None = Query(None),
    search: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(staff),
):
    filters = InvoiceFilters(
        po_number=po_number, status=status, search=search, page=page, limit=limit
    )
    invoices, total = await SalesInvoiceService(db).list_invoices(filters)
    return ApiResponse(
        data=PaginatedResponse.create(
            items=[_sales_invoice_to_response(i) for i in invoices],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.get(
    "/customer/{customer_id}/po-numbers",
    response_model=ApiResponse[list[LinkableOrderResponse]],
)
async def list_customer_open_orders(
    customer_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(staff),
):
    """Customer orders still open for invoicing (approved or partially delivered)."""
    orders = await SalesInvoiceService(db).linkable_orders(customer_id)
    return ApiResponse(data=[LinkableOrderResponse.model_validate(o) for o in orders])


@router.get("/customer-po/{po_number}", response_model=ApiResponse[LinkedOrderResponse])
async def get_customer_order_for_invoice(
    po_number: str,
    exclude_invoice_id: int | None = Query(None, description="Invoice being edited"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(staff),
):
    """Customer order items with already invoiced and remaining quantities."""
    data = await SalesInvoiceService(db).linked_order_items(po_number, exclude_invoice_id)
    return ApiResponse(data=data)


@router.get("/{invoice_id}", response_model=ApiResponse[SalesInvoiceResponse])
async def get_sales_invoice(
    invoice_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(staff),
):
    invoice = await SalesInvoiceService(db).get_invoice_by_id(invoice_id)
    return ApiResponse(data=_sales_invoice_to_response(invoice))


@router.put("/{invoice_id}", response_model=ApiResponse[SalesInvoiceResponse])
async def update_sales_invoice(
    invoice_id: int,
    data: SalesInvoiceUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(staff),
):
    invoice = await SalesInvoiceService(db).update_invoice(invoice_id, data, current_user.id)
    return ApiResponse(
        message="Sales invoice updated successfully",
        data=_sales_invoice_to_response(invoice),
    )


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_sales_invoice(
    invoice_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.ADMIN)),
):
    await SalesInvoiceService(db).delete_invoice(invoice_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{invoice_id}/items",
    response_model=ApiResponse[InvoiceItemWriteResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_sales_invoice_item(
    invoice_id: int,
    data: InvoiceItemCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(staff),
):
    item, order = await SalesInvoiceService(db).add_item(invoice_id, data, current_user.id)
    return ApiResponse(data=_item_write_response(invoice_id, item.id, order))


@router.put(
    "/{invoice_id}/items/{item_id}",
    response_model=ApiResponse[InvoiceItemWriteResponse],
)
async def update_sales_invoice_item(
    invoice_id: int,
    item_id: int,
    data: InvoiceItemUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(staff),
):
    item, order = await SalesInvoiceService(db).update_item(
        invoice_id, item_id, data, current_user.id
    )
    return ApiResponse(data=_item_write_response(invoice_id, item.id, order))


@router.delete(
    "/{invoice_id}/items/{item_id}",
    response_model=ApiResponse[InvoiceItemWriteResponse],
)
async def delete_sales_invoice_item(
    invoice_id: int,
    item_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(staff),
):
    order = await SalesInvoiceService(db).delete_item(invoice_id, item_id, current_user.id)
    return ApiResponse(data=_item_write_response(invoice_id, None, order))


# --- Purchase tax invoices ---


@purchase_router.post(
    "",
    response_model=ApiResponse[PurchaseInvoiceResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_purchase_invoice(
    data: PurchaseInvoiceCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(staff),
):
    """Record a supplier's tax invoice; linked supplier order status is updated in the same transaction."""
    invoice = await PurchaseInvoiceService(db).create_invoice(data, current_user.id)
    return ApiResponse(
        message="Purchase invoice created successfully",
        data=_purchase_invoice_to_response(invoice),
    )


@purchase_router.get("", response_model=ApiResponse[PaginatedResponse[PurchaseInvoiceResponse]])
async def list_purchase_invoices(
    po_number: str | None = Query(None),
    status: str | None = Query(None),
    search: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(staff),
):
    filters = InvoiceFilters(
        po_number=po_number, status=status, search=search, page=page, limit=limit
    )
    invoices, total = await PurchaseInvoiceService(db).list_invoices(filters)
    return ApiResponse(
        data=PaginatedResponse.create(
            items=[_purchase_invoice_to_response(i) for i in invoices],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@purchase_router.get("/po/list", response_model=ApiResponse[list[LinkableOrderResponse]])
async def list_supplier_orders(
    supplier_id: int | None = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(staff),
):
    """Supplier orders a purchase invoice can reference, optionally for one supplier."""
    orders = await PurchaseInvoiceService(db).linkable_orders(supplier_id)
    return ApiResponse(data=[LinkableOrderResponse.model_validate(o) for o in orders])


@purchase_router.get("/po/{po_number}", response_model=ApiResponse[LinkedOrderResponse])
async def get_supplier_order_for_invoice(
    po_number: str,
    exclude_invoice_id: int | None = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(staff),
):
    data = await PurchaseInvoiceService(db).linked_order_items(po_number, exclude_invoice_id)
    return ApiResponse(data=data)


@purchase_router.get("/{invoice_id}", response_model=ApiResponse[PurchaseInvoiceResponse])
async def get_purchase_invoice(
    invoice_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(staff),
):
    invoice = await PurchaseInvoiceService(db).get_invoice_by_id(invoice_id)
    return ApiResponse(data=_purchase_invoice_to_response(invoice))


@purchase_router.put("/{invoice_id}", response_model=ApiResponse[PurchaseInvoiceResponse])
async def update_purchase_invoice(
    invoice_id: int,
    data: PurchaseInvoiceUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(staff),
):
    invoice = await PurchaseInvoiceService(db).update_invoice(invoice_id, data, current_user.id)
    return ApiResponse(
        message="Purchase invoice updated successfully",
        data=_purchase_invoice_to_response(invoice),
    )


@purchase_router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_purchase_invoice(
    invoice_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.ADMIN)),
):
    await PurchaseInvoiceService(db).delete_invoice(invoice_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@purchase_router.post(
    "/{invoice_id}/items",
    response_model=ApiResponse[InvoiceItemWriteResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_purchase_invoice_item(
    invoice_id: int,
    data: InvoiceItemCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(staff),
):
    item, order = await PurchaseInvoiceService(db).add_item(invoice_id, data, current_user.id)
    return ApiResponse(data=_item_write_response(invoice_id, item.id, order))


@purchase_router.put(
    "/{invoice_id}/items/{item_id}",
    response_model=ApiResponse[InvoiceItemWriteResponse],
)
async def update_purchase_invoice_item(
    invoice_id: int,
    item_id: int,
    data: InvoiceItemUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(staff),
):
    item, order = await PurchaseInvoiceService(db).update_item(
        invoice_id, item_id, data, current_user.id
    )
    return ApiResponse(data=_item_write_response(invoice_id, item.id, order))


@purchase_router.delete(
    "/{invoice_id}/items/{item_id}",
    response_model=ApiResponse[InvoiceItemWriteResponse],
)
async def delete_purchase_invoice_item(
    invoice_id: int,
    item_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(staff),
):
    order = await PurchaseInvoiceService(db).delete_item(invoice_id, item_id, current_user.id)
    return ApiResponse(data=_item_write_response(invoice_id, None, order))
