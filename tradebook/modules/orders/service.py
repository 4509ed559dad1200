"""Service layer for purchase orders."""

from datetime import datetime, timezone

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tradebook.core.audit import AuditAction, audit_value, create_audit_log
from tradebook.core.documents import DocumentNumberGenerator, DocumentPrefix
from tradebook.core.exceptions import DuplicateError, NotFoundError, ValidationError
from tradebook.modules.orders.models import (
    OrderType,
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
)
from tradebook.modules.orders.reconciliation import DeliveryReconciler
from tradebook.modules.orders.schemas import (
    PurchaseOrderCreate,
    PurchaseOrderFilters,
    PurchaseOrderItemCreate,
    PurchaseOrderUpdate,
)
from tradebook.modules.parties.models import CustomerSupplier, PartyType
from tradebook.shared.utils.money import ZERO, round_money, to_decimal

logger = structlog.get_logger()


def _build_item(data: PurchaseOrderItemCreate, line_order: int) -> PurchaseOrderItem:
    quantity = to_decimal(data.quantity)
    unit_price = to_decimal(data.unit_price)
    return PurchaseOrderItem(
        serial_no=data.serial_no,
        project_no=data.project_no,
        date_po=data.date_po,
        part_no=data.part_no,
        material_no=data.material_no,
        description=data.description,
        uom=data.uom,
        quantity=quantity,
        unit_price=unit_price,
        total_price=round_money(quantity * unit_price),
        lead_time=data.lead_time,
        due_date=data.due_date,
        penalty_percentage=data.penalty_percentage,
        balance_quantity_undelivered=quantity,
        comments=data.comments,
        line_order=line_order,
    )


class PurchaseOrderService:
    """Service for customer and supplier purchase orders."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.reconciler = DeliveryReconciler(db)

    async def next_po_number(self) -> str:
        return await DocumentNumberGenerator(self.db).peek(DocumentPrefix.PURCHASE_ORDER)

    async def create_purchase_order(
        self, data: PurchaseOrderCreate, created_by_id: int | None = None
    ) -> PurchaseOrder:
        """Create an order in `approved` status and pick up any invoices already on file."""
        if data.po_number:
            await self._ensure_po_number_free(data.po_number)
            po_number = data.po_number
        else:
            po_number = await DocumentNumberGenerator(self.db).generate(
                DocumentPrefix.PURCHASE_ORDER
            )

        party_name = await self._resolve_party_name(
            data.order_type, data.customer_supplier_id, data.customer_supplier_name
        )
        if data.linked_customer_po_id is not None:
            await self._validate_linked_order(data.order_type, data.linked_customer_po_id)

        order = PurchaseOrder(
            po_number=po_number,
            order_type=data.order_type.value,
            customer_supplier_id=data.customer_supplier_id,
            customer_supplier_name=party_name,
            status=PurchaseOrderStatus.APPROVED.value,
            penalty_percentage=data.penalty_percentage,
            linked_customer_po_id=data.linked_customer_po_id,
            notes=data.notes,
            created_by_id=created_by_id,
            approved_by_id=created_by_id,
            approved_at=datetime.now(timezone.utc),
            items=[_build_item(item, index) for index, item in enumerate(data.items, start=1)],
        )
        self._recalculate_totals(order)
        self.db.add(order)
        await self.db.flush()

        await create_audit_log(
            session=self.db,
            action=AuditAction.CREATE,
            entity_type="PurchaseOrder",
            entity_id=order.id,
            user_id=created_by_id,
            entity_identifier=order.po_number,
            new_values={
                "order_type": order.order_type,
                "total_amount": str(order.total_amount),
                "items": len(data.items),
            },
        )
        await self.reconciler.recompute_order_status(order.id, created_by_id)
        await self.db.commit()
        logger.info("purchase_order_created", po_number=order.po_number, order_type=order.order_type)
        return await self.get_purchase_order_by_id(order.id)

    async def update_purchase_order(
        self, order_id: int, data: PurchaseOrderUpdate, updated_by_id: int | None = None
    ) -> PurchaseOrder:
        """
        Update header fields and optionally replace all items.

        Delivered figures are rebuilt afterwards. An explicit `status` is applied
        last and overrides the derived one until the next recompute.
        """
        order = await self.get_purchase_order_by_id(order_id)
        update_data = data.model_dump(exclude_unset=True)
        items = update_data.pop("items", None)
        explicit_status = update_data.pop("status", None)

        if "po_number" in update_data and update_data["po_number"] != order.po_number:
            await self._ensure_po_number_free(update_data["po_number"])
        if "linked_customer_po_id" in update_data and update_data["linked_customer_po_id"]:
            await self._validate_linked_order(
                OrderType(order.order_type), update_data["linked_customer_po_id"]
            )
        if "customer_supplier_id" in update_data or "customer_supplier_name" in update_data:
            update_data["customer_supplier_name"] = await self._resolve_party_name(
                OrderType(order.order_type),
                update_data.get("customer_supplier_id", order.customer_supplier_id),
                update_data.get("customer_supplier_name"),
            )

        old_values = {field: audit_value(getattr(order, field)) for field in update_data}
        for field, value in update_data.items():
            setattr(order, field, value)

        if data.items is not None:
            order.items = [
                _build_item(item, index) for index, item in enumerate(data.items, start=1)
            ]
        self._recalculate_totals(order)
        await self.db.flush()

        await create_audit_log(
            session=self.db,
            action=AuditAction.UPDATE,
            entity_type="PurchaseOrder",
            entity_id=order.id,
            user_id=updated_by_id,
            entity_identifier=order.po_number,
            old_values=old_values or None,
            new_values={
                **{field: audit_value(value) for field, value in update_data.items()},
                **({"items": len(items)} if items is not None else {}),
            },
        )

        order = await self.reconciler.recompute_order_status(order.id, updated_by_id)

        if explicit_status is not None and explicit_status != order.status:
            await create_audit_log(
                session=self.db,
                action=AuditAction.SET_STATUS,
                entity_type="PurchaseOrder",
                entity_id=order.id,
                user_id=updated_by_id,
                entity_identifier=order.po_number,
                old_values={"status": order.status},
                new_values={"status": str(explicit_status)},
            )
            order.status = str(explicit_status)

        await self.db.commit()
        return await self.get_purchase_order_by_id(order_id)

    async def delete_purchase_order(self, order_id: int, deleted_by_id: int | None = None) -> None:
        order = await self.get_purchase_order_by_id(order_id)
        await create_audit_log(
            session=self.db,
            action=AuditAction.DELETE,
            entity_type="PurchaseOrder",
            entity_id=order.id,
            user_id=deleted_by_id,
            entity_identifier=order.po_number,
            old_values={"status": order.status, "total_amount": str(order.total_amount)},
        )
        await self.db.delete(order)
        await self.db.commit()

    async def recompute_order_status(
        self, order_id: int, user_id: int | None = None
    ) -> PurchaseOrder:
        """Administrative correction: rebuild delivered data and status, then commit."""
        await self.reconciler.recompute_order_status(order_id, user_id)
        await self.db.commit()
        return await self.get_purchase_order_by_id(order_id)

    async def get_purchase_order_by_id(self, order_id: int) -> PurchaseOrder:
        result = await self.db.execute(
            select(PurchaseOrder)
            .where(PurchaseOrder.id == order_id)
            .options(selectinload(PurchaseOrder.items))
            .execution_options(populate_existing=True)
        )
        order = result.scalar_one_or_none()
        if not order:
            raise NotFoundError("Purchase order", order_id)
        return order

    async def get_purchase_order_by_number(self, po_number: str) -> PurchaseOrder | None:
        result = await self.db.execute(
            select(PurchaseOrder)
            .where(PurchaseOrder.po_number == po_number)
            .options(selectinload(PurchaseOrder.items))
        )
        return result.scalar_one_or_none()

    async def list_purchase_orders(
        self, filters: PurchaseOrderFilters
    ) -> tuple[list[PurchaseOrder], int]:
        query = select(PurchaseOrder).options(selectinload(PurchaseOrder.items))

        if filters.order_type:
            query = query.where(PurchaseOrder.order_type == filters.order_type.value)
        if filters.status:
            query = query.where(PurchaseOrder.status == filters.status.value)
        if filters.customer_supplier_id:
            query = query.where(
                PurchaseOrder.customer_supplier_id == filters.customer_supplier_id
            )
        if filters.search:
            pattern = f"%{filters.search}%"
            query = query.where(
                or_(
                    PurchaseOrder.po_number.ilike(pattern),
                    PurchaseOrder.customer_supplier_name.ilike(pattern),
                )
            )

        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))
        query = query.order_by(PurchaseOrder.created_at.desc(), PurchaseOrder.id.desc())
        query = query.offset((filters.page - 1) * filters.limit).limit(filters.limit)

        result = await self.db.execute(query)
        return list(result.scalars().all()), total or 0

    def _recalculate_totals(self, order: PurchaseOrder) -> None:
        total = ZERO
        for item in order.items:
            item.total_price = round_money(to_decimal(item.quantity) * to_decimal(item.unit_price))
            total += item.total_price
        order.total_amount = round_money(total)

    async def _ensure_po_number_free(self, po_number: str) -> None:
        existing = await self.db.scalar(
            select(PurchaseOrder.id).where(PurchaseOrder.po_number == po_number)
        )
        if existing is not None:
            raise DuplicateError("Purchase order", "po_number", po_number)

    async def _resolve_party_name(
        self, order_type: OrderType, party_id: int | None, fallback_name: str | None
    ) -> str | None:
        if party_id is None:
            return fallback_name
        party = await self.db.get(CustomerSupplier, party_id)
        if not party:
            raise NotFoundError("Customer/supplier", party_id)
        expected = (
            PartyType.CUSTOMER if order_type == OrderType.CUSTOMER else PartyType.SUPPLIER
        )
        if party.party_type != expected.value:
            raise ValidationError(
                f"A {order_type.value} order needs a {expected.value}, "
                f"but {party.company_name} is a {party.party_type}",
                field="customer_supplier_id",
            )
        return party.company_name

    async def _validate_linked_order(self, order_type: OrderType, linked_id: int) -> None:
        if order_type != OrderType.SUPPLIER:
            raise ValidationError(
                "Only supplier orders can be linked to a customer order",
                field="linked_customer_po_id",
            )
        linked = await self.db.get(PurchaseOrder, linked_id)
        if not linked or linked.order_type != OrderType.CUSTOMER.value:
            raise ValidationError(
                f"Customer order {linked_id} not found", field="linked_customer_po_id"
            )
