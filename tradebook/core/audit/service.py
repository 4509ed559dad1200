from enum import StrEnum
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from tradebook.core.audit.models import AuditLog


class AuditAction(StrEnum):
    """Standard audit actions."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    LOGIN = "LOGIN"

    # Domain-specific actions
    UPDATE_STATUS = "UPDATE_STATUS"
    SET_STATUS = "SET_STATUS"


async def create_audit_log(
    session: AsyncSession,
    action: str | AuditAction,
    entity_type: str,
    entity_id: int,
    user_id: int | None = None,
    entity_identifier: str | None = None,
    old_values: dict[str, Any] | None = None,
    new_values: dict[str, Any] | None = None,
    comment: str | None = None,
    ip_address: str | None = None,
) -> AuditLog:
    """
    Create an audit log entry in the caller's transaction.

    Args:
        session: Database session
        action: Action performed (e.g., CREATE, UPDATE_STATUS)
        entity_type: Type of entity (e.g., PurchaseOrder, SalesTaxInvoice)
        entity_id: ID of the entity
        user_id: ID of the user who performed the action (None for derived changes)
        entity_identifier: Human-readable identifier (e.g., PO number)
        old_values: State before change
        new_values: State after change
        comment: Additional comment
        ip_address: Client IP address

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        user_id=user_id,
        action=str(action),
        entity_type=entity_type,
        entity_id=entity_id,
        entity_identifier=entity_identifier,
        old_values=old_values,
        new_values=new_values,
        comment=comment,
        ip_address=ip_address,
    )

    session.add(audit_log)
    await session.flush()

    return audit_log


def audit_value(value: Any) -> Any:
    """JSON-safe form of a column value for old_values/new_values."""
    if value is None or isinstance(value, (str, int, bool)):
        return value
    return str(value)
