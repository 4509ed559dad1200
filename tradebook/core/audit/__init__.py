from tradebook.core.audit.models import AuditLog
from tradebook.core.audit.service import create_audit_log, audit_value, AuditAction

__all__ = ["AuditLog", "create_audit_log", "audit_value", "AuditAction"]
