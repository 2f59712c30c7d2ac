from api.audit.orm.audit_model import AuditLogModel

__all__ = ["AuditLogModel"]
