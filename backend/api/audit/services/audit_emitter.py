"""Audit emitter.

Records who did what. Writing an audit entry must never change the outcome
of the operation being audited, so ``record`` swallows store failures after
logging the full entry.
"""

import logging
from datetime import timedelta

from fastapi import Request

from api.audit.dto.audit import AuditEntry, AuditLogFilter, AuditLogPage
from api.audit.repositories.audit_repository import AuditRepository
from clock import utcnow

logger = logging.getLogger("parcel.audit")


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded and request.app.state.settings.trust_proxy:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else ""


def request_context(request: Request | None) -> dict:
    if request is None:
        return {}
    return {
        "ip_address": client_ip(request),
        "user_agent": request.headers.get("User-Agent", ""),
    }


class AuditEmitter:
    def __init__(self, repository: AuditRepository):
        self._repository = repository

    def record(self, entry: AuditEntry) -> None:
        try:
            self._repository.insert(entry, utcnow())
        except Exception:
            logger.error(
                "event=audit_write_failed action=%s entity=%s:%s actor=%s success=%s entry=%s",
                entry.action,
                entry.entity_type,
                entry.entity_id,
                entry.actor_id,
                entry.success,
                entry.model_dump_json(),
                exc_info=True,
            )

    def emit(self, action: str, entity_type: str, entity_id: str = "",
             request: Request | None = None, **fields) -> None:
        """Shorthand that pulls ip and user agent from the request."""
        self.record(
            AuditEntry(
                action=action,
                entity_type=entity_type,
                entity_id=str(entity_id),
                **request_context(request),
                **fields,
            )
        )

    def query(self, flt: AuditLogFilter) -> AuditLogPage:
        return AuditLogPage(
            items=self._repository.query(flt),
            total=self._repository.count(flt),
            offset=flt.offset,
            limit=flt.limit,
        )

    def cleanup(self, retention_days: int) -> int:
        if retention_days <= 0:
            return 0
        return self._repository.delete_before(utcnow() - timedelta(days=retention_days))
