"""Audit controller — admin query over the audit trail."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from auth import Principal, require_admin
from api.audit.dto.audit import AuditLogFilter, AuditLogPage
from clock import as_utc
from container import Services, get_services

router = APIRouter(prefix="/api/audit-logs", tags=["Audit"])


@router.get("", response_model=AuditLogPage)
def list_audit_logs(
    actor_id: int | None = None,
    action: str | None = None,
    entity_type: str | None = None,
    entity_id: str | None = None,
    since: datetime | None = None,
    until: datetime | None = None,
    search: str | None = None,
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    principal: Principal = Depends(require_admin),
    services: Services = Depends(get_services),
):
    return services.audit.query(
        AuditLogFilter(
            actor_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            since=as_utc(since),
            until=as_utc(until),
            search=search,
            offset=offset,
            limit=limit,
        )
    )
