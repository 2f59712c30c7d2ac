"""Audit log repository — data access layer."""

import json
from datetime import datetime

from sqlalchemy import delete, func, or_, select
from sqlalchemy.orm import sessionmaker

from api.audit.dto.audit import AuditEntry, AuditLogFilter, AuditLogResponse
from api.audit.orm.audit_model import AuditLogModel


def _model_to_dto(model: AuditLogModel) -> AuditLogResponse:
    try:
        details = json.loads(model.details or "{}")
    except ValueError:
        details = {"raw": model.details}
    return AuditLogResponse(
        id=model.id,
        timestamp=model.timestamp,
        action=model.action,
        entity_type=model.entity_type,
        entity_id=model.entity_id or "",
        actor_id=model.actor_id,
        actor_email=model.actor_email or "",
        details=details,
        ip_address=model.ip_address or "",
        user_agent=model.user_agent or "",
        success=bool(model.success),
        error_msg=model.error_msg or "",
    )


def _apply_filter(stmt, flt: AuditLogFilter):
    if flt.actor_id is not None:
        stmt = stmt.where(AuditLogModel.actor_id == flt.actor_id)
    if flt.action:
        stmt = stmt.where(AuditLogModel.action == flt.action)
    if flt.entity_type:
        stmt = stmt.where(AuditLogModel.entity_type == flt.entity_type)
    if flt.entity_id:
        stmt = stmt.where(AuditLogModel.entity_id == flt.entity_id)
    if flt.since:
        stmt = stmt.where(AuditLogModel.timestamp >= flt.since)
    if flt.until:
        stmt = stmt.where(AuditLogModel.timestamp <= flt.until)
    if flt.search:
        pattern = f"%{flt.search}%"
        stmt = stmt.where(
            or_(
                AuditLogModel.actor_email.like(pattern),
                AuditLogModel.entity_id.like(pattern),
                AuditLogModel.details.like(pattern),
                AuditLogModel.error_msg.like(pattern),
            )
        )
    return stmt


class AuditRepository:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def _get_session(self):
        return self._session_factory()

    def insert(self, entry: AuditEntry, timestamp: datetime) -> int:
        with self._get_session() as session:
            model = AuditLogModel(
                timestamp=timestamp,
                actor_id=entry.actor_id,
                actor_email=entry.actor_email,
                action=entry.action,
                entity_type=entry.entity_type,
                entity_id=entry.entity_id,
                details=json.dumps(entry.details, default=str, sort_keys=True),
                ip_address=entry.ip_address,
                user_agent=entry.user_agent,
                success=entry.success,
                error_msg=entry.error_msg,
            )
            session.add(model)
            session.commit()
            return model.id

    def query(self, flt: AuditLogFilter) -> list[AuditLogResponse]:
        stmt = (
            _apply_filter(select(AuditLogModel), flt)
            .order_by(AuditLogModel.timestamp.desc(), AuditLogModel.id.desc())
            .offset(flt.offset)
            .limit(flt.limit)
        )
        with self._get_session() as session:
            return [_model_to_dto(m) for m in session.scalars(stmt).all()]

    def count(self, flt: AuditLogFilter) -> int:
        stmt = _apply_filter(select(func.count(AuditLogModel.id)), flt)
        with self._get_session() as session:
            return session.execute(stmt).scalar() or 0

    def delete_before(self, cutoff: datetime) -> int:
        with self._get_session() as session:
            result = session.execute(delete(AuditLogModel).where(AuditLogModel.timestamp < cutoff))
            session.commit()
            return result.rowcount
