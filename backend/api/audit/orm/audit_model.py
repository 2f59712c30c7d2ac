"""Audit log ORM model."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, func

from database import Base


class AuditLogModel(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(DateTime, default=func.now(), nullable=False, index=True)
    actor_id = Column(Integer, nullable=True, index=True)
    actor_email = Column(String, nullable=False, default="")
    action = Column(String, nullable=False, index=True)
    entity_type = Column(String, nullable=False, index=True)
    entity_id = Column(String, nullable=False, default="", index=True)
    details = Column(Text, nullable=False, default="{}")
    ip_address = Column(String, nullable=False, default="")
    user_agent = Column(String, nullable=False, default="")
    success = Column(Boolean, nullable=False, default=True)
    error_msg = Column(String, nullable=False, default="")
