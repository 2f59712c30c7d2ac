"""Audit log Data Transfer Objects."""

from datetime import datetime

from pydantic import BaseModel, Field

# Actions
ACTION_FILE_UPLOADED = "FILE_UPLOADED"
ACTION_FILE_DOWNLOADED = "FILE_DOWNLOADED"
ACTION_FILE_DOWNLOAD_DENIED = "FILE_DOWNLOAD_DENIED"
ACTION_FILE_UPDATED = "FILE_UPDATED"
ACTION_FILE_DELETED = "FILE_DELETED"
ACTION_FILE_SHARED_TEAM = "FILE_SHARED_TEAM"
ACTION_FILE_UNSHARED_TEAM = "FILE_UNSHARED_TEAM"
ACTION_TEAM_CREATED = "TEAM_CREATED"
ACTION_TEAM_MEMBER_ADDED = "TEAM_MEMBER_ADDED"
ACTION_TEAM_MEMBER_REMOVED = "TEAM_MEMBER_REMOVED"
ACTION_TEAM_MEMBER_ROLE_CHANGED = "TEAM_MEMBER_ROLE_CHANGED"
ACTION_ACCOUNT_CREATED = "DOWNLOAD_ACCOUNT_CREATED"
ACTION_ACCOUNT_LOGIN = "DOWNLOAD_ACCOUNT_LOGIN"
ACTION_ACCOUNT_PASSWORD_CHANGED = "DOWNLOAD_ACCOUNT_PASSWORD_CHANGED"
ACTION_ACCOUNT_DELETED = "DOWNLOAD_ACCOUNT_DELETED"
ACTION_SETTINGS_UPDATED = "SETTINGS_UPDATED"
ACTION_CLEANUP = "SYSTEM_CLEANUP"

# Entity types
ENTITY_FILE = "File"
ENTITY_TEAM = "Team"
ENTITY_DOWNLOAD_ACCOUNT = "DownloadAccount"
ENTITY_SETTINGS = "Settings"
ENTITY_SYSTEM = "System"


class AuditEntry(BaseModel):
    """One audit record as handed to the emitter."""

    action: str
    entity_type: str
    entity_id: str = ""
    actor_id: int | None = None
    actor_email: str = ""
    details: dict = Field(default_factory=dict)
    ip_address: str = ""
    user_agent: str = ""
    success: bool = True
    error_msg: str = ""


class AuditLogResponse(AuditEntry):
    id: int
    timestamp: datetime


class AuditLogFilter(BaseModel):
    actor_id: int | None = None
    action: str | None = None
    entity_type: str | None = None
    entity_id: str | None = None
    since: datetime | None = None
    until: datetime | None = None
    search: str | None = None
    offset: int = Field(default=0, ge=0)
    limit: int = Field(default=50, ge=1, le=500)


class AuditLogPage(BaseModel):
    items: list[AuditLogResponse]
    total: int
    offset: int
    limit: int
