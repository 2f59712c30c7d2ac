"""File Data Transfer Objects."""

from datetime import datetime

from pydantic import BaseModel


class FileResponse(BaseModel):
    id: str
    name: str
    size: int
    content_type: str = "application/octet-stream"
    owner_id: int
    expire_at: datetime | None = None
    unlimited_time: bool = False
    downloads_remaining: int = 0
    unlimited_downloads: bool = False
    download_count: int = 0
    has_password: bool = False
    require_auth: bool = False
    created_at: datetime | None = None
    deleted_at: datetime | None = None


class FileRecord(FileResponse):
    """Full record used inside the service layer; never serialized to clients."""

    filepath: str
    sha1: str = ""
    password_encrypted: str | None = None


class FileDetailResponse(FileResponse):
    share_url: str = ""
    download_url: str = ""
    # Only filled in for the owner
    password: str | None = None
    team_ids: list[int] = []


class FileSettingsUpdate(BaseModel):
    downloads_remaining: int | None = None
    unlimited_downloads: bool | None = None
    expire_at: datetime | None = None
    unlimited_time: bool | None = None
    password: str | None = None
    require_auth: bool | None = None


class DownloadHistoryEntry(BaseModel):
    id: int
    account_id: int | None = None
    email: str = ""
    ip_address: str = ""
    user_agent: str = ""
    is_authenticated: bool = False
    downloaded_at: datetime | None = None
