"""Upload Data Transfer Objects."""

from datetime import datetime

from pydantic import BaseModel


class UploadResponse(BaseModel):
    file_id: str
    name: str
    size: int
    share_url: str
    download_url: str
    expire_at: datetime | None = None
    unlimited_time: bool = False
    downloads_limit: int
    unlimited_downloads: bool = False
    require_auth: bool = False
    has_password: bool = False
