"""Settings Data Transfer Objects."""

from pydantic import BaseModel


class SettingsResponse(BaseModel):
    default_expiry: str = "7d"
    max_expiry: str = ""
    default_downloads_limit: int = 10
    max_file_size: str = "2GB"
    save_ip: bool = False
    notify_owner: bool = True


class SettingsUpdate(BaseModel):
    default_expiry: str | None = None
    max_expiry: str | None = None
    default_downloads_limit: int | None = None
    max_file_size: str | None = None
    save_ip: bool | None = None
    notify_owner: bool | None = None
