"""Download account Data Transfer Objects."""

from datetime import datetime

from pydantic import BaseModel


class AccountResponse(BaseModel):
    id: int
    name: str
    email: str
    is_active: bool = True
    download_count: int = 0
    created_at: datetime | None = None
    last_used_at: datetime | None = None


class AccountRecord(AccountResponse):
    password_hash: str
    deleted_at: datetime | None = None
    deleted_by: str | None = None


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


class DashboardResponse(BaseModel):
    account: AccountResponse
    downloads: list[dict]
