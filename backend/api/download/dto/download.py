"""Download Data Transfer Objects."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class UpdatedCounters(BaseModel):
    file_id: str
    downloads_remaining: int
    download_count: int
    unlimited_downloads: bool = False


class DownloadLogEntry(BaseModel):
    id: int
    file_id: str
    account_id: int | None = None
    email: str = ""
    ip_address: str = ""
    user_agent: str = ""
    file_name: str = ""
    file_size: int = 0
    is_authenticated: bool = False
    downloaded_at: datetime | None = None


class GateState(str, Enum):
    START = "start"
    PASSWORD_PENDING = "password_pending"
    AUTH_PENDING = "auth_pending"
    GRANTED = "granted"
    DENIED = "denied"
    PROMPT_CREDENTIALS = "prompt_credentials"


class DenyReason(str, Enum):
    NOT_FOUND = "not_found"
    EXPIRED_BY_TIME = "expired_by_time"
    EXPIRED_BY_QUOTA = "expired_by_quota"
    INVALID_PASSWORD = "invalid_password"
    INVALID_CREDENTIALS = "invalid_credentials"
    ACCOUNT_EXISTS = "account_exists"
    MISSING_FIELDS = "missing_fields"


@dataclass
class DownloadSubmission:
    """Form fields posted to a retrieval link."""

    file_password: str = ""
    name: str = ""
    email: str = ""
    password: str = ""
    direct: bool = False

    @property
    def has_password(self) -> bool:
        return bool(self.file_password)

    @property
    def has_login(self) -> bool:
        return bool(self.email and self.password)


@dataclass
class Cookie:
    name: str
    value: str
    path: str
    max_age: int


@dataclass
class GateDecision:
    """Outcome of one pass through the gate chain."""

    state: GateState
    file: object = None
    reason: DenyReason | None = None
    # Template to render when the caller must submit something
    prompt: str | None = None
    error: str | None = None
    account_id: int | None = None
    account_email: str = ""
    new_account: bool = False
    cookies: list[Cookie] = field(default_factory=list)

    @property
    def granted(self) -> bool:
        return self.state is GateState.GRANTED
