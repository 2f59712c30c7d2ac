"""Access policy evaluator — is a file still available at all?"""

from datetime import datetime
from enum import Enum

from api.files.dto.file import FileResponse
from clock import as_utc


class Availability(str, Enum):
    ACTIVE = "active"
    EXPIRED_BY_TIME = "expired_by_time"
    EXPIRED_BY_QUOTA = "expired_by_quota"

    @property
    def is_active(self) -> bool:
        return self is Availability.ACTIVE


def evaluate(file: FileResponse, now: datetime) -> Availability:
    """Time expiry wins over quota exhaustion when both apply."""
    if not file.unlimited_time and file.expire_at is not None:
        if as_utc(now) > as_utc(file.expire_at):
            return Availability.EXPIRED_BY_TIME
    if not file.unlimited_downloads and file.downloads_remaining <= 0:
        return Availability.EXPIRED_BY_QUOTA
    return Availability.ACTIVE
