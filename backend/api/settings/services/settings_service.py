"""Settings service — business logic."""

import re
from datetime import datetime, timedelta

from api.settings.dto.settings import SettingsResponse, SettingsUpdate
from api.settings.repositories.settings_repository import SettingsRepository
from clock import utcnow
from errors import BadRequest

UNLIMITED_VALUES = {"never", "unlimited", "0"}


def parse_expiry(expiry_str: str, now: datetime | None = None) -> datetime | None:
    """Parse expiry string like '30m', '2h', '3d' into a datetime."""
    if not expiry_str:
        return None

    match = re.match(r"^(\d+)([mhdw])$", expiry_str.strip().lower())
    if not match:
        return None

    value = int(match.group(1))
    unit = match.group(2)

    deltas = {
        "m": timedelta(minutes=value),
        "h": timedelta(hours=value),
        "d": timedelta(days=value),
        "w": timedelta(weeks=value),
    }

    return (now or utcnow()) + deltas[unit]


def parse_size(size_str: str) -> int:
    """Parse size string like '100MB', '1GB' into bytes."""
    if not size_str:
        return 0

    match = re.match(r"^(\d+(?:\.\d+)?)\s*(B|KB|MB|GB|TB)$", size_str.strip().upper())
    if not match:
        return 0

    value = float(match.group(1))
    unit = match.group(2)

    multipliers = {
        "B": 1,
        "KB": 1024,
        "MB": 1024**2,
        "GB": 1024**3,
        "TB": 1024**4,
    }

    return int(value * multipliers[unit])


SETTINGS_DEFAULTS = {
    "default_expiry": "7d",
    "max_expiry": "",
    "default_downloads_limit": "10",
    "max_file_size": "2GB",
    "save_ip": "false",
    "notify_owner": "true",
}


def _to_storage(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def validate_update(data: SettingsUpdate) -> None:
    """Reject values that uploads could not parse later."""
    for field in ("default_expiry", "max_expiry"):
        value = getattr(data, field)
        if value is None:
            continue
        value = value.strip().lower()
        if value and value not in UNLIMITED_VALUES and parse_expiry(value) is None:
            raise BadRequest(f"Invalid {field}: {value}")
    if data.max_file_size is not None and data.max_file_size.strip():
        if parse_size(data.max_file_size) <= 0:
            raise BadRequest(f"Invalid max_file_size: {data.max_file_size}")
    if data.default_downloads_limit is not None and data.default_downloads_limit < 0:
        raise BadRequest("default_downloads_limit must not be negative")


class SettingsService:
    def __init__(self, repository: SettingsRepository):
        self._repository = repository

    def get_all(self) -> SettingsResponse:
        raw = self._repository.get_all()
        data = {field: raw.get(field, default) for field, default in SETTINGS_DEFAULTS.items()}
        return SettingsResponse(**data)

    def update(self, data: SettingsUpdate) -> SettingsResponse:
        validate_update(data)
        updates = {k: _to_storage(v) for k, v in data.model_dump().items() if v is not None}
        if updates:
            self._repository.set_many(updates)
        return self.get_all()

    def get_value(self, key: str) -> str | None:
        return self._repository.get(key)

    def set_value(self, key: str, value: str) -> None:
        self._repository.set(key, value)
