"""Upload service — handles file upload logic."""

import hashlib
import logging
import mimetypes
import os
import secrets
import shutil
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from fastapi import Request

from auth import Principal
from api.audit.dto.audit import ACTION_FILE_UPLOADED, ENTITY_FILE
from api.audit.services.audit_emitter import AuditEmitter
from api.files.repositories.files_repository import FilesRepository
from api.settings.services.settings_service import (
    UNLIMITED_VALUES,
    SettingsService,
    parse_expiry,
    parse_size,
)
from api.upload.dto.upload import UploadResponse
from clock import utcnow
from config import Settings
from errors import BadRequest, PayloadTooLarge
from security import FilePasswordCipher

logger = logging.getLogger("parcel.upload")


def _parse_bool(value: str | None) -> bool:
    return (value or "").strip().lower() in {"true", "1", "yes"}


@dataclass
class UploadOptions:
    """Per-upload choices, taken from the X-* request headers."""

    expires: str | None = None
    max_downloads: str | None = None
    file_password: str | None = None
    require_auth: str | None = None

    @classmethod
    def from_headers(cls, request: Request) -> "UploadOptions":
        return cls(
            expires=request.headers.get("X-Expires"),
            max_downloads=request.headers.get("X-Max-Downloads"),
            file_password=request.headers.get("X-File-Password"),
            require_auth=request.headers.get("X-Require-Auth"),
        )


class UploadService:
    def __init__(
        self,
        files: FilesRepository,
        settings: SettingsService,
        audit: AuditEmitter,
        cipher: FilePasswordCipher,
        config: Settings,
    ):
        self._files = files
        self._settings = settings
        self._audit = audit
        self._cipher = cipher
        self._config = config

    def generate_id(self) -> str:
        """Generate a unique random id for the upload."""
        while True:
            file_id = secrets.token_hex(16)
            if not self._files.id_exists(file_id):
                return file_id

    def resolve_expiry(self, expires: str | None, is_admin: bool, now: datetime) -> datetime | None:
        """None means the file never expires by time."""
        settings = self._settings.get_all()
        raw = expires if expires is not None else settings.default_expiry
        if raw.strip().lower() in UNLIMITED_VALUES or not raw.strip():
            expire_at = None
        else:
            expire_at = parse_expiry(raw, now)
            if expire_at is None:
                raise BadRequest(f"Invalid expiry: {raw}")

        # Enforce max expiry for non-admin uploads
        if not is_admin:
            max_expire_at = parse_expiry(settings.max_expiry, now)
            if max_expire_at and (expire_at is None or expire_at > max_expire_at):
                expire_at = max_expire_at
        return expire_at

    def resolve_downloads(self, max_downloads: str | None) -> tuple[int, bool]:
        """Returns (downloads_remaining, unlimited_downloads)."""
        if max_downloads is None or not max_downloads.strip():
            limit = self._settings.get_all().default_downloads_limit
        else:
            try:
                limit = int(max_downloads)
            except ValueError:
                raise BadRequest(f"Invalid download limit: {max_downloads}")
        if limit <= 0:
            return 0, True
        return limit, False

    async def save_upload(
        self,
        request: Request,
        filename: str,
        principal: Principal,
        options: UploadOptions,
    ) -> UploadResponse:
        """Stream request body to disk, validate limits, create DB record."""
        name = Path(filename).name.strip()
        if not name:
            raise BadRequest("Filename is required")

        now = utcnow()
        expire_at = self.resolve_expiry(options.expires, principal.is_admin, now)
        downloads_remaining, unlimited_downloads = self.resolve_downloads(options.max_downloads)
        max_file_size = parse_size(self._settings.get_all().max_file_size)

        self._config.ensure_dirs()
        files_dir = self._config.files_dir

        # Stream body to temp file
        tmp = tempfile.NamedTemporaryFile(delete=False, dir=str(files_dir))
        sha1 = hashlib.sha1()
        size = 0
        try:
            async for chunk in request.stream():
                size += len(chunk)
                if max_file_size and size > max_file_size and not principal.is_admin:
                    raise PayloadTooLarge(
                        f"File exceeds max size of {self._settings.get_all().max_file_size}"
                    )
                sha1.update(chunk)
                tmp.write(chunk)
            tmp.close()

            file_id = self.generate_id()
            file_dir = files_dir / file_id
            file_dir.mkdir(parents=True, exist_ok=True)
            final_path = file_dir / name
            shutil.move(tmp.name, str(final_path))
        except BaseException:
            tmp.close()
            if os.path.exists(tmp.name):
                os.unlink(tmp.name)
            raise

        content_type, _ = mimetypes.guess_type(name)
        record = self._files.create(
            file_id=file_id,
            name=name,
            filepath=str(final_path),
            size=size,
            content_type=content_type or "application/octet-stream",
            sha1=sha1.hexdigest(),
            owner_id=principal.user_id,
            downloads_remaining=downloads_remaining,
            unlimited_downloads=unlimited_downloads,
            expire_at=expire_at,
            unlimited_time=expire_at is None,
            password_encrypted=self._cipher.encrypt(options.file_password or ""),
            require_auth=_parse_bool(options.require_auth),
        )

        self._audit.emit(
            ACTION_FILE_UPLOADED,
            ENTITY_FILE,
            record.id,
            request=request,
            actor_id=principal.user_id,
            details={"file_name": record.name, "size": record.size},
        )
        logger.info("event=file_uploaded file_id=%s size=%s owner=%s", record.id, size, principal.label)

        base_url = self._config.public_url or str(request.base_url).rstrip("/")
        return UploadResponse(
            file_id=record.id,
            name=record.name,
            size=record.size,
            share_url=f"{base_url}/s/{record.id}",
            download_url=f"{base_url}/d/{record.id}",
            expire_at=record.expire_at,
            unlimited_time=record.unlimited_time,
            downloads_limit=record.downloads_remaining,
            unlimited_downloads=record.unlimited_downloads,
            require_auth=record.require_auth,
            has_password=record.has_password,
        )
