"""Files service — business logic for file management."""

from fastapi import Request

from auth import Principal
from api.audit.dto.audit import ACTION_FILE_DELETED, ACTION_FILE_UPDATED, ENTITY_FILE
from api.audit.services.audit_emitter import AuditEmitter
from api.download.repositories.download_logs_repository import DownloadLogsRepository
from api.files.dto.file import (
    DownloadHistoryEntry,
    FileDetailResponse,
    FileRecord,
    FileResponse,
    FileSettingsUpdate,
)
from api.files.repositories.files_repository import FilesRepository
from api.teams.services.team_access import TeamAccessResolver
from clock import as_utc, utcnow
from errors import BadRequest, Forbidden, NotFound
from security import FilePasswordCipher


class FilesService:
    def __init__(
        self,
        files: FilesRepository,
        download_logs: DownloadLogsRepository,
        teams: TeamAccessResolver,
        audit: AuditEmitter,
        cipher: FilePasswordCipher,
        public_url: str = "",
    ):
        self._files = files
        self._download_logs = download_logs
        self._teams = teams
        self._audit = audit
        self._cipher = cipher
        self._public_url = public_url

    def _get(self, file_id: str) -> FileRecord:
        file = self._files.get(file_id)
        if file is None:
            raise NotFound("File not found")
        return file

    def _get_owned(self, file_id: str, principal: Principal) -> FileRecord:
        file = self._get(file_id)
        if not principal.is_admin and file.owner_id != principal.user_id:
            raise Forbidden("Only the file owner can do this")
        return file

    def list_files(self, principal: Principal) -> list[FileResponse]:
        if principal.is_admin:
            return self._files.list_all()
        return self._teams.accessible_files(principal.user_id)

    def get_file(self, file_id: str, principal: Principal, base_url: str = "") -> FileDetailResponse:
        file = self._get(file_id)
        is_owner = file.owner_id == principal.user_id
        if not principal.is_admin and not is_owner and not self._teams.can_access(
            file_id, principal.user_id
        ):
            raise Forbidden("No access to this file")
        base_url = self._public_url or base_url
        data = FileResponse.model_validate(file.model_dump()).model_dump()
        return FileDetailResponse(
            **data,
            share_url=f"{base_url}/s/{file.id}",
            download_url=f"{base_url}/d/{file.id}",
            password=self._cipher.decrypt(file.password_encrypted)
            if is_owner or principal.is_admin
            else None,
            team_ids=self._teams.list_file_teams(file.id),
        )

    def update_settings(
        self,
        file_id: str,
        data: FileSettingsUpdate,
        principal: Principal,
        request: Request | None = None,
    ) -> FileResponse:
        file = self._get_owned(file_id, principal)
        values = data.model_dump(exclude_unset=True)

        if "password" in values:
            values["password_encrypted"] = self._cipher.encrypt(values.pop("password") or "")
        if values.get("downloads_remaining") is not None and values["downloads_remaining"] < 0:
            raise BadRequest("downloads_remaining cannot be negative")
        if values.get("expire_at") is not None:
            values["expire_at"] = as_utc(values["expire_at"])
            values.setdefault("unlimited_time", False)
        values = {
            key: value
            for key, value in values.items()
            if value is not None or key in {"password_encrypted", "expire_at"}
        }

        updated = self._files.update_settings(file.id, **values)
        if updated is None:
            raise NotFound("File not found")

        changed = sorted(k if k != "password_encrypted" else "password" for k in values)
        self._audit.emit(
            ACTION_FILE_UPDATED,
            ENTITY_FILE,
            file.id,
            request=request,
            actor_id=principal.user_id,
            details={"file_name": file.name, "changed": changed},
        )
        return updated

    def delete_file(self, file_id: str, principal: Principal, request: Request | None = None) -> None:
        """Move a file to trash. The cleaner removes it from disk later."""
        file = self._get_owned(file_id, principal)
        if not self._files.soft_delete(file.id, principal.user_id, utcnow()):
            raise NotFound("File not found")
        self._audit.emit(
            ACTION_FILE_DELETED,
            ENTITY_FILE,
            file.id,
            request=request,
            actor_id=principal.user_id,
            details={"file_name": file.name, "size": file.size},
        )

    def download_history(self, file_id: str, principal: Principal) -> list[DownloadHistoryEntry]:
        self._get_owned(file_id, principal)
        return [
            DownloadHistoryEntry(**entry.model_dump())
            for entry in self._download_logs.list_by_file(file_id)
        ]

    def get_stats(self, principal: Principal) -> dict:
        files = self.list_files(principal)
        return {
            "total_files": len(files),
            "total_storage": sum(f.size for f in files),
            "total_downloads": sum(f.download_count for f in files),
        }
