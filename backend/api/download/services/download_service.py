"""Download service — handles file download logic."""

import logging
from collections.abc import Iterator

from api.accounts.services.account_directory import DownloadAccountDirectory
from api.audit.dto.audit import (
    ACTION_FILE_DOWNLOAD_DENIED,
    ACTION_FILE_DOWNLOADED,
    ENTITY_FILE,
    AuditEntry,
)
from api.audit.services.audit_emitter import AuditEmitter
from api.download.dto.download import DenyReason, GateDecision
from api.download.repositories.download_logs_repository import DownloadLogsRepository
from api.download.services.access_policy import Availability, evaluate
from api.download.services.gate_chain import AccessRequest, GateChainExecutor
from api.files.dto.file import FileRecord
from api.files.repositories.files_repository import FilesRepository
from api.settings.services.settings_service import SettingsService
from clock import utcnow
from errors import Gone, NotFound
from notifications import DownloadNotification, NotificationDispatcher

logger = logging.getLogger("parcel.download")

CHUNK_SIZE = 1024 * 1024  # 1MB


def iter_file(filepath: str, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
    with open(filepath, "rb") as f:
        while chunk := f.read(chunk_size):
            yield chunk


class DownloadService:
    def __init__(
        self,
        files: FilesRepository,
        gate_chain: GateChainExecutor,
        download_logs: DownloadLogsRepository,
        accounts: DownloadAccountDirectory,
        audit: AuditEmitter,
        settings: SettingsService,
        notifier: NotificationDispatcher,
        public_url: str = "",
    ):
        self._files = files
        self._gate_chain = gate_chain
        self._download_logs = download_logs
        self._accounts = accounts
        self._audit = audit
        self._settings = settings
        self._notifier = notifier
        self._public_url = public_url

    def splash(self, file_id: str) -> tuple[FileRecord, Availability]:
        file = self._files.get(file_id)
        if file is None:
            raise NotFound("File not found")
        return file, evaluate(file, utcnow())

    def authorize(self, req: AccessRequest) -> GateDecision:
        return self._gate_chain.run(req)

    def deliver(self, decision: GateDecision, req: AccessRequest) -> Iterator[bytes]:
        """Count the download, log it and hand back the byte stream.

        Raises Gone when another request took the last download between the
        gate walk and this call.
        """
        file: FileRecord = decision.file
        settings = self._settings.get_all()
        try:
            counters = self._gate_chain.consume(decision)
        except Gone:
            self._audit.record(
                AuditEntry(
                    action=ACTION_FILE_DOWNLOAD_DENIED,
                    entity_type=ENTITY_FILE,
                    entity_id=file.id,
                    actor_email=decision.account_email,
                    details={"reason": DenyReason.EXPIRED_BY_QUOTA.value, "file_name": file.name},
                    ip_address=req.ip_address,
                    user_agent=req.user_agent,
                    success=False,
                    error_msg=DenyReason.EXPIRED_BY_QUOTA.value,
                )
            )
            raise

        now = utcnow()
        ip_address = req.ip_address if settings.save_ip else ""
        # Quota is already spent here, so a failed log or touch still delivers
        try:
            self._download_logs.create(
                file_id=file.id,
                file_name=file.name,
                file_size=file.size,
                downloaded_at=now,
                account_id=decision.account_id,
                email=decision.account_email,
                ip_address=ip_address,
                user_agent=req.user_agent,
                is_authenticated=decision.account_id is not None,
            )
            if decision.account_id is not None:
                self._accounts.touch(decision.account_id)
        except Exception:
            logger.exception("event=download_bookkeeping_failed file_id=%s", file.id)

        downloaded_by = decision.account_email or f"anonymous ({req.ip_address or 'unknown'})"
        self._audit.record(
            AuditEntry(
                action=ACTION_FILE_DOWNLOADED,
                entity_type=ENTITY_FILE,
                entity_id=file.id,
                actor_id=None,
                actor_email=decision.account_email,
                details={
                    "file_name": file.name,
                    "size": file.size,
                    "downloads_remaining": counters.downloads_remaining,
                    "download_count": counters.download_count,
                    "authenticated": decision.account_id is not None,
                },
                ip_address=ip_address,
                user_agent=req.user_agent,
            )
        )
        logger.info(
            "event=download_granted file_id=%s by=%s remaining=%s count=%s",
            file.id,
            downloaded_by,
            "unlimited" if counters.unlimited_downloads else counters.downloads_remaining,
            counters.download_count,
        )

        if settings.notify_owner:
            self._notifier.notify(
                DownloadNotification(
                    owner_id=file.owner_id,
                    file_id=file.id,
                    file_name=file.name,
                    downloaded_by=downloaded_by,
                    ip_address=ip_address,
                    downloaded_at=now,
                    file_url=f"{self._public_url}/s/{file.id}",
                )
            )

        return iter_file(file.filepath)
