"""Service wiring.

``build_services`` constructs every repository and service for one app from
a single session factory; routes reach them through ``get_services``.
"""

from dataclasses import dataclass
from datetime import timedelta

from fastapi import Request
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from api.accounts.repositories.accounts_repository import AccountsRepository
from api.accounts.services.account_directory import DownloadAccountDirectory
from api.audit.repositories.audit_repository import AuditRepository
from api.audit.services.audit_emitter import AuditEmitter
from api.download.repositories.download_logs_repository import DownloadLogsRepository
from api.download.services.download_service import DownloadService
from api.download.services.gate_chain import (
    FileSessionCredential,
    GateChainExecutor,
    GlobalSessionCredential,
    PasswordVerifiedCredential,
)
from api.download.services.quota_ledger import QuotaLedger
from api.files.repositories.files_repository import FilesRepository
from api.files.services.files_service import FilesService
from api.settings.repositories.settings_repository import SettingsRepository
from api.settings.services.settings_service import SettingsService
from api.teams.repositories.teams_repository import TeamsRepository
from api.teams.services.team_access import TeamAccessResolver
from api.upload.services.upload_service import UploadService
from config import Settings
from notifications import NotificationDispatcher
from security import CookieSigner, FilePasswordCipher


@dataclass
class Services:
    settings: SettingsService
    files_repository: FilesRepository
    download_logs: DownloadLogsRepository
    accounts: DownloadAccountDirectory
    teams: TeamAccessResolver
    audit: AuditEmitter
    ledger: QuotaLedger
    gate_chain: GateChainExecutor
    downloads: DownloadService
    files: FilesService
    uploads: UploadService
    notifier: NotificationDispatcher
    global_session: GlobalSessionCredential
    file_session: FileSessionCredential
    engine: Engine | None = None


def build_services(config: Settings, session_factory: sessionmaker,
                   notifier: NotificationDispatcher | None = None) -> Services:
    files_repository = FilesRepository(session_factory)
    download_logs = DownloadLogsRepository(session_factory)
    settings = SettingsService(SettingsRepository(session_factory))
    accounts = DownloadAccountDirectory(AccountsRepository(session_factory))
    teams = TeamAccessResolver(TeamsRepository(session_factory), files_repository)
    audit = AuditEmitter(AuditRepository(session_factory))
    ledger = QuotaLedger(files_repository)
    notifier = notifier or NotificationDispatcher(
        workers=config.notify_workers, queue_size=config.notify_queue
    )

    cipher = FilePasswordCipher(config.secret_key)
    signer = CookieSigner(config.secret_key)
    session_lifetime = timedelta(hours=config.session_hours)
    file_session = FileSessionCredential(signer, session_lifetime)
    global_session = GlobalSessionCredential(signer, session_lifetime)

    gate_chain = GateChainExecutor(
        files=files_repository,
        accounts=accounts,
        ledger=ledger,
        audit=audit,
        cipher=cipher,
        password_credential=PasswordVerifiedCredential(signer),
        file_session=file_session,
        global_session=global_session,
    )
    downloads = DownloadService(
        files=files_repository,
        gate_chain=gate_chain,
        download_logs=download_logs,
        accounts=accounts,
        audit=audit,
        settings=settings,
        notifier=notifier,
        public_url=config.public_url,
    )
    files = FilesService(
        files_repository, download_logs, teams, audit, cipher, config.public_url
    )
    uploads = UploadService(files_repository, settings, audit, cipher, config)

    return Services(
        settings=settings,
        files_repository=files_repository,
        download_logs=download_logs,
        accounts=accounts,
        teams=teams,
        audit=audit,
        ledger=ledger,
        gate_chain=gate_chain,
        downloads=downloads,
        files=files,
        uploads=uploads,
        notifier=notifier,
        global_session=global_session,
        file_session=file_session,
    )


def get_services(request: Request) -> Services:
    return request.app.state.services
