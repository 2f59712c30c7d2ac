"""Download logs repository — data access layer."""

from datetime import datetime

from sqlalchemy.orm import sessionmaker

from api.download.dto.download import DownloadLogEntry
from api.download.orm.download_log_model import DownloadLogModel


def _model_to_dto(model: DownloadLogModel) -> DownloadLogEntry:
    return DownloadLogEntry(
        id=model.id,
        file_id=model.file_id,
        account_id=model.account_id,
        email=model.email or "",
        ip_address=model.ip_address or "",
        user_agent=model.user_agent or "",
        file_name=model.file_name or "",
        file_size=model.file_size or 0,
        is_authenticated=bool(model.is_authenticated),
        downloaded_at=model.downloaded_at,
    )


class DownloadLogsRepository:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def _get_session(self):
        return self._session_factory()

    def create(
        self,
        file_id: str,
        file_name: str,
        file_size: int,
        downloaded_at: datetime,
        account_id: int | None = None,
        email: str = "",
        ip_address: str = "",
        user_agent: str = "",
        is_authenticated: bool = False,
    ) -> DownloadLogEntry:
        with self._get_session() as session:
            model = DownloadLogModel(
                file_id=file_id,
                account_id=account_id,
                email=email,
                ip_address=ip_address,
                user_agent=user_agent,
                file_name=file_name,
                file_size=file_size,
                is_authenticated=is_authenticated,
                downloaded_at=downloaded_at,
            )
            session.add(model)
            session.commit()
            session.refresh(model)
            return _model_to_dto(model)

    def list_by_file(self, file_id: str) -> list[DownloadLogEntry]:
        with self._get_session() as session:
            models = (
                session.query(DownloadLogModel)
                .filter_by(file_id=file_id)
                .order_by(DownloadLogModel.downloaded_at.desc())
                .all()
            )
            return [_model_to_dto(m) for m in models]

    def list_by_account(self, account_id: int) -> list[DownloadLogEntry]:
        with self._get_session() as session:
            models = (
                session.query(DownloadLogModel)
                .filter_by(account_id=account_id)
                .order_by(DownloadLogModel.downloaded_at.desc())
                .all()
            )
            return [_model_to_dto(m) for m in models]
