"""Download accounts repository — data access layer."""

from datetime import datetime

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from api.accounts.dto.account import AccountRecord
from api.accounts.orm.account_model import DownloadAccountModel
from api.download.orm.download_log_model import DownloadLogModel


def _model_to_record(model: DownloadAccountModel) -> AccountRecord:
    return AccountRecord(
        id=model.id,
        name=model.name,
        email=model.email,
        is_active=bool(model.is_active),
        download_count=model.download_count or 0,
        created_at=model.created_at,
        last_used_at=model.last_used_at,
        password_hash=model.password_hash,
        deleted_at=model.deleted_at,
        deleted_by=model.deleted_by,
    )


class AccountsRepository:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def _get_session(self):
        return self._session_factory()

    def create(self, name: str, email: str, password_hash: str) -> AccountRecord | None:
        """Insert a new account; None when the email is already taken."""
        with self._get_session() as session:
            model = DownloadAccountModel(
                name=name,
                email=email,
                password_hash=password_hash,
                is_active=True,
            )
            session.add(model)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                return None
            session.refresh(model)
            return _model_to_record(model)

    def get(self, account_id: int) -> AccountRecord | None:
        with self._get_session() as session:
            model = session.get(DownloadAccountModel, account_id)
            return _model_to_record(model) if model else None

    def get_by_email(self, email: str) -> AccountRecord | None:
        with self._get_session() as session:
            model = (
                session.query(DownloadAccountModel)
                .filter(
                    DownloadAccountModel.email == email,
                    DownloadAccountModel.deleted_at.is_(None),
                )
                .first()
            )
            return _model_to_record(model) if model else None

    def touch(self, account_id: int, now: datetime) -> None:
        with self._get_session() as session:
            session.execute(
                update(DownloadAccountModel)
                .where(DownloadAccountModel.id == account_id)
                .values(
                    last_used_at=now,
                    download_count=DownloadAccountModel.download_count + 1,
                )
            )
            session.commit()

    def set_password_hash(self, account_id: int, password_hash: str) -> None:
        with self._get_session() as session:
            session.execute(
                update(DownloadAccountModel)
                .where(DownloadAccountModel.id == account_id)
                .values(password_hash=password_hash)
            )
            session.commit()

    def anonymize(
        self, account_id: int, placeholder_name: str, placeholder_email: str, deleted_by: str, now: datetime
    ) -> bool:
        """Scrub PII on the account and its download logs in one transaction."""
        with self._get_session() as session:
            model = session.get(DownloadAccountModel, account_id)
            if not model:
                return False
            if model.deleted_at is not None:
                return True
            model.name = placeholder_name
            model.email = placeholder_email
            model.is_active = False
            model.deleted_at = now
            model.deleted_by = deleted_by
            session.execute(
                update(DownloadLogModel)
                .where(DownloadLogModel.account_id == account_id)
                .values(email=placeholder_email)
            )
            session.commit()
            return True
