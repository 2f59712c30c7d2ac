"""Files repository — data access layer."""

from datetime import datetime

from sqlalchemy import and_, case, delete, func, or_, select, update
from sqlalchemy.orm import sessionmaker

from api.files.dto.file import FileRecord
from api.files.orm.file_model import FileModel
from api.teams.orm.team_model import TeamFileModel, TeamMemberModel


def _model_to_record(model: FileModel) -> FileRecord:
    return FileRecord(
        id=model.id,
        name=model.name,
        size=model.size or 0,
        content_type=model.content_type or "application/octet-stream",
        owner_id=model.owner_id,
        expire_at=model.expire_at,
        unlimited_time=bool(model.unlimited_time),
        downloads_remaining=model.downloads_remaining or 0,
        unlimited_downloads=bool(model.unlimited_downloads),
        download_count=model.download_count or 0,
        has_password=bool(model.password_encrypted),
        require_auth=bool(model.require_auth),
        created_at=model.created_at,
        deleted_at=model.deleted_at,
        filepath=model.filepath,
        sha1=model.sha1 or "",
        password_encrypted=model.password_encrypted,
    )


class FilesRepository:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def _get_session(self):
        return self._session_factory()

    def get(self, file_id: str, include_deleted: bool = False) -> FileRecord | None:
        with self._get_session() as session:
            query = session.query(FileModel).filter_by(id=file_id)
            if not include_deleted:
                query = query.filter(FileModel.deleted_at.is_(None))
            model = query.first()
            return _model_to_record(model) if model else None

    def id_exists(self, file_id: str) -> bool:
        with self._get_session() as session:
            return session.get(FileModel, file_id) is not None

    def create(
        self,
        file_id: str,
        name: str,
        filepath: str,
        size: int,
        content_type: str,
        sha1: str,
        owner_id: int,
        downloads_remaining: int,
        unlimited_downloads: bool = False,
        expire_at: datetime | None = None,
        unlimited_time: bool = False,
        password_encrypted: str | None = None,
        require_auth: bool = False,
    ) -> FileRecord:
        with self._get_session() as session:
            model = FileModel(
                id=file_id,
                name=name,
                filepath=filepath,
                size=size,
                content_type=content_type,
                sha1=sha1,
                owner_id=owner_id,
                downloads_remaining=downloads_remaining,
                unlimited_downloads=unlimited_downloads,
                expire_at=expire_at,
                unlimited_time=unlimited_time,
                password_encrypted=password_encrypted,
                require_auth=require_auth,
            )
            session.add(model)
            session.commit()
            session.refresh(model)
            return _model_to_record(model)

    def list_by_owner(self, owner_id: int) -> list[FileRecord]:
        with self._get_session() as session:
            models = (
                session.query(FileModel)
                .filter(FileModel.owner_id == owner_id, FileModel.deleted_at.is_(None))
                .order_by(FileModel.created_at.desc())
                .all()
            )
            return [_model_to_record(m) for m in models]

    def list_all(self) -> list[FileRecord]:
        with self._get_session() as session:
            models = (
                session.query(FileModel)
                .filter(FileModel.deleted_at.is_(None))
                .order_by(FileModel.created_at.desc())
                .all()
            )
            return [_model_to_record(m) for m in models]

    def list_accessible(self, user_id: int) -> list[FileRecord]:
        """Own files plus files shared to any team the user belongs to."""
        shared = (
            select(TeamFileModel.file_id)
            .join(TeamMemberModel, TeamMemberModel.team_id == TeamFileModel.team_id)
            .where(TeamMemberModel.user_id == user_id)
        )
        with self._get_session() as session:
            models = (
                session.query(FileModel)
                .filter(
                    FileModel.deleted_at.is_(None),
                    or_(FileModel.owner_id == user_id, FileModel.id.in_(shared)),
                )
                .order_by(FileModel.created_at.desc())
                .all()
            )
            return [_model_to_record(m) for m in models]

    def consume_download(self, file_id: str) -> tuple[int, int, bool] | None:
        """Take one unit of quota in a single conditional UPDATE.

        Returns the new (downloads_remaining, download_count, unlimited_downloads)
        or None when no row matched (file missing, deleted or already exhausted).
        """
        stmt = (
            update(FileModel)
            .where(
                FileModel.id == file_id,
                FileModel.deleted_at.is_(None),
                or_(FileModel.unlimited_downloads.is_(True), FileModel.downloads_remaining > 0),
            )
            .values(
                download_count=FileModel.download_count + 1,
                downloads_remaining=case(
                    (FileModel.unlimited_downloads.is_(True), FileModel.downloads_remaining),
                    else_=FileModel.downloads_remaining - 1,
                ),
            )
            .execution_options(synchronize_session=False)
        )
        with self._get_session() as session:
            result = session.execute(stmt)
            if result.rowcount != 1:
                session.rollback()
                return None
            row = session.execute(
                select(
                    FileModel.downloads_remaining,
                    FileModel.download_count,
                    FileModel.unlimited_downloads,
                ).where(FileModel.id == file_id)
            ).one()
            session.commit()
            return row.downloads_remaining, row.download_count, bool(row.unlimited_downloads)

    def update_settings(self, file_id: str, **values) -> FileRecord | None:
        with self._get_session() as session:
            model = session.get(FileModel, file_id)
            if not model or model.deleted_at is not None:
                return None
            for key, value in values.items():
                setattr(model, key, value)
            session.commit()
            session.refresh(model)
            return _model_to_record(model)

    def soft_delete(self, file_id: str, deleted_by: int, now: datetime) -> bool:
        with self._get_session() as session:
            result = session.execute(
                update(FileModel)
                .where(FileModel.id == file_id, FileModel.deleted_at.is_(None))
                .values(deleted_at=now, deleted_by=deleted_by)
            )
            session.commit()
            return result.rowcount == 1

    def delete(self, file_id: str) -> bool:
        """Remove the row and its team shares. Download logs are kept."""
        with self._get_session() as session:
            model = session.get(FileModel, file_id)
            if not model:
                return False
            session.execute(delete(TeamFileModel).where(TeamFileModel.file_id == file_id))
            session.delete(model)
            session.commit()
            return True

    def get_expired(self, now: datetime) -> list[FileRecord]:
        """Live files that expired by time or ran out of downloads."""
        with self._get_session() as session:
            models = (
                session.query(FileModel)
                .filter(
                    FileModel.deleted_at.is_(None),
                    or_(
                        and_(
                            FileModel.unlimited_time.is_(False),
                            FileModel.expire_at.isnot(None),
                            FileModel.expire_at < now,
                        ),
                        and_(
                            FileModel.unlimited_downloads.is_(False),
                            FileModel.downloads_remaining <= 0,
                        ),
                    ),
                )
                .all()
            )
            return [_model_to_record(m) for m in models]

    def get_deleted_before(self, cutoff: datetime) -> list[FileRecord]:
        with self._get_session() as session:
            models = (
                session.query(FileModel)
                .filter(FileModel.deleted_at.isnot(None), FileModel.deleted_at < cutoff)
                .all()
            )
            return [_model_to_record(m) for m in models]

    def get_total_storage(self) -> int:
        with self._get_session() as session:
            total = (
                session.query(func.sum(FileModel.size))
                .filter(FileModel.deleted_at.is_(None))
                .scalar()
            )
            return total or 0
