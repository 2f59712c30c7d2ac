"""Teams repository — data access layer."""

from sqlalchemy import delete, exists, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from api.files.orm.file_model import FileModel
from api.teams.dto.team import MemberResponse, TeamFileResponse, TeamResponse, TeamRole
from api.teams.orm.team_model import TeamFileModel, TeamMemberModel, TeamModel


def _team_to_dto(model: TeamModel) -> TeamResponse:
    return TeamResponse(
        id=model.id,
        name=model.name,
        description=model.description or "",
        created_by=model.created_by,
        created_at=model.created_at,
        is_active=bool(model.is_active),
    )


def _member_to_dto(model: TeamMemberModel) -> MemberResponse:
    return MemberResponse(
        team_id=model.team_id,
        user_id=model.user_id,
        role=TeamRole(model.role),
        added_by=model.added_by,
        joined_at=model.joined_at,
    )


def _share_to_dto(model: TeamFileModel) -> TeamFileResponse:
    return TeamFileResponse(
        file_id=model.file_id,
        team_id=model.team_id,
        shared_by=model.shared_by,
        shared_at=model.shared_at,
    )


class TeamsRepository:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def _get_session(self):
        return self._session_factory()

    def create_team(self, name: str, description: str, created_by: int) -> TeamResponse:
        """Create a team with its creator as owner."""
        with self._get_session() as session:
            team = TeamModel(name=name, description=description, created_by=created_by)
            session.add(team)
            session.flush()
            session.add(
                TeamMemberModel(
                    team_id=team.id,
                    user_id=created_by,
                    role=TeamRole.OWNER.value,
                    added_by=created_by,
                )
            )
            session.commit()
            session.refresh(team)
            return _team_to_dto(team)

    def get_team(self, team_id: int) -> TeamResponse | None:
        with self._get_session() as session:
            model = session.get(TeamModel, team_id)
            if not model or not model.is_active:
                return None
            return _team_to_dto(model)

    def list_user_teams(self, user_id: int) -> list[TeamResponse]:
        with self._get_session() as session:
            models = (
                session.query(TeamModel)
                .join(TeamMemberModel, TeamMemberModel.team_id == TeamModel.id)
                .filter(TeamMemberModel.user_id == user_id, TeamModel.is_active.is_(True))
                .order_by(TeamModel.name)
                .all()
            )
            return [_team_to_dto(m) for m in models]

    def add_member(self, team_id: int, user_id: int, role: TeamRole, added_by: int) -> MemberResponse | None:
        """None when the user is already a member."""
        with self._get_session() as session:
            model = TeamMemberModel(
                team_id=team_id, user_id=user_id, role=role.value, added_by=added_by
            )
            session.add(model)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                return None
            session.refresh(model)
            return _member_to_dto(model)

    def remove_member(self, team_id: int, user_id: int) -> bool:
        with self._get_session() as session:
            result = session.execute(
                delete(TeamMemberModel).where(
                    TeamMemberModel.team_id == team_id, TeamMemberModel.user_id == user_id
                )
            )
            session.commit()
            return result.rowcount > 0

    def update_member_role(self, team_id: int, user_id: int, role: TeamRole) -> bool:
        with self._get_session() as session:
            result = session.execute(
                update(TeamMemberModel)
                .where(TeamMemberModel.team_id == team_id, TeamMemberModel.user_id == user_id)
                .values(role=role.value)
            )
            session.commit()
            return result.rowcount > 0

    def get_member(self, team_id: int, user_id: int) -> MemberResponse | None:
        with self._get_session() as session:
            model = (
                session.query(TeamMemberModel)
                .filter_by(team_id=team_id, user_id=user_id)
                .first()
            )
            return _member_to_dto(model) if model else None

    def list_members(self, team_id: int) -> list[MemberResponse]:
        with self._get_session() as session:
            models = (
                session.query(TeamMemberModel)
                .filter_by(team_id=team_id)
                .order_by(TeamMemberModel.joined_at)
                .all()
            )
            return [_member_to_dto(m) for m in models]

    def share_file(self, file_id: str, team_id: int, shared_by: int) -> TeamFileResponse | None:
        """None when the file is already shared to the team."""
        with self._get_session() as session:
            model = TeamFileModel(file_id=file_id, team_id=team_id, shared_by=shared_by)
            session.add(model)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                return None
            session.refresh(model)
            return _share_to_dto(model)

    def unshare_file(self, file_id: str, team_id: int) -> bool:
        with self._get_session() as session:
            result = session.execute(
                delete(TeamFileModel).where(
                    TeamFileModel.file_id == file_id, TeamFileModel.team_id == team_id
                )
            )
            session.commit()
            return result.rowcount > 0

    def list_team_files(self, team_id: int) -> list[TeamFileResponse]:
        with self._get_session() as session:
            models = (
                session.query(TeamFileModel)
                .filter_by(team_id=team_id)
                .order_by(TeamFileModel.shared_at.desc())
                .all()
            )
            return [_share_to_dto(m) for m in models]

    def list_file_team_ids(self, file_id: str) -> list[int]:
        with self._get_session() as session:
            rows = session.execute(
                select(TeamFileModel.team_id).where(TeamFileModel.file_id == file_id)
            ).all()
            return [row.team_id for row in rows]

    def user_can_access_file(self, file_id: str, user_id: int) -> bool:
        """Owner, or member of any team the file is shared to. Always read live."""
        owns = exists().where(
            FileModel.id == file_id,
            FileModel.owner_id == user_id,
            FileModel.deleted_at.is_(None),
        )
        via_team = exists().where(
            TeamFileModel.file_id == file_id,
            FileModel.id == TeamFileModel.file_id,
            FileModel.deleted_at.is_(None),
            TeamMemberModel.team_id == TeamFileModel.team_id,
            TeamMemberModel.user_id == user_id,
        )
        with self._get_session() as session:
            return bool(session.execute(select(owns | via_team)).scalar())
