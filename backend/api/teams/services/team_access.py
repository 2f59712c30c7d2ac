"""Team access resolver.

Answers "may this user see this file" and guards team management. Every
answer is read from the store on each call, so removing a member or a share
takes effect on the very next request.
"""

import logging

from api.files.dto.file import FileRecord
from api.files.repositories.files_repository import FilesRepository
from api.teams.dto.team import MemberResponse, TeamFileResponse, TeamResponse, TeamRole
from api.teams.repositories.teams_repository import TeamsRepository
from errors import BadRequest, Conflict, Forbidden, NotFound

logger = logging.getLogger("parcel.teams")

MANAGER_ROLES = {TeamRole.OWNER, TeamRole.ADMIN}


class TeamAccessResolver:
    def __init__(self, teams: TeamsRepository, files: FilesRepository):
        self._teams = teams
        self._files = files

    def can_access(self, file_id: str, user_id: int) -> bool:
        return self._teams.user_can_access_file(file_id, user_id)

    def can_manage_members(self, team_id: int, user_id: int, is_admin: bool = False) -> bool:
        if is_admin:
            return True
        member = self._teams.get_member(team_id, user_id)
        return member is not None and member.role in MANAGER_ROLES

    def is_member(self, team_id: int, user_id: int) -> bool:
        return self._teams.get_member(team_id, user_id) is not None

    def get_team(self, team_id: int) -> TeamResponse:
        team = self._teams.get_team(team_id)
        if team is None:
            raise NotFound("Team not found")
        return team

    def create_team(self, name: str, description: str, created_by: int) -> TeamResponse:
        name = name.strip()
        if not name:
            raise BadRequest("Team name is required")
        team = self._teams.create_team(name, description.strip(), created_by)
        logger.info("event=team_created team_id=%s by=%s", team.id, created_by)
        return team

    def _require_manager(self, team_id: int, user_id: int, is_admin: bool) -> None:
        self.get_team(team_id)
        if not self.can_manage_members(team_id, user_id, is_admin):
            raise Forbidden("Only team owners and admins can manage members")

    def add_member(
        self, team_id: int, user_id: int, role: TeamRole, added_by: int, is_admin: bool = False
    ) -> MemberResponse:
        self._require_manager(team_id, added_by, is_admin)
        if role == TeamRole.OWNER:
            raise Forbidden("A team has a single owner")
        member = self._teams.add_member(team_id, user_id, role, added_by)
        if member is None:
            raise Conflict("User is already a member of this team")
        return member

    def remove_member(self, team_id: int, user_id: int, removed_by: int, is_admin: bool = False) -> None:
        self._require_manager(team_id, removed_by, is_admin)
        member = self._teams.get_member(team_id, user_id)
        if member is None:
            raise NotFound("Member not found")
        if member.role == TeamRole.OWNER:
            raise Forbidden("The team owner cannot be removed")
        self._teams.remove_member(team_id, user_id)
        logger.info("event=team_member_removed team_id=%s user_id=%s", team_id, user_id)

    def update_member_role(
        self, team_id: int, user_id: int, role: TeamRole, changed_by: int, is_admin: bool = False
    ) -> None:
        self._require_manager(team_id, changed_by, is_admin)
        member = self._teams.get_member(team_id, user_id)
        if member is None:
            raise NotFound("Member not found")
        if member.role == TeamRole.OWNER or role == TeamRole.OWNER:
            raise Forbidden("The owner role cannot be reassigned")
        self._teams.update_member_role(team_id, user_id, role)

    def list_members(self, team_id: int, user_id: int, is_admin: bool = False) -> list[MemberResponse]:
        self.get_team(team_id)
        if not is_admin and not self.is_member(team_id, user_id):
            raise Forbidden("Not a member of this team")
        return self._teams.list_members(team_id)

    def list_user_teams(self, user_id: int) -> list[TeamResponse]:
        return self._teams.list_user_teams(user_id)

    def share_file_to_team(
        self, file_id: str, team_id: int, shared_by: int, is_admin: bool = False
    ) -> TeamFileResponse:
        file = self._files.get(file_id)
        if file is None:
            raise NotFound("File not found")
        self.get_team(team_id)
        if not is_admin:
            if file.owner_id != shared_by:
                raise Forbidden("Only the file owner can share it")
            if not self.is_member(team_id, shared_by):
                raise Forbidden("Not a member of this team")
        share = self._teams.share_file(file_id, team_id, shared_by)
        if share is None:
            raise Conflict("File is already shared with this team")
        logger.info("event=file_shared file_id=%s team_id=%s by=%s", file_id, team_id, shared_by)
        return share

    def unshare_file_from_team(
        self, file_id: str, team_id: int, user_id: int, is_admin: bool = False
    ) -> None:
        file = self._files.get(file_id, include_deleted=True)
        if not is_admin and not self.can_manage_members(team_id, user_id):
            if file is None or file.owner_id != user_id:
                raise Forbidden("Not allowed to unshare this file")
        if not self._teams.unshare_file(file_id, team_id):
            raise NotFound("File is not shared with this team")
        logger.info("event=file_unshared file_id=%s team_id=%s by=%s", file_id, team_id, user_id)

    def list_team_files(self, team_id: int, user_id: int, is_admin: bool = False) -> list[TeamFileResponse]:
        self.get_team(team_id)
        if not is_admin and not self.is_member(team_id, user_id):
            raise Forbidden("Not a member of this team")
        return self._teams.list_team_files(team_id)

    def list_file_teams(self, file_id: str) -> list[int]:
        return self._teams.list_file_team_ids(file_id)

    def accessible_files(self, user_id: int) -> list[FileRecord]:
        return self._files.list_accessible(user_id)
