"""Teams controller — team membership and file sharing."""

from fastapi import APIRouter, Depends, Request, status

from auth import Principal, require_principal
from api.audit.dto.audit import (
    ACTION_FILE_SHARED_TEAM,
    ACTION_FILE_UNSHARED_TEAM,
    ACTION_TEAM_CREATED,
    ACTION_TEAM_MEMBER_ADDED,
    ACTION_TEAM_MEMBER_REMOVED,
    ACTION_TEAM_MEMBER_ROLE_CHANGED,
    ENTITY_FILE,
    ENTITY_TEAM,
)
from api.teams.dto.team import (
    MemberAdd,
    MemberResponse,
    MemberRoleUpdate,
    TeamCreate,
    TeamFileResponse,
    TeamResponse,
    TeamShareRequest,
)
from container import Services, get_services

router = APIRouter(prefix="/api/teams", tags=["Teams"])


@router.get("", response_model=list[TeamResponse])
def my_teams(
    principal: Principal = Depends(require_principal),
    services: Services = Depends(get_services),
):
    return services.teams.list_user_teams(principal.user_id)


@router.post("", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
def create_team(
    request: Request,
    data: TeamCreate,
    principal: Principal = Depends(require_principal),
    services: Services = Depends(get_services),
):
    team = services.teams.create_team(data.name, data.description, principal.user_id)
    services.audit.emit(
        ACTION_TEAM_CREATED, ENTITY_TEAM, team.id, request=request,
        actor_id=principal.user_id, details={"name": team.name},
    )
    return team


@router.get("/{team_id}/members", response_model=list[MemberResponse])
def list_members(
    team_id: int,
    principal: Principal = Depends(require_principal),
    services: Services = Depends(get_services),
):
    return services.teams.list_members(team_id, principal.user_id, principal.is_admin)


@router.post("/{team_id}/members", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
def add_member(
    request: Request,
    team_id: int,
    data: MemberAdd,
    principal: Principal = Depends(require_principal),
    services: Services = Depends(get_services),
):
    member = services.teams.add_member(
        team_id, data.user_id, data.role, principal.user_id, principal.is_admin
    )
    services.audit.emit(
        ACTION_TEAM_MEMBER_ADDED, ENTITY_TEAM, team_id, request=request,
        actor_id=principal.user_id, details={"user_id": data.user_id, "role": data.role.value},
    )
    return member


@router.delete("/{team_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(
    request: Request,
    team_id: int,
    user_id: int,
    principal: Principal = Depends(require_principal),
    services: Services = Depends(get_services),
):
    services.teams.remove_member(team_id, user_id, principal.user_id, principal.is_admin)
    services.audit.emit(
        ACTION_TEAM_MEMBER_REMOVED, ENTITY_TEAM, team_id, request=request,
        actor_id=principal.user_id, details={"user_id": user_id},
    )


@router.put("/{team_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def update_member_role(
    request: Request,
    team_id: int,
    user_id: int,
    data: MemberRoleUpdate,
    principal: Principal = Depends(require_principal),
    services: Services = Depends(get_services),
):
    services.teams.update_member_role(
        team_id, user_id, data.role, principal.user_id, principal.is_admin
    )
    services.audit.emit(
        ACTION_TEAM_MEMBER_ROLE_CHANGED, ENTITY_TEAM, team_id, request=request,
        actor_id=principal.user_id, details={"user_id": user_id, "role": data.role.value},
    )


@router.get("/{team_id}/files", response_model=list[TeamFileResponse])
def list_team_files(
    team_id: int,
    principal: Principal = Depends(require_principal),
    services: Services = Depends(get_services),
):
    return services.teams.list_team_files(team_id, principal.user_id, principal.is_admin)


@router.post("/{team_id}/files", response_model=TeamFileResponse, status_code=status.HTTP_201_CREATED)
def share_file(
    request: Request,
    team_id: int,
    data: TeamShareRequest,
    principal: Principal = Depends(require_principal),
    services: Services = Depends(get_services),
):
    share = services.teams.share_file_to_team(
        data.file_id, team_id, principal.user_id, principal.is_admin
    )
    services.audit.emit(
        ACTION_FILE_SHARED_TEAM, ENTITY_FILE, data.file_id, request=request,
        actor_id=principal.user_id, details={"team_id": team_id},
    )
    return share


@router.delete("/{team_id}/files/{file_id}", status_code=status.HTTP_204_NO_CONTENT)
def unshare_file(
    request: Request,
    team_id: int,
    file_id: str,
    principal: Principal = Depends(require_principal),
    services: Services = Depends(get_services),
):
    services.teams.unshare_file_from_team(file_id, team_id, principal.user_id, principal.is_admin)
    services.audit.emit(
        ACTION_FILE_UNSHARED_TEAM, ENTITY_FILE, file_id, request=request,
        actor_id=principal.user_id, details={"team_id": team_id},
    )
