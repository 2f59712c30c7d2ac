"""Team Data Transfer Objects."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class TeamRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


class TeamCreate(BaseModel):
    name: str
    description: str = ""


class TeamResponse(BaseModel):
    id: int
    name: str
    description: str = ""
    created_by: int
    created_at: datetime | None = None
    is_active: bool = True


class MemberAdd(BaseModel):
    user_id: int
    role: TeamRole = TeamRole.MEMBER


class MemberRoleUpdate(BaseModel):
    role: TeamRole


class MemberResponse(BaseModel):
    team_id: int
    user_id: int
    role: TeamRole
    added_by: int | None = None
    joined_at: datetime | None = None


class TeamShareRequest(BaseModel):
    file_id: str


class TeamFileResponse(BaseModel):
    file_id: str
    team_id: int
    shared_by: int
    shared_at: datetime | None = None
