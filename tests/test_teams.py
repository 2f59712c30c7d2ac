import pytest

from api.teams.dto.team import TeamRole
from clock import utcnow
from conftest import ADMIN_HEADERS, OTHER_ID, OWNER_ID, auth_headers, store_file, upload
from errors import Conflict, Forbidden, NotFound

FILE_ID = "f" * 32


@pytest.fixture
def team(services):
    return services.teams.create_team("Design", "", OWNER_ID)


def test_creator_is_owner(services, team):
    members = services.teams.list_members(team.id, OWNER_ID)
    assert [(m.user_id, m.role) for m in members] == [(OWNER_ID, TeamRole.OWNER)]
    assert services.teams.can_manage_members(team.id, OWNER_ID)
    assert not services.teams.can_manage_members(team.id, OTHER_ID)
    assert services.teams.can_manage_members(team.id, OTHER_ID, is_admin=True)


def test_access_follows_membership_and_revocation(services, settings, team):
    store_file(services, settings, owner_id=OWNER_ID)
    assert services.teams.can_access(FILE_ID, OWNER_ID)
    assert not services.teams.can_access(FILE_ID, OTHER_ID)

    services.teams.add_member(team.id, OTHER_ID, TeamRole.MEMBER, OWNER_ID)
    services.teams.share_file_to_team(FILE_ID, team.id, OWNER_ID)
    assert services.teams.can_access(FILE_ID, OTHER_ID)
    assert [f.id for f in services.teams.accessible_files(OTHER_ID)] == [FILE_ID]

    services.teams.remove_member(team.id, OTHER_ID, OWNER_ID)
    assert not services.teams.can_access(FILE_ID, OTHER_ID)
    assert services.teams.accessible_files(OTHER_ID) == []


def test_unshare_revokes_immediately(services, settings, team):
    store_file(services, settings)
    services.teams.add_member(team.id, OTHER_ID, TeamRole.MEMBER, OWNER_ID)
    services.teams.share_file_to_team(FILE_ID, team.id, OWNER_ID)
    assert services.teams.can_access(FILE_ID, OTHER_ID)

    services.teams.unshare_file_from_team(FILE_ID, team.id, OWNER_ID)
    assert not services.teams.can_access(FILE_ID, OTHER_ID)


def test_trashed_file_is_closed_to_team_members(services, settings, team):
    store_file(services, settings)
    services.teams.add_member(team.id, OTHER_ID, TeamRole.MEMBER, OWNER_ID)
    services.teams.share_file_to_team(FILE_ID, team.id, OWNER_ID)
    assert services.teams.can_access(FILE_ID, OTHER_ID)

    services.files_repository.soft_delete(FILE_ID, OWNER_ID, utcnow())
    assert not services.teams.can_access(FILE_ID, OWNER_ID)
    assert not services.teams.can_access(FILE_ID, OTHER_ID)


def test_duplicate_share_conflicts(services, settings, team):
    store_file(services, settings)
    services.teams.share_file_to_team(FILE_ID, team.id, OWNER_ID)
    with pytest.raises(Conflict):
        services.teams.share_file_to_team(FILE_ID, team.id, OWNER_ID)
    assert services.teams.list_file_teams(FILE_ID) == [team.id]


def test_unshare_without_share_is_not_found(services, settings, team):
    store_file(services, settings)
    with pytest.raises(NotFound):
        services.teams.unshare_file_from_team(FILE_ID, team.id, OWNER_ID)


def test_only_owner_shares_their_file(services, settings, team):
    store_file(services, settings, owner_id=OWNER_ID)
    services.teams.add_member(team.id, OTHER_ID, TeamRole.ADMIN, OWNER_ID)
    with pytest.raises(Forbidden):
        services.teams.share_file_to_team(FILE_ID, team.id, OTHER_ID)


def test_members_cannot_manage(services, team):
    services.teams.add_member(team.id, OTHER_ID, TeamRole.MEMBER, OWNER_ID)
    with pytest.raises(Forbidden):
        services.teams.add_member(team.id, 3, TeamRole.MEMBER, OTHER_ID)
    with pytest.raises(Conflict):
        services.teams.add_member(team.id, OTHER_ID, TeamRole.MEMBER, OWNER_ID)


def test_team_admin_can_manage_but_not_remove_owner(services, team):
    services.teams.add_member(team.id, OTHER_ID, TeamRole.ADMIN, OWNER_ID)
    services.teams.add_member(team.id, 3, TeamRole.MEMBER, OTHER_ID)
    services.teams.update_member_role(team.id, 3, TeamRole.ADMIN, OTHER_ID)
    assert services.teams.can_manage_members(team.id, 3)
    with pytest.raises(Forbidden):
        services.teams.remove_member(team.id, OWNER_ID, OTHER_ID)


def test_teams_api(client, services):
    file_id = upload(client)["file_id"]
    owner = auth_headers(OWNER_ID)
    other = auth_headers(OTHER_ID)

    assert client.post("/api/teams", json={"name": "Ops"}).status_code == 401

    team = client.post("/api/teams", json={"name": "Ops"}, headers=owner)
    assert team.status_code == 201
    team_id = team.json()["id"]

    assert client.get(f"/api/files/{file_id}", headers=other).status_code == 403

    added = client.post(
        f"/api/teams/{team_id}/members", json={"user_id": OTHER_ID}, headers=owner
    )
    assert added.status_code == 201
    assert added.json()["role"] == "member"

    shared = client.post(f"/api/teams/{team_id}/files", json={"file_id": file_id}, headers=owner)
    assert shared.status_code == 201
    duplicate = client.post(f"/api/teams/{team_id}/files", json={"file_id": file_id}, headers=owner)
    assert duplicate.status_code == 409

    assert [f["id"] for f in client.get("/api/files", headers=other).json()] == [file_id]
    detail = client.get(f"/api/files/{file_id}", headers=other)
    assert detail.status_code == 200
    # Team members do not see the file password
    assert detail.json()["password"] is None
    assert detail.json()["team_ids"] == [team_id]

    # Plain members cannot manage the team or edit the file
    assert client.post(
        f"/api/teams/{team_id}/members", json={"user_id": 9}, headers=other
    ).status_code == 403
    assert client.patch(
        f"/api/files/{file_id}", json={"downloads_remaining": 99}, headers=other
    ).status_code == 403

    assert client.delete(f"/api/teams/{team_id}/members/{OTHER_ID}", headers=owner).status_code == 204
    assert client.get(f"/api/files/{file_id}", headers=other).status_code == 403
    assert client.get("/api/files", headers=other).json() == []

    assert [t["id"] for t in client.get("/api/teams", headers=owner).json()] == [team_id]
    assert client.get(f"/api/teams/{team_id}/files", headers=ADMIN_HEADERS).status_code == 200
    assert client.get(f"/api/teams/{team_id}/files", headers=other).status_code == 403
