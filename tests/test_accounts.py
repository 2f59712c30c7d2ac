import pytest

from clock import utcnow
from conftest import upload
from errors import Conflict, InvalidCredentials, NotFound


def test_create_and_authenticate(services):
    account = services.accounts.create_account(" Ana ", "Ana@Example.COM ", "pw-123456")
    assert account.name == "Ana"
    assert account.email == "ana@example.com"
    assert account.password_hash != "pw-123456"

    assert services.accounts.authenticate("ANA@example.com", "pw-123456").id == account.id
    with pytest.raises(InvalidCredentials):
        services.accounts.authenticate("ana@example.com", "wrong")
    with pytest.raises(InvalidCredentials):
        services.accounts.authenticate("nobody@example.com", "pw-123456")


def test_duplicate_email_conflicts(services):
    services.accounts.create_account("Ana", "ana@example.com", "pw")
    with pytest.raises(Conflict):
        services.accounts.create_account("Other Ana", "ANA@example.com", "pw2")


def test_change_password(services):
    account = services.accounts.create_account("Bo", "bo@example.com", "old-pw")
    with pytest.raises(InvalidCredentials):
        services.accounts.change_password(account.id, "not-it", "new-pw")
    services.accounts.change_password(account.id, "old-pw", "new-pw")
    services.accounts.authenticate("bo@example.com", "new-pw")


def test_anonymize_scrubs_account_and_logs(services):
    account = services.accounts.create_account("Cy", "cy@example.com", "pw")
    services.download_logs.create(
        file_id="file-1", file_name="a.txt", file_size=3, downloaded_at=utcnow(),
        account_id=account.id, email=account.email, is_authenticated=True,
    )

    services.accounts.anonymize(account.id)

    scrubbed = services.accounts.get(account.id)
    assert not scrubbed.is_active
    assert scrubbed.email != "cy@example.com"
    assert scrubbed.name == "Deleted account"
    assert scrubbed.deleted_by == "user"
    logs = services.download_logs.list_by_account(account.id)
    assert len(logs) == 1
    assert logs[0].email == scrubbed.email
    assert services.accounts.get_by_email("cy@example.com") is None
    with pytest.raises(InvalidCredentials):
        services.accounts.authenticate("cy@example.com", "pw")

    # The address is free to sign up again
    fresh = services.accounts.create_account("Cy", "cy@example.com", "pw")
    assert fresh.id != account.id


def test_anonymize_unknown_account(services):
    with pytest.raises(NotFound):
        services.accounts.anonymize(999)


def _sign_up(client, file_id, email="dee@example.com", password="pw-dee"):
    response = client.post(
        f"/d/{file_id}", data={"name": "Dee", "email": email, "password": password}
    )
    assert "download_session" in response.cookies
    return response


def test_dashboard_requires_global_session(client):
    assert client.get("/download/dashboard").status_code == 401


def test_change_password_from_dashboard(client, services):
    file_id = upload(client, Require_Auth="true")["file_id"]
    _sign_up(client, file_id)

    wrong = client.post(
        "/download/change-password", data={"current_password": "x", "new_password": "y"}
    )
    assert wrong.status_code == 200
    assert "Current password is incorrect" in wrong.text

    ok = client.post(
        "/download/change-password", data={"current_password": "pw-dee", "new_password": "pw-new"}
    )
    assert "Password changed" in ok.text
    services.accounts.authenticate("dee@example.com", "pw-new")


def test_self_service_delete(client, services):
    file_id = upload(client, Require_Auth="true")["file_id"]
    _sign_up(client, file_id)
    client.get(f"/d/{file_id}?direct=1")
    account_id = services.accounts.get_by_email("dee@example.com").id

    response = client.post("/download-account/delete")
    assert response.status_code == 200
    assert "deleted" in response.text

    account = services.accounts.get(account_id)
    assert not account.is_active
    logs = services.download_logs.list_by_file(file_id)
    assert len(logs) == 1
    assert logs[0].account_id == account_id
    assert logs[0].email != "dee@example.com"
    assert client.get("/download/dashboard").status_code == 401


def test_logout_clears_global_session(client):
    file_id = upload(client, Require_Auth="true")["file_id"]
    _sign_up(client, file_id)
    assert client.get("/download/dashboard").status_code == 200

    client.get("/download/logout", follow_redirects=False)
    assert client.get("/download/dashboard").status_code == 401
