import hashlib
from datetime import datetime, timedelta

from clock import utcnow
from conftest import ADMIN_HEADERS, OTHER_ID, auth_headers, upload


def test_upload_requires_principal(client):
    response = client.put("/api/upload/a.txt", content=b"x")
    assert response.status_code == 401


def test_upload_uses_server_defaults(client, services):
    body = upload(client, name="photo.png", content=b"\x89PNG data")

    assert body["name"] == "photo.png"
    assert body["size"] == 9
    assert body["downloads_limit"] == 10
    assert not body["unlimited_downloads"]
    assert body["share_url"].endswith(f"/s/{body['file_id']}")
    assert body["download_url"].endswith(f"/d/{body['file_id']}")

    expire_at = datetime.fromisoformat(body["expire_at"])
    assert timedelta(days=6, hours=23) < expire_at - utcnow() <= timedelta(days=7)

    record = services.files_repository.get(body["file_id"])
    assert record.content_type == "image/png"
    assert record.sha1 == hashlib.sha1(b"\x89PNG data").hexdigest()
    assert record.owner_id == 1


def test_upload_headers(client):
    body = upload(
        client, Expires="2h", Max_Downloads=0, File_Password="pw", Require_Auth="true"
    )
    assert body["unlimited_downloads"]
    assert body["has_password"]
    assert body["require_auth"]
    expire_at = datetime.fromisoformat(body["expire_at"])
    assert expire_at - utcnow() <= timedelta(hours=2)


def test_upload_never_expires(client):
    body = upload(client, Expires="never")
    assert body["unlimited_time"]
    assert body["expire_at"] is None


def test_max_expiry_caps_non_admin(client, services):
    services.settings.set_value("max_expiry", "1d")
    body = upload(client, Expires="4w")
    expire_at = datetime.fromisoformat(body["expire_at"])
    assert expire_at - utcnow() <= timedelta(days=1)


def test_invalid_headers_are_rejected(client):
    headers = {**auth_headers(), "X-Expires": "soon"}
    assert client.put("/api/upload/a.txt", content=b"x", headers=headers).status_code == 400
    headers = {**auth_headers(), "X-Max-Downloads": "many"}
    assert client.put("/api/upload/a.txt", content=b"x", headers=headers).status_code == 400


def test_malformed_settings_are_rejected(client, services):
    for body in (
        {"default_expiry": "garbage"},
        {"max_expiry": "2 days"},
        {"max_file_size": "huge"},
        {"default_downloads_limit": -1},
    ):
        response = client.put("/api/settings", json=body, headers=ADMIN_HEADERS)
        assert response.status_code == 400, body

    current = services.settings.get_all()
    assert (current.default_expiry, current.max_expiry, current.max_file_size) == ("7d", "", "2GB")
    assert current.default_downloads_limit == 10
    # Uploads keep working on the untouched defaults
    assert upload(client)["downloads_limit"] == 10


def test_unlimited_and_empty_settings_are_accepted(client):
    body = {"default_expiry": "never", "max_expiry": "", "max_file_size": "", "default_downloads_limit": 0}
    response = client.put("/api/settings", json=body, headers=ADMIN_HEADERS)
    assert response.status_code == 200
    assert response.json()["default_expiry"] == "never"


def test_size_limit(client, services, settings):
    services.settings.set_value("max_file_size", "10B")
    response = client.put("/api/upload/big.bin", content=b"x" * 11, headers=auth_headers())
    assert response.status_code == 413
    # Nothing left behind in the files directory
    assert list(settings.files_dir.iterdir()) == []


def test_filename_path_is_stripped(client, services):
    body = upload(client, name="nested/dir/../evil.txt")
    record = services.files_repository.get(body["file_id"])
    assert record.name == "evil.txt"


def test_owner_sees_password_others_do_not(client):
    file_id = upload(client, File_Password="open-sesame")["file_id"]

    mine = client.get(f"/api/files/{file_id}", headers=auth_headers())
    assert mine.status_code == 200
    assert mine.json()["password"] == "open-sesame"
    assert mine.json()["has_password"]

    admin = client.get(f"/api/files/{file_id}", headers=ADMIN_HEADERS)
    assert admin.json()["password"] == "open-sesame"

    assert client.get(f"/api/files/{file_id}", headers=auth_headers(OTHER_ID)).status_code == 403


def test_edit_settings(client, services):
    file_id = upload(client, File_Password="old")["file_id"]
    new_expiry = (utcnow() + timedelta(days=30)).replace(microsecond=0)

    response = client.patch(
        f"/api/files/{file_id}",
        json={
            "downloads_remaining": 42,
            "expire_at": new_expiry.isoformat(),
            "password": "",
            "require_auth": True,
        },
        headers=auth_headers(),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["downloads_remaining"] == 42
    assert not body["has_password"]
    assert body["require_auth"]
    assert not body["unlimited_time"]

    record = services.files_repository.get(file_id)
    assert record.expire_at == new_expiry
    assert record.password_encrypted is None


def test_edit_rejects_negative_quota(client):
    file_id = upload(client)["file_id"]
    response = client.patch(
        f"/api/files/{file_id}", json={"downloads_remaining": -1}, headers=auth_headers()
    )
    assert response.status_code == 400


def test_delete_is_owner_or_admin(client, services):
    first = upload(client)["file_id"]
    second = upload(client)["file_id"]

    assert client.delete(f"/api/files/{first}", headers=auth_headers(OTHER_ID)).status_code == 403
    assert client.delete(f"/api/files/{first}", headers=auth_headers()).status_code == 204
    assert client.delete(f"/api/files/{first}", headers=auth_headers()).status_code == 404
    assert client.delete(f"/api/files/{second}", headers=ADMIN_HEADERS).status_code == 204

    trashed = services.files_repository.get(first, include_deleted=True)
    assert trashed.deleted_at is not None


def test_download_history(client):
    file_id = upload(client, content=b"h")["file_id"]
    client.get(f"/d/{file_id}", headers={"User-Agent": "curl/8"})
    client.get(f"/d/{file_id}")

    history = client.get(f"/api/files/{file_id}/downloads", headers=auth_headers())
    assert history.status_code == 200
    entries = history.json()
    assert len(entries) == 2
    assert {e["user_agent"] for e in entries} >= {"curl/8"}

    assert client.get(
        f"/api/files/{file_id}/downloads", headers=auth_headers(OTHER_ID)
    ).status_code == 403


def test_saved_ip_when_enabled(client, services, settings):
    settings.trust_proxy = True
    services.settings.set_value("save_ip", "true")
    file_id = upload(client)["file_id"]
    client.get(f"/d/{file_id}", headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.1"})
    assert services.download_logs.list_by_file(file_id)[0].ip_address == "203.0.113.9"


def test_forwarded_for_ignored_without_trusted_proxy(client, services):
    services.settings.set_value("save_ip", "true")
    file_id = upload(client)["file_id"]
    client.get(f"/d/{file_id}", headers={"X-Forwarded-For": "203.0.113.9"})
    assert services.download_logs.list_by_file(file_id)[0].ip_address == "testclient"


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}
