import os
import tempfile
from datetime import datetime
from pathlib import Path

# main builds a module-level app on import; keep it away from the real data dir
os.environ.setdefault("PARCEL_DATA_DIR", tempfile.mkdtemp(prefix="parcel-test-"))
os.environ.setdefault("PARCEL_DB_MIGRATIONS", "false")

import pytest
from fastapi.testclient import TestClient

from auth import create_session_token
from config import Settings
from main import create_app
from security import FilePasswordCipher

SECRET = "test-secret"
OWNER_ID = 1
OTHER_ID = 2


@pytest.fixture
def settings(tmp_path):
    return Settings(
        data_dir=tmp_path,
        secret_key=SECRET,
        admin_user="admin",
        admin_pass="admin-pass",
        db_migrations=False,
        notify_workers=1,
        notify_queue=4,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def services(app):
    return app.state.services


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def auth_headers(user_id: int = OWNER_ID, is_admin: bool = False) -> dict:
    return {"Authorization": f"Bearer {create_session_token(SECRET, user_id, is_admin)}"}


ADMIN_HEADERS = {"X-Admin-User": "admin", "X-Admin-Pass": "admin-pass"}


def upload(client, name: str = "report.pdf", content: bytes = b"hello parcel", user_id: int = OWNER_ID,
           **headers) -> dict:
    """PUT a file and return the JSON body. Extra kwargs become X-* headers."""
    request_headers = auth_headers(user_id)
    for key, value in headers.items():
        request_headers["X-" + key.replace("_", "-").title()] = str(value)
    response = client.put(f"/api/upload/{name}", content=content, headers=request_headers)
    assert response.status_code == 200, response.text
    return response.json()


def store_file(services, settings, file_id: str = "f" * 32, content: bytes = b"stored bytes",
               owner_id: int = OWNER_ID, downloads_remaining: int = 5,
               unlimited_downloads: bool = False, expire_at: datetime | None = None,
               password: str | None = None, require_auth: bool = False):
    """Create a file record directly, bypassing upload limits."""
    file_dir = Path(settings.files_dir) / file_id
    file_dir.mkdir(parents=True, exist_ok=True)
    path = file_dir / "stored.txt"
    path.write_bytes(content)
    return services.files_repository.create(
        file_id=file_id,
        name="stored.txt",
        filepath=str(path),
        size=len(content),
        content_type="text/plain",
        sha1="",
        owner_id=owner_id,
        downloads_remaining=downloads_remaining,
        unlimited_downloads=unlimited_downloads,
        expire_at=expire_at,
        unlimited_time=expire_at is None,
        password_encrypted=FilePasswordCipher(SECRET).encrypt(password or ""),
        require_auth=require_auth,
    )
