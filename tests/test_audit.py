import logging
from datetime import timedelta

from api.audit.dto.audit import (
    ACTION_FILE_UPLOADED,
    ACTION_SETTINGS_UPDATED,
    ENTITY_FILE,
    AuditEntry,
    AuditLogFilter,
)
from api.audit.services.audit_emitter import AuditEmitter
from clock import utcnow
from conftest import ADMIN_HEADERS, auth_headers, upload


class _BrokenRepository:
    def insert(self, entry, timestamp):
        raise RuntimeError("disk full")


def test_record_never_raises(caplog):
    emitter = AuditEmitter(_BrokenRepository())
    with caplog.at_level(logging.ERROR, logger="parcel.audit"):
        emitter.record(AuditEntry(action="X", entity_type=ENTITY_FILE, entity_id="abc"))
    assert "event=audit_write_failed" in caplog.text
    assert "abc" in caplog.text


def test_download_survives_audit_failure(client, services):
    file_id = upload(client, content=b"ok")["file_id"]
    services.audit._repository = _BrokenRepository()
    response = client.get(f"/d/{file_id}")
    assert response.status_code == 200
    assert response.content == b"ok"


def test_query_filters_and_paginates(services):
    for i in range(5):
        services.audit.record(
            AuditEntry(action=ACTION_FILE_UPLOADED, entity_type=ENTITY_FILE, entity_id=f"file-{i}",
                       actor_id=1, details={"file_name": f"doc-{i}.txt"})
        )
    services.audit.record(AuditEntry(action="OTHER", entity_type="System", success=False))

    page = services.audit.query(AuditLogFilter(action=ACTION_FILE_UPLOADED, limit=2))
    assert page.total == 5
    assert len(page.items) == 2

    second = services.audit.query(AuditLogFilter(action=ACTION_FILE_UPLOADED, limit=2, offset=4))
    assert len(second.items) == 1

    found = services.audit.query(AuditLogFilter(search="doc-3"))
    assert [e.entity_id for e in found.items] == ["file-3"]
    assert found.items[0].details == {"file_name": "doc-3.txt"}

    future = services.audit.query(AuditLogFilter(since=utcnow() + timedelta(hours=1)))
    assert future.total == 0


def test_retention_cleanup(services):
    services.audit._repository.insert(
        AuditEntry(action="OLD", entity_type="System"), utcnow() - timedelta(days=100)
    )
    services.audit.record(AuditEntry(action="NEW", entity_type="System"))

    assert services.audit.cleanup(90) == 1
    assert [e.action for e in services.audit.query(AuditLogFilter()).items] == ["NEW"]
    assert services.audit.cleanup(0) == 0


def test_audit_api_is_admin_only(client):
    upload(client)
    assert client.get("/api/audit-logs").status_code == 401
    assert client.get("/api/audit-logs", headers=auth_headers()).status_code == 403

    response = client.get(
        "/api/audit-logs", params={"action": ACTION_FILE_UPLOADED}, headers=ADMIN_HEADERS
    )
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["items"][0]["actor_id"] == 1


def test_settings_update_is_audited(client):
    response = client.put("/api/settings", json={"save_ip": True}, headers=ADMIN_HEADERS)
    assert response.status_code == 200
    assert response.json()["save_ip"] is True

    logs = client.get(
        "/api/audit-logs", params={"action": ACTION_SETTINGS_UPDATED}, headers=ADMIN_HEADERS
    ).json()
    assert logs["items"][0]["details"] == {"save_ip": True}
