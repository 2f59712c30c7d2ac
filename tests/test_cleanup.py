from datetime import timedelta
from pathlib import Path

from cleanup import run_cleanup
from clock import utcnow
from conftest import store_file


def test_expired_files_move_to_trash(services, settings):
    store_file(services, settings, file_id="a" * 32, expire_at=utcnow() - timedelta(hours=1))
    store_file(services, settings, file_id="b" * 32, downloads_remaining=0)
    store_file(services, settings, file_id="c" * 32, downloads_remaining=3)

    result = run_cleanup(services, settings)

    assert result.trashed == 2
    assert services.files_repository.get("a" * 32) is None
    assert services.files_repository.get("b" * 32) is None
    assert services.files_repository.get("c" * 32) is not None
    # Still on disk until the trash retention passes
    assert (settings.files_dir / ("a" * 32)).exists()
    assert services.settings.get_value("last_cleanup") is not None


def test_old_trash_is_purged_but_logs_stay(services, settings):
    record = store_file(services, settings, file_id="d" * 32)
    services.download_logs.create(
        file_id=record.id, file_name=record.name, file_size=record.size, downloaded_at=utcnow()
    )
    services.files_repository.soft_delete(
        record.id, 1, utcnow() - timedelta(days=settings.trash_retention_days + 1)
    )

    result = run_cleanup(services, settings)

    assert result.purged == 1
    assert services.files_repository.get(record.id, include_deleted=True) is None
    assert not Path(record.filepath).exists()
    assert not (settings.files_dir / record.id).exists()
    assert len(services.download_logs.list_by_file(record.id)) == 1


def test_recent_trash_is_kept(services, settings):
    record = store_file(services, settings, file_id="e" * 32)
    services.files_repository.soft_delete(record.id, 1, utcnow())

    assert run_cleanup(services, settings).purged == 0
    assert Path(record.filepath).exists()


def test_orphan_directories_are_removed(services, settings):
    orphan = settings.files_dir / "orphan"
    orphan.mkdir(parents=True)
    (orphan / "left.bin").write_bytes(b"x")
    store_file(services, settings, file_id="g" * 32)

    result = run_cleanup(services, settings)

    assert result.orphans_removed == 1
    assert not orphan.exists()
    assert (settings.files_dir / ("g" * 32)).exists()
