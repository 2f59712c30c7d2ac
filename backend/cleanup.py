"""Cleanup — trashes expired files and purges old trash and audit entries.

Run standalone: python cleanup.py
Runs hourly in-process when PARCEL_ENABLE_CLEANER is true.
"""

import logging
import shutil
from dataclasses import asdict, dataclass
from datetime import timedelta
from pathlib import Path

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.exc import OperationalError

from api.audit.dto.audit import ACTION_CLEANUP, ENTITY_SYSTEM
from clock import utcnow
from config import Settings
from container import Services

logger = logging.getLogger("parcel.cleanup")

SYSTEM_USER_ID = 0


@dataclass
class CleanupResult:
    trashed: int = 0
    purged: int = 0
    orphans_removed: int = 0
    audit_pruned: int = 0


def run_cleanup(services: Services, config: Settings) -> CleanupResult:
    """Trash expired files, purge old trash and orphaned directories.

    Download logs are never touched.
    """
    result = CleanupResult()
    files = services.files_repository
    now = utcnow()

    # Expired by time or out of downloads
    for file in files.get_expired(now):
        if files.soft_delete(file.id, SYSTEM_USER_ID, now):
            result.trashed += 1

    # Trash past the retention window
    cutoff = now - timedelta(days=config.trash_retention_days)
    for file in files.get_deleted_before(cutoff):
        _remove_from_disk(file.filepath, config.files_dir)
        if files.delete(file.id):
            result.purged += 1

    # Orphaned directories (on disk but not in DB)
    if config.files_dir.exists():
        for entry in config.files_dir.iterdir():
            if entry.is_dir() and not files.id_exists(entry.name):
                shutil.rmtree(entry, ignore_errors=True)
                result.orphans_removed += 1

    result.audit_pruned = services.audit.cleanup(config.audit_retention_days)

    # Record last cleanup time
    services.settings.set_value("last_cleanup", now.isoformat())
    services.audit.emit(ACTION_CLEANUP, ENTITY_SYSTEM, "cleanup", details=asdict(result))
    logger.info(
        "event=cleanup_done trashed=%s purged=%s orphans=%s audit_pruned=%s",
        result.trashed,
        result.purged,
        result.orphans_removed,
        result.audit_pruned,
    )
    return result


def _remove_from_disk(filepath: str, files_dir: Path) -> None:
    """Remove the file's own directory, never anything outside files_dir."""
    file_dir = Path(filepath).parent
    if file_dir.resolve().parent != files_dir.resolve():
        Path(filepath).unlink(missing_ok=True)
        return
    if file_dir.exists():
        shutil.rmtree(file_dir, ignore_errors=True)


def start_cleaner(services: Services, config: Settings) -> BackgroundScheduler:
    scheduler = BackgroundScheduler()

    def _job():
        try:
            run_cleanup(services, config)
        except OperationalError as e:
            logger.error("event=cleanup_failed reason=database error=%s", e)
        except Exception:
            logger.exception("event=cleanup_failed reason=unexpected")

    scheduler.add_job(_job, "interval", hours=1)
    scheduler.start()
    return scheduler


if __name__ == "__main__":
    from main import build_runtime, configure_logging
    from config import load_settings

    settings = load_settings()
    configure_logging(settings.log_level)
    run_cleanup(build_runtime(settings), settings)
