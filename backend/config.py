"""Application configuration."""

import os
from pathlib import Path

from pydantic import BaseModel

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in {"true", "1", "yes"}


class Settings(BaseModel):
    data_dir: Path = DEFAULT_DATA_DIR
    database_url: str = ""
    secret_key: str = "parcel-dev-secret"
    public_url: str = ""
    # Honour X-Forwarded-For only behind a reverse proxy that sets it
    trust_proxy: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # Administrator credentials (header auth, same as the browser admin)
    admin_user: str = ""
    admin_pass: str = ""

    session_hours: int = 24
    notify_workers: int = 2
    notify_queue: int = 100
    enable_cleaner: bool = False
    trash_retention_days: int = 5
    audit_retention_days: int = 90
    db_migrations: bool = True
    log_level: str = "INFO"

    @property
    def files_dir(self) -> Path:
        return self.data_dir / "files"

    @property
    def admin_enabled(self) -> bool:
        return bool(self.admin_user and self.admin_pass)

    @property
    def resolved_database_url(self) -> str:
        return self.database_url or f"sqlite:///{self.data_dir}/parcel.db"

    def ensure_dirs(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.files_dir.mkdir(parents=True, exist_ok=True)


def load_settings() -> Settings:
    """Build settings from PARCEL_* environment variables."""
    return Settings(
        data_dir=Path(os.environ.get("PARCEL_DATA_DIR", str(DEFAULT_DATA_DIR))),
        database_url=os.environ.get("PARCEL_DATABASE_URL", "").strip(),
        secret_key=os.environ.get("PARCEL_SECRET_KEY", "parcel-dev-secret").strip(),
        public_url=os.environ.get("PARCEL_PUBLIC_URL", "").strip().rstrip("/"),
        trust_proxy=_env_bool("PARCEL_TRUST_PROXY", "false"),
        host=os.environ.get("PARCEL_HOST", "0.0.0.0").strip(),
        port=int(os.environ.get("PARCEL_PORT", "8000")),
        admin_user=os.environ.get("PARCEL_ADMIN_USER", "").strip(),
        admin_pass=os.environ.get("PARCEL_ADMIN_PASS", "").strip(),
        session_hours=int(os.environ.get("PARCEL_SESSION_HOURS", "24")),
        notify_workers=max(1, int(os.environ.get("PARCEL_NOTIFY_WORKERS", "2"))),
        notify_queue=max(1, int(os.environ.get("PARCEL_NOTIFY_QUEUE", "100"))),
        enable_cleaner=_env_bool("PARCEL_ENABLE_CLEANER", "false"),
        trash_retention_days=int(os.environ.get("PARCEL_TRASH_RETENTION_DAYS", "5")),
        audit_retention_days=int(os.environ.get("PARCEL_AUDIT_RETENTION_DAYS", "90")),
        db_migrations=_env_bool("PARCEL_DB_MIGRATIONS", "true"),
        log_level=os.environ.get("PARCEL_LOG_LEVEL", "INFO").upper(),
    )
