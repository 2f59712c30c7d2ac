"""Parcel — Main application entry point."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from alembic import command
from alembic.config import Config
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.engine import Engine

from api.accounts.controllers.accounts_controller import router as accounts_router
from api.audit.controllers.audit_controller import router as audit_router
from api.download.controllers.download_controller import router as download_router
from api.files.controllers.files_controller import router as files_router
from api.settings.controllers.settings_controller import router as settings_router
from api.teams.controllers.teams_controller import router as teams_router
from api.upload.controllers.upload_controller import router as upload_router
from cleanup import start_cleaner
from config import Settings, load_settings
from container import Services, build_services
from database import build_engine, create_session_factory, init_db
from errors import register_exception_handlers

logger = logging.getLogger("parcel")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def run_migrations(settings: Settings, engine: Engine) -> None:
    """Run Alembic migrations, falling back to create_all."""
    if not settings.db_migrations:
        init_db(engine)
        return
    try:
        alembic_ini = Path(__file__).parent / "alembic.ini"
        alembic_cfg = Config(str(alembic_ini))
        alembic_cfg.set_main_option(
            "script_location", str(Path(__file__).parent / "db_migrations")
        )
        alembic_cfg.set_main_option(
            "sqlalchemy.url", settings.resolved_database_url.replace("%", "%%")
        )
        alembic_cfg.attributes["configure_logger"] = False
        command.upgrade(alembic_cfg, "head")
    except Exception:
        logger.warning("event=migration_failed fallback=create_all", exc_info=True)
        init_db(engine)


def build_runtime(settings: Settings) -> Services:
    """Prepare storage and the database, then wire the services."""
    settings.ensure_dirs()
    engine = build_engine(settings.resolved_database_url)
    run_migrations(settings, engine)
    services = build_services(settings, create_session_factory(engine))
    services.engine = engine
    return services


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)
    services = build_runtime(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        scheduler = start_cleaner(services, settings) if settings.enable_cleaner else None
        yield
        if scheduler is not None:
            scheduler.shutdown(wait=False)
        services.notifier.shutdown(wait=False)

    app = FastAPI(title="Parcel", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.services = services

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    @app.get("/api/health")
    def health():
        with services.engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return {"status": "ok"}

    app.include_router(files_router)
    app.include_router(settings_router)
    app.include_router(teams_router)
    app.include_router(audit_router)
    app.include_router(upload_router)
    app.include_router(accounts_router)
    app.include_router(download_router)

    logger.info("event=app_ready data_dir=%s", settings.data_dir)
    return app


def run() -> None:
    settings = app.state.settings
    # Large downloads stream for as long as they need; only idle keep-alive is bounded
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        timeout_keep_alive=30,
    )


app = create_app()

if __name__ == "__main__":
    run()
