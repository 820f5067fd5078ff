"""Database engine, sessions and migration entry point."""
import sqlite3
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from fitflex.config import get_settings


PROJECT_ROOT = Path(__file__).resolve().parent.parent

settings = get_settings()


def _engine_options(database_url: str) -> dict:
    """Connection arguments for the configured backend.

    File-backed SQLite gets its folder created. FastAPI may open a session on
    one thread and commit it from the threadpool, so SQLite connections must
    not be pinned to the creating thread.
    """
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return {}
    if url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    return {"connect_args": {"check_same_thread": False}}


engine = create_engine(
    settings.database_url,
    echo=settings.debug,
    future=True,
    **_engine_options(settings.database_url),
)


@event.listens_for(Engine, "connect")
def enable_sqlite_foreign_keys(dbapi_conn, connection_record):
    if isinstance(dbapi_conn, sqlite3.Connection):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


class Base(DeclarativeBase):
    """Declarative base for the Fitflex models."""


SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def get_db():
    """FastAPI dependency: one session per request, committed when the handler succeeds."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def run_migrations(target_revision: str = "head") -> None:
    """Upgrade the configured database with the migrations in ``migrations/``."""

    cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", settings.database_url)
    # The app has already configured logging; keep env.py from replacing it.
    cfg.attributes["configure_logger"] = False
    command.upgrade(cfg, target_revision)
