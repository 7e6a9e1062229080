"""
Database initialization, migration and transaction helpers.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

import contentcore.config as config


class DB:
    """Database state holder (avoids global scoping issues)."""

    engine = None
    SessionLocal = None


def _get_alembic_config(database_url: Optional[str] = None):
    try:
        from alembic.config import Config
    except ImportError as exc:
        raise RuntimeError("Alembic is required for migrations") from exc

    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    alembic_cfg = Config(os.path.join(base_dir, "alembic.ini"))
    alembic_cfg.set_main_option("script_location", os.path.join(base_dir, "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", database_url or config.DATABASE_URL or "")
    return alembic_cfg


def _get_schema_revisions(engine) -> tuple[Optional[str], Optional[str]]:
    from alembic.runtime.migration import MigrationContext
    from alembic.script import ScriptDirectory

    alembic_cfg = _get_alembic_config(engine.url.render_as_string(hide_password=False))
    script = ScriptDirectory.from_config(alembic_cfg)
    head_revision = script.get_current_head()
    with engine.connect() as conn:
        context = MigrationContext.configure(conn)
        current_revision = context.get_current_revision()
    return current_revision, head_revision


def upgrade_schema(database_url: Optional[str] = None) -> None:
    from alembic import command

    command.upgrade(_get_alembic_config(database_url), "head")


def _ensure_schema_up_to_date(engine) -> None:
    current_rev, head_rev = _get_schema_revisions(engine)
    if current_rev == head_rev:
        return

    if config.AUTO_MIGRATE_ON_STARTUP:
        upgrade_schema(engine.url.render_as_string(hide_password=False))
        new_current, _ = _get_schema_revisions(engine)
        if new_current != head_rev:
            raise RuntimeError("Database migration did not reach expected revision")
    else:
        raise RuntimeError(
            f"Database schema out of date (current={current_rev}, expected={head_rev}). "
            "Run 'alembic upgrade head' or set AUTO_MIGRATE_ON_STARTUP=true for dev."
        )


def init_db() -> None:
    """Initialize database connection and bring the schema to head."""
    config.validate_and_prepare_config()

    config.logger.info("Connecting to database...")
    engine_kwargs = {"pool_pre_ping": True}
    if config.DB_BACKEND == "sqlite":
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    DB.engine = create_engine(config.DATABASE_URL, **engine_kwargs)
    DB.SessionLocal = sessionmaker(bind=DB.engine)

    _ensure_schema_up_to_date(DB.engine)

    config.logger.info("Database initialized")


def open_session() -> Session:
    if DB.SessionLocal is None:
        raise RuntimeError("Database not initialized - SessionLocal is None")
    return DB.SessionLocal()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Commit everything done inside the block, or roll all of it back."""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
