"""
Shared configuration for the content core.
"""

from __future__ import annotations

import logging
import os

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").strip().upper()

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger("contentcore")


def _get_bool(env_name: str, default: bool) -> bool:
    value = os.environ.get(env_name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(env_name: str, default: int) -> int:
    value = os.environ.get(env_name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_list(env_name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = os.environ.get(env_name)
    if value is None:
        return default
    return tuple(item.strip() for item in value.split(",") if item.strip())


# Database settings
DB_BACKEND = os.environ.get("DB_BACKEND", "postgres").strip().lower()
SQLITE_PATH = os.environ.get("SQLITE_PATH", "/data/contentcore.db")
DATABASE_URL = os.environ.get("DATABASE_URL")

# Database initialization controls
AUTO_MIGRATE_ON_STARTUP = _get_bool("AUTO_MIGRATE_ON_STARTUP", True)

# Content defaults
VISIBILITY_NAMES = ("private", "public", "owner_only")
DEFAULT_VISIBILITY = os.environ.get("DEFAULT_VISIBILITY", "private").strip().lower()
DEFAULT_STREAM_CHANNEL = os.environ.get("DEFAULT_STREAM_CHANNEL", "default").strip() or None

# Capabilities granted on a container when no explicit grant row exists
DEFAULT_GRANTED_CAPABILITIES = _get_list("DEFAULT_GRANTED_CAPABILITIES", ())

# Input limits
MAX_TITLE_LENGTH = _get_int("MAX_TITLE_LENGTH", 255)
MAX_CAPABILITY_LENGTH = _get_int("MAX_CAPABILITY_LENGTH", 100)
MAX_OBJECT_MODEL_LENGTH = _get_int("MAX_OBJECT_MODEL_LENGTH", 100)

# Operational reporting
ORPHAN_REPORT_LIMIT = _get_int("ORPHAN_REPORT_LIMIT", 100)


def validate_and_prepare_config() -> None:
    """Validate configuration and apply derived settings at startup."""
    global DATABASE_URL

    errors = []
    if DB_BACKEND not in {"postgres", "sqlite"}:
        errors.append("DB_BACKEND must be 'postgres' or 'sqlite'")

    if DEFAULT_VISIBILITY not in VISIBILITY_NAMES:
        errors.append("DEFAULT_VISIBILITY must be 'private', 'public', or 'owner_only'")

    if not DATABASE_URL:
        if DB_BACKEND == "sqlite":
            if not SQLITE_PATH:
                errors.append("SQLITE_PATH environment variable is required for sqlite")
            else:
                DATABASE_URL = f"sqlite:///{SQLITE_PATH}"
        else:
            errors.append("DATABASE_URL environment variable is required")
    else:
        url_lower = DATABASE_URL.lower()
        is_sqlite_url = url_lower.startswith("sqlite")
        if DB_BACKEND == "sqlite" and not is_sqlite_url:
            errors.append("DATABASE_URL must be a sqlite URL when DB_BACKEND=sqlite")
        if DB_BACKEND == "postgres" and is_sqlite_url:
            errors.append("DATABASE_URL must be a postgres URL when DB_BACKEND=postgres")

    if ORPHAN_REPORT_LIMIT <= 0:
        errors.append("ORPHAN_REPORT_LIMIT must be a positive integer")

    if errors:
        raise RuntimeError("Configuration invalid: " + "; ".join(errors))
