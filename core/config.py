"""
Shared configuration for CollabGate core.
"""

from __future__ import annotations

import logging
import os

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("collabgate")


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


def _get_list(env_name: str) -> list[str]:
    value = os.environ.get(env_name, "")
    return [item.strip() for item in value.split(",") if item.strip()]


def _derive_effective_backend(db_backend: str) -> str:
    return db_backend if db_backend in {"postgres", "sqlite"} else "postgres"


# Database settings
DB_BACKEND = os.environ.get("DB_BACKEND", "postgres").strip().lower()
SQLITE_PATH = os.environ.get("SQLITE_PATH", "/data/collabgate.db")
DATABASE_URL = os.environ.get("DATABASE_URL")
DB_BACKEND_EFFECTIVE = _derive_effective_backend(DB_BACKEND)

# Database initialization controls
AUTO_MIGRATE_ON_STARTUP = _get_bool("AUTO_MIGRATE_ON_STARTUP", True)

# Collaboration lifecycle
DEFAULT_LOCATION = os.environ.get("COLLABGATE_DEFAULT_LOCATION", "San Francisco").strip()

# Curation & selection
RANDOM_SELECTION_CAP = _get_int("COLLABGATE_RANDOM_SELECTION_CAP", 10)
MAX_RANDOM_SELECTION_CAP = _get_int("COLLABGATE_MAX_RANDOM_SELECTION_CAP", 100)
CURATION_WORKERS = _get_int("COLLABGATE_CURATION_WORKERS", 4)

# Activity (audit) listing
ACTIVITY_PAGE_SIZE = _get_int("COLLABGATE_ACTIVITY_PAGE_SIZE", 50)
MAX_ACTIVITY_PAGE_SIZE = _get_int("COLLABGATE_MAX_ACTIVITY_PAGE_SIZE", 200)

# Communications
MAX_COMMUNICATION_WORDS = _get_int("COLLABGATE_MAX_COMMUNICATION_WORDS", 250)

# Request/input limits
MAX_TEXT_LENGTH = _get_int("COLLABGATE_MAX_TEXT_LENGTH", 8000)
MAX_TITLE_LENGTH = _get_int("COLLABGATE_MAX_TITLE_LENGTH", 500)
MAX_URL_LENGTH = _get_int("COLLABGATE_MAX_URL_LENGTH", 1000)
MAX_ID_LENGTH = _get_int("COLLABGATE_MAX_ID_LENGTH", 64)
MAX_INVITEES = _get_int("COLLABGATE_MAX_INVITEES", 50)
MAX_SELECTION_ITEMS = _get_int("COLLABGATE_MAX_SELECTION_ITEMS", 500)

# HTTP surface; no cross-origin access unless origins are listed
CORS_ALLOWED_ORIGINS = _get_list("COLLABGATE_CORS_ALLOWED_ORIGINS")
TRUSTED_HOSTS = _get_list("COLLABGATE_TRUSTED_HOSTS")


def validate_and_prepare_config() -> None:
    """Validate configuration and apply derived settings at startup."""
    global DATABASE_URL, DB_BACKEND_EFFECTIVE

    errors = []
    if DB_BACKEND not in {"postgres", "sqlite"}:
        errors.append("DB_BACKEND must be 'postgres' or 'sqlite'")

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

    if not DEFAULT_LOCATION:
        errors.append("COLLABGATE_DEFAULT_LOCATION must not be empty")

    if RANDOM_SELECTION_CAP < 1 or RANDOM_SELECTION_CAP > MAX_RANDOM_SELECTION_CAP:
        errors.append(
            "COLLABGATE_RANDOM_SELECTION_CAP must be between 1 and "
            "COLLABGATE_MAX_RANDOM_SELECTION_CAP"
        )

    if MAX_COMMUNICATION_WORDS < 1:
        errors.append("COLLABGATE_MAX_COMMUNICATION_WORDS must be positive")

    if ACTIVITY_PAGE_SIZE < 1 or ACTIVITY_PAGE_SIZE > MAX_ACTIVITY_PAGE_SIZE:
        errors.append(
            "COLLABGATE_ACTIVITY_PAGE_SIZE must be between 1 and "
            "COLLABGATE_MAX_ACTIVITY_PAGE_SIZE"
        )

    if CURATION_WORKERS < 1:
        logger.warning("COLLABGATE_CURATION_WORKERS < 1; curation sub-fetches run sequentially.")

    DB_BACKEND_EFFECTIVE = _derive_effective_backend(DB_BACKEND)

    if errors:
        raise RuntimeError("Configuration invalid: " + "; ".join(errors))
