from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'sqlite'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/tasks.db'
    - ENCRYPTION_KEY: Fernet key used for task summaries (ephemeral key when unset)
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - AUDIT_MAX_RETRIES: retries for audit delivery before dead-lettering (default: 3)
    - LOG_LEVEL: root console log level (default: INFO)
    - LOG_FILE: optional path of a debug log file
    """

    persistence_backend: str
    sqlite_db_path: str
    encryption_key: Optional[str]
    cors_allow_origins: List[str]
    audit_max_retries: int
    log_level: str
    log_file: Optional[str]


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_int(value: str, default: int) -> int:
    try:
        return int(value.strip())
    except ValueError:
        return default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "sqlite"}:
        backend = "memory"

    sqlite_path = _get_env("SQLITE_DB_PATH", "./data/tasks.db").strip()
    origins = _parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*"))
    retries = max(_parse_int(_get_env("AUDIT_MAX_RETRIES", "3"), 3), 0)
    log_level = _get_env("LOG_LEVEL", "INFO").strip().upper()

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=sqlite_path,
        encryption_key=os.getenv("ENCRYPTION_KEY") or None,
        cors_allow_origins=origins,
        audit_max_retries=retries,
        log_level=log_level,
        log_file=os.getenv("LOG_FILE") or None,
    )
