"""
Server configuration loaded from environment variables.

Storage defaults to an embedded sqlite file so a fresh checkout runs without any
external services. Postgres is used when ICONSERVER_STORAGE=postgres.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

DEFAULT_ARGON_BASE_URL = "https://argon.globed.dev/v1"
DEFAULT_INFO_URL = "https://undefined0.dev/cat"
DEFAULT_MOD_URL = "https://geode-sdk.org/mods/undefined0.icon_ninja"


@dataclass(frozen=True)
class ServerConfig:
    # Storage
    storage_backend: str  # sqlite|postgres
    sqlite_path: str

    # Postgres connection (either dsn or parts)
    postgres_dsn: Optional[str]
    postgres_host: Optional[str]
    postgres_port: int
    postgres_db: Optional[str]
    postgres_user: Optional[str]
    postgres_password: Optional[str]

    # External credential provider
    argon_base_url: str

    # Informational redirects
    info_url: str
    mod_url: str

    # HTTP listener
    host: str
    port: int
    log_level: str

    @property
    def postgres_enabled(self) -> bool:
        return self.storage_backend == "postgres"


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    return (os.getenv(name, "") or "").strip() or default


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@lru_cache(maxsize=1)
def load_server_config() -> ServerConfig:
    """
    Load server configuration from environment variables.

    Unknown storage backends fall back to sqlite.
    """
    backend = (_env_str("ICONSERVER_STORAGE", "sqlite") or "sqlite").lower()
    if backend not in ("sqlite", "postgres"):
        backend = "sqlite"

    return ServerConfig(
        storage_backend=backend,
        sqlite_path=_env_str("ICONSERVER_DB_PATH", os.path.join("storage", "database.sqlite")) or "",
        postgres_dsn=_env_str("POSTGRES_DSN"),
        postgres_host=_env_str("POSTGRES_HOST"),
        postgres_port=_env_int("POSTGRES_PORT", 5432),
        postgres_db=_env_str("POSTGRES_DB"),
        postgres_user=_env_str("POSTGRES_USER"),
        postgres_password=_env_str("POSTGRES_PASSWORD"),
        argon_base_url=(_env_str("ARGON_BASE_URL", DEFAULT_ARGON_BASE_URL) or "").rstrip("/"),
        info_url=_env_str("ICONSERVER_INFO_URL", DEFAULT_INFO_URL) or DEFAULT_INFO_URL,
        mod_url=_env_str("ICONSERVER_MOD_URL", DEFAULT_MOD_URL) or DEFAULT_MOD_URL,
        host=_env_str("HOST", "0.0.0.0") or "0.0.0.0",
        port=_env_int("PORT", 2001),
        log_level=(_env_str("LOG_LEVEL", "info") or "info").lower(),
    )


def build_postgres_dsn(cfg: ServerConfig) -> Optional[str]:
    if cfg.postgres_dsn:
        return cfg.postgres_dsn
    if not (cfg.postgres_host and cfg.postgres_db and cfg.postgres_user and cfg.postgres_password):
        return None
    # psycopg's conninfo builder quotes special characters in passwords and other fields.
    from psycopg.conninfo import make_conninfo

    return make_conninfo(
        host=cfg.postgres_host,
        port=cfg.postgres_port,
        dbname=cfg.postgres_db,
        user=cfg.postgres_user,
        password=cfg.postgres_password,
    )
