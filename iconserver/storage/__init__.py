"""
Account storage.

`get_store()` returns the process-wide store built from `load_server_config()`;
tests replace it with `set_store()`.
"""

from __future__ import annotations

import threading
from typing import Optional

from iconserver.config import ServerConfig, build_postgres_dsn, load_server_config
from iconserver.storage.base import AccountStore
from iconserver.storage.postgres_store import PostgresAccountStore
from iconserver.storage.sqlite_store import SqliteAccountStore

__all__ = [
    "AccountStore",
    "PostgresAccountStore",
    "SqliteAccountStore",
    "build_store",
    "get_store",
    "set_store",
]

_store: Optional[AccountStore] = None
_store_lock = threading.Lock()


def build_store(cfg: ServerConfig) -> AccountStore:
    if cfg.postgres_enabled:
        dsn = build_postgres_dsn(cfg)
        if not dsn:
            raise RuntimeError(
                "ICONSERVER_STORAGE=postgres but no connection configured "
                "(set POSTGRES_DSN or POSTGRES_HOST/POSTGRES_DB/POSTGRES_USER/POSTGRES_PASSWORD)"
            )
        return PostgresAccountStore(dsn=dsn)
    return SqliteAccountStore(path=cfg.sqlite_path)


def get_store() -> AccountStore:
    """Get the account store instance (singleton)."""
    global _store
    if _store is not None:
        return _store
    with _store_lock:
        if _store is None:
            _store = build_store(load_server_config())
        return _store


def set_store(store: Optional[AccountStore]) -> None:
    """Set the account store instance (for testing). `None` rebuilds from config on next use."""
    global _store
    _store = store
