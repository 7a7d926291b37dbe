"""Embedded sqlite storage (default when Postgres is not configured)."""

from __future__ import annotations

import sqlite3
import threading
from contextlib import closing
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from iconserver.core.errors import StorageUnavailable
from iconserver.core.models import AccountRecord, IconData
from iconserver.storage.base import TABLE_NAME, decode_icon_data, encode_icon_data


@dataclass
class SqliteAccountStore:
    """sqlite-backed AccountStore. One connection per operation, serialized by a lock."""

    path: str = "storage/database.sqlite"
    timeout_seconds: float = 30.0
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        """Ensure the parent directory exists."""
        Path(self.path).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.path, timeout=self.timeout_seconds)

    def ensure_schema(self) -> None:
        with self._lock, closing(self._connect()) as con:
            with con:
                con.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
                        account_id      INTEGER PRIMARY KEY,
                        session_token   TEXT,
                        icon_data       TEXT
                    )
                    """
                )

    def get_record(self, account_id: int) -> Optional[AccountRecord]:
        try:
            with self._lock, closing(self._connect()) as con:
                row = con.execute(
                    f"SELECT session_token, icon_data FROM {TABLE_NAME} WHERE account_id = ?",
                    (int(account_id),),
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageUnavailable(f"sqlite read failed: {e}") from e

        if row is None:
            return None
        token, raw_data = row
        return AccountRecord(
            account_id=int(account_id),
            session_token=token if isinstance(token, str) and token else None,
            icon_data=decode_icon_data(account_id, raw_data),
        )

    def upsert_token(self, account_id: int, token: str) -> None:
        self._upsert(
            f"""
            INSERT INTO {TABLE_NAME} (account_id, session_token) VALUES (?, ?)
            ON CONFLICT (account_id) DO UPDATE SET session_token = excluded.session_token
            """,
            (int(account_id), token),
        )

    def upsert_icon_data(self, account_id: int, data: IconData) -> None:
        self._upsert(
            f"""
            INSERT INTO {TABLE_NAME} (account_id, icon_data) VALUES (?, ?)
            ON CONFLICT (account_id) DO UPDATE SET icon_data = excluded.icon_data
            """,
            (int(account_id), encode_icon_data(data)),
        )

    def replace_icon_data_if_token(self, account_id: int, token: str, data: IconData) -> bool:
        rowcount = self._upsert(
            f"UPDATE {TABLE_NAME} SET icon_data = ? WHERE account_id = ? AND session_token = ?",
            (encode_icon_data(data), int(account_id), token),
        )
        return rowcount > 0

    def _upsert(self, sql: str, params: tuple) -> int:
        try:
            with self._lock, closing(self._connect()) as con:
                with con:
                    return con.execute(sql, params).rowcount
        except sqlite3.Error as e:
            raise StorageUnavailable(f"sqlite write failed: {e}") from e
