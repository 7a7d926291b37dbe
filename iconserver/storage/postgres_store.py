"""Postgres storage (used when ICONSERVER_STORAGE=postgres)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from iconserver.core.errors import StorageUnavailable
from iconserver.core.models import AccountRecord, IconData
from iconserver.storage.base import TABLE_NAME, decode_icon_data, encode_icon_data

logger = logging.getLogger(__name__)


def _connect(dsn: str):
    # Lazy import so the sqlite-only deployment does not need libpq at import time.
    import psycopg  # type: ignore[import-not-found]

    return psycopg.connect(dsn)


@dataclass
class PostgresAccountStore:
    """
    psycopg-backed AccountStore.

    Each call opens its own connection; `INSERT ... ON CONFLICT DO UPDATE` is atomic
    per row, so concurrent token and icon-data upserts for one account cannot lose
    each other's column.
    """

    dsn: str

    def _execute(self, sql: str, params: tuple = (), *, fetch: bool = False, rowcount: bool = False) -> Any:
        import psycopg  # type: ignore[import-not-found]

        try:
            with _connect(self.dsn) as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, params)
                    if rowcount:
                        return cur.rowcount
                    return cur.fetchone() if fetch else None
        except psycopg.Error as e:
            logger.warning("Postgres operation failed: %s", str(e))
            raise StorageUnavailable(f"postgres operation failed: {type(e).__name__}") from e

    def ensure_schema(self) -> None:
        self._execute(
            f"""
            CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
              account_id bigint PRIMARY KEY,
              session_token text NULL,
              icon_data text NULL
            );
            """
        )

    def get_record(self, account_id: int) -> Optional[AccountRecord]:
        row = self._execute(
            f"SELECT session_token, icon_data FROM {TABLE_NAME} WHERE account_id = %s",
            (int(account_id),),
            fetch=True,
        )
        if not row:
            return None
        token, raw_data = row
        return AccountRecord(
            account_id=int(account_id),
            session_token=str(token) if token else None,
            icon_data=decode_icon_data(account_id, raw_data),
        )

    def upsert_token(self, account_id: int, token: str) -> None:
        self._execute(
            f"""
            INSERT INTO {TABLE_NAME} (account_id, session_token) VALUES (%s, %s)
            ON CONFLICT (account_id) DO UPDATE SET session_token = EXCLUDED.session_token
            """,
            (int(account_id), token),
        )

    def upsert_icon_data(self, account_id: int, data: IconData) -> None:
        self._execute(
            f"""
            INSERT INTO {TABLE_NAME} (account_id, icon_data) VALUES (%s, %s)
            ON CONFLICT (account_id) DO UPDATE SET icon_data = EXCLUDED.icon_data
            """,
            (int(account_id), encode_icon_data(data)),
        )

    def replace_icon_data_if_token(self, account_id: int, token: str, data: IconData) -> bool:
        updated = self._execute(
            f"UPDATE {TABLE_NAME} SET icon_data = %s WHERE account_id = %s AND session_token = %s",
            (encode_icon_data(data), int(account_id), token),
            rowcount=True,
        )
        return bool(updated and updated > 0)
