from __future__ import annotations

import sqlite3
import threading

from iconserver.core.models import AccountRecord
from iconserver.storage.sqlite_store import SqliteAccountStore


def test_ensure_schema_is_idempotent_and_keeps_rows(store) -> None:
    store.upsert_token(1, "tok")
    store.ensure_schema()
    store.ensure_schema()
    assert store.get_record(1) == AccountRecord(account_id=1, session_token="tok", icon_data=None)


def test_creates_parent_directory(tmp_path) -> None:
    path = tmp_path / "a" / "b" / "db.sqlite"
    s = SqliteAccountStore(path=str(path))
    s.ensure_schema()
    assert path.exists()


def test_missing_record_is_none(store) -> None:
    assert store.get_record(404) is None


def test_icon_data_upsert_alone_creates_row_without_token(store) -> None:
    store.upsert_icon_data(3, {"cube": {"a.b": 1}})
    rec = store.get_record(3)
    assert rec is not None
    assert rec.session_token is None
    assert rec.has_session is False
    assert rec.icon_data == {"cube": {"a.b": 1}}


def test_token_upsert_preserves_icon_data(store) -> None:
    store.upsert_token(3, "first")
    store.upsert_icon_data(3, {"cube": {"a.b": 1}})
    store.upsert_token(3, "second")
    rec = store.get_record(3)
    assert rec.session_token == "second"
    assert rec.icon_data == {"cube": {"a.b": 1}}


def test_icon_data_upsert_preserves_token(store) -> None:
    store.upsert_token(3, "tok")
    store.upsert_icon_data(3, {"cube": {"a.b": 1}})
    store.upsert_icon_data(3, {"ship": {"c.d": 2}})
    rec = store.get_record(3)
    assert rec.session_token == "tok"
    assert rec.icon_data == {"ship": {"c.d": 2}}


def test_corrupt_icon_data_reads_as_absent(store) -> None:
    store.upsert_token(9, "tok")
    con = sqlite3.connect(store.path)
    try:
        with con:
            con.execute("UPDATE players SET icon_data = ? WHERE account_id = ?", ("{not json", 9))
    finally:
        con.close()
    rec = store.get_record(9)
    assert rec.session_token == "tok"
    assert rec.icon_data is None


def test_concurrent_field_upserts_do_not_lose_either_column(store) -> None:
    errors = []

    def write_tokens() -> None:
        try:
            for i in range(25):
                store.upsert_token(11, f"tok-{i}")
        except Exception as e:  # pragma: no cover
            errors.append(e)

    def write_data() -> None:
        try:
            for i in range(25):
                store.upsert_icon_data(11, {"cube": {"a.b": i}})
        except Exception as e:  # pragma: no cover
            errors.append(e)

    threads = [threading.Thread(target=write_tokens), threading.Thread(target=write_data)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    rec = store.get_record(11)
    assert rec.session_token == "tok-24"
    assert rec.icon_data == {"cube": {"a.b": 24}}


def test_conditional_write_requires_matching_token(store) -> None:
    assert store.replace_icon_data_if_token(20, "tok", {"cube": {"a.b": 1}}) is False
    assert store.get_record(20) is None

    store.upsert_token(20, "tok")
    assert store.replace_icon_data_if_token(20, "other", {"cube": {"a.b": 1}}) is False
    assert store.get_record(20).icon_data is None

    assert store.replace_icon_data_if_token(20, "tok", {"cube": {"a.b": 1}}) is True
    rec = store.get_record(20)
    assert rec.session_token == "tok"
    assert rec.icon_data == {"cube": {"a.b": 1}}
