"""
Pytest config.

Local imports like `import iconserver` rely on the repo root being on sys.path, which
doesn't happen reliably when invoking a global `pytest` entrypoint without installing
the package. We pin the behavior here.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, List, Tuple

import pytest


def _ensure_repo_root_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_ensure_repo_root_on_syspath()

from iconserver.auth.argon import set_validator  # noqa: E402
from iconserver.config import load_server_config  # noqa: E402
from iconserver.storage import set_store  # noqa: E402
from iconserver.storage.sqlite_store import SqliteAccountStore  # noqa: E402


class FakeValidator:
    """Deterministic credential validator: valid iff (account_id, credential) was registered."""

    def __init__(self, valid: Dict[int, str] | None = None) -> None:
        self.valid: Dict[int, str] = dict(valid or {})
        self.calls: List[Tuple[int, str]] = []

    def validate(self, account_id: int, credential: str) -> bool:
        self.calls.append((account_id, credential))
        return self.valid.get(account_id) == credential


@pytest.fixture(autouse=True)
def _reset_singletons(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """
    Keep unit tests hermetic: no real Argon calls, no shared sqlite file.

    Point the default sqlite path at a temp dir so anything that falls back to
    `get_store()` never writes into the working tree.
    """
    monkeypatch.setenv("ICONSERVER_DB_PATH", str(tmp_path / "default.sqlite"))
    monkeypatch.delenv("ICONSERVER_STORAGE", raising=False)
    load_server_config.cache_clear()
    set_store(None)
    set_validator(None)
    yield
    set_store(None)
    set_validator(None)
    load_server_config.cache_clear()


@pytest.fixture
def store(tmp_path: Path) -> SqliteAccountStore:
    s = SqliteAccountStore(path=str(tmp_path / "storage" / "database.sqlite"))
    s.ensure_schema()
    set_store(s)
    return s


@pytest.fixture
def validator() -> FakeValidator:
    v = FakeValidator({42: "argon-42", 7: "argon-7"})
    set_validator(v)
    return v
