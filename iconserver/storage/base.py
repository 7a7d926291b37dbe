from __future__ import annotations

import json
import logging
from typing import Any, Optional, Protocol

from iconserver.core.models import AccountRecord, IconData

logger = logging.getLogger(__name__)

TABLE_NAME = "players"


class AccountStore(Protocol):
    """
    Durable per-account rows: session token + icon data blob.

    Both upserts are field-scoped: writing one column never resets the other.
    """

    def ensure_schema(self) -> None:
        """Create the table if it does not exist (idempotent)."""

    def get_record(self, account_id: int) -> Optional[AccountRecord]:
        """Return the stored row, or None when the account has never been written."""

    def upsert_token(self, account_id: int, token: str) -> None:
        """Insert the row if absent, else replace only the session token."""

    def upsert_icon_data(self, account_id: int, data: IconData) -> None:
        """Insert the row if absent, else replace only the icon data blob (whole-blob)."""

    def replace_icon_data_if_token(self, account_id: int, token: str, data: IconData) -> bool:
        """
        Replace the icon data blob only while `token` is the stored session token.

        The check and the write are one statement. Returns False (nothing written)
        when the row is absent or holds a different token.
        """


def encode_icon_data(data: IconData) -> str:
    return json.dumps(data, separators=(",", ":"), sort_keys=True, allow_nan=False)


def decode_icon_data(account_id: int, raw: Any) -> Optional[IconData]:
    """Decode a stored blob. Corrupt or non-object values are treated as absent."""
    if raw is None or raw == "":
        return None
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Discarding undecodable icon data for account %s", account_id)
        return None
    if not isinstance(value, dict):
        logger.warning("Discarding non-object icon data for account %s", account_id)
        return None
    return value
