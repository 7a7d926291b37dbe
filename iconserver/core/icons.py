"""
Icon data merge engine.

Stored shape per account:

    {
      "<icon type>": {"<namespace.name>": <any JSON>, ...},
      ...
      "shared": {"<namespace.name>": <any JSON>, ...},
    }

Reads overlay `shared` onto every requested type (shared wins per mod id) and never
return `shared` itself. Writes replace the whole blob after a session token check;
the overlay is never persisted.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Union

from iconserver.core.errors import NoSession, TokenMismatch, ValidationError
from iconserver.core.models import (
    ALL_TYPES,
    ICON_TYPES,
    SHARED_TYPE,
    WRITABLE_TYPES,
    IconData,
    is_valid_mod_id,
)
from iconserver.storage.base import AccountStore

logger = logging.getLogger(__name__)

RequestedTypes = Union[str, Iterable[str]]


def resolve_requested_types(requested: RequestedTypes, stored: Mapping[str, Any]) -> List[str]:
    """
    Expand a request into the list of result keys.

    `ALL` expands to the stored keys (minus `shared`); an explicit `shared` is dropped.
    Order is preserved and duplicates removed.
    """
    items = [requested] if isinstance(requested, str) else list(requested)
    out: List[str] = []
    for t in items:
        if t == ALL_TYPES:
            candidates = [k for k in stored.keys() if k != SHARED_TYPE]
        elif t == SHARED_TYPE:
            continue
        elif t in ICON_TYPES:
            candidates = [t]
        else:
            raise ValidationError(f"Unknown icon type: {t!r}")
        for c in candidates:
            if c not in out:
                out.append(c)
    return out


def merge_icon_types(data: Mapping[str, Any], requested: RequestedTypes) -> IconData:
    shared = data.get(SHARED_TYPE)
    if not isinstance(shared, dict):
        shared = {}

    result: IconData = {}
    for t in resolve_requested_types(requested, data):
        base = data.get(t)
        merged = dict(base) if isinstance(base, dict) else {}
        merged.update(shared)
        result[t] = merged
    return result


def get_icon_data(store: AccountStore, account_id: int, requested: RequestedTypes) -> IconData:
    """Effective icon data for one account. A missing record reads as empty, never an error."""
    record = store.get_record(account_id)
    data = record.icon_data if record is not None and record.icon_data else {}
    return merge_icon_types(data, requested)


def get_icon_data_batch(store: AccountStore, players: Mapping[int, RequestedTypes]) -> Dict[int, IconData]:
    """Per-account reads; each account is computed independently of the others."""
    out: Dict[int, IconData] = {}
    for account_id, requested in players.items():
        out[int(account_id)] = get_icon_data(store, int(account_id), requested)
    return out


def validate_icon_data(data: Any) -> IconData:
    """
    Shape check for an incoming write.

    Returns a copy safe to persist. Any subset of the writable types is allowed.
    """
    if not isinstance(data, dict):
        raise ValidationError("Icon data must be an object")

    clean: IconData = {}
    for icon_type, entries in data.items():
        if icon_type not in WRITABLE_TYPES:
            raise ValidationError(f"Unknown icon type: {icon_type!r}")
        if not isinstance(entries, dict):
            raise ValidationError(f"Entries for {icon_type!r} must be an object")
        for mod_id in entries.keys():
            if not is_valid_mod_id(mod_id):
                raise ValidationError(f"Invalid mod id {mod_id!r} (expected namespace.name)")
        clean[icon_type] = dict(entries)

    try:
        json.dumps(clean, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Icon data is not JSON-serializable: {e}") from e
    return clean


def set_icon_data(store: AccountStore, account_id: int, presented_token: str, data: Any) -> None:
    """
    Replace the stored icon data for an account.

    Raises:
        ValidationError: malformed data (storage untouched)
        NoSession: no token was ever issued for the account
        TokenMismatch: presented token differs from the stored one
    """
    clean = validate_icon_data(data)
    if not isinstance(presented_token, str):
        raise ValidationError("Session token must be a string")

    # Check and write are one statement: the token compared is the one in the row at write time.
    if not store.replace_icon_data_if_token(account_id, presented_token, clean):
        record = store.get_record(account_id)
        if record is None or not record.has_session:
            raise NoSession(f"No token generated for account {account_id} yet")
        raise TokenMismatch("Token mismatch")

    logger.info("Stored icon data for account %s (%d type(s))", account_id, len(clean))
