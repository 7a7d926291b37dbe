from __future__ import annotations

import logging
import secrets

from iconserver.auth.argon import CredentialValidator
from iconserver.core.errors import ValidationFailed
from iconserver.storage.base import AccountStore

logger = logging.getLogger(__name__)

SESSION_TOKEN_BYTES = 20


def generate_session_token() -> str:
    """40 hex chars of CSPRNG output."""
    return secrets.token_hex(SESSION_TOKEN_BYTES)


def issue_session_token(
    store: AccountStore,
    validator: CredentialValidator,
    account_id: int,
    credential: str,
) -> str:
    """
    Exchange an Argon credential for a fresh session token.

    The new token replaces any previous one for the account; stored icon data is
    left untouched. Storage is not touched at all when validation fails.

    Raises:
        ValidationFailed: the validator rejected the credential
    """
    if not validator.validate(account_id, credential):
        raise ValidationFailed(f"Argon validation failed for account {account_id}")

    token = generate_session_token()
    store.upsert_token(account_id, token)
    logger.info("Issued session token for account %s", account_id)
    return token
