"""
Argon credential validator.

Argon issues opaque per-account credentials to game clients; this module asks
the Argon server whether a credential is currently valid for an account id.
Every failure mode resolves to "invalid" (fail closed).
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional, Protocol

import requests

from iconserver.config import DEFAULT_ARGON_BASE_URL, load_server_config

logger = logging.getLogger(__name__)


class CredentialValidator(Protocol):
    """Protocol for external credential validation."""

    def validate(self, account_id: int, credential: str) -> bool:
        """
        Return True only when the provider confirms the credential for this account.

        Implementations must never raise.
        """
        ...


class ArgonValidator:
    """
    Default validator calling `GET {base_url}/validation/check`.

    No retries and no timeout beyond the transport default.
    """

    def __init__(self, base_url: str = DEFAULT_ARGON_BASE_URL, session: Optional[requests.Session] = None) -> None:
        self.base_url = (base_url or DEFAULT_ARGON_BASE_URL).rstrip("/")
        self._session = session

    def _get(self, url: str, **kwargs: Any) -> requests.Response:
        if self._session is not None:
            return self._session.get(url, **kwargs)
        return requests.get(url, **kwargs)

    def validate(self, account_id: int, credential: str) -> bool:
        url = f"{self.base_url}/validation/check"
        try:
            response = self._get(url, params={"account_id": account_id, "authtoken": credential})
        except requests.RequestException as e:
            logger.warning("[Argon] Request failed for account %s: %s", account_id, str(e))
            return False

        if response.status_code != 200:
            logger.warning("[Argon] Error from server %s (%s)!", response.status_code, response.text)
            return False

        try:
            data = response.json()
        except ValueError:
            logger.warning("[Argon] Unparseable response body (%s)!", response.text)
            return False

        if not isinstance(data, dict) or data.get("valid") is not True:
            cause = data.get("cause") if isinstance(data, dict) else None
            logger.warning("[Argon] Invalid token supplied (%s)!", cause)
            return False

        return True


# Singleton instance
_validator: Optional[CredentialValidator] = None
_validator_lock = threading.Lock()


def get_validator() -> CredentialValidator:
    """
    Get credential validator instance (singleton).

    Returns a validator configured from ARGON_BASE_URL.
    """
    global _validator
    if _validator is not None:
        return _validator
    with _validator_lock:
        if _validator is None:
            _validator = ArgonValidator(base_url=load_server_config().argon_base_url)
        return _validator


def set_validator(validator: Optional[CredentialValidator]) -> None:
    """Set credential validator instance (for testing)."""
    global _validator
    _validator = validator
