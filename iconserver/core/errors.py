"""
Error taxonomy.

Raised from the core and storage layers; converted to `{"success": false, ...}`
JSON bodies at the HTTP boundary.
"""
from __future__ import annotations

from typing import Any, Dict


class IconServerError(Exception):
    code = "internal_error"
    status_code = 500

    def __init__(self, message: str = "") -> None:
        self.message = message or self.__class__.__name__
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, Any]:
        return {"success": False, "error": self.code, "message": self.message}


class ValidationFailed(IconServerError):
    """The external credential provider rejected the credential (or could not be reached)."""

    code = "validation_failed"
    status_code = 401


class ValidationError(IconServerError):
    """Malformed request or icon data shape."""

    code = "invalid_request"
    status_code = 400


class NoSession(IconServerError):
    """Write attempted for an account that was never issued a session token."""

    code = "no_session"
    status_code = 403


class TokenMismatch(IconServerError):
    code = "token_mismatch"
    status_code = 403


class StorageUnavailable(IconServerError):
    code = "storage_unavailable"
    status_code = 503
