from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

ICON_TYPES: Tuple[str, ...] = (
    "cube",
    "ship",
    "ball",
    "ufo",
    "wave",
    "robot",
    "spider",
    "swing",
    "jetpack",
)

# Overlay pseudo-type: merged onto every other type on read, never returned itself.
SHARED_TYPE = "shared"

# Read-path sentinel meaning "every stored type".
ALL_TYPES = "ALL"

WRITABLE_TYPES: Tuple[str, ...] = ICON_TYPES + (SHARED_TYPE,)

MOD_ID_PATTERN = re.compile(r"^[a-z0-9_\-]+\.[a-z0-9_\-]+$")

# Account ids are stored as signed 64-bit integers.
ACCOUNT_ID_MIN = -(2**63)
ACCOUNT_ID_MAX = 2**63 - 1

IconData = Dict[str, Dict[str, Any]]


def is_valid_mod_id(value: Any) -> bool:
    return isinstance(value, str) and MOD_ID_PATTERN.fullmatch(value) is not None


@dataclass(frozen=True)
class AccountRecord:
    """One stored row per account."""

    account_id: int
    session_token: Optional[str] = None
    icon_data: Optional[IconData] = None

    @property
    def has_session(self) -> bool:
        return bool(self.session_token)
