"""
Request bodies for the JSON API.

Field names on the wire are camelCase (`accountID`); handlers use snake_case.
Shape violations surface as FastAPI `RequestValidationError` before any handler runs.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from iconserver.core.errors import ValidationError
from iconserver.core.icons import validate_icon_data
from iconserver.core.models import ACCOUNT_ID_MAX, ACCOUNT_ID_MIN, ALL_TYPES, WRITABLE_TYPES, IconData

_READABLE_TYPES = frozenset(WRITABLE_TYPES + (ALL_TYPES,))

# Object keys arrive as strings; lax int parsing turns "42" into 42 before the bounds apply.
PlayerKey = Annotated[int, Field(ge=ACCOUNT_ID_MIN, le=ACCOUNT_ID_MAX)]


class TokenGetRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    account_id: int = Field(..., alias="accountID", strict=True, ge=ACCOUNT_ID_MIN, le=ACCOUNT_ID_MAX)
    token: str = Field(..., strict=True, description="Argon credential from the game client")


class IconsGetRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    players: Dict[PlayerKey, Union[List[str], str]] = Field(...)

    @field_validator("players")
    @classmethod
    def _known_types(cls, v: Dict[int, Union[List[str], str]]) -> Dict[int, Union[List[str], str]]:
        for account_id, requested in v.items():
            if isinstance(requested, str):
                if requested != ALL_TYPES:
                    raise ValueError(f"players.{account_id}: expected a list of icon types or {ALL_TYPES!r}")
                continue
            for t in requested:
                if t not in _READABLE_TYPES:
                    raise ValueError(f"players.{account_id}: unknown icon type {t!r}")
        return v


class IconsSetRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    account_id: int = Field(..., alias="accountID", strict=True, ge=ACCOUNT_ID_MIN, le=ACCOUNT_ID_MAX)
    token: str = Field(..., strict=True, description="Session token from /token/get")
    data: Dict[str, Dict[str, Any]]

    @field_validator("data")
    @classmethod
    def _icon_data_shape(cls, v: Dict[str, Dict[str, Any]]) -> IconData:
        try:
            return validate_icon_data(v)
        except ValidationError as e:
            raise ValueError(e.message) from e
