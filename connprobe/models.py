"""Schema for endpoint definitions loaded from ``endpoints.json``."""

from __future__ import annotations

from enum import Enum
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ConnectionType(str, Enum):
    """Protocol kinds an endpoint can be probed with."""

    MSSQL = "mssql"
    ORACLE = "oracle"
    HTTP = "http"
    HTTPS = "https"
    PING = "ping"

    @classmethod
    def _missing_(cls, value: object) -> "ConnectionType | None":
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


def _fold_keys(data: Any, aliases: dict[str, str]) -> Any:
    # JSON property names are matched case-insensitively
    if not isinstance(data, dict):
        return data
    return {aliases.get(str(key).lower(), key): value for key, value in data.items()}


_ENDPOINT_KEYS = {
    "name": "name",
    "connectionstring": "connectionString",
    "connectiontype": "connectionType",
    "ignoresslerrors": "ignoreSslErrors",
}


class EndpointDefinition(BaseModel):
    """A named target plus the protocol used to test it."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str = Field(min_length=1)
    connection_string: str = Field(alias="connectionString")
    connection_type: ConnectionType = Field(alias="connectionType")
    ignore_ssl_errors: bool = Field(default=False, alias="ignoreSslErrors")

    @model_validator(mode="before")
    @classmethod
    def _case_insensitive_keys(cls, data: Any) -> Any:
        return _fold_keys(data, _ENDPOINT_KEYS)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be blank")
        return value

    @field_validator("connection_type", mode="before")
    @classmethod
    def _case_insensitive_type(cls, value: object) -> object:
        if isinstance(value, str) and not isinstance(value, ConnectionType):
            return value.strip().lower()
        return value


class EndpointConfiguration(BaseModel):
    """Ordered endpoint list; order is display order only."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    endpoints: List[EndpointDefinition] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _case_insensitive_keys(cls, data: Any) -> Any:
        return _fold_keys(data, {"endpoints": "endpoints"})

    @field_validator("endpoints", mode="before")
    @classmethod
    def _null_is_empty(cls, value: object) -> object:
        return [] if value is None else value


__all__ = ["ConnectionType", "EndpointDefinition", "EndpointConfiguration"]
