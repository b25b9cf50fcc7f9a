"""Data contracts for RTC endpoints."""
from __future__ import annotations

from pydantic import Field

from .camel_case import CamelModel


class IceServer(CamelModel):
    urls: list[str] = Field(..., description="STUN or TURN URLs")
    username: str | None = Field(default=None, description="TURN username")
    credential: str | None = Field(default=None, description="TURN password")


class RelayCredentials(CamelModel):
    ice_servers: list[IceServer] = Field(default_factory=list)
