"""Data contracts for room creation."""
from __future__ import annotations

import enum

from pydantic import Field

from .camel_case import CamelModel


class LinkKind(str, enum.Enum):
    VIDEO = "video"
    AUDIO = "audio"


class RoomCreateRequest(CamelModel):
    kind: LinkKind = Field(default=LinkKind.VIDEO, description="Call type advertised by the short link")


class RoomCreateResponse(CamelModel):
    room_id: str
    token: str = Field(..., description="Room-scoped join token")
    link: str = Field(..., description="Short invitation URL")
    expires_in: int = Field(..., ge=1, description="Seconds until the token expires")
