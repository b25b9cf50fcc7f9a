"""Message contracts for the signaling WebSocket."""
from __future__ import annotations

import enum
from typing import Any

from pydantic import AliasChoices, ConfigDict, Field, field_validator

from .camel_case import CamelModel


class InboundType(str, enum.Enum):
    JOIN = "join"
    OFFER = "offer"
    ANSWER = "answer"
    CANDIDATE = "candidate"
    FORCE_RELAY = "force-relay"
    LEAVE = "leave"


class OutboundType(str, enum.Enum):
    JOINED = "joined"
    PEER_JOINED = "peer-joined"
    READY = "ready"
    FULL = "full"
    FORCE_RELAY_IOS = "force-relay-ios"
    LEAVE = "leave"
    ERROR = "error"


NEGOTIATION_TYPES = frozenset(
    {InboundType.OFFER, InboundType.ANSWER, InboundType.CANDIDATE, InboundType.FORCE_RELAY}
)


class Role(str, enum.Enum):
    HOST = "host"
    GUEST = "guest"


class DeviceInfo(CamelModel):
    """Client-reported device details; unknown keys are kept as-is."""

    model_config = ConfigDict(extra="allow")

    is_mobile_restricted_class: bool = Field(
        default=False,
        validation_alias=AliasChoices("isMobileRestrictedClass", "isIOS", "is_mobile_restricted_class"),
    )

    @field_validator("is_mobile_restricted_class", mode="before")
    @classmethod
    def _strict_true(cls, value: object) -> bool:
        # only a JSON true marks the device; null, strings and numbers do not
        return value is True


class JoinMessage(CamelModel):
    room_id: str = ""
    token: str = ""
    device_info: DeviceInfo = Field(default_factory=DeviceInfo)

    @field_validator("room_id", "token", mode="before")
    @classmethod
    def _coerce_text(cls, value: object) -> object:
        if value is None:
            return ""
        return str(value).strip()

    @field_validator("device_info", mode="before")
    @classmethod
    def _coerce_device(cls, value: object) -> object:
        if not isinstance(value, dict):
            return {}
        return value

    @classmethod
    def from_envelope(cls, message: dict[str, Any]) -> "JoinMessage":
        """Build a join request from top-level fields, falling back to ``data``."""

        fields: dict[str, Any] = {}
        data = message.get("data")
        if isinstance(data, dict):
            fields.update(data)
        fields.update({key: value for key, value in message.items() if key not in ("type", "data") and value})
        return cls.model_validate(fields)
