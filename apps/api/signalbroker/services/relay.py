"""Per-connection signaling protocol handler.

Frames are parsed first; anything that is not a JSON object with a string
``type`` is dropped silently. ``join`` is accepted in any state, every other
type only once the connection is in a room.
"""
from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from ..schemas.signaling import NEGOTIATION_TYPES, InboundType, JoinMessage, OutboundType
from .signaling import RoomFullError, RoomRegistry, SignalingConnection, registry
from .tokens import TokenError, TokenIssuer, issuer

logger = logging.getLogger(__name__)

UNAUTHORIZED_MESSAGE = "unauthorized"
NEGOTIATION_VALUES = frozenset(item.value for item in NEGOTIATION_TYPES)


class BadRequest(Exception):
    """Join payload is missing required fields or cannot be validated."""


def parse_frame(raw: str | bytes) -> dict[str, Any] | None:
    """Decode a text frame into a message dict, or None when it has no usable type."""

    try:
        message = json.loads(raw)
    except (ValueError, RecursionError):
        return None
    if not isinstance(message, dict):
        return None
    message_type = message.get("type")
    if not isinstance(message_type, str) or not message_type:
        return None
    return message


class SignalingRelay:
    """Drive one connection through join, negotiation and leave."""

    def __init__(
        self,
        connection: SignalingConnection,
        rooms: RoomRegistry | None = None,
        tokens: TokenIssuer | None = None,
    ) -> None:
        self.connection = connection
        self._rooms = rooms or registry
        self._tokens = tokens or issuer

    async def handle_frame(self, raw: str | bytes) -> None:
        message = parse_frame(raw)
        if message is None:
            logger.debug("Dropped unparsable frame from %s", self.connection.connection_id)
            return
        await self.handle_message(message)

    async def handle_message(self, message: dict[str, Any]) -> None:
        message_type = message["type"]

        if message_type == InboundType.JOIN.value:
            await self._join(message)
            return

        if not self.connection.joined:
            return

        if message_type in NEGOTIATION_VALUES:
            await self._rooms.relay(self.connection, message_type, message.get("data"))
        elif message_type == InboundType.LEAVE.value:
            await self._rooms.leave(self.connection)
        else:
            self.connection.notify(OutboundType.ERROR.value, message=f"Unknown type: {message_type}")

    async def close(self) -> None:
        """Tear down room membership after the socket went away."""

        await self.connection.close()
        await self._rooms.leave(self.connection)

    async def _join(self, message: dict[str, Any]) -> None:
        if self.connection.joined:
            self.connection.notify(
                OutboundType.ERROR.value,
                message=f"already joined room {self.connection.room_id}",
            )
            return

        try:
            request = self._parse_join(message)
        except BadRequest as exc:
            self.connection.notify(OutboundType.ERROR.value, message=str(exc))
            return

        try:
            self._tokens.verify(request.token, request.room_id)
        except TokenError as exc:
            logger.info(
                "Rejected join to room %s from %s: %s (%s)",
                request.room_id,
                self.connection.connection_id,
                type(exc).__name__,
                exc,
            )
            self.connection.notify(OutboundType.ERROR.value, message=UNAUTHORIZED_MESSAGE)
            return

        try:
            await self._rooms.join(request.room_id, self.connection, device=request.device_info)
        except RoomFullError as exc:
            logger.info("Room %s full, rejected %s", exc.room_id, self.connection.connection_id)
            self.connection.notify(OutboundType.FULL.value, roomId=exc.room_id)

    @staticmethod
    def _parse_join(message: dict[str, Any]) -> JoinMessage:
        try:
            request = JoinMessage.from_envelope(message)
        except ValidationError as exc:
            raise BadRequest("invalid join payload") from exc
        if not request.room_id:
            raise BadRequest("roomId required")
        if not request.token:
            raise BadRequest("token required")
        return request
