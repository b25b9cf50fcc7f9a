"""In-memory WebRTC signaling rooms."""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Iterable

from ..schemas.signaling import DeviceInfo, OutboundType, Role
from . import device_policy

logger = logging.getLogger(__name__)

SendCallable = Callable[[dict], Awaitable[None]]

ROOM_CAPACITY = 2
OUTBOX_LIMIT = 256


class RoomFullError(Exception):
    """Raised when a join targets a room that already holds two peers."""

    def __init__(self, room_id: str) -> None:
        super().__init__(f"room {room_id} is full")
        self.room_id = room_id


@dataclass(slots=True, eq=False)
class SignalingConnection:
    """Connection wrapper for signaling participants.

    Outbound messages go through a bounded queue drained by a writer task, so
    ``notify`` never waits on the socket and each peer sees messages in the
    order they were queued.
    """

    connection_id: str
    send: SendCallable
    room_id: str | None = None
    device: DeviceInfo = field(default_factory=DeviceInfo)
    closed: bool = False
    _outbox: asyncio.Queue = field(default_factory=lambda: asyncio.Queue(OUTBOX_LIMIT), init=False, repr=False)
    _writer: asyncio.Task[None] | None = field(default=None, init=False, repr=False)

    @property
    def joined(self) -> bool:
        return self.room_id is not None

    def notify(self, message_type: str, **payload: Any) -> bool:
        """Queue one message; returns False when it was dropped instead."""

        if self.closed:
            return False
        try:
            self._outbox.put_nowait({"type": message_type, **payload})
        except asyncio.QueueFull:
            logger.debug("Outbox full, dropped %s for connection %s", message_type, self.connection_id)
            return False
        if self._writer is None or self._writer.done():
            self._writer = asyncio.create_task(self._write_loop())
        return True

    async def drain(self) -> None:
        """Wait until every queued message has been handed to ``send``."""

        await self._outbox.join()

    async def close(self) -> None:
        self.closed = True
        if self._writer is not None:
            self._writer.cancel()
            with suppress(asyncio.CancelledError):
                await self._writer
            self._writer = None

    async def _write_loop(self) -> None:
        # exits once the outbox is empty; notify starts a new writer on demand
        while not self._outbox.empty():
            message = self._outbox.get_nowait()
            try:
                await self.send(message)
            except Exception as exc:  # noqa: BLE001 - delivery is best-effort
                logger.debug("Dropped %s for connection %s: %s", message.get("type"), self.connection_id, exc)
            finally:
                self._outbox.task_done()


@dataclass(slots=True)
class Room:
    room_id: str
    peers: list[SignalingConnection] = field(default_factory=list)

    def others(self, connection: SignalingConnection) -> list[SignalingConnection]:
        return [peer for peer in self.peers if peer is not connection]


@dataclass(slots=True)
class JoinResult:
    role: Role
    peers_count: int


@dataclass(slots=True)
class _RoomLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


def _fan_out(peers: Iterable[SignalingConnection], message_type: str, **payload: Any) -> None:
    for peer in peers:
        peer.notify(message_type, **payload)


class RoomRegistry:
    """Own the room -> peers mapping and serialize membership changes per room."""

    def __init__(self) -> None:
        self._rooms: Dict[str, Room] = {}
        self._locks: Dict[str, _RoomLock] = {}

    def has_room(self, room_id: str) -> bool:
        return room_id in self._rooms

    def peer_count(self, room_id: str) -> int:
        room = self._rooms.get(room_id)
        return len(room.peers) if room else 0

    def room_ids(self) -> list[str]:
        return list(self._rooms)

    @asynccontextmanager
    async def _room_lock(self, room_id: str) -> AsyncIterator[None]:
        entry = self._locks.get(room_id)
        if entry is None:
            entry = self._locks[room_id] = _RoomLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0 and self._locks.get(room_id) is entry:
                del self._locks[room_id]

    async def join(
        self,
        room_id: str,
        connection: SignalingConnection,
        device: DeviceInfo | None = None,
    ) -> JoinResult:
        """Admit ``connection`` into ``room_id`` and notify everyone involved.

        Raises ``RoomFullError`` without touching the room when it already holds
        two peers. A missing room is created, including one that was torn down
        a moment ago. Notifications are queued under the room lock, so peers
        see them in membership order, but the lock is never held across a send.
        """

        async with self._room_lock(room_id):
            room = self._rooms.get(room_id)
            if room is not None and len(room.peers) >= ROOM_CAPACITY:
                raise RoomFullError(room_id)
            if room is None:
                room = self._rooms[room_id] = Room(room_id=room_id)
                logger.info("Room %s opened", room_id)

            if device is not None:
                connection.device = device
            room.peers.append(connection)
            connection.room_id = room_id

            peers_count = len(room.peers)
            role = Role.HOST if peers_count == 1 else Role.GUEST
            logger.info("Connection %s joined room %s as %s", connection.connection_id, room_id, role.value)

            connection.notify(
                OutboundType.JOINED.value,
                roomId=room_id,
                role=role.value,
                peersCount=peers_count,
            )
            _fan_out(room.others(connection), OutboundType.PEER_JOINED.value, roomId=room_id)

            if peers_count == ROOM_CAPACITY:
                if device_policy.should_force_relay(peer.device for peer in room.peers):
                    logger.info("Forcing relay for room %s", room_id)
                    _fan_out(
                        room.peers,
                        OutboundType.FORCE_RELAY_IOS.value,
                        reason=device_policy.FORCE_RELAY_REASON,
                    )
                _fan_out(room.peers, OutboundType.READY.value, roomId=room_id)

            return JoinResult(role=role, peers_count=peers_count)

    async def leave(self, connection: SignalingConnection) -> None:
        """Remove the connection from its room, closing the room when it empties."""

        room_id = connection.room_id
        if room_id is None:
            return

        async with self._room_lock(room_id):
            connection.room_id = None
            room = self._rooms.get(room_id)
            if room is None or connection not in room.peers:
                return

            _fan_out(room.others(connection), OutboundType.LEAVE.value)
            room.peers.remove(connection)
            logger.info("Connection %s left room %s", connection.connection_id, room_id)
            if not room.peers:
                del self._rooms[room_id]
                logger.info("Room %s closed", room_id)

    async def relay(self, connection: SignalingConnection, message_type: str, data: Any) -> int:
        """Forward ``data`` to every other peer of the sender's room."""

        room_id = connection.room_id
        if room_id is None:
            return 0

        async with self._room_lock(room_id):
            room = self._rooms.get(room_id)
            targets = room.others(connection) if room else []
            _fan_out(targets, message_type, data=data)

        return len(targets)


registry = RoomRegistry()
