# Room fan-out for live dashboards. Sockets join rooms named
# event_<id>, user_<id> and role_<role>; REST handlers emit typed envelopes
# into those rooms, mirrored over the redis bus when enabled.

from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Set

from fastapi import WebSocket

from . import bus

logger = logging.getLogger(__name__)

SEND_TIMEOUT = 10.0
INSTANCE_ID = os.getenv("INSTANCE_ID", "inst-" + os.urandom(4).hex())


def event_room(event_id: str) -> str:
    return f"event_{event_id}"


def user_room(user_id: str) -> str:
    return f"user_{user_id}"


def role_room(role: str) -> str:
    return f"role_{role}"


@dataclass
class Envelope:
    v: int = 1
    type: str = ""
    topic: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None

    @staticmethod
    def from_raw(raw: Any) -> "Envelope":
        if isinstance(raw, dict):
            return Envelope(
                v=int(raw.get("v", 1)),
                type=str(raw.get("type") or ""),
                topic=(str(raw["topic"]) if raw.get("topic") is not None else None),
                payload=(raw.get("payload") if isinstance(raw.get("payload"), dict) else None),
            )
        return Envelope()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"v": self.v, "type": self.type or "message"}
        if self.topic is not None:
            data["topic"] = self.topic
        if self.payload is not None:
            data["payload"] = self.payload
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"), default=str)


class Connection:
    """A websocket plus the identity it authenticated with."""

    def __init__(self, websocket: WebSocket) -> None:
        self.ws = websocket
        self.user_id: Optional[str] = None
        self.role: Optional[str] = None
        self.event_id: Optional[str] = None

    async def send_envelope(self, env: Envelope) -> None:
        await self.ws.send_text(env.to_json())

    async def recv_envelope(self) -> Envelope:
        raw = await self.ws.receive_text()
        try:
            return Envelope.from_raw(json.loads(raw))
        except json.JSONDecodeError:
            return Envelope(type="invalid")


class RealtimeHub:
    def __init__(self) -> None:
        self.room_sockets: Dict[str, Set[Connection]] = {}
        self.socket_rooms: Dict[Connection, Set[str]] = {}

    def join(self, conn: Connection, room: str) -> None:
        self.room_sockets.setdefault(room, set()).add(conn)
        self.socket_rooms.setdefault(conn, set()).add(room)

    def leave(self, conn: Connection, room: str) -> None:
        if room in self.room_sockets:
            self.room_sockets[room].discard(conn)
            if not self.room_sockets[room]:
                del self.room_sockets[room]
        if conn in self.socket_rooms:
            self.socket_rooms[conn].discard(room)

    def disconnect(self, conn: Connection) -> None:
        for room in list(self.socket_rooms.get(conn, set())):
            self.leave(conn, room)
        self.socket_rooms.pop(conn, None)

    def rooms_of(self, conn: Connection) -> Set[str]:
        return set(self.socket_rooms.get(conn, set()))

    def members(self, room: str) -> int:
        return len(self.room_sockets.get(room, ()))

    async def broadcast(self, room: str, env: Envelope, publish: bool = True) -> None:
        if env.topic is None:
            env.topic = room
        for conn in list(self.room_sockets.get(room, set())):
            try:
                await asyncio.wait_for(conn.send_envelope(env), timeout=SEND_TIMEOUT)
            except Exception as exc:
                # Dead or slow socket; drop it from every room
                logger.info("Dropping websocket", extra={"room": room, "error": repr(exc)})
                self.disconnect(conn)
        if publish and bus.bus_enabled():
            data = env.to_dict()
            data["origin"] = INSTANCE_ID
            await bus.publish_topic(room, data)

    async def emit(self, event: str, payload: Dict[str, Any], rooms: Iterable[str]) -> None:
        """Send ``event`` with ``payload`` to each room."""
        for room in rooms:
            await self.broadcast(room, Envelope(type=event, topic=room, payload=dict(payload)))

    async def emit_to_event(self, event_id: str, event: str, payload: Dict[str, Any]) -> None:
        data = {"event_id": event_id, **payload}
        await self.emit(event, data, [event_room(event_id)])

    async def dispatch_from_bus(self, topic: str, data: Dict[str, Any]) -> None:
        if data.get("origin") == INSTANCE_ID:
            return
        await self.broadcast(topic, Envelope.from_raw(data), publish=False)


hub = RealtimeHub()


async def ensure_bus_started() -> None:
    await bus.start_pattern_consumer(f"{bus.CHANNEL_PREFIX}*", hub.dispatch_from_bus)
