# Live dashboard socket (/ws). Clients authenticate with their session
# cookie, join an event room and receive the typed envelopes REST handlers
# emit. DJs and stage managers may also push sync events, which are
# validated and relayed to the event room.

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from ..core.config import settings
from ..realtime import Connection, Envelope, event_room, hub, role_room, user_room
from ..realtime import events
from ..schemas.user import SessionData, UserRole, UserStatus
from ..services.validation import validate_websocket_event
from ..storage import DocumentStore, get_store
from ..utils.auth import has_required_role
from ..utils.errors import ApiError
from ..utils.session import decode_session
from .dependencies import check_event_access, resolve_session

logger = logging.getLogger(__name__)
router = APIRouter(tags=["realtime"])

# Client-pushed events relayed to the event room, with the minimum role to send them
RELAYED_EVENTS: Dict[str, UserRole] = {
    events.ARTIST_REGISTERED: UserRole.ARTIST,
    events.ARTIST_ASSIGNED: UserRole.STAGE_MANAGER,
    events.ARTIST_STATUS_CHANGED: UserRole.DJ,
    events.REHEARSAL_UPDATED: UserRole.STAGE_MANAGER,
    events.PERFORMANCE_ORDER_UPDATE: UserRole.STAGE_MANAGER,
    events.CUE_UPDATED: UserRole.DJ,
    events.LIVE_BOARD_UPDATE: UserRole.DJ,
    events.EMERGENCY_ALERT: UserRole.STAGE_MANAGER,
    events.EMERGENCY_CLEAR: UserRole.STAGE_MANAGER,
}


async def _error(conn: Connection, code: str, message: str, **extra: Any) -> None:
    await conn.send_envelope(Envelope(type="error", payload={"code": code, "message": message, **extra}))


class SocketSession:
    """Per-connection state for the /ws handler."""

    def __init__(self, conn: Connection, store: DocumentStore) -> None:
        self.conn = conn
        self.store = store
        self.session: Optional[SessionData] = None

    def _may(self, role: UserRole) -> bool:
        return self.session is not None and has_required_role(self.session.role.value, role.value)

    async def authenticate(self, payload: Dict[str, Any]) -> None:
        session = resolve_session(
            self.store, decode_session(self.conn.ws.cookies.get(settings.SESSION_COOKIE_NAME))
        )
        if session is None:
            await _error(self.conn, "UNAUTHORIZED", "Authentication required")
            return
        if session.status != UserStatus.ACTIVE:
            await _error(self.conn, "ACCOUNT_STATUS_INVALID", f"Account status: {session.status.value}")
            return
        self.session = session
        self.conn.user_id = session.user_id
        self.conn.role = session.role.value
        hub.join(self.conn, user_room(session.user_id))
        hub.join(self.conn, role_room(session.role.value))
        logger.info("Socket authenticated", extra={"user_id": session.user_id, "role": session.role.value})
        await self.conn.send_envelope(
            Envelope(type="authenticated", payload={"user_id": session.user_id, "role": session.role.value})
        )
        if payload.get("event_id"):
            await self.join_event(payload)

    async def join_event(self, payload: Dict[str, Any]) -> None:
        event_id = payload.get("event_id")
        if not isinstance(event_id, str) or not event_id:
            await _error(self.conn, "INVALID_EVENT", "Missing event_id")
            return
        if self.session is None:
            await _error(self.conn, "UNAUTHORIZED", "Authentication required")
            return
        try:
            check_event_access(self.store, event_id, self.session)
        except ApiError as exc:
            await _error(self.conn, exc.code, exc.message)
            return
        if self.conn.event_id and self.conn.event_id != event_id:
            hub.leave(self.conn, event_room(self.conn.event_id))
        self.conn.event_id = event_id
        hub.join(self.conn, event_room(event_id))
        await self.conn.send_envelope(Envelope(type="joined-event", payload={"event_id": event_id}))

    async def leave_event(self, payload: Dict[str, Any]) -> None:
        event_id = payload.get("event_id") or self.conn.event_id
        if event_id:
            hub.leave(self.conn, event_room(event_id))
        if event_id == self.conn.event_id:
            self.conn.event_id = None

    async def relay(self, event_type: str, payload: Dict[str, Any]) -> bool:
        result = validate_websocket_event(event_type, payload)
        if not result.is_valid:
            await _error(self.conn, "INVALID_EVENT", "Invalid event data", errors=result.errors)
            return False
        if not self._may(RELAYED_EVENTS[event_type]):
            await _error(self.conn, "INSUFFICIENT_PERMISSIONS", "Insufficient permissions")
            return False
        event_id = payload.get("event_id")
        if event_id is None and event_type in (events.EMERGENCY_ALERT, events.EMERGENCY_CLEAR):
            event_id = self.conn.event_id
        if not event_id or event_room(event_id) not in hub.rooms_of(self.conn):
            await _error(self.conn, "FORBIDDEN", "Join the event before sending updates")
            return False
        await hub.emit(event_type, {**payload, "event_id": event_id}, [event_room(event_id)])
        return True

    async def status_update(self, payload: Dict[str, Any]) -> None:
        """Shorthand from the DJ console: artist status change plus a live-board refresh."""
        if await self.relay(events.ARTIST_STATUS_CHANGED, payload):
            await hub.emit(events.LIVE_BOARD_UPDATE, payload, [event_room(payload["event_id"])])

    async def admin_action(self, payload: Dict[str, Any]) -> None:
        if not self._may(UserRole.SUPER_ADMIN):
            await _error(self.conn, "INSUFFICIENT_PERMISSIONS", "Insufficient permissions")
            return
        target = payload.get("target_user_id")
        if not isinstance(target, str) or not target:
            await _error(self.conn, "INVALID_EVENT", "Missing target_user_id")
            return
        await hub.emit(events.ADMIN_ACTION, payload, [user_room(target)])

    async def handle(self, env: Envelope) -> None:
        payload = env.payload or {}
        kind = env.type
        if kind == "ping":
            await self.conn.send_envelope(Envelope(type="pong"))
        elif kind == "authenticate":
            await self.authenticate(payload)
        elif kind == "join-event":
            await self.join_event(payload)
        elif kind == "leave-event":
            await self.leave_event(payload)
        elif kind == "status_update":
            await self.status_update(payload)
        elif kind == "admin_action":
            await self.admin_action(payload)
        elif kind in RELAYED_EVENTS:
            await self.relay(kind, payload)
        elif kind == "invalid":
            await _error(self.conn, "INVALID_MESSAGE", "Messages must be JSON envelopes")
        # anything else is ignored


@router.websocket("/ws")
async def live_socket(websocket: WebSocket, store: DocumentStore = Depends(get_store)) -> None:
    await websocket.accept()
    conn = Connection(websocket)
    state = SocketSession(conn, store)
    try:
        while True:
            env = await conn.recv_envelope()
            if env.v != 1:
                continue
            await state.handle(env)
    except WebSocketDisconnect:
        pass
    finally:
        hub.disconnect(conn)
        logger.debug("Socket closed", extra={"user_id": conn.user_id})
