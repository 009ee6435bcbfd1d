"""Websocket client that keeps a dashboard in sync with an event's rooms.

Bursts of change events collapse into a single ``on_data_update`` call after
a short debounce; the connection is retried with doubling backoff.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import websockets
from websockets.exceptions import WebSocketException

from ..services.status import get_status_label
from . import events

logger = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 0.05
MAX_RECONNECT_ATTEMPTS = 5
MAX_RECONNECT_DELAY = 30.0

# Events that carry an event_id and refresh the dashboard only for that event
_EVENT_SCOPED = {
    events.ARTIST_REGISTERED,
    events.ARTIST_ASSIGNED,
    events.ARTIST_STATUS_CHANGED,
    events.ARTIST_DELETED,
    events.REHEARSAL_UPDATED,
    events.PERFORMANCE_ORDER_UPDATE,
    events.CUE_UPDATED,
    events.LIVE_BOARD_UPDATE,
    events.TIMING_SETTINGS_UPDATED,
    events.QUALITY_RATING_UPDATED,
}

_REHEARSAL_ACTIONS = {
    "scheduled": "scheduled for rehearsal",
    "completed": "completed rehearsal",
    "removed": "removed from rehearsal",
}

_CUE_ACTIONS = {
    "created": "added",
    "updated": "updated",
    "deleted": "removed",
    "status_updated": "status changed",
}


@dataclass
class Toast:
    title: str
    description: str
    variant: str = "default"


def reconnect_delay(attempt: int, base: float = 1.0) -> float:
    """Seconds to wait before reconnect ``attempt`` (1-based): 1, 2, 4, ... capped at 30."""
    return min(base * (2 ** (attempt - 1)), MAX_RECONNECT_DELAY * base)


def toast_for(event: str, data: Dict[str, Any]) -> Optional[Toast]:
    name = data.get("artist_name")
    if event == events.ARTIST_REGISTERED:
        return Toast("New Artist", f"{name or 'An artist'} has registered")
    if event == events.ARTIST_ASSIGNED:
        return Toast("Artist Assigned", "Artist assigned to performance date")
    if event == events.ARTIST_STATUS_CHANGED:
        status = data.get("performance_status") or data.get("status")
        return Toast("Status Updated", f"{name or 'Artist'} is now {get_status_label(status)}")
    if event == events.QUALITY_RATING_UPDATED:
        rating = data.get("quality_rating") or 0
        return Toast("Quality Rating Updated", f"{name or 'Artist'} rated {rating}/3")
    if event == events.ARTIST_DELETED:
        return Toast("Artist Removed", "An artist has been removed from the event")
    if event == events.REHEARSAL_UPDATED:
        action = data.get("action") or ""
        return Toast("Rehearsal Updated", f"Artist {_REHEARSAL_ACTIONS.get(action, action)}")
    if event == events.PERFORMANCE_ORDER_UPDATE:
        return Toast("Performance Order", "Show order has been updated")
    if event == events.CUE_UPDATED:
        action = data.get("action") or ""
        return Toast("Cue Updated", f"Custom cue {_CUE_ACTIONS.get(action, action)}")
    if event == events.LIVE_BOARD_UPDATE:
        return Toast("Live Board", "Performance status updated")
    if event == events.TIMING_SETTINGS_UPDATED:
        return Toast("Show Timing", "Timing settings have been updated")
    if event == events.EMERGENCY_ALERT:
        return Toast("EMERGENCY ALERT", data.get("message") or "", "destructive")
    if event == events.EMERGENCY_CLEAR:
        return Toast("Emergency Cleared", "Emergency alert has been deactivated")
    return None


class LiveSyncClient:
    def __init__(
        self,
        url: str,
        event_id: str,
        role: str,
        user_id: Optional[str] = None,
        show_toasts: bool = False,
        on_connect: Optional[Callable[[], None]] = None,
        on_disconnect: Optional[Callable[[], None]] = None,
        on_data_update: Optional[Callable[[], None]] = None,
        on_toast: Optional[Callable[[Toast], None]] = None,
        connect: Callable[..., Any] = websockets.connect,
        debounce: float = DEBOUNCE_SECONDS,
        max_reconnect_attempts: int = MAX_RECONNECT_ATTEMPTS,
        backoff_base: float = 1.0,
    ) -> None:
        self.url = url
        self.event_id = event_id
        self.role = role
        self.user_id = user_id or f"{role}_{event_id}"
        self.show_toasts = show_toasts
        self.on_connect = on_connect
        self.on_disconnect = on_disconnect
        self.on_data_update = on_data_update
        self.on_toast = on_toast
        self._connect = connect
        self.debounce = debounce
        self.max_reconnect_attempts = max_reconnect_attempts
        self.backoff_base = backoff_base

        self.reconnect_attempts = 0
        self._ws: Any = None
        self._connected = False
        self._closed = False
        self._task: Optional[asyncio.Task] = None
        self._debounce_handle: Optional[asyncio.TimerHandle] = None
        self._handlers: Dict[str, Callable[[Dict[str, Any]], None]] = {}

    # -- lifecycle -----------------------------------------------------------

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._closed = False
            self._task = asyncio.create_task(self._run())
        return self._task

    async def _run(self) -> None:
        while not self._closed:
            try:
                async with self._connect(self.url) as ws:
                    self._ws = ws
                    await self._on_open()
                    async for raw in ws:
                        self.handle_message(raw)
                self._on_close(clean=self._closed)
            except (OSError, WebSocketException, asyncio.TimeoutError) as exc:
                logger.warning("Sync connection error", extra={"role": self.role, "error": repr(exc)})
                self._on_close(clean=self._closed)
            if self._closed:
                break
            if self.reconnect_attempts >= self.max_reconnect_attempts:
                logger.error("Max reconnection attempts reached", extra={"role": self.role})
                self._toast(Toast("Connection Failed", "Real-time updates unavailable", "destructive"))
                break
            self.reconnect_attempts += 1
            delay = reconnect_delay(self.reconnect_attempts, self.backoff_base)
            logger.info("Reconnecting", extra={"attempt": self.reconnect_attempts, "delay": delay})
            await asyncio.sleep(delay)

    async def _on_open(self) -> None:
        self._connected = True
        self.reconnect_attempts = 0
        await self._send(
            "authenticate",
            {"user_id": self.user_id, "role": self.role, "event_id": self.event_id},
        )
        await self._send("join-event", {"event_id": self.event_id})
        if self.on_connect:
            self.on_connect()
        self._toast(Toast("Connected", "Real-time updates active"))

    def _on_close(self, clean: bool) -> None:
        was_connected = self._connected
        self._connected = False
        self._ws = None
        if was_connected:
            if self.on_disconnect:
                self.on_disconnect()
            if not clean:
                self._toast(Toast("Disconnected", "Real-time updates unavailable", "destructive"))

    async def destroy(self) -> None:
        """Stop reconnecting, cancel the pending update and close the socket."""
        self._closed = True
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None
        if self._ws is not None:
            await self._ws.close()
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self._connected = False

    # -- messaging -----------------------------------------------------------

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def _send(self, event: str, data: Dict[str, Any]) -> None:
        await self._ws.send(json.dumps({"v": 1, "type": event, "payload": data}))

    async def emit(self, event: str, data: Dict[str, Any]) -> bool:
        if self._ws is None or not self._connected:
            logger.warning("Cannot emit %s: not connected", event)
            return False
        await self._send(event, data)
        return True

    def on(self, event: str, handler: Callable[[Dict[str, Any]], None]) -> None:
        self._handlers[event] = handler

    def off(self, event: str) -> None:
        self._handlers.pop(event, None)

    def handle_message(self, raw: str | bytes) -> None:
        try:
            message = json.loads(raw)
        except (TypeError, ValueError):
            logger.info("Ignoring non-JSON frame")
            return
        if not isinstance(message, dict):
            return
        payload = message.get("payload")
        self.handle_event(str(message.get("type") or ""), payload if isinstance(payload, dict) else {})

    def handle_event(self, event: str, data: Dict[str, Any]) -> None:
        handler = self._handlers.get(event)
        if handler is not None:
            handler(data)

        if event in _EVENT_SCOPED:
            if data.get("event_id") != self.event_id:
                return
        elif event not in (events.EMERGENCY_ALERT, events.EMERGENCY_CLEAR):
            return

        toast = toast_for(event, data)
        if toast is not None:
            self._toast(toast)
        self.trigger_data_update()

    def trigger_data_update(self) -> None:
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
        loop = asyncio.get_running_loop()
        self._debounce_handle = loop.call_later(self.debounce, self._fire_data_update)

    def _fire_data_update(self) -> None:
        self._debounce_handle = None
        if self.on_data_update:
            self.on_data_update()

    def _toast(self, toast: Toast) -> None:
        if not self.show_toasts or self.on_toast is None:
            return
        self.on_toast(toast)
