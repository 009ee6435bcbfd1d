import asyncio
import json
from contextlib import asynccontextmanager

from fame.realtime import events
from fame.realtime.client import LiveSyncClient, Toast, reconnect_delay, toast_for


class FakeSocket:
    def __init__(self, frames):
        self.frames = list(frames)
        self.sent = []

    async def send(self, data):
        self.sent.append(json.loads(data))

    async def close(self):
        self.frames = []

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for frame in self.frames:
            yield frame


def _frame(event, **payload):
    return json.dumps({"v": 1, "type": event, "payload": payload})


def test_reconnect_delay_doubles_up_to_cap():
    assert [reconnect_delay(n) for n in range(1, 6)] == [1, 2, 4, 8, 16]
    assert reconnect_delay(8) == 30


def test_burst_of_events_triggers_one_refresh():
    updates = []

    async def scenario():
        client = LiveSyncClient("ws://test/ws", "e1", "dj", on_data_update=lambda: updates.append(1))
        for _ in range(10):
            client.handle_event(events.CUE_UPDATED, {"event_id": "e1", "action": "updated"})
        await asyncio.sleep(0.02)
        assert updates == []
        await asyncio.sleep(0.08)

    asyncio.run(scenario())
    assert updates == [1]


def test_events_for_other_events_are_ignored():
    updates, seen = [], []

    async def scenario():
        client = LiveSyncClient("ws://test/ws", "e1", "stage_manager", on_data_update=lambda: updates.append(1))
        client.on(events.ARTIST_DELETED, seen.append)
        client.handle_event(events.ARTIST_DELETED, {"event_id": "e2", "artist_id": "a"})
        client.handle_event("something_else", {"event_id": "e1"})
        await asyncio.sleep(0.1)
        assert updates == []
        client.handle_event(events.EMERGENCY_ALERT, {"message": "Fire"})
        await asyncio.sleep(0.1)

    asyncio.run(scenario())
    assert updates == [1]
    # Registered handlers see every event, even ones for other events
    assert seen == [{"event_id": "e2", "artist_id": "a"}]


def test_toasts():
    assert toast_for(events.ARTIST_STATUS_CHANGED, {"artist_name": "Nova", "performance_status": "next_on_deck"}) == Toast(
        "Status Updated", "Nova is now Next On Deck"
    )
    assert toast_for(events.REHEARSAL_UPDATED, {"action": "completed"}).description == "Artist completed rehearsal"
    assert toast_for(events.EMERGENCY_ALERT, {"message": "Fire"}).variant == "destructive"
    assert toast_for("unknown", {}) is None


def test_connection_lifecycle():
    socket = FakeSocket([_frame(events.CUE_UPDATED, event_id="e1", action="created"), "garbage"])
    calls, toasts = [], []

    @asynccontextmanager
    async def connect(url):
        calls.append(url)
        yield socket

    async def scenario():
        client = LiveSyncClient(
            "ws://test/ws",
            "e1",
            "dj",
            user_id="u1",
            show_toasts=True,
            on_connect=lambda: calls.append("connected"),
            on_disconnect=lambda: calls.append("disconnected"),
            on_data_update=lambda: calls.append("update"),
            on_toast=toasts.append,
            connect=connect,
            debounce=0.01,
            max_reconnect_attempts=0,
        )
        await client.start()
        await asyncio.sleep(0.05)
        assert not client.is_connected
        assert await client.emit("ping", {}) is False

    asyncio.run(scenario())
    assert calls == ["ws://test/ws", "connected", "disconnected", "update"]
    assert socket.sent == [
        {"v": 1, "type": "authenticate", "payload": {"user_id": "u1", "role": "dj", "event_id": "e1"}},
        {"v": 1, "type": "join-event", "payload": {"event_id": "e1"}},
    ]
    assert [t.title for t in toasts] == ["Connected", "Cue Updated", "Disconnected", "Connection Failed"]


def test_retries_with_backoff_then_gives_up():
    attempts = []

    @asynccontextmanager
    async def refuse(url):
        attempts.append(url)
        raise OSError("connection refused")
        yield  # pragma: no cover

    async def scenario():
        client = LiveSyncClient(
            "ws://test/ws", "e1", "dj", connect=refuse, max_reconnect_attempts=3, backoff_base=0.001
        )
        await client.start()
        assert client.reconnect_attempts == 3

    asyncio.run(scenario())
    assert len(attempts) == 4


def test_destroy_stops_reconnecting():
    async def scenario():
        @asynccontextmanager
        async def hang(url):
            yield FakeSocket([])
            await asyncio.sleep(10)

        client = LiveSyncClient("ws://test/ws", "e1", "dj", connect=hang)
        client.start()
        await asyncio.sleep(0.01)
        await client.destroy()
        assert not client.is_connected
        assert client._task is None

    asyncio.run(scenario())
