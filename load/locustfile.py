"""
Locust load script for the FAME live dashboards.

Simulates show-night traffic:
- Stage managers / DJs sign in via /api/auth/login (session cookie)
- Poll the live board: show order, timing and active emergency broadcasts
- Refresh the artist list and the day's cues
- DJs push performance status changes
- Optionally, anonymous artists submit registrations (ArtistRegistrationUser)

Configure with env vars or Locust UI:
- HOST: pass via `--host https://fame.example.com`
- FAME_TEST_USERS: CSV of `email:password` pairs (see register_test_users.py)
- FAME_EVENT_ID: event to exercise (otherwise the first event the user can see)
- FAME_PERFORMANCE_DATE: show date (otherwise the event's first show date)

Run:
  locust -f load/locustfile.py --host http://localhost:8000
"""

from __future__ import annotations

import logging
import os
import random
import time
import uuid
from typing import Any, List, Optional, Tuple

from locust import HttpUser, between, events, task

# --- Config -------------------------------------------------------------------

DEFAULT_USERS = [
    ("sm1@fame.test", "password123"),
    ("sm2@fame.test", "password123"),
]

STATUSES = ["not_started", "next_on_deck", "next_on_stage", "currently_on_stage", "completed"]


def _load_users() -> List[Tuple[str, str]]:
    raw = os.getenv("FAME_TEST_USERS", "").strip()
    if not raw:
        path = os.path.join(os.path.dirname(__file__), "test_users.csv")
        if os.path.exists(path):
            with open(path, encoding="utf-8") as f:
                raw = ",".join(line.strip() for line in f if line.strip())
    out: List[Tuple[str, str]] = []
    for piece in raw.split(","):
        piece = piece.strip()
        if not piece or ":" not in piece:
            continue
        email, pwd = piece.split(":", 1)
        email = email.strip()
        pwd = pwd.strip()
        if email and pwd:
            out.append((email, pwd))
    return out or DEFAULT_USERS


FAME_USERS = _load_users()
EVENT_ID = os.getenv("FAME_EVENT_ID", "").strip() or None
PERFORMANCE_DATE = os.getenv("FAME_PERFORMANCE_DATE", "").strip() or None


def _data(resp) -> Any:
    try:
        body = resp.json()
    except ValueError:
        return {}
    if not isinstance(body, dict):
        return {}
    return body.get("data") or {}


# --- Dashboard user -----------------------------------------------------------


class DashboardUser(HttpUser):
    wait_time = between(1, 3)

    event_id: Optional[str] = None
    performance_date: Optional[str] = None
    role: Optional[str] = None
    artist_ids: List[str] = []
    auth_failures: int = 0
    login_cooldown_until: float = 0.0

    def on_start(self):
        runner = self.environment.runner if self.environment else None
        idx = (runner.user_count if runner else random.randint(0, 10)) % len(FAME_USERS)
        email, password = FAME_USERS[idx]
        if self._login(email, password):
            self._pick_event()

    # ---- session helpers ----

    def _login(self, email: str, password: str) -> bool:
        r = self.client.post("/api/auth/login", json={"email": email, "password": password}, name="/auth/login")
        if r.status_code != 200:
            self.auth_failures += 1
            # Backoff on repeated failures
            self.login_cooldown_until = time.time() + min(120.0, 2 ** min(self.auth_failures, 5))
            self.role = None
            return False
        self.auth_failures = 0
        self.role = (_data(r).get("user") or {}).get("role")
        return True

    def _pick_event(self) -> None:
        self.event_id = EVENT_ID
        if self.event_id is None:
            r = self.client.get("/api/events", name="/events")
            listed = _data(r) if r.status_code == 200 else []
            if listed:
                self.event_id = listed[0]["id"]
        if self.event_id is None:
            return
        self.performance_date = PERFORMANCE_DATE
        if self.performance_date is None:
            r = self.client.get(f"/api/events/{self.event_id}", name="/events/[id]")
            dates = _data(r).get("show_dates") or []
            self.performance_date = dates[0] if dates else None

    def _ready(self) -> bool:
        if self.role and self.event_id:
            return True
        if time.time() < self.login_cooldown_until:
            return False
        email, password = random.choice(FAME_USERS)
        if self._login(email, password):
            self._pick_event()
        return bool(self.role and self.event_id)

    def _check(self, r) -> None:
        if r.status_code == 401:
            # Session expired; log in again on the next task
            self.role = None

    # ---- tasks ----

    @task(8)
    def live_board(self):
        if not self._ready() or not self.performance_date:
            return
        params = {"performance_date": self.performance_date}
        self._check(self.client.get(f"/api/events/{self.event_id}/show-order", params=params, name="/show-order"))
        self._check(
            self.client.get(f"/api/events/{self.event_id}/show-order/timing", params=params, name="/show-order/timing")
        )

    @task(4)
    def emergency_poll(self):
        if not self._ready():
            return
        self._check(self.client.get(f"/api/events/{self.event_id}/emergency-broadcasts", name="/emergency-broadcasts"))

    @task(3)
    def artists(self):
        if not self._ready():
            return
        r = self.client.get(f"/api/events/{self.event_id}/artists", name="/artists")
        self._check(r)
        if r.status_code == 200:
            self.artist_ids = [a["id"] for a in _data(r) if a.get("id")]

    @task(2)
    def cues(self):
        if not self._ready() or not self.performance_date:
            return
        self._check(
            self.client.get(
                f"/api/events/{self.event_id}/cues",
                params={"performance_date": self.performance_date},
                name="/cues",
            )
        )

    @task(2)
    def status_change(self):
        if not self._ready() or not self.artist_ids:
            return
        artist_id = random.choice(self.artist_ids)
        self._check(
            self.client.patch(
                f"/api/events/{self.event_id}/artists/{artist_id}/status",
                json={"performance_status": random.choice(STATUSES)},
                name="/artists/[id]/status",
            )
        )

    @task(1)
    def health(self):
        self.client.get("/api/health", name="/health")


# --- Registration-only profile -----------------------------------------------


class ArtistRegistrationUser(HttpUser):
    """Anonymous artists submitting the public registration form.

    Requires FAME_EVENT_ID; select this class in the Locust UI to isolate
    registration latency.
    """

    wait_time = between(2, 5)

    @task
    def register(self):
        if not EVENT_ID:
            return
        suffix = uuid.uuid4().hex[:8]
        self.client.post(
            f"/api/events/{EVENT_ID}/artists",
            json={
                "artist_name": f"Load Act {suffix}",
                "email": f"act-{suffix}@fame.test",
                "style": random.choice(["Jazz", "Hip Hop", "Contemporary", "Latin"]),
                "performance_duration": random.choice([3, 4, 5]),
            },
            name="/events/[id]/artists (register)",
        )


# --- Optional event hooks -----------------------------------------------------


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    users = ", ".join(u for u, _ in FAME_USERS)
    logging.getLogger("locust").info(f"Starting test with users: {users}")


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    logging.getLogger("locust").info("Test finished")
