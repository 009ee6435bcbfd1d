from pathlib import Path
from unittest.mock import AsyncMock

from dotenv import load_dotenv
import pytest

# Load environment variables for tests before fame reads its settings
load_dotenv(Path(__file__).resolve().parents[1] / ".env.test")

from fastapi.testclient import TestClient  # noqa: E402

from fame.crud import crud_event, crud_user  # noqa: E402
from fame.main import app  # noqa: E402
from fame.realtime import hub  # noqa: E402
from fame.schemas.event import EventCreate  # noqa: E402
from fame.schemas.user import UserRole, UserStatus  # noqa: E402
from fame.storage import LocalDocumentStore, get_store  # noqa: E402

ADMIN_EMAIL = "admin@fame.test"
ADMIN_PASSWORD = "admin-pass-123"
PASSWORD = "secret-pass-1"


@pytest.fixture
def store(tmp_path):
    return LocalDocumentStore(tmp_path / "data")


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def emitted(monkeypatch):
    """Replace RealtimeHub.emit with an AsyncMock and return it."""
    mock = AsyncMock()
    monkeypatch.setattr(hub, "emit", mock)
    return mock


def emitted_events(mock):
    return [c.args[0] for c in mock.call_args_list]


def make_user(store, email, role, status=UserStatus.ACTIVE, password=PASSWORD):
    return crud_user.create_user(
        store, email, password, role, {"first_name": "Test", "last_name": role.value}, status
    )


def login(client, email, password=PASSWORD):
    res = client.post("/api/auth/login", json={"email": email, "password": password})
    assert res.status_code == 200, res.text
    return res.json()["data"]


@pytest.fixture
def as_admin(client):
    login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
    return client


@pytest.fixture
def stage_manager(store):
    return make_user(store, "sm@fame.test", UserRole.STAGE_MANAGER)


@pytest.fixture
def as_stage_manager(client, stage_manager):
    login(client, stage_manager["email"])
    return client


@pytest.fixture
def event(store, stage_manager):
    return crud_event.create_event(
        store,
        EventCreate(
            name="Spring Gala",
            venue_name="Main Hall",
            start_date="2025-05-01",
            end_date="2025-05-03",
            description="Annual show",
            show_dates=["2025-05-01", "2025-05-02"],
        ),
        stage_manager["id"],
    )
