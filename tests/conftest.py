# tests/conftest.py

import os
import tempfile
from types import SimpleNamespace

import pytest

# Settings are read at import time, so point the app at a throwaway SQLite file first.
_TMP_DIR = tempfile.mkdtemp(prefix="kairos-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TMP_DIR, 'kairos.db')}"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret"

import httpx  # noqa: E402

from kairos.core.database import engine, Base, AsyncSessionLocal  # noqa: E402
from kairos.main import app  # noqa: E402
from kairos.models import task, user, notification, notification_preference, sync_status  # noqa: E402,F401
from kairos.models.user import User  # noqa: E402
from kairos.services.delivery import Delivery  # noqa: E402

from fakes import FakePushSender  # noqa: E402


@pytest.fixture()
async def tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # aiosqlite connections are bound to the per-test event loop
    await engine.dispose()


@pytest.fixture()
async def db(tables):
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture()
async def db_user(db) -> User:
    u = User(full_name="Test User", email="test@example.com", hashed_password="not-used")
    db.add(u)
    await db.commit()
    await db.refresh(u)
    return u


@pytest.fixture()
def push_sender() -> FakePushSender:
    return FakePushSender()


@pytest.fixture()
def delivery(push_sender) -> Delivery:
    return Delivery(push_sender)


@pytest.fixture()
async def client(tables, delivery):
    app.state.delivery = delivery
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture()
async def auth_headers(client) -> dict:
    response = await client.post(
        "/api/v1/users/register",
        json={"email": "Ada@Example.com", "password": "s3cret-pass", "full_name": "Ada"},
    )
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture()
def prefs() -> SimpleNamespace:
    """Preferences with everything enabled and no quiet hours."""
    return SimpleNamespace(
        enabled=True,
        categories={"personal": True, "work": True, "fitness": True, "academic": True},
        priorities={"low": True, "medium": True, "high": True},
        quiet_hours_start=None,
        quiet_hours_end=None,
        timezone="UTC",
        focus_until=None,
        push_enabled=False,
        fcm_token=None,
    )
