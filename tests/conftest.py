"""
Test configuration and fixtures.

Provides:
- A fresh SQLite database per test (tables dropped and recreated)
- A fake e-mail client recording what would have been sent
- HTTPX AsyncClient bound to the app with dependency overrides
- Factories for users (with session tokens) and events
"""
import os
import tempfile
from dataclasses import dataclass, field
from datetime import timedelta

import pytest
from httpx import AsyncClient, ASGITransport

_TEST_DIR = tempfile.mkdtemp(prefix="impacto-local-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TEST_DIR, 'test.db')}"
os.environ["INTERNAL_SECRET"] = "test-internal-secret"
os.environ["RESEND_API_KEY"] = ""
os.environ["RESEND_FROM_EMAIL"] = ""

from main import app
from database import engine, create_tables, delete_tables, new_session
from models.auth import UserOrm
from models.event import EventOrm
from repositories.auth import UserRepository
from repositories.event import EventRepository
from schemas.auth import SUserAuth
from schemas.event import SEventCreate
from services.email import EmailResult
from services.lifecycle import ApplicationLifecycle
from services.notifications import NotificationDispatcher
from services.sweeper import event_sweeper
from utils.dates import utc_now
from utils.dependencies import get_email_client


INTERNAL_SECRET = "test-internal-secret"


# =============================================================================
# Database
# =============================================================================

@pytest.fixture(autouse=True)
async def fresh_database():
    await delete_tables()
    await create_tables()
    event_sweeper.reset()
    yield
    event_sweeper.reset()
    await engine.dispose()


# =============================================================================
# E-mail
# =============================================================================

@dataclass
class SentEmail:
    to: str
    subject: str
    html: str
    text: str


@dataclass
class FakeEmailClient:
    """Stands in for ResendEmailClient; every send succeeds unless ``error`` is set."""
    error: str | None = None
    sent: list[SentEmail] = field(default_factory=list)
    is_configured: bool = True

    async def send(self, to: str, subject: str, html: str, text: str) -> EmailResult:
        if self.error:
            return EmailResult(False, self.error)
        self.sent.append(SentEmail(to, subject, html, text))
        return EmailResult(True)


@pytest.fixture
def email_client() -> FakeEmailClient:
    return FakeEmailClient()


@pytest.fixture
def lifecycle(email_client) -> ApplicationLifecycle:
    return ApplicationLifecycle(NotificationDispatcher(email_client))


# =============================================================================
# HTTP client
# =============================================================================

@pytest.fixture
async def client(email_client):
    app.dependency_overrides[get_email_client] = lambda: email_client
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


# =============================================================================
# Factories
# =============================================================================

@dataclass
class UserHandle:
    id: int
    role: str
    name: str
    email: str | None
    token: str

    @property
    def headers(self) -> dict:
        return auth_headers(self.token)


async def create_user(role: str = "volunteer", name: str | None = None, email: str | None = "", auth_id: str | None = None) -> UserHandle:
    auth_id = auth_id or f"{role}-{utc_now().timestamp()}-{os.urandom(4).hex()}"
    name = name or f"Test {role}"
    if email == "":
        email = f"{auth_id}@example.com"
    login_role = "volunteer" if role == "admin" else role
    user = await UserRepository.get_or_create_user(SUserAuth(auth_id=auth_id, name=name, email=email, role=login_role))
    if role == "admin":
        # admins are promoted, never self-registered
        async with new_session() as session:
            stored = await session.get(UserOrm, user.id)
            stored.role = role
            await session.commit()
            await session.refresh(stored)
            user = stored
    token = await UserRepository.create_user_session(user.id)
    return UserHandle(id=user.id, role=user.role, name=user.name, email=user.email, token=token)


async def create_event(organization_id: int, status: str = "open", **overrides) -> EventOrm:
    data = {
        "title": "Limpeza do parque",
        "description": "Recolha de lixo no parque da cidade",
        "category": "ambiente",
        "address": "Parque da Cidade, Porto",
        "date": utc_now() + timedelta(days=3),
        "duration": "2h",
        "volunteers_needed": 10,
    }
    data.update(overrides)
    event = await EventRepository.create_event(SEventCreate(**data), organization_id)
    if status != "open":
        async with new_session() as session:
            stored = await session.get(EventOrm, event.id)
            stored.status = status
            await session.commit()
            await session.refresh(stored)
            return stored
    return event


async def get_event(event_id: int) -> EventOrm:
    return await EventRepository.get_event_by_id(event_id)


@pytest.fixture
async def organization() -> UserHandle:
    return await create_user("organization", name="Associação Mar Limpo", email="geral@marlimpo.pt")


@pytest.fixture
async def volunteer() -> UserHandle:
    return await create_user("volunteer", name="Ana Costa", email="ana@example.com")


@pytest.fixture
async def admin() -> UserHandle:
    return await create_user("admin", name="Admin")
