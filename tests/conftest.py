"""Shared fixtures.

Provides:
- In-memory SQLite engine shared across connections (StaticPool)
- A ReportGateway over a fresh session per test
- FakeNotifier test double recording every message
- Async HTTP client against the FastAPI app with session/notifier overrides
"""

from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.exc import OperationalError  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from sdrdesk.api.deps import get_notifier  # noqa: E402
from sdrdesk.config import settings  # noqa: E402
from sdrdesk.connectors.resend.client import EmailDelivery  # noqa: E402
from sdrdesk.core.errors import NotifierError  # noqa: E402
from sdrdesk.database import get_session  # noqa: E402
from sdrdesk.main import app  # noqa: E402
from sdrdesk.models import audit_models, profile_models, report_models  # noqa: E402,F401
from sdrdesk.reports.gateway import ReportGateway  # noqa: E402

ADMIN_EMAIL = "admin@example.com"
ADMIN_HEADERS = {"X-User-Id": "admin-1", "X-User-Email": ADMIN_EMAIL}


class FakeNotifier:
    """Records sent messages; raises NotifierError when fail=True."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[dict] = []

    async def send(self, subject: str, html: str, text: str | None = None) -> EmailDelivery:
        if self.fail:
            raise NotifierError("provider unavailable")
        self.sent.append({"subject": subject, "html": html, "text": text})
        return EmailDelivery(id=f"email-{len(self.sent)}")

    async def close(self) -> None:
        pass


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(eng)
    yield eng
    SQLModel.metadata.drop_all(eng)


@pytest.fixture
def session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture
def gateway(session) -> ReportGateway:
    return ReportGateway(session)


@pytest.fixture
def store_outage(engine):
    """Makes statements fail with OperationalError while enabled.

    Set `down` to fail every statement, or `tables` to fail only writes
    against those tables.
    """
    state = {"down": False, "tables": ()}

    def fail(conn, cursor, statement, parameters, context, executemany):
        writes_blocked_table = any(
            statement.startswith(f"INSERT INTO {table}") for table in state["tables"]
        )
        if state["down"] or writes_blocked_table:
            raise OperationalError(
                statement, parameters, Exception("server closed the connection")
            )

    event.listen(engine, "before_cursor_execute", fail)
    yield state
    event.remove(engine, "before_cursor_execute", fail)


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture(autouse=True)
def admin_emails(monkeypatch):
    monkeypatch.setattr(settings, "admin_emails", [ADMIN_EMAIL])


@pytest_asyncio.fixture
async def client(engine, notifier) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing the API."""

    def _session_override():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = _session_override
    app.dependency_overrides[get_notifier] = lambda: notifier
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def make_payload(**overrides) -> dict:
    payload = {
        "vendedor": "Ana",
        "dataRegistro": "2024-03-01",
        "reunioesAgendadas": 5,
        "reunioesRealizadas": 2,
        "reunioes": [
            {
                "nomeLead": "João",
                "dataAgendamento": "2024-03-02",
                "horarioAgendamento": "14:00",
                "status": "Agendado",
                "vendedorResponsavel": "Ana",
            }
        ],
    }
    payload.update(overrides)
    return payload
