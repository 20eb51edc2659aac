"""Shared test fixtures."""

import os

os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")
os.environ.setdefault("EVENTS_BACKEND", "memory")

from collections.abc import AsyncGenerator  # noqa: E402
from datetime import UTC, datetime, timedelta  # noqa: E402
from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.cs_common.database import get_db_session  # noqa: E402
from src.cs_common.events import InMemoryEventPublisher  # noqa: E402
from src.cs_crypto.tagged_backend import TaggedFheBackend  # noqa: E402
from src.cs_engine.application.service import (  # noqa: E402
    ExchangeService,
    get_exchange_service,
)
from src.cs_engine.engine import ConfidentialEngine  # noqa: E402
from src.main import app  # noqa: E402

VENUE = "venue:pool-manager"
COORDINATOR = "hook:settlement-coordinator"
ADMIN = "admin"
ALICE = "alice"
BOB = "bob"


class FakeClock:
    """Settable clock injected into the engine."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fhe() -> TaggedFheBackend:
    return TaggedFheBackend("unit-test-key")


@pytest.fixture
def engine(fhe: TaggedFheBackend, clock: FakeClock) -> ConfidentialEngine:
    """Engine with the coordinator already bound."""
    eng = ConfidentialEngine(
        fhe=fhe,
        venue_identity=VENUE,
        coordinator_identity=COORDINATOR,
        admin_identity=ADMIN,
        clock=clock,
    )
    eng.bind_coordinator(ADMIN)
    eng.state.drain_changes()
    return eng


@pytest.fixture
def publisher() -> InMemoryEventPublisher:
    return InMemoryEventPublisher()


@pytest.fixture
def mock_repo() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def mock_db() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def service(
    engine: ConfidentialEngine, mock_repo: AsyncMock, publisher: InMemoryEventPublisher
) -> ExchangeService:
    return ExchangeService(engine, repo=mock_repo, publisher=publisher)


@pytest.fixture
async def client(
    service: ExchangeService, mock_db: AsyncMock
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints against an in-memory service."""

    async def _db() -> AsyncGenerator[AsyncMock, None]:
        yield mock_db

    app.dependency_overrides[get_db_session] = _db
    app.dependency_overrides[get_exchange_service] = lambda: service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
