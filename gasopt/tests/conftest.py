"""Shared fixtures for the GasOpt ledger test suite.

Every test gets its own in-memory SQLite database (``StaticPool`` keeps the
single connection alive), a fresh ``ReportStore`` whose event bus records
into ``event_log``, and — for HTTP tests — an app with the store and
database dependencies overridden.
"""

from __future__ import annotations

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from gasopt.core.config import get_settings
from gasopt.core.database import create_tables
from gasopt.core.events import DomainEvent, EventBus
from gasopt.core.store import ReportStore

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

CALLER_A = "0x1111111111111111111111111111111111111111"
CALLER_B = "0x2222222222222222222222222222222222222222"
OWNER = "0x9999999999999999999999999999999999999999"
TARGET = "0xC0FFEE0000000000000000000000000000000001"
TEST_FEE = 1_000

SIX_SIGNATURES = [
    "transfer(address,uint256)",
    "approve(address,uint256)",
    "transferFrom(address,address,uint256)",
    "balanceOf(address)",
    "allowance(address,address)",
    "totalSupply()",
]


# ── Database ─────────────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    eng = create_async_engine(TEST_DB_URL, poolclass=StaticPool)
    await create_tables(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# ── Store ────────────────────────────────────────────────────────────────────


@pytest.fixture
def event_log() -> list[DomainEvent]:
    """Events delivered by the store's bus, in order."""
    return []


@pytest.fixture
def store(session_factory, event_log) -> ReportStore:
    """A fee-free store; most ledger tests do not care about payment."""
    bus = EventBus()
    bus.subscribe(event_log.append)
    return ReportStore(session_factory, bus, default_fee=0)


@pytest.fixture
def paid_store(session_factory, event_log) -> ReportStore:
    bus = EventBus()
    bus.subscribe(event_log.append)
    return ReportStore(session_factory, bus, default_fee=TEST_FEE)


# ── HTTP ─────────────────────────────────────────────────────────────────────


@pytest.fixture
def settings_env(monkeypatch):
    """Pin secrets, owner, and fee for the duration of a test."""
    monkeypatch.setenv("GASOPT_SECRET_KEY", "test-secret-key-for-gasopt-ledger-suite")
    monkeypatch.setenv("GASOPT_OWNER_ADDRESS", OWNER)
    monkeypatch.setenv("GASOPT_ANALYSIS_FEE", str(TEST_FEE))
    monkeypatch.setenv("GASOPT_EVENT_WEBHOOK_URLS", "")
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


def _auth_headers(caller: str) -> dict[str, str]:
    from gasopt.api.middleware.auth import create_access_token

    return {"Authorization": f"Bearer {create_access_token(caller)}"}


@pytest.fixture
def auth_headers(settings_env):
    """Build Bearer headers for any caller identity."""
    return _auth_headers


@pytest.fixture
def app(settings_env, paid_store, session_factory):
    from gasopt.api.deps import get_report_store, reset_store
    from gasopt.api.main import create_app
    from gasopt.core.database import get_db, reset_engine

    application = create_app()

    async def _override_get_db():
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_report_store] = lambda: paid_store
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()
    reset_store()
    reset_engine()


@pytest_asyncio.fixture
async def anon_client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Client authenticated as ``CALLER_A``."""
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers=_auth_headers(CALLER_A),
    ) as ac:
        yield ac
