"""Shared test fixtures — async SQLite in-memory DB + test client."""

import os

# Settings are read once at import time; configure them before the app loads
os.environ.setdefault("IDENTITY_TOKEN_SECRET", "test-identity-secret")
os.environ.setdefault("DEVELOPER_EMAILS", "ops@platform.test")

from collections.abc import AsyncGenerator, Callable  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

# Import all models so metadata is populated
import app.models  # noqa: E402, F401
from app.api.deps import get_tenant_resolver  # noqa: E402
from app.core.config import UnmappedDomainPolicy  # noqa: E402
from app.core.database import ensure_default_tenant, get_session  # noqa: E402
from app.core.security import create_identity_token  # noqa: E402
from app.main import app  # noqa: E402
from app.services.tenant_resolver import TenantResolver  # noqa: E402

DEVELOPER_EMAIL = "ops@platform.test"


@pytest.fixture
async def engine():
    # One shared connection so every session sees the same in-memory database
    eng = create_async_engine("sqlite+aiosqlite://", echo=False, poolclass=StaticPool)
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def test_session_factory(engine):
    """Session factory bound to the test SQLite engine, default tenant seeded."""
    factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as sess:
        await ensure_default_tenant(sess)
    return factory


@pytest.fixture
async def session(test_session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with test_session_factory() as sess:
        yield sess
        await sess.rollback()


@pytest.fixture
def resolver(test_session_factory) -> TenantResolver:
    """Fresh resolver (and cache) per test; block policy unless a test changes it."""
    return TenantResolver(test_session_factory, UnmappedDomainPolicy.BLOCK, lookup_timeout=1.0)


@pytest.fixture
async def client(test_session_factory, resolver) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX async test client with DB session and resolver overrides."""

    async def _override_session():
        async with test_session_factory() as sess:
            yield sess

    app.dependency_overrides[get_session] = _override_session
    app.dependency_overrides[get_tenant_resolver] = lambda: resolver

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def headers_for() -> Callable[..., dict]:
    """Build bearer headers for an identity-provider principal."""

    def _headers(email: str, external_id: str | None = None, name: str = "") -> dict:
        token = create_identity_token(external_id or f"idp|{email}", email, name)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def developer_headers(headers_for) -> dict:
    return headers_for(DEVELOPER_EMAIL, name="Platform Ops")
