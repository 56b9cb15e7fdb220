"""Async database engine and session factory."""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from app.core.config import get_settings

settings = get_settings()

engine = create_async_engine(
    settings.database_url,
    echo=False,
    pool_size=20,
    max_overflow=10,
)

async_session_factory = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields an async DB session."""
    async with async_session_factory() as session:
        yield session


async def init_db() -> None:
    """Create all tables and the default tenant. Use Alembic migrations in production."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    async with async_session_factory() as session:
        await ensure_default_tenant(session)


async def ensure_default_tenant(session: AsyncSession) -> None:
    """Insert the fallback tenant (id 1) if it is missing."""
    from app.models.tenant import DEFAULT_TENANT_NAME, Tenant

    tenant_id = settings.default_tenant_id
    if await session.get(Tenant, tenant_id) is None:
        session.add(Tenant(id=tenant_id, name=DEFAULT_TENANT_NAME))
        await session.commit()
