"""FastAPI application entrypoint."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1 import v1_router
from app.core.config import get_settings
from app.core.database import async_session_factory, init_db
from app.core.logging import configure_logging
from app.services.tenant_resolver import TenantResolver


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup: ensure tables and the default tenant exist (use Alembic in production)
    configure_logging()
    await init_db()
    yield


_settings = get_settings()

app = FastAPI(
    title="BizDesk",
    version="0.1.0",
    description="Multi-tenant business back office: tenant resolution and reminders",
    lifespan=lifespan,
)

# One resolver (and domain cache) per process
app.state.tenant_resolver = TenantResolver.from_settings(_settings, async_session_factory)

# ── CORS ─────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in _settings.allowed_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── API routes ───────────────────────────────────────────────
app.include_router(v1_router)


@app.get("/health", tags=["system"])
async def health_check() -> dict:
    return {"status": "ok"}
