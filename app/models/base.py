"""Shared base fields and clock helpers for all models."""

import uuid
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


def local_today(tz_name: str) -> date:
    """Calendar date "today" in the business timezone."""
    return datetime.now(ZoneInfo(tz_name)).date()


def day_bounds_utc(day: date, tz_name: str) -> tuple[datetime, datetime]:
    """Naive-UTC [start, end) of a local calendar day, matching stored timestamps."""
    tz = ZoneInfo(tz_name)
    start = datetime.combine(day, time.min, tzinfo=tz).astimezone(timezone.utc)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz).astimezone(timezone.utc)
    return start.replace(tzinfo=None), end.replace(tzinfo=None)


class TimestampMixin(SQLModel):
    """Created / updated timestamps injected into every table."""

    created_at: datetime = Field(default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False)


class TenantScopedMixin(SQLModel):
    """Owning tenant for rows that must never leak across tenants."""

    tenant_id: int = Field(foreign_key="tenants.id", nullable=False, index=True)
