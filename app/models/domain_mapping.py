"""Email-domain → tenant mapping used to place new principals."""

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from app.models.base import TenantScopedMixin, TimestampMixin, new_uuid


class DomainMapping(TenantScopedMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "domain_mappings"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    # Always stored lower-case
    domain: str = Field(max_length=255, unique=True, nullable=False, index=True)
    is_active: bool = Field(default=True, index=True)


# ── Pydantic schemas ─────────────────────────────────────────

class DomainMappingUpsert(SQLModel):
    tenant_id: int


class DomainMappingRead(SQLModel):
    id: uuid.UUID
    domain: str
    tenant_id: int
    is_active: bool
    created_at: datetime
    updated_at: datetime
