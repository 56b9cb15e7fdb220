"""User (principal) model — belongs to exactly one tenant."""

import uuid
from datetime import datetime
from enum import StrEnum

from sqlmodel import Field, SQLModel

from app.models.base import TenantScopedMixin, TimestampMixin, new_uuid


class UserRole(StrEnum):
    ADMIN = "admin"
    STAFF = "staff"
    HR = "hr"
    ACCOUNTANT = "accountant"


class User(TenantScopedMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    # Subject id issued by the identity provider
    external_id: str = Field(max_length=128, unique=True, nullable=False, index=True)
    email: str = Field(max_length=320, nullable=False, index=True)
    display_name: str = Field(default="", max_length=255)
    role: UserRole = Field(default=UserRole.STAFF)
    is_active: bool = Field(default=True)
    last_login_at: datetime | None = Field(default=None)


# ── Pydantic schemas ─────────────────────────────────────────

class UserRoleUpdate(SQLModel):
    role: UserRole


class UserRead(SQLModel):
    id: uuid.UUID
    tenant_id: int
    email: str
    display_name: str
    role: UserRole
    is_active: bool
    last_login_at: datetime | None
