"""Employee model — HR record whose document dates drive expiry reminders."""

import uuid
from datetime import date

from sqlmodel import Field, SQLModel

from app.models.base import TenantScopedMixin, TimestampMixin, new_uuid


class Employee(TenantScopedMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "employees"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    full_name: str = Field(max_length=255, nullable=False)
    email: str | None = Field(default=None, max_length=320)
    phone: str | None = Field(default=None, max_length=50)
    nationality: str | None = Field(default=None, max_length=100)
    designation: str | None = Field(default=None, max_length=255)
    passport_number: str | None = Field(default=None, max_length=50)

    # Document expiry dates
    passport_expiry: date | None = Field(default=None, index=True)
    visa_expiry: date | None = Field(default=None, index=True)
    insurance_expiry: date | None = Field(default=None)


# ── Pydantic schemas ─────────────────────────────────────────

class EmployeeCreate(SQLModel):
    full_name: str = Field(max_length=255)
    email: str | None = None
    phone: str | None = None
    nationality: str | None = None
    designation: str | None = None
    passport_number: str | None = None
    passport_expiry: date | None = None
    visa_expiry: date | None = None
    insurance_expiry: date | None = None


class EmployeeUpdate(SQLModel):
    full_name: str | None = Field(default=None, max_length=255)
    email: str | None = None
    phone: str | None = None
    nationality: str | None = None
    designation: str | None = None
    passport_number: str | None = None
    passport_expiry: date | None = None
    visa_expiry: date | None = None
    insurance_expiry: date | None = None


class EmployeeRead(SQLModel):
    id: uuid.UUID
    tenant_id: int
    full_name: str
    email: str | None
    designation: str | None
    passport_expiry: date | None
    visa_expiry: date | None
    insurance_expiry: date | None
