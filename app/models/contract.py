"""Employment contract model."""

import uuid
from datetime import date
from enum import StrEnum

from sqlmodel import Field, SQLModel

from app.models.base import TenantScopedMixin, TimestampMixin, new_uuid


class ContractStatus(StrEnum):
    DRAFT = "draft"
    ACTIVE = "active"
    EXPIRED = "expired"
    TERMINATED = "terminated"


class Contract(TenantScopedMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "contracts"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    contract_number: str = Field(max_length=50, unique=True, nullable=False)
    employee_id: uuid.UUID = Field(foreign_key="employees.id", nullable=False, index=True)
    start_date: date = Field(nullable=False)
    end_date: date | None = Field(default=None, index=True)
    status: ContractStatus = Field(default=ContractStatus.DRAFT)
