"""Notification model — deduplicated reminders addressed to one principal."""

import uuid
from datetime import date, datetime
from enum import StrEnum

from sqlalchemy import Text
from sqlmodel import Column, Field, SQLModel

from app.models.base import TenantScopedMixin, TimestampMixin, new_uuid


class NotificationType(StrEnum):
    # Document expiry
    PASSPORT_EXPIRY = "passport_expiry"
    VISA_EXPIRY = "visa_expiry"
    INSURANCE_EXPIRY = "insurance_expiry"
    CONTRACT_EXPIRY = "contract_expiry"
    LICENSE_EXPIRY = "license_expiry"
    # Billing due
    VAT_DUE = "vat_due"
    INVOICE_DUE = "invoice_due"


class NotificationStatus(StrEnum):
    UNREAD = "unread"
    READ = "read"


class Notification(TenantScopedMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "notifications"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    recipient_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    type: NotificationType = Field(nullable=False, index=True)
    title: str = Field(max_length=255, nullable=False)
    message: str = Field(sa_column=Column(Text, nullable=False))
    due_date: date | None = Field(default=None)
    link: str | None = Field(default=None, max_length=500)
    # type_recipient_entity_day, unique across the whole table
    dedup_key: str = Field(max_length=255, unique=True, nullable=False, index=True)
    status: NotificationStatus = Field(default=NotificationStatus.UNREAD, index=True)


# ── Pydantic schemas ─────────────────────────────────────────

class NotificationRead(SQLModel):
    id: uuid.UUID
    type: NotificationType
    title: str
    message: str
    due_date: date | None
    link: str | None
    status: NotificationStatus
    created_at: datetime


class NotificationPage(SQLModel):
    notifications: list[NotificationRead]
    total: int
    limit: int
    offset: int
