"""Invoice model — only the fields the core reads or computes."""

import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum

from sqlalchemy import Numeric, Text
from sqlmodel import Column, Field, SQLModel

from app.models.base import TenantScopedMixin, TimestampMixin, new_uuid


class InvoiceStatus(StrEnum):
    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


# Invoices in these states never trigger due-date reminders
CLOSED_INVOICE_STATUSES = (InvoiceStatus.PAID, InvoiceStatus.CANCELLED)


class Invoice(TenantScopedMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "invoices"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    invoice_number: str = Field(max_length=50, nullable=False, index=True)
    customer_name: str = Field(max_length=255, nullable=False)
    issue_date: date | None = Field(default=None)
    due_date: date | None = Field(default=None, index=True)
    status: InvoiceStatus = Field(default=InvoiceStatus.DRAFT)

    # JSON array of line items as submitted
    items: str = Field(default="[]", sa_column=Column(Text, nullable=False, server_default="[]"))

    subtotal: Decimal = Field(default=Decimal("0"), sa_column=Column(Numeric(12, 2), nullable=False))
    total_discount: Decimal = Field(default=Decimal("0"), sa_column=Column(Numeric(12, 2), nullable=False))
    vat_amount: Decimal = Field(default=Decimal("0"), sa_column=Column(Numeric(12, 2), nullable=False))
    total: Decimal = Field(default=Decimal("0"), sa_column=Column(Numeric(12, 2), nullable=False))


# ── Pydantic schemas ─────────────────────────────────────────

class InvoiceLineIn(SQLModel):
    description: str = ""
    quantity: Decimal
    unit_price: Decimal
    discount: Decimal = Decimal("0")
    vat_rate: Decimal | None = None


class InvoiceCreate(SQLModel):
    invoice_number: str = Field(max_length=50)
    customer_name: str = Field(max_length=255)
    issue_date: date | None = None
    due_date: date | None = None
    status: InvoiceStatus = InvoiceStatus.DRAFT
    items: list[InvoiceLineIn]
    order_discount: Decimal = Decimal("0")


class InvoiceRead(SQLModel):
    id: uuid.UUID
    invoice_number: str
    customer_name: str
    due_date: date | None
    status: InvoiceStatus
    subtotal: Decimal
    total_discount: Decimal
    vat_amount: Decimal
    total: Decimal
    created_at: datetime
