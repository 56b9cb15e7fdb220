"""initial schema: tenants, domain mappings, users, notifications, HR and invoices

Revision ID: 4f1a9c2e7b30
Revises: 
Create Date: 2026-10-19 06:12:44.018233

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op
from app.models.contract import ContractStatus
from app.models.invoice import InvoiceStatus
from app.models.notification import NotificationStatus, NotificationType
from app.models.tenant import DEFAULT_TENANT_NAME
from app.models.user import UserRole

# revision identifiers, used by Alembic.
revision: str = '4f1a9c2e7b30'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def _tenant_fk() -> sa.Column:
    return sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False, index=True)


def upgrade() -> None:
    tenants = op.create_table(
        "tenants",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("shop_name", sa.String(255), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("trn", sa.String(50), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("website", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("enabled_modules", sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "domain_mappings",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _tenant_fk(),
        sa.Column("domain", sa.String(255), nullable=False, unique=True, index=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, index=True),
        *_timestamps(),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _tenant_fk(),
        sa.Column("external_id", sa.String(128), nullable=False, unique=True, index=True),
        sa.Column("email", sa.String(320), nullable=False, index=True),
        sa.Column("display_name", sa.String(255), nullable=False),
        sa.Column("role", sa.Enum(UserRole), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _tenant_fk(),
        sa.Column("recipient_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False, index=True),
        sa.Column("type", sa.Enum(NotificationType), nullable=False, index=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("link", sa.String(500), nullable=True),
        sa.Column("dedup_key", sa.String(255), nullable=False, unique=True, index=True),
        sa.Column("status", sa.Enum(NotificationStatus), nullable=False, index=True),
        *_timestamps(),
    )

    op.create_table(
        "employees",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _tenant_fk(),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("nationality", sa.String(100), nullable=True),
        sa.Column("designation", sa.String(255), nullable=True),
        sa.Column("passport_number", sa.String(50), nullable=True),
        sa.Column("passport_expiry", sa.Date(), nullable=True, index=True),
        sa.Column("visa_expiry", sa.Date(), nullable=True, index=True),
        sa.Column("insurance_expiry", sa.Date(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "contracts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _tenant_fk(),
        sa.Column("contract_number", sa.String(50), nullable=False, unique=True),
        sa.Column("employee_id", sa.Uuid(), sa.ForeignKey("employees.id"), nullable=False, index=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True, index=True),
        sa.Column("status", sa.Enum(ContractStatus), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "invoices",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _tenant_fk(),
        sa.Column("invoice_number", sa.String(50), nullable=False, index=True),
        sa.Column("customer_name", sa.String(255), nullable=False),
        sa.Column("issue_date", sa.Date(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True, index=True),
        sa.Column("status", sa.Enum(InvoiceStatus), nullable=False),
        sa.Column("items", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_discount", sa.Numeric(12, 2), nullable=False),
        sa.Column("vat_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("total", sa.Numeric(12, 2), nullable=False),
        *_timestamps(),
    )

    # Fallback tenant for the default-fallback policy and platform operators
    op.execute(
        tenants.insert().values(
            id=1,
            name=DEFAULT_TENANT_NAME,
            is_active=True,
            created_at=sa.func.now(),
            updated_at=sa.func.now(),
        )
    )


def downgrade() -> None:
    for table in (
        "invoices",
        "contracts",
        "employees",
        "notifications",
        "users",
        "domain_mappings",
        "tenants",
    ):
        op.drop_table(table)
    for enum_name in ("invoicestatus", "contractstatus", "notificationstatus", "notificationtype", "userrole"):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
