"""Tenant (company) model — top-level isolation boundary."""

import json

from pydantic import EmailStr
from sqlalchemy import Text
from sqlmodel import Column, Field, SQLModel

from app.models.base import TimestampMixin

DEFAULT_TENANT_NAME = "Default Company"

# Feature modules a tenant can be restricted to
KNOWN_MODULES = frozenset(
    {"invoices", "inventory", "pos", "hr", "payroll", "vat", "accounting", "reports"}
)


class Tenant(TimestampMixin, SQLModel, table=True):
    __tablename__ = "tenants"

    # The tenant id itself; allocated as max(id) + 1 on provisioning
    id: int = Field(primary_key=True, sa_column_kwargs={"autoincrement": False})
    name: str = Field(max_length=255, nullable=False)
    shop_name: str | None = Field(default=None, max_length=255)
    address: str | None = Field(default=None, sa_column=Column(Text))
    trn: str | None = Field(default=None, max_length=50)  # tax registration number
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    website: str | None = Field(default=None, max_length=255)
    is_active: bool = Field(default=True)

    # JSON array of enabled module names; NULL means every module is enabled
    enabled_modules: str | None = Field(default=None, sa_column=Column(Text))

    def module_list(self) -> list[str] | None:
        if self.enabled_modules is None:
            return None
        return json.loads(self.enabled_modules)

    def has_module(self, name: str) -> bool:
        modules = self.module_list()
        return modules is None or name in modules


# ── Pydantic schemas (read / create / update) ────────────────

class TenantCreate(SQLModel):
    name: str = Field(max_length=255)
    shop_name: str | None = None
    address: str | None = None
    trn: str | None = None
    email: EmailStr | None = None
    phone: str | None = None
    website: str | None = None
    enabled_modules: list[str] | None = None
    email_domain: str | None = Field(default=None, max_length=255)


class TenantUpdate(SQLModel):
    name: str | None = Field(default=None, max_length=255)
    shop_name: str | None = None
    address: str | None = None
    trn: str | None = None
    email: EmailStr | None = None
    phone: str | None = None
    website: str | None = None
    is_active: bool | None = None
    enabled_modules: list[str] | None = None


class TenantRead(SQLModel):
    id: int
    name: str
    shop_name: str | None
    email: str | None
    phone: str | None
    is_active: bool
    enabled_modules: list[str] | None
    email_domains: list[str] = []

    @classmethod
    def from_tenant(cls, tenant: Tenant, domains: list[str] | None = None) -> "TenantRead":
        return cls(
            id=tenant.id,
            name=tenant.name,
            shop_name=tenant.shop_name,
            email=tenant.email,
            phone=tenant.phone,
            is_active=tenant.is_active,
            enabled_modules=tenant.module_list(),
            email_domains=domains or [],
        )
