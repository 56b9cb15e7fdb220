"""Tenant administration — platform operators manage every company."""

import json

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import delete, func
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from app.api.deps import Auth, PlatformAdmin, Resolver, Session
from app.models.base import utcnow
from app.models.contract import Contract
from app.models.domain_mapping import DomainMapping
from app.models.employee import Employee
from app.models.invoice import Invoice
from app.models.notification import Notification
from app.models.tenant import KNOWN_MODULES, Tenant, TenantCreate, TenantRead, TenantUpdate
from app.models.user import User
from app.services.tenant_resolver import TENANT_ID_ATTEMPTS, insert_next_tenant

router = APIRouter(prefix="/tenants", tags=["tenants"])


def _modules_json(modules: list[str] | None) -> str | None:
    if modules is None:
        return None
    unknown = sorted(set(modules) - KNOWN_MODULES)
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown modules: {', '.join(unknown)}",
        )
    return json.dumps(sorted(set(modules)))


async def _domains_by_tenant(session) -> dict[int, list[str]]:
    result = await session.execute(
        select(DomainMapping.tenant_id, DomainMapping.domain).where(
            DomainMapping.is_active.is_(True)  # type: ignore[attr-defined]
        )
    )
    grouped: dict[int, list[str]] = {}
    for tenant_id, domain in result.all():
        grouped.setdefault(tenant_id, []).append(domain)
    return grouped


# ── Routes ────────────────────────────────────────────────────

@router.get("/me", response_model=TenantRead, summary="Get current tenant info")
async def get_current_tenant(auth: Auth, session: Session) -> TenantRead:
    """Returns the tenant the caller's data is scoped to."""
    tenant = await session.get(Tenant, auth.tenant_id)
    if tenant is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found")
    domains = await _domains_by_tenant(session)
    return TenantRead.from_tenant(tenant, domains.get(tenant.id))


@router.get("", response_model=list[TenantRead])
async def list_tenants(_: PlatformAdmin, session: Session) -> list[TenantRead]:
    result = await session.execute(select(Tenant).order_by(Tenant.id.asc()))  # type: ignore[attr-defined]
    domains = await _domains_by_tenant(session)
    return [TenantRead.from_tenant(t, domains.get(t.id)) for t in result.scalars().all()]


@router.post("", response_model=TenantRead, status_code=status.HTTP_201_CREATED)
async def create_tenant(
    body: TenantCreate,
    _: PlatformAdmin,
    session: Session,
    resolver: Resolver,
) -> TenantRead:
    """Create a company, optionally mapping an email domain to it."""
    modules = _modules_json(body.enabled_modules)
    for _attempt in range(TENANT_ID_ATTEMPTS):
        tenant = Tenant(
            name=body.name,
            shop_name=body.shop_name,
            address=body.address,
            trn=body.trn,
            email=body.email,
            phone=body.phone,
            website=body.website,
            enabled_modules=modules,
        )
        try:
            await insert_next_tenant(session, tenant)
            break
        except IntegrityError:
            continue
    else:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Could not allocate a tenant id, retry",
        )
    await session.refresh(tenant)

    domains: list[str] = []
    if body.email_domain:
        mapping = await resolver.add_mapping(body.email_domain.rsplit("@", 1)[-1], tenant.id)
        domains.append(mapping.domain)
    return TenantRead.from_tenant(tenant, domains)


@router.patch("/{tenant_id}", response_model=TenantRead)
async def update_tenant(
    tenant_id: int,
    body: TenantUpdate,
    _: PlatformAdmin,
    session: Session,
) -> TenantRead:
    tenant = await session.get(Tenant, tenant_id)
    if tenant is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found")

    update_data = body.model_dump(exclude_unset=True)
    if "enabled_modules" in update_data:
        tenant.enabled_modules = _modules_json(update_data.pop("enabled_modules"))
    for field, value in update_data.items():
        setattr(tenant, field, value)

    tenant.updated_at = utcnow()
    session.add(tenant)
    await session.commit()
    await session.refresh(tenant)
    domains = await _domains_by_tenant(session)
    return TenantRead.from_tenant(tenant, domains.get(tenant.id))


@router.delete("/{tenant_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tenant(
    tenant_id: int,
    _: PlatformAdmin,
    session: Session,
    resolver: Resolver,
) -> None:
    """Delete a company and its domain mappings. The default tenant is permanent."""
    if tenant_id == resolver.default_tenant_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="The default tenant cannot be deleted",
        )
    tenant = await session.get(Tenant, tenant_id)
    if tenant is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found")

    for model in (User, Employee, Contract, Invoice, Notification):
        owned = (
            await session.execute(
                select(func.count()).select_from(model).where(model.tenant_id == tenant_id)
            )
        ).scalar_one()
        if owned:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Tenant still owns data; re-resolve users and remove its records first",
            )

    await session.execute(delete(DomainMapping).where(DomainMapping.tenant_id == tenant_id))
    await session.delete(tenant)
    await session.commit()
    resolver.invalidate()
