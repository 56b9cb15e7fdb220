"""Tenant resolution — map an authenticated email domain to a tenant id.

Resolution order: per-process domain cache, then the active ``DomainMapping``
row, then the configured ``UnmappedDomainPolicy``. Lookups are bounded by a
short timeout. When persistence is unavailable the resolver fails open to the
default tenant, except under the block policy where it fails closed.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.cache import DEFAULT_TTL, DomainCache
from app.core.config import Settings, UnmappedDomainPolicy
from app.models.base import utcnow
from app.models.domain_mapping import DomainMapping
from app.models.tenant import Tenant

logger = logging.getLogger(__name__)

# Returned by resolve_tenant_id when the principal must be denied
REJECTED = None

SessionFactory = Callable[[], AsyncSession]

# Allocation attempts before a new domain falls back to the default tenant
TENANT_ID_ATTEMPTS = 3


async def insert_next_tenant(
    session: AsyncSession, tenant: Tenant, *, domain: str | None = None
) -> int:
    """Give ``tenant`` the id ``max(id) + 1`` and commit it, with an optional mapping.

    A concurrent insert of the same id (or of an existing domain) raises
    ``IntegrityError`` after the session has been rolled back.
    """
    result = await session.execute(select(func.max(Tenant.id)))
    tenant.id = (result.scalar_one_or_none() or 0) + 1
    session.add(tenant)
    if domain is not None:
        session.add(DomainMapping(domain=domain, tenant_id=tenant.id))
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise
    return tenant.id


def normalize_domain(domain: str) -> str:
    """Lower-case a domain and strip whitespace and a leading ``@``."""
    return domain.strip().lstrip("@").lower()


def extract_domain(email: str | None) -> str | None:
    """Domain part of an address with exactly one ``@``, else None."""
    if not email or email.count("@") != 1:
        return None
    domain = normalize_domain(email.split("@", 1)[1])
    return domain or None


class TenantResolver:
    """Resolves email domains to tenant ids. One instance per process."""

    def __init__(
        self,
        session_factory: SessionFactory,
        policy: UnmappedDomainPolicy,
        *,
        cache: DomainCache | None = None,
        cache_ttl: float = DEFAULT_TTL,
        lookup_timeout: float = 3.0,
        default_tenant_id: int = 1,
    ) -> None:
        self._session_factory = session_factory
        self.policy = policy
        self.cache = cache or DomainCache(ttl=cache_ttl)
        self.lookup_timeout = lookup_timeout
        self.default_tenant_id = default_tenant_id

    @classmethod
    def from_settings(cls, settings: Settings, session_factory: SessionFactory) -> TenantResolver:
        return cls(
            session_factory,
            settings.unmapped_domain_policy,
            cache_ttl=settings.domain_cache_ttl_seconds,
            lookup_timeout=settings.tenant_lookup_timeout_seconds,
            default_tenant_id=settings.default_tenant_id,
        )

    # ── Resolution ───────────────────────────────────────────

    async def resolve_tenant_id(self, email: str | None) -> int | None:
        """Return the tenant id for ``email``, or ``REJECTED`` (None)."""
        domain = extract_domain(email)
        if domain is None:
            # Malformed address: no lookup, nothing provisioned
            if self.policy is UnmappedDomainPolicy.BLOCK:
                return REJECTED
            return self.default_tenant_id

        cached = self.cache.get(domain)
        if cached is not None:
            return cached

        try:
            tenant_id = await asyncio.wait_for(
                self._fetch_tenant_id(domain), timeout=self.lookup_timeout
            )
        except Exception:
            if self.policy is UnmappedDomainPolicy.BLOCK:
                logger.warning(
                    "Domain lookup failed for %s, rejecting (block policy)", domain, exc_info=True
                )
                return REJECTED
            logger.warning(
                "Domain lookup failed for %s, using default tenant %d",
                domain,
                self.default_tenant_id,
                exc_info=True,
            )
            return self.default_tenant_id

        if tenant_id is not None:
            self.cache.put(domain, tenant_id)
            return tenant_id

        if self.policy is UnmappedDomainPolicy.BLOCK:
            logger.warning("Unmapped domain blocked: %s", domain)
            return REJECTED
        if self.policy is UnmappedDomainPolicy.AUTO_CREATE:
            return await self._provision_tenant(domain)
        return self.default_tenant_id

    async def _fetch_tenant_id(self, domain: str) -> int | None:
        async with self._session_factory() as session:
            stmt = select(DomainMapping.tenant_id).where(
                DomainMapping.domain == domain,
                DomainMapping.is_active.is_(True),  # type: ignore[attr-defined]
            )
            result = await session.execute(stmt)
            return result.scalars().first()

    async def _provision_tenant(self, domain: str) -> int:
        """Create a tenant + active mapping for a new domain.

        Two new domains provisioned at once can race for the same
        ``max(id) + 1``; the loser allocates again, up to
        ``TENANT_ID_ATTEMPTS`` times.
        """
        for attempt in range(1, TENANT_ID_ATTEMPTS + 1):
            try:
                async with self._session_factory() as session:
                    tenant = Tenant(
                        name=f"{domain} Company",
                        shop_name=f"{domain} Shop",
                        email=f"info@{domain}",
                    )
                    tenant_id = await insert_next_tenant(session, tenant, domain=domain)
            except IntegrityError:
                # Either this domain was provisioned concurrently or the id was taken
                try:
                    existing = await self._fetch_tenant_id(domain)
                except Exception:
                    logger.warning("Re-read after provisioning conflict failed for %s", domain, exc_info=True)
                    existing = None
                if existing is not None:
                    logger.info("Concurrent provisioning detected for %s", domain)
                    self.cache.put(domain, existing)
                    return existing
                logger.info("Tenant id collision provisioning %s (attempt %d)", domain, attempt)
                continue
            except Exception:
                logger.exception("Auto-provisioning failed for %s, using default tenant", domain)
                return self.default_tenant_id

            logger.info("Provisioned tenant %d for new domain %s", tenant_id, domain)
            self.cache.put(domain, tenant_id)
            return tenant_id

        logger.error(
            "Gave up provisioning %s after %d attempts, using default tenant",
            domain,
            TENANT_ID_ATTEMPTS,
        )
        return self.default_tenant_id

    # ── Administration ───────────────────────────────────────

    async def add_mapping(self, domain: str, tenant_id: int) -> DomainMapping:
        """Upsert an active mapping. Raises LookupError for an unknown tenant."""
        domain = normalize_domain(domain)
        if not domain:
            raise ValueError("Domain must not be empty")

        async with self._session_factory() as session:
            if await session.get(Tenant, tenant_id) is None:
                raise LookupError(f"Tenant {tenant_id} not found")

            result = await session.execute(
                select(DomainMapping).where(DomainMapping.domain == domain)
            )
            mapping = result.scalar_one_or_none()
            if mapping is None:
                mapping = DomainMapping(domain=domain, tenant_id=tenant_id)
            else:
                mapping.tenant_id = tenant_id
                mapping.is_active = True
                mapping.updated_at = utcnow()
            session.add(mapping)
            await session.commit()
            await session.refresh(mapping)

        self.invalidate()
        logger.info("Mapped domain %s to tenant %d", domain, tenant_id)
        return mapping

    async def remove_mapping(self, domain: str, *, hard: bool = False) -> bool:
        """Deactivate (or delete) a mapping. Returns False if none existed."""
        domain = normalize_domain(domain)
        async with self._session_factory() as session:
            result = await session.execute(
                select(DomainMapping).where(DomainMapping.domain == domain)
            )
            mapping = result.scalar_one_or_none()
            if mapping is None:
                return False
            if hard:
                await session.delete(mapping)
            else:
                mapping.is_active = False
                mapping.updated_at = utcnow()
                session.add(mapping)
            await session.commit()

        self.invalidate()
        logger.info("%s domain mapping %s", "Deleted" if hard else "Deactivated", domain)
        return True

    async def list_mappings(self) -> list[DomainMapping]:
        async with self._session_factory() as session:
            stmt = select(DomainMapping).order_by(
                DomainMapping.tenant_id.asc(),  # type: ignore[attr-defined]
                DomainMapping.domain.asc(),  # type: ignore[attr-defined]
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())

    def invalidate(self) -> None:
        """Clear the whole cache after any mapping change."""
        self.cache.clear()
