"""FastAPI dependencies for authentication and tenant resolution."""

import logging
import uuid
from collections.abc import Callable, Coroutine
from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.database import get_session
from app.core.security import VerifiedIdentity, decode_identity_token, is_developer_email
from app.models.base import utcnow
from app.models.tenant import Tenant
from app.models.user import User, UserRole
from app.services.tenant_resolver import TenantResolver

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer()


class AuthContext:
    """Resolved identity carried through a request."""

    __slots__ = ("tenant_id", "user_id", "user_role", "email", "is_developer")

    def __init__(
        self,
        tenant_id: int,
        user_id: uuid.UUID,
        user_role: str,
        email: str,
        is_developer: bool = False,
    ) -> None:
        self.tenant_id = tenant_id
        self.user_id = user_id
        self.user_role = user_role
        self.email = email
        self.is_developer = is_developer


def get_tenant_resolver(request: Request) -> TenantResolver:
    """The process-wide resolver built at startup."""
    return request.app.state.tenant_resolver


Resolver = Annotated[TenantResolver, Depends(get_tenant_resolver)]


def _access_denied() -> HTTPException:
    # Never reveal whether the domain is known
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")


async def _find_user(session: AsyncSession, external_id: str) -> User | None:
    result = await session.execute(select(User).where(User.external_id == external_id))
    return result.scalar_one_or_none()


async def _provision_user(
    identity: VerifiedIdentity,
    session: AsyncSession,
    resolver: TenantResolver,
) -> User:
    """First login: place the principal in a tenant and persist it."""
    if is_developer_email(identity.email):
        tenant_id: int | None = resolver.default_tenant_id
        role = UserRole.ADMIN
    else:
        tenant_id = await resolver.resolve_tenant_id(identity.email)
        role = UserRole.STAFF
    if tenant_id is None:
        logger.info("First login rejected for %s", identity.email)
        raise _access_denied()

    user = User(
        external_id=identity.external_id,
        email=identity.email.lower(),
        display_name=identity.display_name,
        role=role,
        tenant_id=tenant_id,
        last_login_at=utcnow(),
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError:
        # Concurrent first login created the row already
        await session.rollback()
        existing = await _find_user(session, identity.external_id)
        if existing is None:
            raise
        return existing
    logger.info("Created principal %s in tenant %d", user.email, tenant_id)
    return user


async def get_auth_context(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    session: Annotated[AsyncSession, Depends(get_session)],
    resolver: Resolver,
) -> AuthContext:
    """Resolve an identity-provider bearer token to an AuthContext."""
    try:
        identity = decode_identity_token(credentials.credentials)
    except JWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        ) from exc

    user = await _find_user(session, identity.external_id)
    if user is None:
        user = await _provision_user(identity, session, resolver)
    else:
        user.last_login_at = utcnow()
        session.add(user)
        await session.commit()

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is disabled",
        )

    return AuthContext(
        tenant_id=user.tenant_id,
        user_id=user.id,
        user_role=user.role,
        email=user.email,
        is_developer=is_developer_email(user.email),
    )


# Typed shorthand for use in route signatures
Auth = Annotated[AuthContext, Depends(get_auth_context)]
Session = Annotated[AsyncSession, Depends(get_session)]


def require_roles(*roles: UserRole) -> Callable[..., Coroutine[Any, Any, AuthContext]]:
    """Dependency factory: 403 unless the caller holds one of ``roles``."""

    async def _check(auth: Auth) -> AuthContext:
        if auth.user_role not in roles and not auth.is_developer:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return auth

    return _check


def require_module(module: str) -> Callable[..., Coroutine[Any, Any, AuthContext]]:
    """Dependency factory: 403 unless the caller's tenant has ``module`` enabled."""

    async def _check(auth: Auth, session: Session) -> AuthContext:
        if auth.is_developer:
            return auth
        tenant = await session.get(Tenant, auth.tenant_id)
        if tenant is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found")
        if not tenant.has_module(module):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Module '{module}' is not enabled for this company",
            )
        return auth

    return _check


async def require_platform_admin(auth: Auth) -> AuthContext:
    """Platform operators only (tenant and domain administration)."""
    if not auth.is_developer:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return auth


Admin = Annotated[AuthContext, Depends(require_roles(UserRole.ADMIN))]
PlatformAdmin = Annotated[AuthContext, Depends(require_platform_admin)]
