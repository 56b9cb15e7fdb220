"""Users — tenant-scoped listing, role changes and tenant re-resolution."""

import uuid

from fastapi import APIRouter, HTTPException, status
from sqlmodel import select

from app.api.deps import Admin, AuthContext, Resolver, Session
from app.models.base import utcnow
from app.models.user import User, UserRead, UserRoleUpdate

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=list[UserRead])
async def list_users(auth: Admin, session: Session) -> list[UserRead]:
    stmt = (
        select(User)
        .where(User.tenant_id == auth.tenant_id)
        .order_by(User.email.asc())  # type: ignore[union-attr]
    )
    result = await session.execute(stmt)
    return [UserRead.model_validate(u) for u in result.scalars().all()]


@router.patch("/{user_id}/role", response_model=UserRead)
async def update_user_role(
    user_id: uuid.UUID,
    body: UserRoleUpdate,
    auth: Admin,
    session: Session,
) -> UserRead:
    user = await _get_or_404(user_id, auth, session)
    user.role = body.role
    user.updated_at = utcnow()
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return UserRead.model_validate(user)


@router.post("/{user_id}/resolve-tenant", response_model=UserRead)
async def resolve_user_tenant(
    user_id: uuid.UUID,
    auth: Admin,
    session: Session,
    resolver: Resolver,
) -> UserRead:
    """Re-run domain resolution for a principal and move them if it changed."""
    user = await _get_or_404(user_id, auth, session)
    email = user.email
    # Release the request transaction before the resolver opens its own
    await session.commit()

    tenant_id = await resolver.resolve_tenant_id(email)
    if tenant_id is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email domain does not resolve to a tenant",
        )

    if tenant_id != user.tenant_id:
        user.tenant_id = tenant_id
        user.updated_at = utcnow()
        session.add(user)
        await session.commit()
        await session.refresh(user)
    return UserRead.model_validate(user)


# ── Internal helper ───────────────────────────────────────────

async def _get_or_404(user_id: uuid.UUID, auth: AuthContext, session) -> User:
    stmt = select(User).where(User.id == user_id)
    if not auth.is_developer:
        stmt = stmt.where(User.tenant_id == auth.tenant_id)
    result = await session.execute(stmt)
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user
