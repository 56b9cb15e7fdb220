"""Authentication endpoints — current principal."""

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from app.api.deps import Auth, Session
from app.models.tenant import Tenant, TenantRead
from app.models.user import User, UserRead

router = APIRouter(prefix="/auth", tags=["auth"])


# ── Schemas ──────────────────────────────────────────────────

class MeResponse(BaseModel):
    user: UserRead
    tenant: TenantRead
    is_developer: bool


# ── Routes ───────────────────────────────────────────────────

@router.get("/me", response_model=MeResponse)
async def get_me(auth: Auth, session: Session) -> MeResponse:
    """Return the current principal and their tenant.

    The first call with a new identity token creates the principal.
    """
    user = await session.get(User, auth.user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    tenant = await session.get(Tenant, auth.tenant_id)
    if tenant is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found")

    return MeResponse(
        user=UserRead.model_validate(user),
        tenant=TenantRead.from_tenant(tenant),
        is_developer=auth.is_developer,
    )
