"""Email-domain mappings — platform operators only."""

from fastapi import APIRouter, HTTPException, status

from app.api.deps import PlatformAdmin, Resolver
from app.models.domain_mapping import DomainMappingRead, DomainMappingUpsert

router = APIRouter(prefix="/domains", tags=["domains"])


@router.get("", response_model=list[DomainMappingRead])
async def list_domains(_: PlatformAdmin, resolver: Resolver) -> list[DomainMappingRead]:
    mappings = await resolver.list_mappings()
    return [DomainMappingRead.model_validate(m) for m in mappings]


@router.put("/{domain}", response_model=DomainMappingRead)
async def upsert_domain(
    domain: str,
    body: DomainMappingUpsert,
    _: PlatformAdmin,
    resolver: Resolver,
) -> DomainMappingRead:
    """Map ``domain`` to a tenant, reactivating an existing mapping."""
    try:
        mapping = await resolver.add_mapping(domain, body.tenant_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    return DomainMappingRead.model_validate(mapping)


@router.delete("/{domain}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_domain(
    domain: str,
    _: PlatformAdmin,
    resolver: Resolver,
    hard: bool = False,
) -> None:
    """Deactivate a mapping, or delete it outright with ``?hard=true``."""
    if not await resolver.remove_mapping(domain, hard=hard):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Domain mapping not found")
