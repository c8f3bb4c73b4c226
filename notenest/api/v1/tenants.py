"""Tenant directory, usage and plan-change endpoints."""

from fastapi import APIRouter

from notenest.api.deps import AppSettings, CurrentIdentity, Session
from notenest.api.schemas import Envelope, ListEnvelope, listing
from notenest.models.tenant import TenantDirectoryEntry, TenantRead, TenantUsage
from notenest.services import tenants

router = APIRouter(prefix="/tenants", tags=["tenants"])


@router.get("", response_model=ListEnvelope[TenantDirectoryEntry])
async def list_tenants(session: Session) -> dict:
    """Unauthenticated: feeds the tenant picker on the login screen."""
    return listing(await tenants.list_directory(session))


@router.get("/me", response_model=Envelope[TenantUsage])
async def get_current_tenant(
    identity: CurrentIdentity,
    session: Session,
    settings: AppSettings,
) -> dict:
    """Plan and note usage, always read from the tenant record."""
    return {"data": await tenants.get_usage(session, identity, settings.free_plan_note_limit)}


@router.post("/{slug}/upgrade", response_model=Envelope[TenantRead])
async def upgrade_tenant(slug: str, identity: CurrentIdentity, session: Session) -> dict:
    tenant = await tenants.upgrade(session, identity, slug)
    return {"message": "Successfully upgraded to Pro plan", "data": tenant}


@router.post("/{slug}/downgrade", response_model=Envelope[TenantRead])
async def downgrade_tenant(slug: str, identity: CurrentIdentity, session: Session) -> dict:
    tenant = await tenants.downgrade(session, identity, slug)
    return {"message": "Successfully downgraded to Free plan", "data": tenant}
