"""Tenant directory, quota usage and plan changes."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from notenest.core import policy
from notenest.core.errors import NoChangeNeeded, NotFound
from notenest.core.security import Identity
from notenest.models.base import utcnow
from notenest.models.tenant import (
    Tenant,
    TenantDirectoryEntry,
    TenantPlan,
    TenantRead,
    TenantUsage,
)
from notenest.services.quota import FREE_PLAN_NOTE_LIMIT, note_limit_for

logger = logging.getLogger(__name__)

_ALREADY_ON = {
    TenantPlan.PRO: "Tenant is already on the Pro plan",
    TenantPlan.FREE: "Tenant is already on the Free plan",
}


async def list_directory(session: AsyncSession) -> list[TenantDirectoryEntry]:
    """Public tenant list for the login picker: no plan or usage data."""
    result = await session.execute(select(Tenant).order_by(Tenant.name))
    return [TenantDirectoryEntry.model_validate(t) for t in result.scalars().all()]


async def _own_tenant(session: AsyncSession, identity: Identity) -> Tenant:
    tenant = await session.get(Tenant, identity.tenant_id)
    if tenant is None:
        raise NotFound("Tenant not found")
    return tenant


async def get_usage(
    session: AsyncSession,
    identity: Identity,
    free_limit: int = FREE_PLAN_NOTE_LIMIT,
) -> TenantUsage:
    tenant = await _own_tenant(session, identity)
    return TenantUsage(
        **TenantRead.model_validate(tenant).model_dump(),
        note_count=tenant.note_count,
        note_limit=note_limit_for(tenant.plan, free_limit),
    )


async def change_plan(
    session: AsyncSession,
    identity: Identity,
    slug: str,
    target: TenantPlan,
) -> TenantRead:
    """Move the caller's tenant to `target`. Trusted internal transition, no billing."""
    tenant = await _own_tenant(session, identity)
    policy.require(
        identity,
        policy.ChangeTenantPlan(
            tenant_id=tenant.id,
            tenant_subdomain=tenant.subdomain,
            requested_slug=slug,
        ),
    )

    if tenant.plan == target:
        raise NoChangeNeeded(_ALREADY_ON[target])

    previous = tenant.plan
    tenant.plan = target
    tenant.updated_at = utcnow()
    session.add(tenant)
    await session.commit()
    await session.refresh(tenant)

    logger.info("Tenant %s plan changed %s -> %s by %s", tenant.id, previous, target, identity.user_id)
    return TenantRead.model_validate(tenant)


async def upgrade(session: AsyncSession, identity: Identity, slug: str) -> TenantRead:
    return await change_plan(session, identity, slug, TenantPlan.PRO)


async def downgrade(session: AsyncSession, identity: Identity, slug: str) -> TenantRead:
    return await change_plan(session, identity, slug, TenantPlan.FREE)
