"""Note quota enforcement per tenant plan.

A slot is reserved with one guarded UPDATE on the tenant row:

    UPDATE tenants SET note_count = note_count + 1
     WHERE id = :tenant_id AND (plan = 'pro' OR note_count < :limit)

The row lock taken by the UPDATE serializes concurrent reservations for the
same tenant, and the predicate is re-evaluated against the latest committed
counter, so two requests can never both observe "2 of 3" and both insert.
The caller inserts the note in the same transaction and commits both
together; rolling back releases the slot.
"""

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from notenest.core.errors import LimitReached, NotFound
from notenest.models.base import utcnow
from notenest.models.tenant import Tenant, TenantPlan

logger = logging.getLogger(__name__)

FREE_PLAN_NOTE_LIMIT = 3

# None means unlimited
PLAN_NOTE_LIMITS: dict[TenantPlan, int | None] = {
    TenantPlan.FREE: FREE_PLAN_NOTE_LIMIT,
    TenantPlan.PRO: None,
}


def note_limit_for(plan: TenantPlan, free_limit: int = FREE_PLAN_NOTE_LIMIT) -> int | None:
    if plan == TenantPlan.FREE:
        return free_limit
    return PLAN_NOTE_LIMITS[plan]


@dataclass(frozen=True)
class QuotaDecision:
    granted: bool
    plan: TenantPlan
    used: int
    limit: int | None


async def try_reserve_slot(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    free_limit: int = FREE_PLAN_NOTE_LIMIT,
) -> QuotaDecision:
    """Atomically claim one note slot for the tenant.

    Must be followed by the note INSERT and a commit on the same session.
    """
    stmt = (
        update(Tenant)
        .where(
            Tenant.id == tenant_id,
            or_(Tenant.plan == TenantPlan.PRO, Tenant.note_count < free_limit),
        )
        .values(note_count=Tenant.note_count + 1, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    granted = result.rowcount == 1

    # Read back inside the same transaction for the decision details
    row = (
        await session.execute(
            select(Tenant.plan, Tenant.note_count).where(Tenant.id == tenant_id)
        )
    ).one_or_none()
    if row is None:
        raise NotFound("Tenant not found")

    plan, used = row
    return QuotaDecision(
        granted=granted,
        plan=plan,
        used=used,
        limit=note_limit_for(plan, free_limit),
    )


async def reserve_slot(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    free_limit: int = FREE_PLAN_NOTE_LIMIT,
) -> QuotaDecision:
    """Like try_reserve_slot, but raise LimitReached when denied."""
    decision = await try_reserve_slot(session, tenant_id, free_limit)
    if not decision.granted:
        logger.info(
            "Note quota reached for tenant %s (%s plan, %d/%s)",
            tenant_id,
            decision.plan,
            decision.used,
            decision.limit,
        )
        raise LimitReached(decision.limit or free_limit)
    return decision


async def release_slot(session: AsyncSession, tenant_id: uuid.UUID) -> None:
    """Give back one slot; runs in the same transaction as the note DELETE."""
    stmt = (
        update(Tenant)
        .where(Tenant.id == tenant_id, Tenant.note_count > 0)
        .values(note_count=Tenant.note_count - 1, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    await session.execute(stmt)
