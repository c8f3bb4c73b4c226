"""Demo data: two free-plan tenants, each with an admin and a member."""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from notenest.core.security import PasswordVerifier
from notenest.models.tenant import Tenant, TenantPlan
from notenest.models.user import User, UserRole

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "password"


@dataclass(frozen=True)
class DemoTenant:
    name: str
    subdomain: str


DEMO_TENANTS = (
    DemoTenant(name="Acme", subdomain="acme"),
    DemoTenant(name="Globex", subdomain="globex"),
)


async def seed_demo_data(
    session: AsyncSession,
    passwords: PasswordVerifier,
    password: str = DEMO_PASSWORD,
) -> dict[str, Tenant]:
    """Create the demo tenants and users if missing. Safe to run repeatedly."""
    password_hash = passwords.hash(password)
    seeded: dict[str, Tenant] = {}

    for demo in DEMO_TENANTS:
        result = await session.execute(select(Tenant).where(Tenant.subdomain == demo.subdomain))
        tenant = result.scalar_one_or_none()
        if tenant is None:
            tenant = Tenant(name=demo.name, subdomain=demo.subdomain, plan=TenantPlan.FREE)
            session.add(tenant)
            await session.flush()  # populate tenant.id
            for role in (UserRole.ADMIN, UserRole.MEMBER):
                session.add(
                    User(
                        tenant_id=tenant.id,
                        email=f"{role.value}@{demo.subdomain}.com",
                        name=f"{demo.name} {role.value.title()}",
                        role=role,
                        password_hash=password_hash,
                    )
                )
            logger.info("Seeded demo tenant %s", demo.subdomain)
        seeded[demo.subdomain] = tenant

    await session.commit()
    return seeded
