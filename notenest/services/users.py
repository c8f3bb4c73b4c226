"""User management: admin only, always inside the admin's own tenant."""

import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from notenest.core import policy
from notenest.core.errors import Conflict, NotFound, ValidationFailure
from notenest.core.security import Identity, PasswordVerifier, generate_temporary_password
from notenest.models.base import utcnow
from notenest.models.user import User, UserInvite, UserInvited, UserRead, UserRole

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL = "User with this email already exists in your organization"


async def list_users(session: AsyncSession, identity: Identity) -> list[UserRead]:
    policy.require(identity, policy.ListUsers(tenant_id=identity.tenant_id))

    stmt = (
        select(User)
        .where(User.tenant_id == identity.tenant_id)
        .order_by(User.created_at.desc())  # type: ignore[union-attr]
    )
    result = await session.execute(stmt)
    return [UserRead.model_validate(u) for u in result.scalars().all()]


async def invite_user(
    session: AsyncSession,
    identity: Identity,
    body: UserInvite,
    passwords: PasswordVerifier,
) -> UserInvited:
    """Create a user in the caller's tenant with a one-time temporary password."""
    policy.require(identity, policy.InviteUser(tenant_id=identity.tenant_id))

    existing = await session.execute(
        select(User.id).where(
            User.tenant_id == identity.tenant_id,
            User.email == body.email,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise Conflict(DUPLICATE_EMAIL)

    temporary_password = generate_temporary_password()
    user = User(
        tenant_id=identity.tenant_id,
        email=body.email,
        name=body.name.strip(),
        role=body.role,
        password_hash=passwords.hash(temporary_password),
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent invite for the same address
        await session.rollback()
        raise Conflict(DUPLICATE_EMAIL) from exc
    await session.refresh(user)

    logger.info("User %s invited to tenant %s by %s", user.id, user.tenant_id, identity.user_id)
    return UserInvited(
        **UserRead.model_validate(user).model_dump(),
        temporary_password=temporary_password,
    )


async def change_user_role(
    session: AsyncSession,
    identity: Identity,
    user_id: uuid.UUID,
    role: UserRole,
) -> UserRead:
    policy.require(identity, policy.ChangeUserRole(tenant_id=identity.tenant_id))

    stmt = select(User).where(
        User.id == user_id,
        User.tenant_id == identity.tenant_id,
    )
    user = (await session.execute(stmt)).scalar_one_or_none()
    if user is None:
        raise NotFound("User not found")

    if user.id == identity.user_id and role != UserRole.ADMIN:
        raise ValidationFailure("Admins cannot remove their own admin role")

    user.role = role
    user.updated_at = utcnow()
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return UserRead.model_validate(user)
