"""User management: admin only, scoped to the admin's tenant."""

import uuid

from fastapi import APIRouter, status

from notenest.api.deps import CurrentIdentity, Passwords, Session
from notenest.api.schemas import Envelope, ListEnvelope, listing
from notenest.models.user import UserInvite, UserInvited, UserRead, UserRoleUpdate
from notenest.services import users

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=ListEnvelope[UserRead])
async def list_users(identity: CurrentIdentity, session: Session) -> dict:
    return listing(await users.list_users(session, identity))


@router.post("", response_model=Envelope[UserInvited], status_code=status.HTTP_201_CREATED)
async def invite_user(
    body: UserInvite,
    identity: CurrentIdentity,
    session: Session,
    passwords: Passwords,
) -> dict:
    """Invite a user; the temporary password is shown once."""
    invited = await users.invite_user(session, identity, body, passwords)
    return {"message": "User invited successfully", "data": invited}


@router.patch("/{user_id}/role", response_model=Envelope[UserRead])
async def change_user_role(
    user_id: uuid.UUID,
    body: UserRoleUpdate,
    identity: CurrentIdentity,
    session: Session,
) -> dict:
    user = await users.change_user_role(session, identity, user_id, body.role)
    return {"message": "Role updated successfully", "data": user}
