"""Authentication endpoints: login, logout, current identity."""

import logging
import uuid

from fastapi import APIRouter, Response
from pydantic import BaseModel, EmailStr
from sqlmodel import select

from notenest.api.deps import AppSettings, Codec, CurrentIdentity, Passwords, Session
from notenest.core.errors import NotFound, Unauthenticated
from notenest.models.tenant import Tenant, TenantRead
from notenest.models.user import User, UserRead

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

INVALID_CREDENTIALS = "Invalid email or password"


# ── Schemas ──────────────────────────────────────────────────

class LoginRequest(BaseModel):
    tenant_id: uuid.UUID
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    success: bool = True
    message: str = "Login successful"
    access_token: str
    token_type: str = "bearer"
    user: UserRead
    tenant: TenantRead


class MeResponse(BaseModel):
    success: bool = True
    user: UserRead
    tenant: TenantRead


# ── Routes ───────────────────────────────────────────────────

@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    response: Response,
    session: Session,
    settings: AppSettings,
    codec: Codec,
    passwords: Passwords,
) -> LoginResponse:
    """Authenticate with tenant + email + password, receive a token.

    The token is also set as an httpOnly cookie. Unknown tenant, unknown
    email and wrong password are indistinguishable.
    """
    tenant = await session.get(Tenant, body.tenant_id)
    user = None
    if tenant is not None:
        stmt = select(User).where(
            User.tenant_id == tenant.id,
            User.email == body.email,
        )
        user = (await session.execute(stmt)).scalar_one_or_none()

    if user is None or not passwords.verify(body.password, user.password_hash):
        logger.info("Failed login for %s in tenant %s", body.email, body.tenant_id)
        raise Unauthenticated(INVALID_CREDENTIALS)

    token = codec.issue(
        user_id=user.id,
        tenant_id=tenant.id,
        role=user.role,
        tenant_name=tenant.name,
    )
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        max_age=int(codec.lifetime.total_seconds()),
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )

    return LoginResponse(
        access_token=token,
        user=UserRead.model_validate(user),
        tenant=TenantRead.model_validate(tenant),
    )


@router.post("/logout")
async def logout(response: Response, settings: AppSettings) -> dict:
    """Discard the cookie. Tokens are not revoked server-side."""
    response.delete_cookie(settings.auth_cookie_name)
    return {"success": True, "message": "Logged out"}


@router.get("/me", response_model=MeResponse)
async def get_me(identity: CurrentIdentity, session: Session) -> MeResponse:
    """Return the current authenticated user and their tenant."""
    user = await session.get(User, identity.user_id)
    if user is None or user.tenant_id != identity.tenant_id:
        raise NotFound("User not found")

    tenant = await session.get(Tenant, identity.tenant_id)
    if tenant is None:
        raise NotFound("Tenant not found")

    return MeResponse(
        user=UserRead.model_validate(user),
        tenant=TenantRead.model_validate(tenant),
    )
