"""User model: belongs to exactly one tenant."""

import uuid
from datetime import datetime
from enum import StrEnum

from pydantic import EmailStr
from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from notenest.models.base import TimestampMixin, new_uuid


class UserRole(StrEnum):
    ADMIN = "admin"
    MEMBER = "member"


class User(TimestampMixin, SQLModel, table=True):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("tenant_id", "email", name="uq_users_tenant_email"),)

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    email: str = Field(max_length=320, nullable=False, index=True)
    name: str = Field(default="", max_length=255)
    password_hash: str = Field(nullable=False)
    role: UserRole = Field(default=UserRole.MEMBER)


# ── Pydantic schemas ─────────────────────────────────────────

class UserInvite(SQLModel):
    email: EmailStr
    name: str = Field(min_length=1, max_length=255)
    role: UserRole = UserRole.MEMBER


class UserRoleUpdate(SQLModel):
    role: UserRole


class UserRead(SQLModel):
    """Public-safe user summary: never includes the password hash."""
    id: uuid.UUID
    tenant_id: uuid.UUID
    email: str
    name: str
    role: UserRole
    created_at: datetime


class UserInvited(UserRead):
    """Returned exactly once at invite time: includes the temporary password."""
    temporary_password: str
