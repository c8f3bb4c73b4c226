"""Tenant model: top-level isolation boundary."""

import uuid
from enum import StrEnum

from sqlmodel import Field, SQLModel

from notenest.models.base import TimestampMixin, new_uuid


class TenantPlan(StrEnum):
    FREE = "free"
    PRO = "pro"


class Tenant(TimestampMixin, SQLModel, table=True):
    __tablename__ = "tenants"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    name: str = Field(max_length=255, nullable=False)
    subdomain: str = Field(max_length=100, unique=True, nullable=False, index=True)

    # Only changed through the upgrade / downgrade operations
    plan: TenantPlan = Field(default=TenantPlan.FREE)

    # Maintained by the quota enforcer alongside every note insert / delete
    note_count: int = Field(default=0, nullable=False)


# ── Pydantic schemas ─────────────────────────────────────────

class TenantDirectoryEntry(SQLModel):
    """Public listing used by the login tenant picker."""
    id: uuid.UUID
    name: str
    subdomain: str


class TenantRead(SQLModel):
    id: uuid.UUID
    name: str
    subdomain: str
    plan: TenantPlan


class TenantUsage(TenantRead):
    note_count: int
    note_limit: int | None = Field(description="None means unlimited")
