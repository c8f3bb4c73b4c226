"""Note model: owned by one user inside one tenant."""

import uuid
from datetime import datetime

from sqlalchemy import Text
from sqlmodel import Column, Field, SQLModel

from notenest.models.base import TimestampMixin, new_uuid


class Note(TimestampMixin, SQLModel, table=True):
    __tablename__ = "notes"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    owner_user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)

    title: str = Field(max_length=255, nullable=False)
    content: str | None = Field(default=None, sa_column=Column(Text, nullable=True))


# ── Pydantic schemas ─────────────────────────────────────────

class NoteWrite(SQLModel):
    """Body for both create and update; title is required on each."""
    title: str = Field(default="", max_length=255)
    content: str | None = None


class NoteOwner(SQLModel):
    id: uuid.UUID
    name: str
    email: str


class NoteRead(SQLModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    owner_user_id: uuid.UUID
    title: str
    content: str | None
    created_at: datetime
    updated_at: datetime
    owner: NoteOwner | None = None
