"""Import all models so SQLModel.metadata picks them up."""

from notenest.models.note import Note, NoteOwner, NoteRead, NoteWrite
from notenest.models.tenant import (
    Tenant,
    TenantDirectoryEntry,
    TenantPlan,
    TenantRead,
    TenantUsage,
)
from notenest.models.user import (
    User,
    UserInvite,
    UserInvited,
    UserRead,
    UserRole,
    UserRoleUpdate,
)

__all__ = [
    "Note",
    "NoteOwner",
    "NoteRead",
    "NoteWrite",
    "Tenant",
    "TenantDirectoryEntry",
    "TenantPlan",
    "TenantRead",
    "TenantUsage",
    "User",
    "UserInvite",
    "UserInvited",
    "UserRead",
    "UserRole",
    "UserRoleUpdate",
]
