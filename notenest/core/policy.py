"""Authorization policy: an ordered rule list over (identity, action).

Each rule returns a Decision when it applies and None when it has nothing to
say; the first decisive rule wins and a request no rule denies is allowed.
Rule 1 (tenant boundary) runs before anything role-related, so no role can
ever reach another tenant's resources.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass

from notenest.core.errors import AccessDenied, DenyReason
from notenest.core.security import Identity

logger = logging.getLogger(__name__)


# ── Actions ──────────────────────────────────────────────────


@dataclass(frozen=True)
class Action:
    tenant_id: uuid.UUID


@dataclass(frozen=True)
class NoteAction(Action):
    """Note-scoped action. owner_id is None for tenant-wide list / create."""

    owner_id: uuid.UUID | None = None


@dataclass(frozen=True)
class ListNotes(NoteAction):
    pass


@dataclass(frozen=True)
class CreateNote(NoteAction):
    pass


@dataclass(frozen=True)
class ReadNote(NoteAction):
    pass


@dataclass(frozen=True)
class WriteNote(NoteAction):
    pass


@dataclass(frozen=True)
class DeleteNote(NoteAction):
    pass


@dataclass(frozen=True)
class AdminAction(Action):
    """Actions reserved for tenant admins."""


@dataclass(frozen=True)
class ListUsers(AdminAction):
    pass


@dataclass(frozen=True)
class InviteUser(AdminAction):
    pass


@dataclass(frozen=True)
class ChangeUserRole(AdminAction):
    pass


@dataclass(frozen=True)
class ChangeTenantPlan(AdminAction):
    tenant_subdomain: str = ""
    requested_slug: str = ""


# ── Decisions ────────────────────────────────────────────────


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: DenyReason | None = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(allowed=True)


def deny(reason: DenyReason) -> Decision:
    return Decision(allowed=False, reason=reason)


# ── Rules (order matters) ────────────────────────────────────

Rule = Callable[[Identity, Action], Decision | None]


def same_tenant(identity: Identity, action: Action) -> Decision | None:
    if identity.tenant_id != action.tenant_id:
        return deny(DenyReason.CROSS_TENANT)
    return None


def note_ownership(identity: Identity, action: Action) -> Decision | None:
    if not isinstance(action, NoteAction):
        return None
    if identity.is_admin:
        return ALLOW
    if action.owner_id is None or action.owner_id == identity.user_id:
        return ALLOW
    return deny(DenyReason.NOT_OWNER)


def admin_only(identity: Identity, action: Action) -> Decision | None:
    if isinstance(action, AdminAction) and not identity.is_admin:
        return deny(DenyReason.INSUFFICIENT_ROLE)
    return None


def plan_slug_matches(identity: Identity, action: Action) -> Decision | None:
    # Redundant with same_tenant; guards against a forged path slug
    if isinstance(action, ChangeTenantPlan) and action.tenant_subdomain != action.requested_slug:
        return deny(DenyReason.TENANT_MISMATCH)
    return None


RULES: tuple[Rule, ...] = (
    same_tenant,
    note_ownership,
    admin_only,
    plan_slug_matches,
)


def authorize(identity: Identity, action: Action, rules: tuple[Rule, ...] = RULES) -> Decision:
    for rule in rules:
        decision = rule(identity, action)
        if decision is not None:
            return decision
    return ALLOW


def require(identity: Identity, action: Action) -> None:
    """Raise AccessDenied unless the policy allows the action."""
    decision = authorize(identity, action)
    if not decision.allowed:
        logger.info(
            "Denied %s for user %s in tenant %s: %s",
            type(action).__name__,
            identity.user_id,
            identity.tenant_id,
            decision.reason,
        )
        raise AccessDenied(decision.reason)
