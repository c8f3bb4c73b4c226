"""Note operations: every query scoped to tenant, and to owner for members."""

import logging
import uuid

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from notenest.core import policy
from notenest.core.errors import LimitReached, NotFound, ValidationFailure
from notenest.core.security import Identity
from notenest.models.base import utcnow
from notenest.models.note import Note, NoteOwner, NoteRead, NoteWrite
from notenest.models.user import User
from notenest.services import quota

logger = logging.getLogger(__name__)

NOTE_NOT_FOUND = "Note not found or access denied"


def _to_read(note: Note, owner: User | None) -> NoteRead:
    return NoteRead(
        id=note.id,
        tenant_id=note.tenant_id,
        owner_user_id=note.owner_user_id,
        title=note.title,
        content=note.content,
        created_at=note.created_at,
        updated_at=note.updated_at,
        owner=NoteOwner(id=owner.id, name=owner.name, email=owner.email) if owner else None,
    )


def _scope(stmt, identity: Identity):
    """Apply the persistence-level twin of the policy's tenant / owner rules."""
    stmt = stmt.where(Note.tenant_id == identity.tenant_id)
    if not identity.is_admin:
        stmt = stmt.where(Note.owner_user_id == identity.user_id)
    return stmt


def _clean_title(body: NoteWrite) -> str:
    title = (body.title or "").strip()
    if not title:
        raise ValidationFailure("Title is required")
    return title


async def _get_scoped(session: AsyncSession, identity: Identity, note_id: uuid.UUID) -> Note:
    stmt = _scope(select(Note).where(Note.id == note_id), identity)
    note = (await session.execute(stmt)).scalar_one_or_none()
    if note is None:
        raise NotFound(NOTE_NOT_FOUND)
    return note


async def list_notes(session: AsyncSession, identity: Identity) -> list[NoteRead]:
    policy.require(identity, policy.ListNotes(tenant_id=identity.tenant_id))

    stmt = _scope(
        select(Note, User).join(User, Note.owner_user_id == User.id),
        identity,
    ).order_by(Note.created_at.desc())  # type: ignore[union-attr]
    result = await session.execute(stmt)
    return [_to_read(note, owner) for note, owner in result.all()]


async def get_note(session: AsyncSession, identity: Identity, note_id: uuid.UUID) -> NoteRead:
    note = await _get_scoped(session, identity, note_id)
    policy.require(
        identity,
        policy.ReadNote(tenant_id=note.tenant_id, owner_id=note.owner_user_id),
    )
    return _to_read(note, await session.get(User, note.owner_user_id))


async def create_note(
    session: AsyncSession,
    identity: Identity,
    body: NoteWrite,
    free_limit: int = quota.FREE_PLAN_NOTE_LIMIT,
) -> NoteRead:
    title = _clean_title(body)
    policy.require(
        identity,
        policy.CreateNote(tenant_id=identity.tenant_id, owner_id=identity.user_id),
    )

    try:
        await quota.reserve_slot(session, identity.tenant_id, free_limit)
    except (LimitReached, NotFound):
        await session.rollback()
        raise

    note = Note(
        tenant_id=identity.tenant_id,
        owner_user_id=identity.user_id,
        title=title,
        content=body.content,
    )
    session.add(note)
    await session.commit()
    await session.refresh(note)
    logger.info("Created note %s in tenant %s", note.id, note.tenant_id)
    return _to_read(note, await session.get(User, note.owner_user_id))


async def update_note(
    session: AsyncSession,
    identity: Identity,
    note_id: uuid.UUID,
    body: NoteWrite,
) -> NoteRead:
    title = _clean_title(body)
    note = await _get_scoped(session, identity, note_id)
    policy.require(
        identity,
        policy.WriteNote(tenant_id=note.tenant_id, owner_id=note.owner_user_id),
    )

    note.title = title
    note.content = body.content
    note.updated_at = utcnow()
    session.add(note)
    await session.commit()
    await session.refresh(note)
    return _to_read(note, await session.get(User, note.owner_user_id))


async def delete_note(session: AsyncSession, identity: Identity, note_id: uuid.UUID) -> None:
    note = await _get_scoped(session, identity, note_id)
    policy.require(
        identity,
        policy.DeleteNote(tenant_id=note.tenant_id, owner_id=note.owner_user_id),
    )

    # A concurrent delete may have removed the row since it was read; only
    # the request whose DELETE matched gives the slot back.
    stmt = _scope(delete(Note).where(Note.id == note.id), identity)
    result = await session.execute(stmt.execution_options(synchronize_session=False))
    if result.rowcount != 1:
        await session.rollback()
        raise NotFound(NOTE_NOT_FOUND)

    session.expunge(note)
    await quota.release_slot(session, note.tenant_id)
    await session.commit()
    logger.info("Deleted note %s in tenant %s", note_id, identity.tenant_id)
