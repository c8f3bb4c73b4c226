"""Note CRUD: routed through policy, quota and scoped queries."""

import uuid

from fastapi import APIRouter, status

from notenest.api.deps import AppSettings, CurrentIdentity, Session
from notenest.api.schemas import Envelope, ListEnvelope, MessageEnvelope, listing
from notenest.models.note import NoteRead, NoteWrite
from notenest.services import notes

router = APIRouter(prefix="/notes", tags=["notes"])


@router.get("", response_model=ListEnvelope[NoteRead])
async def list_notes(identity: CurrentIdentity, session: Session) -> dict:
    """Admins see every note in the tenant, members only their own."""
    return listing(await notes.list_notes(session, identity))


@router.post("", response_model=Envelope[NoteRead], status_code=status.HTTP_201_CREATED)
async def create_note(
    body: NoteWrite,
    identity: CurrentIdentity,
    session: Session,
    settings: AppSettings,
) -> dict:
    note = await notes.create_note(session, identity, body, settings.free_plan_note_limit)
    return {"message": "Note created successfully", "data": note}


@router.get("/{note_id}", response_model=Envelope[NoteRead])
async def get_note(note_id: uuid.UUID, identity: CurrentIdentity, session: Session) -> dict:
    return {"data": await notes.get_note(session, identity, note_id)}


@router.put("/{note_id}", response_model=Envelope[NoteRead])
async def update_note(
    note_id: uuid.UUID,
    body: NoteWrite,
    identity: CurrentIdentity,
    session: Session,
) -> dict:
    note = await notes.update_note(session, identity, note_id, body)
    return {"message": "Note updated successfully", "data": note}


@router.delete("/{note_id}", response_model=MessageEnvelope)
async def delete_note(note_id: uuid.UUID, identity: CurrentIdentity, session: Session) -> dict:
    await notes.delete_note(session, identity, note_id)
    return {"message": "Note deleted successfully"}
