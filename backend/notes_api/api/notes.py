from uuid import UUID

from fastapi import APIRouter, Depends, Response

from notes_api.api.deps import get_current_user, get_service
from notes_api.models.notes import MessageOut, NoteCreate, NoteCreatedOut, NoteOut, NoteSummaryOut, NoteUpdate
from notes_api.services.notes_service import NotesService
from notes_api.storage.users_store import UserRecord

router = APIRouter(prefix="/notes", tags=["notes"])


@router.post("", response_model=NoteCreatedOut, status_code=201)
def create_note(
    payload: NoteCreate,
    user: UserRecord = Depends(get_current_user),
    service: NotesService = Depends(get_service),
) -> NoteCreatedOut:
    note = service.create_note(user, payload.content)
    return NoteCreatedOut(
        note=NoteOut(
            id=str(note.id),
            owner=note.owner_user_id,
            content=note.content,
            created_at=note.created_at,
            updated_at=note.updated_at,
        )
    )


@router.get("", response_model=list[NoteSummaryOut])
def list_notes(
    user: UserRecord = Depends(get_current_user),
    service: NotesService = Depends(get_service),
) -> list[NoteSummaryOut]:
    return [NoteSummaryOut(content=n.content, created_at=n.created_at) for n in service.list_notes(user)]


@router.put("/{note_id}", response_model=MessageOut)
def update_note(
    note_id: UUID,
    payload: NoteUpdate,
    user: UserRecord = Depends(get_current_user),
    service: NotesService = Depends(get_service),
) -> MessageOut:
    service.update_note(user, note_id, payload.content)
    return MessageOut(message="Note updated successfully")


@router.delete("/{note_id}", status_code=204)
def delete_note(
    note_id: UUID,
    user: UserRecord = Depends(get_current_user),
    service: NotesService = Depends(get_service),
) -> Response:
    service.delete_note(user, note_id)
    return Response(status_code=204)
