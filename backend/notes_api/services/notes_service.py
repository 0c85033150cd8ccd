from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from notes_api.errors import InternalError, NotesError, NotFound, Unauthenticated
from notes_api.services import ownership
from notes_api.storage.event_log import (
    DANGLING_REFERENCE,
    NOTE_CREATED,
    NOTE_DELETED,
    NOTE_UPDATED,
    ORPHAN_NOTE,
    Event,
    EventLog,
)
from notes_api.storage.notes_store import Note, NotesStore
from notes_api.storage.users_store import UserRecord, UsersStore
from notes_api.utils.jwt_auth import TokenVerifier

log = logging.getLogger("notes_api.notes")


@dataclass(frozen=True)
class NoteSummary:
    content: str
    created_at: str


class NotesService:
    """Create/list/update/delete notes while keeping each user's ownership index
    and the note store in agreement.

    The user record is the source of truth for ownership. Writes are ordered so
    that a partial failure leaves an unreachable note (an orphan) rather than an
    index entry pointing at nothing.
    """

    def __init__(
        self,
        verifier: TokenVerifier,
        notes: NotesStore,
        users: UsersStore,
        event_log: Optional[EventLog] = None,
    ):
        self.verifier = verifier
        self.notes = notes
        self.users = users
        self.event_log = event_log

    def _emit(self, event_type: str, user_id: str, note_id: Optional[str] = None, **meta) -> None:
        # audit only: the store writes have already committed
        if self.event_log is None:
            return
        try:
            self.event_log.emit(Event(event_type=event_type, user_id=user_id, note_id=note_id, meta=meta or None))
        except OSError:
            log.warning("could not record %s for user %s note %s", event_type, user_id, note_id, exc_info=True)

    def authenticate(self, authorization: Optional[str]) -> UserRecord:
        identity = self.verifier.verify(authorization)
        user = self.users.get(identity.user_id)
        if user is None:
            # same answer as a bad token: do not reveal which accounts exist
            log.info("auth rejected: token subject %r has no account", identity.user_id)
            raise Unauthenticated(reason="unknown_subject")
        return user

    def create_note(self, user: UserRecord, content: str) -> Note:
        note = self.notes.create(content=content, owner_user_id=user.user_id)
        try:
            self.users.save(ownership.add(user, note.id))
        except NotesError:
            self._discard_unindexed(user.user_id, note.id)
            raise

        self._emit(NOTE_CREATED, user.user_id, str(note.id))
        return note

    def _discard_unindexed(self, user_id: str, note_id: uuid.UUID) -> None:
        try:
            self.notes.delete_by_id(note_id)
        except NotesError:
            log.warning("orphan note %s left behind for user %s", note_id, user_id, exc_info=True)
            self._emit(ORPHAN_NOTE, user_id, str(note_id), stage="create")

    def list_notes(self, user: UserRecord) -> list[NoteSummary]:
        out: list[NoteSummary] = []
        for nid in user.notes:
            note = self.notes.get(uuid.UUID(nid))
            if note is None or note.owner_user_id != user.user_id:
                self._flag_dangling(user.user_id, nid)
                continue
            out.append(NoteSummary(content=note.content, created_at=note.created_at))
        return out

    def _flag_dangling(self, user_id: str, note_id: str) -> None:
        log.warning("user %s indexes note %s which does not resolve to a note it owns", user_id, note_id)
        self._emit(DANGLING_REFERENCE, user_id, note_id)

    def _owned_note(self, user: UserRecord, note_id: ownership.NoteIdLike) -> Note:
        """The indexed note, only if the record agrees that ``user`` owns it."""
        if not ownership.contains(user, note_id):
            raise NotFound()

        nid = ownership.normalize_note_id(note_id)
        note = self.notes.get(uuid.UUID(nid))
        if note is None or note.owner_user_id != user.user_id:
            self._flag_dangling(user.user_id, nid)
            raise NotFound()
        return note

    def update_note(self, user: UserRecord, note_id: ownership.NoteIdLike, content: str) -> None:
        note = self._owned_note(user, note_id)

        updated = self.notes.update_content(note.id, content)
        if updated is None:
            self._flag_dangling(user.user_id, str(note.id))
            raise NotFound()

        self._emit(NOTE_UPDATED, user.user_id, str(note.id))

    def delete_note(self, user: UserRecord, note_id: ownership.NoteIdLike) -> None:
        try:
            note = self._owned_note(user, note_id)
        except NotFound:
            if ownership.contains(user, note_id):
                # drop the bad entry; the record (if any) belongs to someone else
                self.users.save(ownership.remove(user, note_id))
            raise

        nid = str(note.id)
        # index first: a crash after this leaves an orphan, never a dangling id
        self.users.save(ownership.remove(user, nid))

        try:
            deleted = self.notes.delete_by_id(note.id)
        except NotesError as exc:
            log.warning("orphan note %s left behind for user %s", nid, user.user_id, exc_info=True)
            self._emit(ORPHAN_NOTE, user.user_id, nid, stage="delete")
            raise InternalError("note record could not be deleted") from exc

        if not deleted:
            self._flag_dangling(user.user_id, nid)
        self._emit(NOTE_DELETED, user.user_id, nid)
