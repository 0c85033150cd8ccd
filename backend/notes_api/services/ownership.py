"""Ownership index: the ordered list of note ids stored on a user record.

These helpers only touch the in-memory record. Persisting the result (and
keeping it in step with the note store) is up to ``NotesService``.
"""
from __future__ import annotations

import uuid
from dataclasses import replace
from typing import Optional, Union

from notes_api.storage.users_store import UserRecord

NoteIdLike = Union[str, uuid.UUID]


def normalize_note_id(raw: NoteIdLike) -> Optional[str]:
    """Canonical string form of a note id, or None if it cannot be a note id.

    Path parameters arrive as strings while the store hands back ``UUID``
    objects; comparing the canonical forms avoids false misses between the two.
    """
    if isinstance(raw, uuid.UUID):
        return str(raw)
    try:
        return str(uuid.UUID(str(raw).strip()))
    except ValueError:
        return None


def contains(user: UserRecord, note_id: NoteIdLike) -> bool:
    nid = normalize_note_id(note_id)
    return nid is not None and nid in user.notes


def add(user: UserRecord, note_id: NoteIdLike) -> UserRecord:
    nid = normalize_note_id(note_id)
    if nid is None:
        raise ValueError(f"not a note id: {note_id!r}")
    if nid in user.notes:
        return user
    return replace(user, notes=user.notes + (nid,))


def remove(user: UserRecord, note_id: NoteIdLike) -> UserRecord:
    nid = normalize_note_id(note_id)
    return replace(user, notes=tuple(n for n in user.notes if n != nid))
