"""Orphan sweep and ownership audit.

Create writes the note before the owner's index, and delete clears the index
before the note, so a crash between the two writes leaves a note nobody
indexes. This module finds and (optionally) removes those notes.

Usage:
  PYTHONPATH=backend JWT_SECRET=... python -m notes_api.maintenance --min-age 600
  PYTHONPATH=backend JWT_SECRET=... python -m notes_api.maintenance --yes

Dry-run by default; pass --yes to delete.
"""
from __future__ import annotations

import argparse
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from notes_api.config import load_settings
from notes_api.storage.notes_store import Note, NotesStore
from notes_api.storage.users_store import UserRecord, UsersStore
from notes_api.utils.logging_config import setup_logging

log = logging.getLogger("notes_api.maintenance")

DEFAULT_MIN_AGE_SECONDS = 300


def find_orphans(
    notes: NotesStore,
    users: UsersStore,
    min_age_seconds: int = DEFAULT_MIN_AGE_SECONDS,
    now: Optional[datetime] = None,
) -> List[Note]:
    """Notes not listed in their owner's index and older than ``min_age_seconds``.

    The age threshold keeps a create that is still between its two writes from
    being collected.
    """
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(seconds=min_age_seconds)
    owners: dict[str, Optional[UserRecord]] = {}
    out: List[Note] = []
    for note in notes.iter_notes():
        if datetime.fromisoformat(note.created_at) > cutoff:
            continue
        if note.owner_user_id not in owners:
            owners[note.owner_user_id] = users.get(note.owner_user_id)
        owner = owners[note.owner_user_id]
        if owner is None or str(note.id) not in owner.notes:
            out.append(note)
    return out


def sweep_orphans(
    notes: NotesStore,
    users: UsersStore,
    min_age_seconds: int = DEFAULT_MIN_AGE_SECONDS,
    apply: bool = False,
) -> List[Note]:
    orphans = find_orphans(notes, users, min_age_seconds=min_age_seconds)
    if apply:
        for note in orphans:
            notes.delete_by_id(note.id)
            log.info("deleted orphan note %s (owner %s)", note.id, note.owner_user_id)
    return orphans


def audit_user(user: UserRecord, notes: NotesStore) -> List[str]:
    """Index entries that do not resolve to a note owned by ``user``."""
    dangling: List[str] = []
    for nid in user.notes:
        note = notes.get(uuid.UUID(nid))
        if note is None or note.owner_user_id != user.user_id:
            dangling.append(nid)
    return dangling


def main(argv: Optional[List[str]] = None) -> None:
    ap = argparse.ArgumentParser(description="Find and remove notes missing from their owner's index")
    ap.add_argument("--min-age", type=int, default=DEFAULT_MIN_AGE_SECONDS, help="Ignore notes younger than this (seconds)")
    ap.add_argument("--audit", action="store_true", help="Also report dangling index entries per user")
    ap.add_argument("--yes", action="store_true", help="Delete the orphans (dry-run by default)")
    args = ap.parse_args(argv)

    settings = load_settings()
    setup_logging(settings.log_level)
    notes = NotesStore(settings.data_dir)
    users = UsersStore(settings.data_dir, lock_stale_seconds=settings.user_lock_stale_seconds)

    orphans = sweep_orphans(notes, users, min_age_seconds=args.min_age, apply=args.yes)
    print(f"Orphan notes: {len(orphans)}")
    for note in orphans:
        print(f"  - {note.id} | owner={note.owner_user_id} | created={note.created_at}")

    if args.audit:
        for user in users.iter_users():
            dangling = audit_user(user, notes)
            if dangling:
                print(f"User {user.user_id}: {len(dangling)} dangling index entries")
                for nid in dangling:
                    print(f"  - {nid}")

    if orphans and not args.yes:
        print("\nDry-run. Add --yes to delete.")


if __name__ == "__main__":
    main()
