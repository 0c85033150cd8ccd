"""Process-wide wiring: settings, stores and the notes service.

Built once at import time. Tests point ``APP_DATA_DIR``/``JWT_SECRET`` at a
scratch location and reload this module.
"""
from typing import Optional

from fastapi import Depends, Header

from notes_api.config import load_settings
from notes_api.services.notes_service import NotesService
from notes_api.storage.event_log import EventLog
from notes_api.storage.notes_store import NotesStore
from notes_api.storage.users_store import UserRecord, UsersStore
from notes_api.utils.jwt_auth import TokenVerifier

settings = load_settings()

users = UsersStore(settings.data_dir, lock_stale_seconds=settings.user_lock_stale_seconds)
notes = NotesStore(settings.data_dir)
event_log = EventLog(settings.data_dir)
verifier = TokenVerifier(settings.jwt_secret, settings.jwt_algorithm)
service = NotesService(verifier=verifier, notes=notes, users=users, event_log=event_log)


def get_service() -> NotesService:
    return service


def get_current_user(
    authorization: Optional[str] = Header(default=None),
    svc: NotesService = Depends(get_service),
) -> UserRecord:
    return svc.authenticate(authorization)
