from __future__ import annotations

import os
import time
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Optional

from notes_api.errors import Conflict, StoreError
from notes_api.storage.notes_store import _atomic_write_json, _read_json


def _safe_user_dir(base_dir: Path, user_id: str) -> Path:
    # evitat path traversal
    if not user_id or any(ch in user_id for ch in ["/", "\\"]) or ".." in user_id:
        raise ValueError("Invalid user_id")
    return base_dir / "users" / user_id


@dataclass(frozen=True)
class UserRecord:
    user_id: str
    hashed_password: str
    created_at: str
    notes: tuple[str, ...] = field(default=())
    version: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "hashed_password": self.hashed_password,
            "created_at": self.created_at,
            "notes": list(self.notes),
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "UserRecord":
        try:
            return cls(
                user_id=raw["user_id"],
                hashed_password=raw["hashed_password"],
                created_at=raw["created_at"],
                notes=tuple(str(n) for n in raw.get("notes", [])),
                version=int(raw.get("version", 0)),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise StoreError(f"corrupt user record: {exc}") from exc


class UsersStore:
    """User records with an optimistic version on every save.

    ``save`` only succeeds when the stored version still equals the version the
    caller read, so two requests mutating the same ownership index cannot
    silently overwrite each other.
    """

    def __init__(self, base_dir: Path, lock_stale_seconds: int = 30):
        self.base_dir = base_dir
        self.lock_stale_seconds = lock_stale_seconds

    def _user_path(self, user_id: str) -> Path:
        return _safe_user_dir(self.base_dir, user_id) / "user.json"

    @contextmanager
    def _write_guard(self, path: Path) -> Iterator[None]:
        # per-user, held only for the compare-and-replace below
        lock_path = path.with_suffix(path.suffix + ".lock")
        try:
            fd = os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError:
            if not self._break_stale_lock(lock_path):
                raise Conflict("user record is being written by another request")
            try:
                fd = os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
            except FileExistsError:
                raise Conflict("user record is being written by another request")
        except OSError as exc:
            raise StoreError(f"cannot lock user record: {exc}") from exc
        os.close(fd)
        try:
            yield
        finally:
            try:
                lock_path.unlink()
            except FileNotFoundError:
                pass

    def _break_stale_lock(self, lock_path: Path) -> bool:
        """Remove ``lock_path`` if its writer looks dead; True if it is gone.

        Only one request may break a lock at a time (``.break`` marker), and it
        re-checks the age under that marker, so a lock freshly taken by another
        request that got there first is left alone.
        """
        breaker = lock_path.with_suffix(lock_path.suffix + ".break")
        if not self._is_stale(lock_path):
            return False
        try:
            fd = os.open(breaker, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError:
            # a crashed breaker must not wedge the user forever
            if self._is_stale(breaker):
                breaker.unlink(missing_ok=True)
            return False
        os.close(fd)
        try:
            if not self._is_stale(lock_path):
                return False
            lock_path.unlink(missing_ok=True)
            return True
        finally:
            breaker.unlink(missing_ok=True)

    def _is_stale(self, path: Path) -> bool:
        try:
            age = time.time() - path.stat().st_mtime
        except FileNotFoundError:
            return True
        return age >= self.lock_stale_seconds

    def get(self, user_id: str) -> Optional[UserRecord]:
        try:
            p = self._user_path(user_id)
        except ValueError:
            return None
        if not p.exists():
            return None
        return UserRecord.from_dict(_read_json(p))

    def create(self, user_id: str, hashed_password: str) -> UserRecord:
        p = self._user_path(user_id)
        if p.exists():
            raise FileExistsError("User exists")

        p.parent.mkdir(parents=True, exist_ok=True)
        rec = UserRecord(
            user_id=user_id,
            hashed_password=hashed_password,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        with self._write_guard(p):
            if p.exists():
                raise FileExistsError("User exists")
            _atomic_write_json(p, rec.to_dict())
        return rec

    def save(self, user: UserRecord) -> UserRecord:
        """Persist ``user`` if nobody saved it since it was read; returns the stored record."""
        p = self._user_path(user.user_id)
        with self._write_guard(p):
            current = self.get(user.user_id)
            if current is None:
                raise StoreError(f"user {user.user_id} vanished")
            if current.version != user.version:
                raise Conflict(
                    f"user {user.user_id} changed (expected v{user.version}, found v{current.version})"
                )
            stored = replace(user, version=user.version + 1)
            try:
                _atomic_write_json(p, stored.to_dict())
            except OSError as exc:
                raise StoreError(f"cannot write user {user.user_id}: {exc}") from exc
        return stored

    def iter_users(self) -> Iterator[UserRecord]:
        users_dir = self.base_dir / "users"
        if not users_dir.exists():
            return
        for p in sorted(users_dir.glob("*/user.json")):
            yield UserRecord.from_dict(_read_json(p))
