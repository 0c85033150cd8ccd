import json
import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Optional

from notes_api.errors import StoreError


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _notes_dir(base_dir: Path) -> Path:
    # data/notes; ownership lives on the user record, not in the path
    return base_dir / "notes"


def _note_path(base_dir: Path, note_id: uuid.UUID) -> Path:
    return _notes_dir(base_dir) / f"{note_id}.json"


def _atomic_write_json(path: Path, data: dict[str, Any], only_if_exists: bool = False) -> bool:
    """Write ``data`` to ``path`` via a temp file and rename.

    With ``only_if_exists`` the rename is skipped (and False returned) when
    ``path`` disappeared meanwhile. A delete landing between that check and the
    rename can still resurrect the file; the orphan sweep collects it.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
        f.flush()
        os.fsync(f.fileno())
    if only_if_exists and not path.exists():
        tmp_path.unlink()
        return False
    tmp_path.replace(path)
    return True


def _read_json(path: Path) -> dict[str, Any]:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise StoreError(f"cannot read {path.name}: {exc}") from exc


def _read_json_if_present(path: Path) -> Optional[dict[str, Any]]:
    try:
        return _read_json(path)
    except StoreError as exc:
        if isinstance(exc.__cause__, FileNotFoundError):
            return None
        raise


@dataclass(frozen=True)
class Note:
    id: uuid.UUID
    owner_user_id: str
    content: str
    created_at: str
    updated_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "owner_user_id": self.owner_user_id,
            "content": self.content,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Note":
        try:
            return cls(
                id=uuid.UUID(raw["id"]),
                owner_user_id=raw["owner_user_id"],
                content=raw["content"],
                created_at=raw["created_at"],
                updated_at=raw.get("updated_at", raw["created_at"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise StoreError(f"corrupt note record: {exc}") from exc


class NotesStore:
    def __init__(self, base_dir: Path):
        self.base_dir = base_dir

    def create(self, content: str, owner_user_id: str) -> Note:
        now = _utc_now_iso()
        note = Note(
            id=uuid.uuid4(),
            owner_user_id=owner_user_id,
            content=content,
            created_at=now,
            updated_at=now,
        )
        try:
            _atomic_write_json(_note_path(self.base_dir, note.id), note.to_dict())
        except OSError as exc:
            raise StoreError(f"cannot write note {note.id}: {exc}") from exc
        return note

    def get(self, note_id: uuid.UUID) -> Note | None:
        raw = _read_json_if_present(_note_path(self.base_dir, note_id))
        return None if raw is None else Note.from_dict(raw)

    def update_content(self, note_id: uuid.UUID, content: str) -> Note | None:
        """Replace the content; None if the note is gone, including when a
        concurrent delete removes it while the update is in flight."""
        path = _note_path(self.base_dir, note_id)
        raw = _read_json_if_present(path)
        if raw is None:
            return None

        raw["content"] = content
        raw["updated_at"] = _utc_now_iso()
        note = Note.from_dict(raw)

        try:
            written = _atomic_write_json(path, note.to_dict(), only_if_exists=True)
        except OSError as exc:
            raise StoreError(f"cannot write note {note_id}: {exc}") from exc
        return note if written else None

    def delete_by_id(self, note_id: uuid.UUID) -> bool:
        path = _note_path(self.base_dir, note_id)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise StoreError(f"cannot delete note {note_id}: {exc}") from exc
        return True

    def iter_notes(self) -> Iterator[Note]:
        notes_dir = _notes_dir(self.base_dir)
        if not notes_dir.exists():
            return
        for p in sorted(notes_dir.glob("*.json")):
            yield Note.from_dict(_read_json(p))
