import uuid

import pytest

from notes_api.services import ownership
from notes_api.storage.users_store import UserRecord


def _user(*notes):
    return UserRecord(user_id="userA", hashed_password="x", created_at="2024-01-01T00:00:00+00:00", notes=tuple(notes))


def test_normalize_note_id():
    nid = uuid.uuid4()
    assert ownership.normalize_note_id(nid) == str(nid)
    assert ownership.normalize_note_id(str(nid).upper()) == str(nid)
    assert ownership.normalize_note_id(f" {nid} ") == str(nid)
    assert ownership.normalize_note_id("not-a-uuid") is None
    assert ownership.normalize_note_id("") is None


def test_contains_across_representations():
    nid = uuid.uuid4()
    user = _user(str(nid))
    assert ownership.contains(user, nid)
    assert ownership.contains(user, str(nid))
    assert ownership.contains(user, str(nid).upper())
    assert not ownership.contains(user, uuid.uuid4())
    assert not ownership.contains(user, "garbage")


def test_add_appends_once_and_keeps_order():
    a, b = uuid.uuid4(), uuid.uuid4()
    user = ownership.add(ownership.add(_user(), a), b)
    assert user.notes == (str(a), str(b))
    assert ownership.add(user, str(a).upper()) is user


def test_add_rejects_non_ids():
    with pytest.raises(ValueError):
        ownership.add(_user(), "nope")


def test_remove_does_not_touch_original():
    a, b = uuid.uuid4(), uuid.uuid4()
    user = _user(str(a), str(b))
    after = ownership.remove(user, a)
    assert after.notes == (str(b),)
    assert user.notes == (str(a), str(b))
    assert ownership.remove(after, uuid.uuid4()).notes == (str(b),)
