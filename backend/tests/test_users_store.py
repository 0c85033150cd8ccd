import os
import time
from dataclasses import replace
from unittest.mock import patch

import pytest

from notes_api.errors import Conflict, StoreError
from notes_api.storage.users_store import UsersStore


def test_create_and_get(tmp_path):
    users = UsersStore(tmp_path)
    rec = users.create("userA", "hash")
    assert users.get("userA") == rec
    assert rec.notes == ()
    assert rec.version == 0


def test_create_twice(tmp_path):
    users = UsersStore(tmp_path)
    users.create("userA", "hash")
    with pytest.raises(FileExistsError):
        users.create("userA", "hash")


@pytest.mark.parametrize("bad", ["", "../x", "a/b", "a\\b"])
def test_get_rejects_path_tricks(tmp_path, bad):
    assert UsersStore(tmp_path).get(bad) is None


def test_save_bumps_version(tmp_path):
    users = UsersStore(tmp_path)
    rec = users.create("userA", "hash")
    saved = users.save(replace(rec, notes=("n1",)))
    assert saved.version == 1
    assert users.get("userA").notes == ("n1",)


def test_save_with_stale_version_conflicts(tmp_path):
    users = UsersStore(tmp_path)
    rec = users.create("userA", "hash")
    users.save(replace(rec, notes=("n1",)))
    with pytest.raises(Conflict):
        users.save(replace(rec, notes=("n2",)))
    assert users.get("userA").notes == ("n1",)


def test_save_while_locked_conflicts(tmp_path):
    users = UsersStore(tmp_path)
    rec = users.create("userA", "hash")
    lock = tmp_path / "users" / "userA" / "user.json.lock"
    lock.write_text("", encoding="utf-8")
    with pytest.raises(Conflict):
        users.save(rec)
    assert lock.exists()


def test_stale_lock_is_broken(tmp_path):
    users = UsersStore(tmp_path, lock_stale_seconds=30)
    rec = users.create("userA", "hash")
    lock = tmp_path / "users" / "userA" / "user.json.lock"
    lock.write_text("", encoding="utf-8")
    old = time.time() - 120
    os.utime(lock, (old, old))

    assert users.save(rec).version == 1
    assert not lock.exists()


def test_save_unknown_user(tmp_path):
    users = UsersStore(tmp_path)
    users.create("userA", "hash")
    ghost = replace(users.get("userA"), user_id="ghost")
    with pytest.raises(StoreError):
        users.save(ghost)


def test_corrupt_record_raises_store_error(tmp_path):
    users = UsersStore(tmp_path)
    users.create("userA", "hash")
    (tmp_path / "users" / "userA" / "user.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(StoreError):
        users.get("userA")


def test_stale_lock_not_broken_while_another_request_breaks_it(tmp_path):
    users = UsersStore(tmp_path, lock_stale_seconds=30)
    rec = users.create("userA", "hash")
    lock = tmp_path / "users" / "userA" / "user.json.lock"
    lock.write_text("", encoding="utf-8")
    old = time.time() - 120
    os.utime(lock, (old, old))
    (tmp_path / "users" / "userA" / "user.json.lock.break").write_text("", encoding="utf-8")

    with pytest.raises(Conflict):
        users.save(rec)
    assert lock.exists()


def test_lock_retaken_before_break_is_kept(tmp_path):
    users = UsersStore(tmp_path, lock_stale_seconds=30)
    rec = users.create("userA", "hash")
    lock = tmp_path / "users" / "userA" / "user.json.lock"
    lock.write_text("", encoding="utf-8")

    # stale when first seen, fresh again by the time the breaker re-checks
    with patch.object(users, "_is_stale", side_effect=[True, False]):
        with pytest.raises(Conflict):
            users.save(rec)
    assert lock.exists()
    assert not (tmp_path / "users" / "userA" / "user.json.lock.break").exists()


def test_abandoned_break_marker_is_cleared(tmp_path):
    users = UsersStore(tmp_path, lock_stale_seconds=30)
    rec = users.create("userA", "hash")
    marker = tmp_path / "users" / "userA" / "user.json.lock.break"
    lock = tmp_path / "users" / "userA" / "user.json.lock"
    old = time.time() - 120
    for p in (lock, marker):
        p.write_text("", encoding="utf-8")
        os.utime(p, (old, old))

    with pytest.raises(Conflict):
        users.save(rec)
    assert not marker.exists()
    # the next request breaks the stale lock normally
    assert users.save(rec).version == 1
