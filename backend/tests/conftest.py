import importlib

import pytest
from fastapi.testclient import TestClient

from notes_api.utils.jwt_auth import create_access_token

JWT_SECRET = "dev-secret-for-tests"


@pytest.fixture()
def app_env(tmp_path, monkeypatch):
    # isolate data dir per test
    monkeypatch.setenv("APP_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("JWT_SECRET", JWT_SECRET)
    monkeypatch.setenv("JWT_EXP_MINUTES", "15")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")

    # reload wiring so the stores pick up the new env vars
    import notes_api.api.deps
    import notes_api.api.auth
    import notes_api.api.notes
    import notes_api.main
    importlib.reload(notes_api.api.deps)
    importlib.reload(notes_api.api.auth)
    importlib.reload(notes_api.api.notes)
    importlib.reload(notes_api.main)
    return notes_api.api.deps


@pytest.fixture()
def client(app_env):
    import notes_api.main
    return TestClient(notes_api.main.app)


def bearer(user_id: str, secret: str = JWT_SECRET, expires_minutes: int = 15) -> dict:
    token = create_access_token(subject=user_id, secret=secret, expires_minutes=expires_minutes)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def make_user(app_env):
    """Create an account directly in the user store and return auth headers for it."""
    def _make(user_id: str) -> dict:
        app_env.users.create(user_id, "not-a-real-hash")
        return bearer(user_id)
    return _make
