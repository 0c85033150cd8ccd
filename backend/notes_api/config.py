from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

# repository_root/data (we are in backend/notes_api/)
DEFAULT_DATA_DIR = Path(__file__).resolve().parents[2] / "data"


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_exp_minutes: int = 15
    user_lock_stale_seconds: int = 30
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Read the process configuration from the environment.

    Called once while the app is wired up; the result is never mutated.
    """
    secret = os.getenv("JWT_SECRET", "")
    if not secret:
        # set it in env for tests/dev; required in prod
        raise RuntimeError("JWT_SECRET is not set")

    return Settings(
        data_dir=Path(os.getenv("APP_DATA_DIR", str(DEFAULT_DATA_DIR))),
        jwt_secret=secret,
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        jwt_exp_minutes=_int_env("JWT_EXP_MINUTES", 15),
        user_lock_stale_seconds=_int_env("USER_LOCK_STALE_SECONDS", 30),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
