"""Password hashing helpers using passlib.

Used by the register/login flow:
- hash_password(plain: str) -> str
- verify_password(plain: str, hashed: str) -> bool

Uses bcrypt via passlib's CryptContext. The bcrypt rounds (cost) can be configured
by the environment variable `BCRYPT_ROUNDS` (int). Default rounds are left to passlib/bcrypt
if not provided.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

from passlib.context import CryptContext

log = logging.getLogger("notes_api.auth")


def _rounds_from_env() -> Optional[int]:
    raw = os.environ.get("BCRYPT_ROUNDS")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def build_context(rounds: Optional[int] = None) -> CryptContext:
    """Build a bcrypt context, or pbkdf2_sha256 if the bcrypt backend is unusable."""
    try:
        if rounds:
            ctx = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)
        else:
            ctx = CryptContext(schemes=["bcrypt"], deprecated="auto")
        ctx.hash("probe")
        return ctx
    except Exception as exc:
        log.warning("bcrypt backend not available (%s); falling back to pbkdf2_sha256", exc)
    if rounds:
        return CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto", pbkdf2_sha256__rounds=rounds)
    return CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


pwd_context = build_context(_rounds_from_env())


def hash_password(plain: str) -> str:
    """Hash a plaintext password and return the encoded hash string."""
    if plain is None:
        raise ValueError("Password must not be None")
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    """Verify a plaintext password against a stored hash.

    Returns True if the password matches, False otherwise (including for
    hashes passlib cannot identify).
    """
    if plain is None or hashed is None:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        return False
