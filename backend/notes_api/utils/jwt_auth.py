from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from notes_api.errors import Unauthenticated

log = logging.getLogger("notes_api.auth")

BEARER_PREFIX = "bearer "


@dataclass(frozen=True)
class Identity:
    user_id: str


def create_access_token(subject: str, secret: str, algorithm: str = "HS256", expires_minutes: int = 15) -> str:
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=expires_minutes)
    payload = {"sub": subject, "iat": int(now.timestamp()), "exp": int(exp.timestamp())}
    return jwt.encode(payload, secret, algorithm=algorithm)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token part of ``Bearer <token>``, or None if the header is unusable."""
    if not authorization or not authorization.lower().startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


class TokenVerifier:
    """Checks bearer tokens against the process-wide signing key."""

    def __init__(self, secret: str, algorithm: str = "HS256"):
        if not secret:
            raise ValueError("TokenVerifier needs a non-empty secret")
        self._secret = secret
        self._algorithm = algorithm

    def verify(self, authorization: Optional[str]) -> Identity:
        token = extract_bearer_token(authorization)
        if token is None:
            log.info("auth rejected: missing or malformed Authorization header")
            raise Unauthenticated(reason="missing_credentials")

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require_exp": True},
            )
        except JWTError as exc:
            log.info("auth rejected: invalid token (%s)", exc.__class__.__name__)
            raise Unauthenticated(reason="invalid_token") from exc

        sub = payload.get("sub")
        if not isinstance(sub, str) or not sub:
            log.info("auth rejected: token has no subject")
            raise Unauthenticated(reason="invalid_token")
        return Identity(user_id=sub)
