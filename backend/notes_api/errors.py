"""Error taxonomy shared by the service and the HTTP layer.

Every class carries the status code the API answers with and a fixed public
``detail``. Anything more specific (why a token was rejected, which store call
failed) stays on the exception for logging and is never sent to the client.
"""
from __future__ import annotations


class NotesError(Exception):
    status_code = 500
    detail = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.detail)


class Unauthenticated(NotesError):
    """Missing, malformed, expired or forged token, or a token for an unknown user."""

    status_code = 401
    detail = "token missing or invalid"

    def __init__(self, reason: str = "invalid_token"):
        self.reason = reason
        super().__init__(f"unauthenticated: {reason}")


class NotFound(NotesError):
    """The note is not in the caller's ownership index (or does not exist at all)."""

    status_code = 404
    detail = "Note not found"


class Conflict(NotesError):
    status_code = 409
    detail = "Concurrent modification, retry the request"


class InternalError(NotesError):
    status_code = 500
    detail = "Internal server error"


class StoreError(InternalError):
    """A store could not be read or written."""
