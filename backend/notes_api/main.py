import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from notes_api.api import auth, deps, notes
from notes_api.errors import NotesError, Unauthenticated
from notes_api.utils.logging_config import setup_logging

setup_logging(deps.settings.log_level)
log = logging.getLogger("notes_api.errors")

app = FastAPI(title="Secure Notes API")
app.include_router(auth.router)
app.include_router(notes.router)


@app.exception_handler(NotesError)
async def _notes_error_handler(request: Request, exc: NotesError):
    if exc.status_code >= 500:
        log.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=headers)


@app.exception_handler(Exception)
async def _generic_handler(request: Request, exc: Exception):
    log.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/health")
def health():
    return {"ok": True}
