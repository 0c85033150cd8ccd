from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from notes_api.api import deps
from notes_api.models.auth import LoginRequest, RegisterRequest, TokenResponse
from notes_api.utils.auth_hash import hash_password, verify_password
from notes_api.utils.jwt_auth import create_access_token

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(req: RegisterRequest):
    if deps.users.get(req.user_id) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User exists")

    hpw = hash_password(req.password)  # never store plaintext
    try:
        deps.users.create(req.user_id, hpw)
    except FileExistsError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User exists")
    return {"user_id": req.user_id}


@router.post("/login", response_model=TokenResponse)
def login(req: LoginRequest):
    rec = deps.users.get(req.user_id)
    if rec is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    if not verify_password(req.password, rec.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    token = create_access_token(
        subject=req.user_id,
        secret=deps.settings.jwt_secret,
        algorithm=deps.settings.jwt_algorithm,
        expires_minutes=deps.settings.jwt_exp_minutes,
    )
    return TokenResponse(access_token=token)
