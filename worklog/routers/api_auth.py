from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..crud.users import authenticate_user, register_user
from ..db.session import get_db
from ..schemas.auth import AuthResponse, LoginRequest, RegisterRequest, UserOut

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(user, token: str) -> AuthResponse:
    return AuthResponse(user=UserOut.model_validate(user), token=token)


@router.post("/register", response_model=AuthResponse, status_code=201, summary="Create an account")
def api_register(payload: RegisterRequest, db: Session = Depends(get_db)):
    user, token = register_user(db, payload.email, payload.password, payload.name)
    return _auth_response(user, token)


@router.post("/login", response_model=AuthResponse, summary="Exchange credentials for a bearer token")
def api_login(payload: LoginRequest, db: Session = Depends(get_db)):
    user, token = authenticate_user(db, payload.email, payload.password)
    return _auth_response(user, token)
