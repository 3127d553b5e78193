"""Account registration and credential checks."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.errors import AuthError, ConflictError, ValidationError
from ..core.security import hash_password, issue_token, verify_password
from ..models.user import User

logger = logging.getLogger(__name__)

MISSING_CREDENTIALS = "Email y contraseña son requeridos"
INVALID_CREDENTIALS = "Credenciales inválidas"
USER_EXISTS = "El usuario ya existe"


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def get_user_by_email(db: Session, email: str) -> User | None:
    stmt = select(User).where(User.email == normalize_email(email))
    return db.execute(stmt).scalars().first()


def register_user(db: Session, email: str | None, password: str | None, name: str | None = None) -> tuple[User, str]:
    email = normalize_email(email)
    if not email or not password:
        raise ValidationError(MISSING_CREDENTIALS)
    if get_user_by_email(db, email):
        raise ConflictError(USER_EXISTS)
    user = User(
        email=email,
        password_hash=hash_password(password),
        name=(name or "").strip() or None,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        # Lost a race against another registration for the same email.
        db.rollback()
        raise ConflictError(USER_EXISTS) from exc
    db.refresh(user)
    logger.info("user.registered", extra={"extra_data": {"user_id": user.id}})
    return user, issue_token(user.id)


def authenticate_user(db: Session, email: str | None, password: str | None) -> tuple[User, str]:
    if not normalize_email(email) or not password:
        raise ValidationError(MISSING_CREDENTIALS)
    user = get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("user.login_failed")
        raise AuthError(INVALID_CREDENTIALS)
    return user, issue_token(user.id)
