from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from .config import settings
from .errors import AuthError
from .errors import ValidationError as RequestDataError

AUDIENCE = "worklog-clients"
ISSUER = "worklog"
ACCESS_TOKEN_TYPE = "access"
# bcrypt only looks at the first 72 bytes of a password.
BCRYPT_MAX_BYTES = 72

INVALID_TOKEN = "Token inválido"


class TokenPayload(BaseModel):
    sub: str
    exp: datetime
    iat: datetime
    typ: str
    aud: str
    iss: str

    @property
    def user_id(self) -> int:
        return int(self.sub)


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def hash_password(password: str) -> str:
    raw = password.encode("utf-8")
    if len(raw) > BCRYPT_MAX_BYTES:
        raise RequestDataError("La contraseña es demasiado larga")
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(raw, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    raw = password.encode("utf-8")
    if len(raw) > BCRYPT_MAX_BYTES or not password_hash:
        return False
    try:
        return bcrypt.checkpw(raw, password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash.
        return False


def issue_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    now = _now()
    delta = expires_delta if expires_delta is not None else timedelta(minutes=settings.JWT_TTL_MINUTES)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "iat": int(now.timestamp()),
        "exp": int((now + delta).timestamp()),
        "typ": ACCESS_TOKEN_TYPE,
        "aud": AUDIENCE,
        "iss": ISSUER,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> TokenPayload:
    """Verify signature, expiry, audience and issuer, then validate the claims."""

    try:
        decoded = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=AUDIENCE,
            issuer=ISSUER,
        )
    except JWTError as exc:
        raise AuthError(INVALID_TOKEN) from exc
    try:
        payload = TokenPayload.model_validate(decoded)
    except ValidationError as exc:
        raise AuthError(INVALID_TOKEN) from exc
    if payload.typ != ACCESS_TOKEN_TYPE or not payload.sub.isdigit():
        raise AuthError(INVALID_TOKEN)
    return payload
