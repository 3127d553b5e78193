from __future__ import annotations

from typing import Optional

from .base import CamelModel


class RegisterRequest(CamelModel):
    # Presence is checked by the store so the client gets the localized message.
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "example": {"email": "ana@example.com", "password": "s3cret", "name": "Ana"}
        }
    }


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "example": {"email": "ana@example.com", "password": "s3cret"}
        }
    }


class UserOut(CamelModel):
    id: int
    email: str
    name: Optional[str] = None


class AuthResponse(CamelModel):
    user: UserOut
    token: str

    model_config = {
        "json_schema_extra": {
            "example": {
                "user": {"id": 1, "email": "ana@example.com", "name": "Ana"},
                "token": "<jwt>",
            }
        }
    }
