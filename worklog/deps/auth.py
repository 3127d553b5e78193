from __future__ import annotations

from fastapi import Header, Request
from fastapi.security.utils import get_authorization_scheme_param

from ..core.errors import AuthError
from ..core.security import decode_token
from ..middlewares import principal_ctx_var


class AuthContext:
    def __init__(self, *, user_id: int) -> None:
        self.user_id = user_id

    @property
    def principal(self) -> str:
        return f"user:{self.user_id}"


def _set_principal(request: Request, principal: str) -> None:
    principal_ctx_var.set(principal)
    request.state.principal = principal


async def require_user(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> AuthContext:
    """Verify the bearer token on every call; nothing is cached between requests."""

    scheme, credentials = get_authorization_scheme_param(authorization)
    if scheme.lower() != "bearer" or not credentials:
        raise AuthError("No autorizado")
    payload = decode_token(credentials)
    context = AuthContext(user_id=payload.user_id)
    _set_principal(request, context.principal)
    return context
