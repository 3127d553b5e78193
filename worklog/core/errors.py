from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for failures that map onto a client-facing HTTP status."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Error interno del servidor"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Solicitud inválida"


class AuthError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "No autorizado"


class NotFoundError(AppError):
    # Also raised for records owned by someone else.
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "No encontrado"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflicto"


class InternalError(AppError):
    pass


class ErrorEnvelope(JSONResponse):
    def __init__(
        self,
        *,
        status_code: int,
        message: str,
        headers: dict[str, str] | None = None,
    ) -> None:
        payload: dict[str, Any] = {"error": message}
        super().__init__(payload, status_code=status_code, headers=headers)


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(
            "request.failed",
            exc_info=(type(exc), exc, exc.__traceback__),
            extra={"extra_data": {"path": request.url.path}},
        )
        return ErrorEnvelope(status_code=exc.status_code, message=InternalError.default_message)
    return ErrorEnvelope(status_code=exc.status_code, message=exc.message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    message = detail if isinstance(detail, str) and detail else "Error"
    return ErrorEnvelope(status_code=exc.status_code, message=message, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info(
        "request.invalid",
        extra={"extra_data": {"path": request.url.path, "errors": len(exc.errors())}},
    )
    return ErrorEnvelope(status_code=status.HTTP_400_BAD_REQUEST, message=ValidationError.default_message)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("request.crashed", extra={"extra_data": {"path": request.url.path}})
    return ErrorEnvelope(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message=InternalError.default_message,
    )
