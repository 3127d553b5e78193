"""Application wiring for the Worklog time-tracking API.

Importing this package builds the FastAPI instance: tables are created (and
older SQLite files upgraded), middleware is installed, the JSON routers are
mounted under ``settings.API_PREFIX`` and every failure is funnelled through
the handlers in ``core.errors`` so clients always receive ``{"error": ...}``.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .core.errors import (
    AppError,
    app_error_handler,
    http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from .db.migrate import run_migrations
from .db.session import Base, engine
from .middlewares import RequestIdMiddleware

# Importing the models registers them with the metadata so create_all sees them.
from .models import note as _note  # noqa: F401
from .models import project as _project  # noqa: F401
from .models import time_session as _time_session  # noqa: F401
from .models import user as _user  # noqa: F401
from .routers import api_auth as api_auth_router
from .routers import api_notes as api_notes_router
from .routers import api_projects as api_projects_router


def init_db(bind=engine) -> None:
    Base.metadata.create_all(bind=bind)
    run_migrations(bind)


def create_app() -> FastAPI:
    app = FastAPI(title=settings.APP_NAME)

    if settings.ALLOWED_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.ALLOWED_ORIGINS,
            allow_methods=["*"],
            allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        )
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_auth_router.router, prefix=settings.API_PREFIX)
    app.include_router(api_projects_router.router, prefix=settings.API_PREFIX)
    app.include_router(api_notes_router.router, prefix=settings.API_PREFIX)

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/health", include_in_schema=False)
    async def health() -> dict[str, bool]:
        return {"ok": True}

    return app


init_db()
app = create_app()

__all__ = ["app", "create_app", "init_db"]
