"""Timer lifecycle for a project's work sessions.

A project is either idle (no open session) or running (exactly one session
whose ``end_time`` is NULL). ``start_session`` moves idle -> running and
``stop_session`` moves running -> idle. Every lookup is filtered by the
caller's user id, so foreign projects and sessions surface as "not found".
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import desc, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.errors import ConflictError, NotFoundError, ValidationError
from ..models.time_session import TimeSession
from ..services.timecalc import as_utc, duration_ms, parse_iso, utcnow
from .projects import require_project

logger = logging.getLogger(__name__)

SESSION_NOT_FOUND = "Sesión no encontrada o ya finalizada"
SESSION_ALREADY_RUNNING = "Ya hay una sesión en curso para este proyecto"
INVALID_END_TIME = "La hora de fin no es válida"
END_BEFORE_START = "La hora de fin no puede ser anterior al inicio"


@dataclass
class SessionPage:
    sessions: list[TimeSession]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    def pagination(self) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "total_pages": self.total_pages,
            "has_next": self.has_next,
            "has_prev": self.has_prev,
        }


def _clean_comment(comment: str | None) -> str | None:
    return (comment or "").strip() or None


def get_open_session(db: Session, user_id: int, project_id: int) -> TimeSession | None:
    require_project(db, user_id, project_id)
    stmt = select(TimeSession).where(
        TimeSession.project_id == project_id,
        TimeSession.user_id == user_id,
        TimeSession.end_time.is_(None),
    )
    return db.execute(stmt).scalars().first()


def start_session(db: Session, user_id: int, project_id: int, comment: str | None = None) -> TimeSession:
    if get_open_session(db, user_id, project_id) is not None:
        raise ConflictError(SESSION_ALREADY_RUNNING)
    session = TimeSession(
        project_id=project_id,
        user_id=user_id,
        start_time=utcnow(),
        end_time=None,
        comment=_clean_comment(comment),
    )
    db.add(session)
    try:
        db.commit()
    except IntegrityError as exc:
        # A concurrent start slipped past the check; the open-session index caught it.
        db.rollback()
        raise ConflictError(SESSION_ALREADY_RUNNING) from exc
    db.refresh(session)
    logger.info(
        "session.started",
        extra={"extra_data": {"project_id": project_id, "session_id": session.id, "start_time": session.start_time}},
    )
    return session


def stop_session(
    db: Session,
    user_id: int,
    project_id: int,
    session_id: int,
    end_time: str | datetime | None = None,
    comment: str | None = None,
) -> TimeSession:
    require_project(db, user_id, project_id)
    stmt = select(TimeSession).where(
        TimeSession.id == session_id,
        TimeSession.project_id == project_id,
        TimeSession.user_id == user_id,
        TimeSession.end_time.is_(None),
    )
    session = db.execute(stmt).scalars().first()
    if session is None:
        raise NotFoundError(SESSION_NOT_FOUND)

    try:
        ended = parse_iso(end_time) or utcnow()
    except ValueError as exc:
        raise ValidationError(INVALID_END_TIME) from exc
    if ended < as_utc(session.start_time):
        raise ValidationError(END_BEFORE_START)

    session.end_time = ended
    cleaned = _clean_comment(comment)
    if cleaned:
        session.comment = cleaned
    db.commit()
    db.refresh(session)
    logger.info(
        "session.stopped",
        extra={
            "extra_data": {
                "project_id": project_id,
                "session_id": session.id,
                "start_time": session.start_time,
                "end_time": session.end_time,
                "duration_ms": duration_ms(session.start_time, session.end_time),
            }
        },
    )
    return session


def list_sessions(
    db: Session,
    user_id: int,
    project_id: int,
    page: int = 1,
    limit: int | None = None,
) -> SessionPage:
    require_project(db, user_id, project_id)
    limit = limit or settings.DEFAULT_PAGE_LIMIT
    if page < 1 or limit < 1:
        raise ValidationError()
    scope = (TimeSession.project_id == project_id, TimeSession.user_id == user_id)
    total = int(db.scalar(select(func.count(TimeSession.id)).where(*scope)) or 0)
    stmt = (
        select(TimeSession)
        .where(*scope)
        .order_by(desc(TimeSession.start_time), desc(TimeSession.id))
        .offset((page - 1) * limit)
        .limit(limit)
    )
    rows = db.execute(stmt).scalars().all()
    return SessionPage(sessions=list(rows), page=page, limit=limit, total=total)
