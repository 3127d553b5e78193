from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.config import settings
from ..crud.projects import (
    count_project_sessions,
    create_project,
    delete_project,
    list_projects,
    require_project,
    update_project,
)
from ..crud.sessions import get_open_session, list_sessions, start_session, stop_session
from ..db.session import get_db
from ..deps.auth import AuthContext, require_user
from ..schemas.base import MessageOut
from ..schemas.project import ProjectCreate, ProjectOut, ProjectUpdate
from ..schemas.session import (
    ActiveSessionOut,
    Pagination,
    ProjectStatsOut,
    SessionAction,
    SessionOut,
    SessionPageOut,
)
from ..services.reporting import calculate_project_stats

router = APIRouter(prefix="/projects", tags=["projects"])


def _project_to_schema(project, session_count: int = 0) -> ProjectOut:
    return ProjectOut.model_validate(project).model_copy(update={"session_count": session_count})


@router.get("", response_model=list[ProjectOut])
def api_list_projects(auth: AuthContext = Depends(require_user), db: Session = Depends(get_db)):
    return [_project_to_schema(project, count) for project, count in list_projects(db, auth.user_id)]


@router.post("", response_model=ProjectOut, status_code=201)
def api_create_project(
    payload: ProjectCreate,
    auth: AuthContext = Depends(require_user),
    db: Session = Depends(get_db),
):
    project = create_project(db, auth.user_id, payload.model_dump(exclude_unset=True))
    return _project_to_schema(project)


@router.get("/{project_id}", response_model=ProjectOut)
def api_get_project(project_id: int, auth: AuthContext = Depends(require_user), db: Session = Depends(get_db)):
    project = require_project(db, auth.user_id, project_id)
    return _project_to_schema(project, count_project_sessions(db, project.id))


@router.put("/{project_id}", response_model=ProjectOut)
def api_update_project(
    project_id: int,
    payload: ProjectUpdate,
    auth: AuthContext = Depends(require_user),
    db: Session = Depends(get_db),
):
    project = require_project(db, auth.user_id, project_id)
    updated = update_project(db, project, payload.model_dump(exclude_unset=True))
    return _project_to_schema(updated, count_project_sessions(db, updated.id))


@router.delete("/{project_id}", response_model=MessageOut)
def api_delete_project(project_id: int, auth: AuthContext = Depends(require_user), db: Session = Depends(get_db)):
    project = require_project(db, auth.user_id, project_id)
    delete_project(db, project)
    return MessageOut(message="Proyecto eliminado")


@router.get("/{project_id}/sessions", response_model=SessionPageOut)
def api_list_sessions(
    project_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_LIMIT, ge=1, le=settings.MAX_PAGE_LIMIT),
    auth: AuthContext = Depends(require_user),
    db: Session = Depends(get_db),
):
    result = list_sessions(db, auth.user_id, project_id, page=page, limit=limit)
    return SessionPageOut(
        sessions=[SessionOut.model_validate(session) for session in result.sessions],
        pagination=Pagination.model_validate(result.pagination()),
    )


@router.post("/{project_id}/sessions", response_model=SessionOut)
def api_session_action(
    project_id: int,
    payload: Optional[SessionAction] = None,
    auth: AuthContext = Depends(require_user),
    db: Session = Depends(get_db),
):
    """Start a timer, or stop the running one when ``sessionId`` is given.

    A request without a body starts a timer.
    """

    if payload is None:
        payload = SessionAction()
    if payload.session_id is not None:
        session = stop_session(
            db,
            auth.user_id,
            project_id,
            payload.session_id,
            end_time=payload.end_time,
            comment=payload.comment,
        )
    else:
        session = start_session(db, auth.user_id, project_id, comment=payload.comment)
    return SessionOut.model_validate(session)


@router.get("/{project_id}/sessions/active", response_model=ActiveSessionOut)
def api_active_session(project_id: int, auth: AuthContext = Depends(require_user), db: Session = Depends(get_db)):
    session = get_open_session(db, auth.user_id, project_id)
    return ActiveSessionOut(session=SessionOut.model_validate(session) if session else None)


@router.get("/{project_id}/stats", response_model=ProjectStatsOut)
def api_project_stats(project_id: int, auth: AuthContext = Depends(require_user), db: Session = Depends(get_db)):
    stats = calculate_project_stats(db, auth.user_id, project_id)
    return ProjectStatsOut.model_validate(stats.as_dict())
