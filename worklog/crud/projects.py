"""CRUD helpers for projects, always scoped to the owning user."""

from __future__ import annotations

import logging

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from ..core.errors import NotFoundError, ValidationError
from ..models.project import Project
from ..models.time_session import TimeSession

logger = logging.getLogger(__name__)

PROJECT_NOT_FOUND = "Proyecto no encontrado"
NAME_REQUIRED = "El nombre es requerido"


def _session_count_subquery():
    return (
        select(TimeSession.project_id, func.count(TimeSession.id).label("session_count"))
        .group_by(TimeSession.project_id)
        .subquery()
    )


def list_projects(db: Session, user_id: int) -> list[tuple[Project, int]]:
    """Return ``(project, session_count)`` pairs, newest project first."""

    counts = _session_count_subquery()
    stmt = (
        select(Project, func.coalesce(counts.c.session_count, 0))
        .outerjoin(counts, counts.c.project_id == Project.id)
        .where(Project.user_id == user_id)
        .order_by(desc(Project.created_at), desc(Project.id))
    )
    return [(project, int(count)) for project, count in db.execute(stmt).all()]


def get_project(db: Session, user_id: int, project_id: int) -> Project | None:
    stmt = select(Project).where(Project.id == project_id, Project.user_id == user_id)
    return db.execute(stmt).scalars().first()


def require_project(db: Session, user_id: int, project_id: int) -> Project:
    # Someone else's project and a missing one look identical to the caller.
    project = get_project(db, user_id, project_id)
    if project is None:
        raise NotFoundError(PROJECT_NOT_FOUND)
    return project


def count_project_sessions(db: Session, project_id: int) -> int:
    stmt = select(func.count(TimeSession.id)).where(TimeSession.project_id == project_id)
    return int(db.scalar(stmt) or 0)


def create_project(db: Session, user_id: int, payload: dict) -> Project:
    name = (payload.get("name") or "").strip()
    if not name:
        raise ValidationError(NAME_REQUIRED)
    project = Project(
        user_id=user_id,
        name=name,
        description=(payload.get("description") or "").strip() or None,
    )
    db.add(project)
    db.commit()
    db.refresh(project)
    return project


def update_project(db: Session, project: Project, payload: dict) -> Project:
    if "name" in payload:
        name = (payload.get("name") or "").strip()
        if not name:
            raise ValidationError(NAME_REQUIRED)
        project.name = name
    if "description" in payload:
        project.description = (payload.get("description") or "").strip() or None
    db.commit()
    db.refresh(project)
    return project


def delete_project(db: Session, project: Project) -> None:
    # Sessions go with the project (ORM cascade + ON DELETE CASCADE).
    project_id = project.id
    db.delete(project)
    db.commit()
    logger.info("project.deleted", extra={"extra_data": {"project_id": project_id}})
