"""Tests for owner-scoped project CRUD and delete cascades."""

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from worklog.core.errors import NotFoundError, ValidationError
from worklog.crud.projects import (
    create_project,
    delete_project,
    get_project,
    list_projects,
    require_project,
    update_project,
)
from worklog.crud.sessions import start_session, stop_session
from worklog.db.session import Base, build_engine
from worklog.models.time_session import TimeSession
from worklog.models.user import User

# Ensure models are registered so metadata tables are created
from worklog.models import note as note_model  # noqa: F401


@pytest.fixture()
def db_session():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def users(db_session):
    ana = User(email="ana@example.com", password_hash="x")
    bo = User(email="bo@example.com", password_hash="x")
    db_session.add_all([ana, bo])
    db_session.commit()
    return ana, bo


def test_create_project_requires_name(db_session, users):
    ana, _ = users
    with pytest.raises(ValidationError) as excinfo:
        create_project(db_session, ana.id, {"name": "   ", "description": "x"})
    assert excinfo.value.message == "El nombre es requerido"

    project = create_project(db_session, ana.id, {"name": " Book ", "description": ""})
    assert project.name == "Book"
    assert project.description is None
    assert project.created_at.tzinfo is not None


def test_list_projects_is_owner_scoped_with_session_counts(db_session, users):
    ana, bo = users
    older = create_project(db_session, ana.id, {"name": "Older"})
    newer = create_project(db_session, ana.id, {"name": "Newer"})
    create_project(db_session, bo.id, {"name": "Not yours"})

    first = start_session(db_session, ana.id, older.id)
    stop_session(db_session, ana.id, older.id, first.id)
    start_session(db_session, ana.id, older.id)

    rows = list_projects(db_session, ana.id)

    assert [(project.name, count) for project, count in rows] == [("Newer", 0), ("Older", 2)]
    assert newer.id == rows[0][0].id


def test_update_project_only_touches_given_fields(db_session, users):
    ana, _ = users
    project = create_project(db_session, ana.id, {"name": "Book", "description": "novel"})

    updated = update_project(db_session, project, {"description": "memoir"})
    assert updated.name == "Book"
    assert updated.description == "memoir"

    with pytest.raises(ValidationError):
        update_project(db_session, project, {"name": ""})


def test_foreign_project_is_not_found(db_session, users):
    ana, bo = users
    project = create_project(db_session, ana.id, {"name": "Private"})

    assert get_project(db_session, bo.id, project.id) is None
    with pytest.raises(NotFoundError) as excinfo:
        require_project(db_session, bo.id, project.id)
    assert excinfo.value.message == "Proyecto no encontrado"


def test_delete_project_cascades_to_sessions(db_session, users):
    ana, _ = users
    project = create_project(db_session, ana.id, {"name": "Temp"})
    session = start_session(db_session, ana.id, project.id)
    stop_session(db_session, ana.id, project.id, session.id)
    start_session(db_session, ana.id, project.id)

    delete_project(db_session, project)

    remaining = db_session.scalar(select(func.count(TimeSession.id)))
    assert remaining == 0
    assert list_projects(db_session, ana.id) == []
