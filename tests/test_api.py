"""End-to-end tests for the JSON API through FastAPI's TestClient."""

import os
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from worklog import app, create_app
from worklog.core.config import settings
from worklog.core.security import issue_token
from worklog.db.session import Base, build_engine, get_db

API = settings.API_PREFIX


@pytest.fixture()
def client():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)

    def _get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _register(client, email="ana@example.com", password="s3cret", name="Ana"):
    r = client.post(f"{API}/auth/register", json={"email": email, "password": password, "name": name})
    assert r.status_code == 201, r.text
    return r.json()


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


def _create_project(client, token, name="Book", description=None):
    r = client.post(f"{API}/projects", json={"name": name, "description": description}, headers=_auth(token))
    assert r.status_code == 201, r.text
    return r.json()


def test_register_and_login(client):
    body = _register(client)
    assert body["user"] == {"id": body["user"]["id"], "email": "ana@example.com", "name": "Ana"}
    assert "password" not in str(body["user"]).lower()

    r = client.post(f"{API}/auth/login", json={"email": "ana@example.com", "password": "s3cret"})
    assert r.status_code == 200
    assert r.json()["user"]["id"] == body["user"]["id"]
    assert r.json()["token"]


def test_register_errors(client):
    r = client.post(f"{API}/auth/register", json={"email": "ana@example.com"})
    assert r.status_code == 400
    assert r.json() == {"error": "Email y contraseña son requeridos"}

    _register(client)
    r = client.post(f"{API}/auth/register", json={"email": "ana@example.com", "password": "x"})
    assert r.status_code == 409
    assert r.json() == {"error": "El usuario ya existe"}


def test_login_errors(client):
    _register(client)
    r = client.post(f"{API}/auth/login", json={"email": "ana@example.com"})
    assert r.status_code == 400

    r = client.post(f"{API}/auth/login", json={"email": "ana@example.com", "password": "wrong"})
    assert r.status_code == 401
    assert r.json() == {"error": "Credenciales inválidas"}


@pytest.mark.parametrize(
    "headers,message",
    [
        ({}, "No autorizado"),
        ({"Authorization": "Token abc"}, "No autorizado"),
        ({"Authorization": "Bearer"}, "No autorizado"),
        ({"Authorization": "Bearer not-a-token"}, "Token inválido"),
    ],
)
def test_protected_routes_require_bearer_token(client, headers, message):
    r = client.get(f"{API}/projects", headers=headers)
    assert r.status_code == 401
    assert r.json() == {"error": message}


def test_expired_token_is_unauthorized(client):
    user = _register(client)["user"]
    token = issue_token(user["id"], expires_delta=timedelta(seconds=-1))
    r = client.get(f"{API}/notes", headers=_auth(token))
    assert r.status_code == 401


def test_book_example_start_stop_and_stats(client):
    token = _register(client)["token"]
    project = _create_project(client, token, "Book")

    r = client.post(f"{API}/projects/{project['id']}/sessions", json={}, headers=_auth(token))
    assert r.status_code == 200, r.text
    session = r.json()
    assert session["endTime"] is None
    assert session["projectId"] == project["id"]
    assert session["startTime"].endswith("Z")

    active = client.get(f"{API}/projects/{project['id']}/sessions/active", headers=_auth(token)).json()
    assert active["session"]["id"] == session["id"]

    start = datetime.fromisoformat(session["startTime"].replace("Z", "+00:00"))
    end = start + timedelta(milliseconds=3_600_000)
    r = client.post(
        f"{API}/projects/{project['id']}/sessions",
        json={"sessionId": session["id"], "endTime": end.isoformat(), "comment": "chapter 1"},
        headers=_auth(token),
    )
    assert r.status_code == 200, r.text
    assert r.json()["comment"] == "chapter 1"
    assert r.json()["endTime"] is not None

    stats = client.get(f"{API}/projects/{project['id']}/stats", headers=_auth(token)).json()
    assert stats["totalHours"] == pytest.approx(1.0)
    assert stats["totalSessions"] == 1
    assert stats["uniqueDays"] == 1
    assert stats["completedSessions"] == 1
    assert stats["openSessions"] == 0

    active = client.get(f"{API}/projects/{project['id']}/sessions/active", headers=_auth(token)).json()
    assert active == {"session": None}


def test_second_start_conflicts_and_stale_stop_is_not_found(client):
    token = _register(client)["token"]
    project = _create_project(client, token)
    url = f"{API}/projects/{project['id']}/sessions"

    first = client.post(url, json={}, headers=_auth(token)).json()
    r = client.post(url, json={}, headers=_auth(token))
    assert r.status_code == 409
    assert r.json() == {"error": "Ya hay una sesión en curso para este proyecto"}

    r = client.post(url, json={"sessionId": first["id"]}, headers=_auth(token))
    assert r.status_code == 200

    r = client.post(url, json={"sessionId": first["id"], "endTime": "2030-01-01T00:00:00Z"}, headers=_auth(token))
    assert r.status_code == 404
    assert r.json() == {"error": "Sesión no encontrada o ya finalizada"}

    listing = client.get(url, headers=_auth(token)).json()
    assert listing["pagination"]["total"] == 1
    assert listing["sessions"][0]["endTime"] != "2030-01-01T00:00:00Z"


def test_bodyless_post_starts_and_out_of_range_end_time_is_rejected(client):
    token = _register(client)["token"]
    project = _create_project(client, token)
    url = f"{API}/projects/{project['id']}/sessions"

    r = client.post(url, headers=_auth(token))
    assert r.status_code == 200, r.text
    session = r.json()
    assert session["endTime"] is None

    r = client.post(
        url,
        json={"sessionId": session["id"], "endTime": "9999-12-31T23:59:59-01:00"},
        headers=_auth(token),
    )
    assert r.status_code == 400
    assert r.json() == {"error": "La hora de fin no es válida"}

    active = client.get(f"{url}/active", headers=_auth(token)).json()
    assert active["session"]["id"] == session["id"]


def test_session_listing_pagination(client):
    token = _register(client)["token"]
    project = _create_project(client, token)
    url = f"{API}/projects/{project['id']}/sessions"
    for _ in range(3):
        session = client.post(url, json={}, headers=_auth(token)).json()
        client.post(url, json={"sessionId": session["id"]}, headers=_auth(token))

    body = client.get(url, params={"page": 1, "limit": 2}, headers=_auth(token)).json()
    assert len(body["sessions"]) == 2
    assert body["pagination"] == {
        "page": 1,
        "limit": 2,
        "total": 3,
        "totalPages": 2,
        "hasNext": True,
        "hasPrev": False,
    }
    starts = [s["startTime"] for s in body["sessions"]]
    assert starts == sorted(starts, reverse=True)

    beyond = client.get(url, params={"page": 5, "limit": 2}, headers=_auth(token)).json()
    assert beyond["sessions"] == []
    assert beyond["pagination"]["hasNext"] is False
    assert beyond["pagination"]["hasPrev"] is True

    r = client.get(url, params={"page": 0}, headers=_auth(token))
    assert r.status_code == 400
    assert r.json() == {"error": "Solicitud inválida"}


def test_project_crud(client):
    token = _register(client)["token"]

    r = client.post(f"{API}/projects", json={"description": "no name"}, headers=_auth(token))
    assert r.status_code == 400
    assert r.json() == {"error": "El nombre es requerido"}

    project = _create_project(client, token, "Book", "novel")
    assert project["sessionCount"] == 0
    assert project["description"] == "novel"

    r = client.put(f"{API}/projects/{project['id']}", json={"name": "Memoir"}, headers=_auth(token))
    assert r.status_code == 200
    assert r.json()["name"] == "Memoir"
    assert r.json()["description"] == "novel"

    client.post(f"{API}/projects/{project['id']}/sessions", json={}, headers=_auth(token))
    listing = client.get(f"{API}/projects", headers=_auth(token)).json()
    assert [(p["name"], p["sessionCount"]) for p in listing] == [("Memoir", 1)]

    single = client.get(f"{API}/projects/{project['id']}", headers=_auth(token)).json()
    assert single["sessionCount"] == 1

    r = client.delete(f"{API}/projects/{project['id']}", headers=_auth(token))
    assert r.status_code == 200
    assert r.json() == {"message": "Proyecto eliminado"}

    r = client.get(f"{API}/projects/{project['id']}/sessions", headers=_auth(token))
    assert r.status_code == 404


def test_ownership_isolation_returns_404(client):
    owner = _register(client, "owner@example.com")["token"]
    intruder = _register(client, "intruder@example.com")["token"]
    project = _create_project(client, owner, "Private")
    session = client.post(f"{API}/projects/{project['id']}/sessions", json={}, headers=_auth(owner)).json()
    base = f"{API}/projects/{project['id']}"

    attempts = [
        client.get(base, headers=_auth(intruder)),
        client.put(base, json={"name": "Mine now"}, headers=_auth(intruder)),
        client.delete(base, headers=_auth(intruder)),
        client.get(f"{base}/sessions", headers=_auth(intruder)),
        client.post(f"{base}/sessions", json={}, headers=_auth(intruder)),
        client.post(f"{base}/sessions", json={"sessionId": session["id"]}, headers=_auth(intruder)),
        client.get(f"{base}/stats", headers=_auth(intruder)),
    ]
    for r in attempts:
        assert r.status_code == 404
        assert r.json() == {"error": "Proyecto no encontrado"}

    assert client.get(f"{API}/projects", headers=_auth(intruder)).json() == []
    still_open = client.get(f"{base}/sessions/active", headers=_auth(owner)).json()
    assert still_open["session"]["id"] == session["id"]


def test_notes_flow(client):
    token = _register(client)["token"]

    r = client.post(f"{API}/notes", json={"content": "  "}, headers=_auth(token))
    assert r.status_code == 400
    assert r.json() == {"error": "El contenido es requerido"}

    r = client.post(f"{API}/notes", json={"content": "  call the editor  "}, headers=_auth(token))
    assert r.status_code == 201
    note = r.json()
    assert note["content"] == "call the editor"

    assert [n["id"] for n in client.get(f"{API}/notes", headers=_auth(token)).json()] == [note["id"]]

    other = _register(client, "bo@example.com")["token"]
    r = client.delete(f"{API}/notes/{note['id']}", headers=_auth(other))
    assert r.status_code == 404
    assert r.json() == {"error": "Nota no encontrada"}

    r = client.delete(f"{API}/notes/{note['id']}", headers=_auth(token))
    assert r.json() == {"success": True}
    assert client.get(f"{API}/notes", headers=_auth(token)).json() == []


def test_malformed_json_is_bad_request(client):
    token = _register(client)["token"]
    r = client.post(
        f"{API}/notes",
        content=b"{not json",
        headers={**_auth(token), "Content-Type": "application/json"},
    )
    assert r.status_code == 400
    assert r.json() == {"error": "Solicitud inválida"}


def test_unexpected_failure_is_hidden_behind_500():
    crashing = create_app()

    @crashing.get("/boom")
    def boom():
        raise RuntimeError("database password is hunter2")

    r = TestClient(crashing, raise_server_exceptions=False).get("/boom")
    assert r.status_code == 500
    assert r.json() == {"error": "Error interno del servidor"}
    assert "hunter2" not in r.text


def test_request_id_is_echoed(client):
    r = client.get("/health", headers={"X-Request-ID": "abc123"})
    assert r.json() == {"ok": True}
    assert r.headers["X-Request-ID"] == "abc123"
