#!/usr/bin/env python3
"""
worklog_timer.py

Purpose:
  Drive the Worklog API from a terminal: register or log in, manage projects,
  start/stop the timer on a project, watch a running timer tick, page through
  past sessions, read stats, and keep quick notes.

API:
  Base: http://localhost:8089/api
  Auth: Authorization: Bearer <token>   (POST /auth/login returns it)

Token precedence:
  1) --token <value> (CLI)
  2) env WORKLOG_TOKEN

Examples:
  python worklog_timer.py register ana@example.com s3cret --name Ana
  python worklog_timer.py login ana@example.com s3cret
  WORKLOG_TOKEN=... python worklog_timer.py projects
  python worklog_timer.py project-add Book -d "second novel"
  python worklog_timer.py start 3 -c "chapter 1"
  python worklog_timer.py watch 3
  python worklog_timer.py stop 3 -c "done for today"
  python worklog_timer.py sessions 3 --page 2
  python worklog_timer.py stats 3
  python worklog_timer.py note-add "call the editor"
  python worklog_timer.py note-delete 4

Exit codes:
  0 = success
  1 = handled application error (4xx from the API, nothing running, ...)
  2 = network/HTTP error
"""

from __future__ import annotations

import argparse
import json
import os
import sys
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests

DEFAULT_BASE_URL = os.getenv("WORKLOG_BASE_URL", "http://localhost:8089/api")


class ApiError(Exception):
    """The API answered with a 4xx and an ``{"error": ...}`` body."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Terminal client for the Worklog time tracker.")
    p.add_argument("--base-url", default=DEFAULT_BASE_URL,
                   help=f"Base API URL (default: {DEFAULT_BASE_URL})")
    p.add_argument("--token", default=None,
                   help="Bearer token. Overrides env WORKLOG_TOKEN.")
    p.add_argument("--timeout", type=float, default=15.0,
                   help="HTTP timeout in seconds (default: 15)")
    p.add_argument("-v", "--verbose", action="store_true",
                   help="Verbose logging to stderr.")
    sub = p.add_subparsers(dest="command", required=True)

    register = sub.add_parser("register", help="Create an account and print the bearer token.")
    register.add_argument("email")
    register.add_argument("password")
    register.add_argument("--name", default=None)

    login = sub.add_parser("login", help="Log in and print the bearer token.")
    login.add_argument("email")
    login.add_argument("password")

    sub.add_parser("projects", help="List projects with their session counts.")

    project_add = sub.add_parser("project-add", help="Create a project.")
    project_add.add_argument("name")
    project_add.add_argument("-d", "--description", default=None)

    project_edit = sub.add_parser("project-edit", help="Rename a project or change its description.")
    project_edit.add_argument("project_id", type=int)
    project_edit.add_argument("--name", default=None)
    project_edit.add_argument("-d", "--description", default=None)

    project_delete = sub.add_parser("project-delete", help="Delete a project and all of its sessions.")
    project_delete.add_argument("project_id", type=int)

    start = sub.add_parser("start", help="Start the timer on a project.")
    start.add_argument("project_id", type=int)
    start.add_argument("-c", "--comment", default=None)

    stop = sub.add_parser("stop", help="Stop the running timer on a project.")
    stop.add_argument("project_id", type=int)
    stop.add_argument("-c", "--comment", default=None)

    watch = sub.add_parser("watch", help="Show a ticking clock for the running timer.")
    watch.add_argument("project_id", type=int)
    watch.add_argument("--ticks", type=int, default=0,
                       help="Stop after this many seconds (0 = until Ctrl+C).")

    sessions = sub.add_parser("sessions", help="List a project's sessions, newest first.")
    sessions.add_argument("project_id", type=int)
    sessions.add_argument("--page", type=int, default=1)
    sessions.add_argument("--limit", type=int, default=30)

    stats = sub.add_parser("stats", help="Show totals for a project.")
    stats.add_argument("project_id", type=int)

    sub.add_parser("notes", help="List notes.")
    note_add = sub.add_parser("note-add", help="Add a note.")
    note_add.add_argument("content")
    note_delete = sub.add_parser("note-delete", help="Delete a note.")
    note_delete.add_argument("note_id", type=int)
    return p.parse_args(argv)


def resolve_token(cli_token: Optional[str]) -> Optional[str]:
    if cli_token:
        return cli_token
    return os.getenv("WORKLOG_TOKEN") or None


def build_headers(token: Optional[str], content_json: bool = False) -> Dict[str, str]:
    headers: Dict[str, str] = {"Accept": "application/json"}
    if content_json:
        headers["Content-Type"] = "application/json"
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def vprint(enabled: bool, *args: Any) -> None:
    if enabled:
        print(*args, file=sys.stderr)


def parse_timestamp(value: str) -> datetime:
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def elapsed_seconds(start_time: str, now: Optional[datetime] = None) -> int:
    """Seconds since ``start_time``, computed locally (no server round trip)."""
    now = now or datetime.now(tz=timezone.utc)
    return max(int((now - parse_timestamp(start_time)).total_seconds()), 0)


def format_elapsed(seconds: int) -> str:
    seconds = max(int(seconds), 0)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_session_line(session: Dict[str, Any]) -> str:
    start = session.get("startTime") or ""
    end = session.get("endTime")
    if end:
        duration = format_elapsed(int((parse_timestamp(end) - parse_timestamp(start)).total_seconds()))
        state = end
    else:
        duration = format_elapsed(elapsed_seconds(start)) if start else "--:--:--"
        state = "running"
    comment = session.get("comment") or ""
    return f"#{session.get('id')}  {start}  ->  {state}  [{duration}]  {comment}".rstrip()


class WorklogClient:
    def __init__(self, base_url: str, token: Optional[str], timeout: float = 15.0,
                 verbose: bool = False, session: Optional[requests.Session] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.verbose = verbose
        self.http = session or requests.Session()

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None,
                 params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        vprint(self.verbose, f"{method} {url} params={params} json={payload}")
        r = self.http.request(
            method,
            url,
            headers=build_headers(self.token, content_json=payload is not None),
            json=payload,
            params=params,
            timeout=self.timeout,
        )
        if 400 <= r.status_code < 500:
            try:
                message = r.json().get("error") or r.text
            except ValueError:
                message = r.text
            raise ApiError(r.status_code, message)
        r.raise_for_status()
        return r.json()

    def register(self, email: str, password: str, name: Optional[str] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"email": email, "password": password}
        if name:
            payload["name"] = name
        data = self._request("POST", "/auth/register", payload)
        self.token = data.get("token")
        return data

    def login(self, email: str, password: str) -> Dict[str, Any]:
        data = self._request("POST", "/auth/login", {"email": email, "password": password})
        self.token = data.get("token")
        return data

    def projects(self) -> list:
        return self._request("GET", "/projects")

    def create_project(self, name: str, description: Optional[str] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"name": name}
        if description is not None:
            payload["description"] = description
        return self._request("POST", "/projects", payload)

    def update_project(self, project_id: int, name: Optional[str] = None,
                       description: Optional[str] = None) -> Dict[str, Any]:
        # Only send what changed; the server leaves omitted fields alone.
        payload: Dict[str, Any] = {}
        if name is not None:
            payload["name"] = name
        if description is not None:
            payload["description"] = description
        return self._request("PUT", f"/projects/{project_id}", payload)

    def delete_project(self, project_id: int) -> Dict[str, Any]:
        return self._request("DELETE", f"/projects/{project_id}")

    def active_session(self, project_id: int) -> Optional[Dict[str, Any]]:
        return self._request("GET", f"/projects/{project_id}/sessions/active").get("session")

    def start(self, project_id: int, comment: Optional[str] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if comment:
            payload["comment"] = comment
        return self._request("POST", f"/projects/{project_id}/sessions", payload)

    def stop(self, project_id: int, session_id: int, comment: Optional[str] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "sessionId": session_id,
            "endTime": datetime.now(tz=timezone.utc).isoformat(),
        }
        if comment:
            payload["comment"] = comment
        return self._request("POST", f"/projects/{project_id}/sessions", payload)

    def sessions(self, project_id: int, page: int = 1, limit: int = 30) -> Dict[str, Any]:
        return self._request("GET", f"/projects/{project_id}/sessions", params={"page": page, "limit": limit})

    def stats(self, project_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/projects/{project_id}/stats")

    def notes(self) -> list:
        return self._request("GET", "/notes")

    def add_note(self, content: str) -> Dict[str, Any]:
        return self._request("POST", "/notes", {"content": content})

    def delete_note(self, note_id: int) -> Dict[str, Any]:
        return self._request("DELETE", f"/notes/{note_id}")


def watch(client: WorklogClient, project_id: int, ticks: int = 0) -> int:
    """Fetch the open session once, then redraw the clock every second."""
    session = client.active_session(project_id)
    if not session:
        print("No running timer for this project.", file=sys.stderr)
        return 1
    start = session["startTime"]
    shown = 0
    try:
        while ticks <= 0 or shown < ticks:
            sys.stdout.write(f"\r#{session['id']}  {format_elapsed(elapsed_seconds(start))}")
            sys.stdout.flush()
            shown += 1
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    sys.stdout.write("\n")
    return 0


def run_command(client: WorklogClient, args: argparse.Namespace) -> int:
    if args.command in ("register", "login"):
        if args.command == "register":
            data = client.register(args.email, args.password, args.name)
        else:
            data = client.login(args.email, args.password)
        print(json.dumps(data, indent=2))
        return 0
    if args.command == "projects":
        for project in client.projects():
            print(f"{project['id']:>4}  {project['name']}  ({project.get('sessionCount', 0)} sessions)")
        return 0
    if args.command == "project-add":
        project = client.create_project(args.name, args.description)
        print(f"{project['id']:>4}  {project['name']}")
        return 0
    if args.command == "project-edit":
        if args.name is None and args.description is None:
            print("Nothing to change: pass --name and/or --description.", file=sys.stderr)
            return 1
        project = client.update_project(args.project_id, args.name, args.description)
        print(f"{project['id']:>4}  {project['name']}  {project.get('description') or ''}".rstrip())
        return 0
    if args.command == "project-delete":
        print(client.delete_project(args.project_id)["message"])
        return 0
    if args.command == "start":
        print(format_session_line(client.start(args.project_id, args.comment)))
        return 0
    if args.command == "stop":
        session = client.active_session(args.project_id)
        if not session:
            print("No running timer for this project.", file=sys.stderr)
            return 1
        print(format_session_line(client.stop(args.project_id, session["id"], args.comment)))
        return 0
    if args.command == "watch":
        return watch(client, args.project_id, args.ticks)
    if args.command == "sessions":
        data = client.sessions(args.project_id, page=args.page, limit=args.limit)
        for session in data["sessions"]:
            print(format_session_line(session))
        pagination = data["pagination"]
        print(f"page {pagination['page']}/{pagination['totalPages']} ({pagination['total']} sessions)")
        return 0
    if args.command == "stats":
        stats = client.stats(args.project_id)
        print(f"Total: {stats['totalHours']:.2f} h over {stats['uniqueDays']} day(s), "
              f"{stats['totalSessions']} session(s)")
        for session in client.sessions(args.project_id, limit=10)["sessions"]:
            print("  " + format_session_line(session))
        return 0
    if args.command == "notes":
        for note in client.notes():
            print(f"{note['id']:>4}  {note['updatedAt']}  {note['content']}")
        return 0
    if args.command == "note-add":
        note = client.add_note(args.content)
        print(f"{note['id']:>4}  {note['content']}")
        return 0
    if args.command == "note-delete":
        client.delete_note(args.note_id)
        print(f"Deleted note {args.note_id}")
        return 0
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    token = resolve_token(args.token)
    if not token and args.command not in ("login", "register"):
        print("WARNING: No token supplied (use --token or env WORKLOG_TOKEN).", file=sys.stderr)

    client = WorklogClient(args.base_url, token, timeout=args.timeout, verbose=args.verbose)
    try:
        return run_command(client, args)
    except ApiError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        return 1
    except requests.exceptions.RequestException as e:
        print(f"NETWORK_ERROR: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
