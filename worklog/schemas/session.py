"""Schemas for timed work sessions, their listing and per-project stats."""

from __future__ import annotations

from typing import Optional

from .base import CamelModel, UtcDatetime


class SessionAction(CamelModel):
    """Body of ``POST /projects/{id}/sessions``.

    Without ``sessionId`` the request starts a timer; with it, the request stops
    that session at ``endTime`` (server time when omitted).
    """

    session_id: Optional[int] = None
    end_time: Optional[str] = None
    comment: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {},
                {"sessionId": 12, "endTime": "2024-05-01T10:30:00Z", "comment": "chapter 1"},
            ]
        }
    }


class SessionOut(CamelModel):
    id: int
    project_id: int
    user_id: int
    start_time: UtcDatetime
    end_time: Optional[UtcDatetime] = None
    comment: Optional[str] = None
    created_at: UtcDatetime


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class SessionPageOut(CamelModel):
    sessions: list[SessionOut]
    pagination: Pagination


class ActiveSessionOut(CamelModel):
    session: Optional[SessionOut] = None


class ProjectStatsOut(CamelModel):
    total_hours: float
    total_sessions: int
    unique_days: int
    completed_sessions: int
    open_sessions: int
