from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Iterable

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..crud.projects import require_project
from ..models.time_session import TimeSession
from .timecalc import duration_ms, ms_to_hours, utc_day


@dataclass
class ProjectStats:
    total_hours: float
    total_sessions: int
    unique_days: int
    completed_sessions: int
    open_sessions: int

    def as_dict(self) -> dict:
        return asdict(self)


def summarize_sessions(sessions: Iterable[TimeSession], total_sessions: int) -> ProjectStats:
    """Aggregate closed sessions; ``total_sessions`` also counts open ones.

    Hours and distinct days only look at sessions with an end time. The
    session total keeps counting running timers too, so the split is exposed
    as ``completed_sessions`` / ``open_sessions``.
    """

    total_ms = 0
    days = set()
    completed = 0
    for session in sessions:
        if session.is_open:
            continue
        completed += 1
        total_ms += duration_ms(session.start_time, session.end_time)
        days.add(utc_day(session.start_time))
    return ProjectStats(
        total_hours=ms_to_hours(total_ms),
        total_sessions=total_sessions,
        unique_days=len(days),
        completed_sessions=completed,
        open_sessions=max(total_sessions - completed, 0),
    )


def calculate_project_stats(db: Session, user_id: int, project_id: int) -> ProjectStats:
    require_project(db, user_id, project_id)
    closed = db.execute(
        select(TimeSession).where(
            TimeSession.project_id == project_id,
            TimeSession.end_time.is_not(None),
        )
    ).scalars().all()
    total = db.scalar(select(func.count(TimeSession.id)).where(TimeSession.project_id == project_id)) or 0
    return summarize_sessions(closed, int(total))
