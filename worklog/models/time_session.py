"""SQLAlchemy model for timed work sessions.

A row with ``end_time IS NULL`` is an open (running) timer. The partial
unique index below lets the database refuse a second open row for the same
project, so two racing "start" requests cannot both win.
"""

from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Index, Integer, Text, text
from sqlalchemy.orm import relationship

from ..db.session import Base
from ..db.types import UtcDateTime
from ..services.timecalc import utcnow

OPEN_SESSION_INDEX = "ux_time_sessions_open_project"


class TimeSession(Base):
    __tablename__ = "time_sessions"
    __allow_unmapped__ = True
    __table_args__ = (
        Index(
            OPEN_SESSION_INDEX,
            "project_id",
            unique=True,
            sqlite_where=text("end_time IS NULL"),
            postgresql_where=text("end_time IS NULL"),
        ),
        Index("ix_time_sessions_project_start", "project_id", "start_time"),
    )

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    # Mirrors project.user_id so ownership filters skip the join.
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    start_time = Column(UtcDateTime(), nullable=False, default=utcnow)
    end_time = Column(UtcDateTime(), nullable=True)
    comment = Column(Text, nullable=True)
    created_at = Column(UtcDateTime(), nullable=False, default=utcnow)

    project = relationship("Project", back_populates="sessions")

    @property
    def is_open(self) -> bool:
        return self.end_time is None


__all__ = ["TimeSession", "OPEN_SESSION_INDEX"]
