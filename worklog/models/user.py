"""SQLAlchemy model for registered accounts."""

from __future__ import annotations

from sqlalchemy import Column, Integer, Text
from sqlalchemy.orm import relationship

from ..db.session import Base
from ..db.types import UtcDateTime
from ..services.timecalc import utcnow


class User(Base):
    __tablename__ = "users"
    __allow_unmapped__ = True

    id = Column(Integer, primary_key=True, index=True)
    email = Column(Text, nullable=False, unique=True, index=True)
    password_hash = Column(Text, nullable=False)
    name = Column(Text, nullable=True)
    created_at = Column(UtcDateTime(), nullable=False, default=utcnow)

    projects = relationship("Project", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    notes = relationship("Note", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)


__all__ = ["User"]
