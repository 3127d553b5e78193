"""Pydantic schemas that describe project payloads for the API."""

from __future__ import annotations

from typing import Optional

from .base import CamelModel, UtcDatetime


class ProjectBase(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None


class ProjectCreate(ProjectBase):
    pass


class ProjectUpdate(ProjectBase):
    pass


class ProjectOut(CamelModel):
    id: int
    user_id: int
    name: str
    description: Optional[str] = None
    created_at: UtcDatetime
    updated_at: UtcDatetime
    session_count: int = 0
