from __future__ import annotations

from typing import Optional

from .base import CamelModel, UtcDatetime


class NoteCreate(CamelModel):
    content: Optional[str] = None


class NoteOut(CamelModel):
    id: int
    user_id: int
    content: str
    created_at: UtcDatetime
    updated_at: UtcDatetime
