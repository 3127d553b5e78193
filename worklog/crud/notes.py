"""CRUD helpers for free-text notes."""

from __future__ import annotations

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from ..core.errors import NotFoundError, ValidationError
from ..models.note import Note

CONTENT_REQUIRED = "El contenido es requerido"
NOTE_NOT_FOUND = "Nota no encontrada"


def list_notes(db: Session, user_id: int) -> list[Note]:
    stmt = select(Note).where(Note.user_id == user_id).order_by(desc(Note.updated_at), desc(Note.id))
    return list(db.execute(stmt).scalars().all())


def get_note(db: Session, user_id: int, note_id: int) -> Note | None:
    stmt = select(Note).where(Note.id == note_id, Note.user_id == user_id)
    return db.execute(stmt).scalars().first()


def create_note(db: Session, user_id: int, content: str | None) -> Note:
    content = (content or "").strip()
    if not content:
        raise ValidationError(CONTENT_REQUIRED)
    note = Note(user_id=user_id, content=content)
    db.add(note)
    db.commit()
    db.refresh(note)
    return note


def delete_note(db: Session, user_id: int, note_id: int) -> None:
    note = get_note(db, user_id, note_id)
    if note is None:
        raise NotFoundError(NOTE_NOT_FOUND)
    db.delete(note)
    db.commit()
