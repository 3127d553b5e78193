from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..crud.notes import create_note, delete_note, list_notes
from ..db.session import get_db
from ..deps.auth import AuthContext, require_user
from ..schemas.base import SuccessOut
from ..schemas.note import NoteCreate, NoteOut

router = APIRouter(prefix="/notes", tags=["notes"])


@router.get("", response_model=list[NoteOut])
def api_list_notes(auth: AuthContext = Depends(require_user), db: Session = Depends(get_db)):
    return [NoteOut.model_validate(note) for note in list_notes(db, auth.user_id)]


@router.post("", response_model=NoteOut, status_code=201)
def api_create_note(payload: NoteCreate, auth: AuthContext = Depends(require_user), db: Session = Depends(get_db)):
    return NoteOut.model_validate(create_note(db, auth.user_id, payload.content))


@router.delete("/{note_id}", response_model=SuccessOut)
def api_delete_note(note_id: int, auth: AuthContext = Depends(require_user), db: Session = Depends(get_db)):
    delete_note(db, auth.user_id, note_id)
    return SuccessOut(success=True)
