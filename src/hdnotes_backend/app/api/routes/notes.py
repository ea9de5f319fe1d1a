# src/hdnotes_backend/app/api/routes/notes.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, status

from ...auth.deps import get_notes_service, require_user
from ...db.models import User
from ...schemas.notes import CreateNoteBody
from ...services.notes import NotesService, note_to_dict

router = APIRouter(
    prefix="/notes",
    tags=["notes"],
    dependencies=[Depends(require_user)],
)


@router.get("")
def list_notes(user: User = Depends(require_user), svc: NotesService = Depends(get_notes_service)) -> Dict[str, Any]:
    return {"notes": [note_to_dict(n) for n in svc.list_notes(user.id)]}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_note(
    body: CreateNoteBody,
    user: User = Depends(require_user),
    svc: NotesService = Depends(get_notes_service),
) -> Dict[str, Any]:
    note = svc.create_note(user.id, body.title or "", body.body or "")
    return {"note": note_to_dict(note)}


@router.delete("/{note_id}")
def delete_note(
    note_id: str,
    user: User = Depends(require_user),
    svc: NotesService = Depends(get_notes_service),
) -> Dict[str, Any]:
    svc.delete_note(user.id, note_id)
    return {"ok": True}
