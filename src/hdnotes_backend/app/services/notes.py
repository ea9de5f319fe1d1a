from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.errors import DependencyError, NotFoundError, ValidationError
from ..core.timeutil import as_utc, utcnow
from ..db.models import Note

logger = logging.getLogger(__name__)


def note_to_dict(note: Note) -> Dict[str, Any]:
    return {
        "_id": note.id,
        "title": note.title,
        "body": note.body or "",
        "createdAt": as_utc(note.created_at).isoformat(),
        "updatedAt": as_utc(note.updated_at).isoformat(),
    }


class NotesService:
    """Per-user notes. Every query is scoped to the owning user."""

    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self._now = clock

    def list_notes(self, user_id: str) -> List[Note]:
        stmt = (
            select(Note)
            .where(Note.user_id == user_id)
            .order_by(Note.created_at.desc())
        )
        return list(self.db.execute(stmt).scalars())

    def create_note(self, user_id: str, title: str, body: str = "") -> Note:
        now = self._now()
        note = Note(user_id=user_id, title=title, body=body or "", created_at=now, updated_at=now)
        try:
            self.db.add(note)
            self.db.commit()
        except SQLAlchemyError as ex:
            self.db.rollback()
            logger.exception("Creating note failed")
            raise DependencyError("Failed to create note") from ex
        return note

    def delete_note(self, user_id: str, note_id: str) -> None:
        try:
            note_key = uuid.UUID(note_id).hex
        except ValueError:
            raise ValidationError("Invalid note id")

        note = self.db.execute(
            select(Note).where(Note.id == note_key, Note.user_id == user_id)
        ).scalar_one_or_none()
        if note is None:
            raise NotFoundError("Note not found")
        try:
            self.db.delete(note)
            self.db.commit()
        except SQLAlchemyError as ex:
            self.db.rollback()
            logger.exception("Deleting note failed")
            raise DependencyError("Failed to delete note") from ex
