# Credential store: maps verified emails / Google identities to local users.
from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db.models import User

PROVIDER_EMAIL = "email"
PROVIDER_GOOGLE = "google"


def public_user(user: User) -> Dict[str, Any]:
    """Client-facing projection of a user row."""
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "dob": user.dob.isoformat() if user.dob else None,
        "provider": user.provider,
    }


class UserStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> Optional[User]:
        return self.db.get(User, user_id)

    def find_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(User.email == email)
        return self.db.execute(stmt).scalar_one_or_none()

    def create(
        self,
        email: str,
        name: str,
        provider: str,
        dob: Optional[date] = None,
        google_id: Optional[str] = None,
    ) -> User:
        user = User(email=email, name=name, provider=provider, dob=dob, google_id=google_id)
        self.db.add(user)
        self._commit()
        return user

    def backfill_profile(self, user: User, name: Optional[str], dob: Optional[date]) -> User:
        """Fill name/dob only where the record has none; never overwrite."""
        changed = False
        if name and not user.name:
            user.name = name
            changed = True
        if dob and not user.dob:
            user.dob = dob
            changed = True
        if changed:
            self._commit()
        return user

    def link_google(self, user: User, google_id: str) -> User:
        """Attach a Google subject id; the provider tag stays as it was."""
        if not user.google_id:
            user.google_id = google_id
            self._commit()
        return user

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
