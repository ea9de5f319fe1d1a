# src/hdnotes_backend/app/schemas/notes.py

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

TITLE_MAX = 200
BODY_MAX = 5000


class CreateNoteBody(BaseModel):
    # absent title must still report "Title is required"
    title: Optional[str] = Field(default=None, validate_default=True)
    body: Optional[str] = None

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, v: Any) -> Any:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("Title is required")
        if len(v.strip()) > TITLE_MAX:
            raise ValueError(f"Title must be at most {TITLE_MAX} characters")
        return v.strip()

    @field_validator("body")
    @classmethod
    def _body(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and len(v) > BODY_MAX:
            raise ValueError(f"Body must be at most {BODY_MAX} characters")
        return v
