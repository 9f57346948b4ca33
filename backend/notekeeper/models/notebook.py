from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict


DEFAULT_NOTE_TITLE = "Untitled Note"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def next_stamp(previous: Optional[datetime] = None) -> datetime:
    """Return "now", nudged past ``previous`` so updated_at never stands still."""
    now = utc_now()
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


@dataclass(frozen=True)
class Notebook:
    id: str
    name: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class Note:
    id: str
    notebook_id: str
    title: str
    content: str
    created_at: datetime
    updated_at: datetime

    def merged(self, fields: Dict[str, object], updated_at: datetime) -> "Note":
        return replace(self, updated_at=updated_at, **fields)


@dataclass
class NotebookUpdate:
    """Partial notebook update; ``None`` means the field is left untouched."""
    name: Optional[str] = None

    def fields(self) -> Dict[str, str]:
        return {} if self.name is None else {"name": self.name}


@dataclass
class NoteUpdate:
    """Partial note update; ``None`` means the field is left untouched."""
    title: Optional[str] = None
    content: Optional[str] = None
    notebook_id: Optional[str] = None

    def fields(self) -> Dict[str, str]:
        values = {"title": self.title, "content": self.content, "notebook_id": self.notebook_id}
        return {key: value for key, value in values.items() if value is not None}

    @classmethod
    def from_fields(cls, fields: Dict[str, str]) -> "NoteUpdate":
        return cls(**{key: fields.get(key) for key in ("title", "content", "notebook_id")})


NOTE_FIELDS = ("title", "content")

__all__ = [
    "Notebook", "Note", "NotebookUpdate", "NoteUpdate",
    "DEFAULT_NOTE_TITLE", "NOTE_FIELDS", "utc_now", "next_stamp",
]
