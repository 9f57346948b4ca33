from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel
from notekeeper.models import Note, DEFAULT_NOTE_TITLE


class CreateNoteRequest(BaseModel):
    title: str = DEFAULT_NOTE_TITLE
    content: Optional[str] = None


class UpdateNoteRequest(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    notebook_id: Optional[str] = None


class NoteResponse(BaseModel):
    id: str
    notebook_id: str
    title: str
    content: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, note: Note) -> "NoteResponse":
        return cls(
            id=note.id,
            notebook_id=note.notebook_id,
            title=note.title,
            content=note.content,
            created_at=note.created_at,
            updated_at=note.updated_at,
        )


class ListNotesResponse(BaseModel):
    notes: List[NoteResponse]


class ImageUploadResponse(BaseModel):
    url: str


class StorageInfoResponse(BaseModel):
    kind: str
    local_only: bool
    path: Optional[str] = None
