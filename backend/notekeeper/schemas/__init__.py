from .notebook import (
    CreateNotebookRequest, UpdateNotebookRequest,
    NotebookResponse, ListNotebooksResponse
)
from .note import (
    CreateNoteRequest, UpdateNoteRequest,
    NoteResponse, ListNotesResponse,
    ImageUploadResponse, StorageInfoResponse
)

__all__ = [
    "CreateNotebookRequest", "UpdateNotebookRequest",
    "NotebookResponse", "ListNotebooksResponse",
    "CreateNoteRequest", "UpdateNoteRequest",
    "NoteResponse", "ListNotesResponse",
    "ImageUploadResponse", "StorageInfoResponse"
]
