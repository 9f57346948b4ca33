from .notebook import (
    Notebook,
    Note,
    NotebookUpdate,
    NoteUpdate,
    DEFAULT_NOTE_TITLE,
    NOTE_FIELDS,
    utc_now,
    next_stamp,
)

__all__ = [
    "Notebook", "Note", "NotebookUpdate", "NoteUpdate",
    "DEFAULT_NOTE_TITLE", "NOTE_FIELDS", "utc_now", "next_stamp",
]
