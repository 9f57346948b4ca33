"""Input checks shared by every backend, including the desktop host process."""
from typing import Optional
from .errors import InvalidInputError


def validate_notebook_name(name: Optional[str]) -> str:
    if name is None or not name.strip():
        raise InvalidInputError("Notebook name must not be empty")
    return name


def validate_note_title(title: Optional[str]) -> str:
    if title is None:
        raise InvalidInputError("Note title is required")
    return title


def validate_notebook_ref(notebook_id: Optional[str]) -> Optional[str]:
    if notebook_id is not None and not notebook_id.strip():
        raise InvalidInputError("Notebook id must not be empty")
    return notebook_id


def escape_like(query: str) -> str:
    """Escape LIKE wildcards so the query matches as a literal substring."""
    return query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
