import base64
import mimetypes
from abc import ABC, abstractmethod
from typing import List, Optional
from notekeeper.core.validation import (
    validate_notebook_name,
    validate_note_title,
    validate_notebook_ref,
    escape_like,
)
from notekeeper.models import Notebook, Note, NotebookUpdate, NoteUpdate


class StorageBackend(ABC):
    """Abstract base class for notebook/note storage backends"""

    kind: str = "abstract"

    @abstractmethod
    async def create_notebook(self, name: str) -> Notebook:
        """Create a notebook with a storage-generated id"""
        pass

    @abstractmethod
    async def list_notebooks(self) -> List[Notebook]:
        """List all notebooks, most recently updated first"""
        pass

    @abstractmethod
    async def get_notebook(self, notebook_id: str) -> Optional[Notebook]:
        """Load a notebook, or None if it does not exist"""
        pass

    @abstractmethod
    async def update_notebook(self, notebook_id: str, update: NotebookUpdate) -> None:
        """Apply a partial update and re-stamp updated_at"""
        pass

    @abstractmethod
    async def delete_notebook(self, notebook_id: str) -> None:
        """Delete a notebook together with all of its notes, atomically"""
        pass

    @abstractmethod
    async def create_note(self, notebook_id: str, title: str, content: Optional[str] = None) -> Note:
        """Create a note in a notebook; content defaults to the empty string"""
        pass

    @abstractmethod
    async def list_notes_by_notebook(self, notebook_id: str) -> List[Note]:
        """List a notebook's notes, most recently updated first"""
        pass

    @abstractmethod
    async def get_note(self, note_id: str) -> Optional[Note]:
        """Load a note, or None if it does not exist"""
        pass

    @abstractmethod
    async def update_note(self, note_id: str, update: NoteUpdate) -> None:
        """Apply a partial update and re-stamp updated_at"""
        pass

    @abstractmethod
    async def delete_note(self, note_id: str) -> None:
        """Delete a single note"""
        pass

    @abstractmethod
    async def search_notes(self, query: str) -> List[Note]:
        """Case-insensitive substring search over title and content"""
        pass

    async def upload_image(self, data: bytes, filename: str) -> str:
        """Store image bytes and return a URL the editor can embed.

        Backends without an object store inline the image as a data URL.
        """
        return encode_data_url(data, filename)

    async def delete_image(self, url: str) -> None:
        """Remove a previously uploaded image (inlined images need nothing)"""
        return None

    async def get_storage_path(self) -> Optional[str]:
        """Location of the backing file, when there is one"""
        return None

    async def close(self) -> None:
        """Release connections and helper processes"""
        return None


def encode_data_url(data: bytes, filename: str) -> str:
    mime_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def is_data_url(url: str) -> bool:
    return url.startswith("data:")


def validate_note_update(update: NoteUpdate) -> NoteUpdate:
    validate_notebook_ref(update.notebook_id)
    return update


__all__ = [
    "StorageBackend", "encode_data_url", "is_data_url",
    "validate_notebook_name", "validate_note_title", "validate_note_update", "escape_like",
]
