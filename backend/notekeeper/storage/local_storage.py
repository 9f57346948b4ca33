"""
In-process document store for local-only mode.

Two collections (notebooks, notes) keyed by id, with sorted secondary
indexes so listings are ordered range walks rather than full scans.
Optionally snapshotted to a JSON file after every committed write.
"""
import bisect
import json
import logging
import os
import tempfile
import uuid
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple
from notekeeper.core.errors import TransactionError
from notekeeper.models import Notebook, Note, NotebookUpdate, NoteUpdate, utc_now, next_stamp
from .base import StorageBackend, validate_notebook_name, validate_note_title, validate_note_update

logger = logging.getLogger(__name__)

IndexKey = Tuple[datetime, str]


class SortedIndex:
    """Ordered (timestamp, id) keys supporting reverse range walks."""

    def __init__(self):
        self._keys: List[IndexKey] = []

    def add(self, key: IndexKey) -> None:
        bisect.insort(self._keys, key)

    def remove(self, key: IndexKey) -> None:
        i = bisect.bisect_left(self._keys, key)
        if i < len(self._keys) and self._keys[i] == key:
            del self._keys[i]

    def descending(self) -> Iterator[str]:
        for _, record_id in reversed(self._keys):
            yield record_id

    def __len__(self) -> int:
        return len(self._keys)


class LocalStorage(StorageBackend):
    """Embedded document store used when no cloud credentials are configured"""

    kind = "local"

    def __init__(self, snapshot_path: Optional[str] = None):
        self.snapshot_path = Path(snapshot_path) if snapshot_path else None
        self._notebooks: Dict[str, Notebook] = {}
        self._notes: Dict[str, Note] = {}

        if self.snapshot_path and self.snapshot_path.exists():
            self._load_snapshot()
        self._rebuild_indexes()

    # ==================== Indexes ====================

    def _rebuild_indexes(self) -> None:
        self._notebooks_by_created = SortedIndex()
        self._notebooks_by_updated = SortedIndex()
        self._notes_by_created = SortedIndex()
        self._notes_by_updated = SortedIndex()
        self._notes_by_notebook: Dict[str, SortedIndex] = {}

        for notebook in self._notebooks.values():
            self._index_notebook(notebook)
        for note in self._notes.values():
            self._index_note(note)

    def _index_notebook(self, notebook: Notebook) -> None:
        self._notebooks_by_created.add((notebook.created_at, notebook.id))
        self._notebooks_by_updated.add((notebook.updated_at, notebook.id))

    def _unindex_notebook(self, notebook: Notebook) -> None:
        self._notebooks_by_created.remove((notebook.created_at, notebook.id))
        self._notebooks_by_updated.remove((notebook.updated_at, notebook.id))

    def _index_note(self, note: Note) -> None:
        self._notes_by_created.add((note.created_at, note.id))
        self._notes_by_updated.add((note.updated_at, note.id))
        self._notes_by_notebook.setdefault(note.notebook_id, SortedIndex()).add((note.updated_at, note.id))

    def _unindex_note(self, note: Note) -> None:
        self._notes_by_created.remove((note.created_at, note.id))
        self._notes_by_updated.remove((note.updated_at, note.id))
        by_notebook = self._notes_by_notebook.get(note.notebook_id)
        if by_notebook is not None:
            by_notebook.remove((note.updated_at, note.id))
            if not by_notebook:
                del self._notes_by_notebook[note.notebook_id]

    # ==================== Units of work ====================

    @contextmanager
    def _unit_of_work(self):
        """Apply a group of writes all-or-nothing, then persist the snapshot."""
        notebooks, notes = dict(self._notebooks), dict(self._notes)
        try:
            yield
            self._save_snapshot()
        except Exception:
            self._notebooks, self._notes = notebooks, notes
            self._rebuild_indexes()
            raise

    def _put_notebook(self, notebook: Notebook) -> None:
        previous = self._notebooks.get(notebook.id)
        if previous is not None:
            self._unindex_notebook(previous)
        self._notebooks[notebook.id] = notebook
        self._index_notebook(notebook)

    def _put_note(self, note: Note) -> None:
        previous = self._notes.get(note.id)
        if previous is not None:
            self._unindex_note(previous)
        self._notes[note.id] = note
        self._index_note(note)

    def _delete_notes_of(self, notebook_id: str) -> int:
        index = self._notes_by_notebook.get(notebook_id)
        note_ids = list(index.descending()) if index else []
        for note_id in note_ids:
            self._unindex_note(self._notes.pop(note_id))
        return len(note_ids)

    def _delete_notebook_record(self, notebook_id: str) -> None:
        notebook = self._notebooks.pop(notebook_id, None)
        if notebook is not None:
            self._unindex_notebook(notebook)

    # ==================== Notebook Operations ====================

    async def create_notebook(self, name: str) -> Notebook:
        validate_notebook_name(name)
        now = utc_now()
        notebook = Notebook(id=str(uuid.uuid4()), name=name, created_at=now, updated_at=now)
        with self._unit_of_work():
            self._put_notebook(notebook)
        return notebook

    async def list_notebooks(self) -> List[Notebook]:
        return [self._notebooks[i] for i in self._notebooks_by_updated.descending()]

    async def get_notebook(self, notebook_id: str) -> Optional[Notebook]:
        return self._notebooks.get(notebook_id)

    async def update_notebook(self, notebook_id: str, update: NotebookUpdate) -> None:
        fields = update.fields()
        if "name" in fields:
            validate_notebook_name(fields["name"])
        notebook = self._notebooks.get(notebook_id)
        if notebook is None:
            return
        with self._unit_of_work():
            self._put_notebook(Notebook(
                id=notebook.id,
                name=fields.get("name", notebook.name),
                created_at=notebook.created_at,
                updated_at=next_stamp(notebook.updated_at),
            ))

    async def delete_notebook(self, notebook_id: str) -> None:
        try:
            with self._unit_of_work():
                removed = self._delete_notes_of(notebook_id)
                self._delete_notebook_record(notebook_id)
        except Exception as e:
            logger.error("Cascade delete of notebook %s rolled back: %s", notebook_id, e)
            raise TransactionError(f"Failed to delete notebook {notebook_id}: {e}") from e
        logger.debug("Deleted notebook %s with %d note(s)", notebook_id, removed)

    # ==================== Note Operations ====================

    async def create_note(self, notebook_id: str, title: str, content: Optional[str] = None) -> Note:
        validate_note_title(title)
        now = utc_now()
        note = Note(
            id=str(uuid.uuid4()),
            notebook_id=notebook_id,
            title=title,
            content=content or "",
            created_at=now,
            updated_at=now,
        )
        with self._unit_of_work():
            self._put_note(note)
        return note

    async def list_notes_by_notebook(self, notebook_id: str) -> List[Note]:
        index = self._notes_by_notebook.get(notebook_id)
        if index is None:
            return []
        return [self._notes[i] for i in index.descending()]

    async def get_note(self, note_id: str) -> Optional[Note]:
        return self._notes.get(note_id)

    async def update_note(self, note_id: str, update: NoteUpdate) -> None:
        validate_note_update(update)
        note = self._notes.get(note_id)
        if note is None:
            return
        with self._unit_of_work():
            self._put_note(note.merged(update.fields(), next_stamp(note.updated_at)))

    async def delete_note(self, note_id: str) -> None:
        if note_id not in self._notes:
            return
        with self._unit_of_work():
            self._unindex_note(self._notes.pop(note_id))

    async def search_notes(self, query: str) -> List[Note]:
        if not query:
            return []
        needle = query.casefold()
        matches = [
            note for note in self._notes.values()
            if needle in note.title.casefold() or needle in note.content.casefold()
        ]
        return sorted(matches, key=lambda note: note.updated_at, reverse=True)

    async def get_storage_path(self) -> Optional[str]:
        return str(self.snapshot_path) if self.snapshot_path else None

    # ==================== Snapshot ====================

    def _save_snapshot(self) -> None:
        if self.snapshot_path is None:
            return

        data = {
            "notebooks": [
                {
                    "id": nb.id,
                    "name": nb.name,
                    "created_at": nb.created_at.isoformat(),
                    "updated_at": nb.updated_at.isoformat(),
                }
                for nb in self._notebooks.values()
            ],
            "notes": [
                {
                    "id": note.id,
                    "notebook_id": note.notebook_id,
                    "title": note.title,
                    "content": note.content,
                    "created_at": note.created_at.isoformat(),
                    "updated_at": note.updated_at.isoformat(),
                }
                for note in self._notes.values()
            ],
        }

        target_dir = self.snapshot_path.parent
        target_dir.mkdir(parents=True, exist_ok=True)

        # Write to temporary file first (atomic write)
        with tempfile.NamedTemporaryFile(
            mode='w',
            dir=target_dir,
            delete=False,
            suffix='.tmp',
            prefix=f'{self.snapshot_path.stem}_'
        ) as f:
            json.dump(data, f, indent=2)
            temp_path = f.name

        os.replace(temp_path, self.snapshot_path)

    def _load_snapshot(self) -> None:
        with open(self.snapshot_path, 'r') as f:
            data = json.load(f)

        self._notebooks = {
            nb["id"]: Notebook(
                id=nb["id"],
                name=nb["name"],
                created_at=datetime.fromisoformat(nb["created_at"]),
                updated_at=datetime.fromisoformat(nb["updated_at"]),
            )
            for nb in data.get("notebooks", [])
        }
        self._notes = {
            note["id"]: Note(
                id=note["id"],
                notebook_id=note["notebook_id"],
                title=note["title"],
                content=note.get("content", ""),
                created_at=datetime.fromisoformat(note["created_at"]),
                updated_at=datetime.fromisoformat(note["updated_at"]),
            )
            for note in data.get("notes", [])
        }
        logger.info("Loaded %d notebook(s) and %d note(s) from %s",
                    len(self._notebooks), len(self._notes), self.snapshot_path)
