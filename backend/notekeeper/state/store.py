"""
Client-side state: active selections and the per-notebook note cache.

Optimistic edits are tracked per (note, field) with a write sequence number.
A field stays local until its write to storage has settled; a reload that
started before the write settled cannot revert it either.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Set
from notekeeper.models import Notebook, Note, NOTE_FIELDS, utc_now

logger = logging.getLogger(__name__)

SelectionListener = Callable[[Optional[str], Optional[str]], None]


@dataclass
class PendingField:
    """A locally edited field value and when its write to storage settled."""
    seq: int
    value: str
    settled: Optional[int] = None


@dataclass
class Notice:
    """A message for the UI-facing layer to show once."""
    level: str  # "info" | "success" | "error"
    message: str


class AppState:
    """Process-wide cache owned by the application context."""

    def __init__(self):
        self.active_notebook_id: Optional[str] = None
        self.active_note_id: Optional[str] = None
        self.notebooks: List[Notebook] = []
        self.notes_by_notebook: Dict[str, List[Note]] = {}
        self.refresh_counter = 0

        self._write_seq = 0
        self._optimistic: Dict[str, Dict[str, PendingField]] = {}  # note_id → field → pending
        self._listeners: List[SelectionListener] = []
        self._notices: List[Notice] = []

    # ==================== Selection ====================

    def add_selection_listener(self, listener: SelectionListener) -> None:
        """Register ``listener(previous_note_id, new_note_id)``."""
        self._listeners.append(listener)

    def set_active_notebook(self, notebook_id: Optional[str]) -> None:
        """Select a notebook; the active note is always cleared."""
        previous_note_id = self.active_note_id
        self.active_notebook_id = notebook_id
        self.active_note_id = None
        if previous_note_id is not None:
            self._notify(previous_note_id, None)

    def set_active_note(self, note_id: Optional[str]) -> None:
        previous_note_id = self.active_note_id
        self.active_note_id = note_id
        if previous_note_id != note_id:
            self._notify(previous_note_id, note_id)

    def _notify(self, previous_note_id: Optional[str], new_note_id: Optional[str]) -> None:
        for listener in self._listeners:
            listener(previous_note_id, new_note_id)

    def bump_refresh(self) -> int:
        self.refresh_counter += 1
        return self.refresh_counter

    # ==================== Note cache ====================

    def get_notes(self, notebook_id: str) -> List[Note]:
        return list(self.notes_by_notebook.get(notebook_id, []))

    def find_note(self, note_id: str) -> Optional[Note]:
        for notes in self.notes_by_notebook.values():
            for note in notes:
                if note.id == note_id:
                    return note
        return None

    def update_note_in_cache(self, notebook_id: str, note_id: str, fields: Dict[str, str]) -> Optional[Note]:
        """
        Optimistically merge ``fields`` into the cached note.

        The note is stamped with a local updated_at and moved to the front
        of its notebook's list. This hides latency only; the caller must
        still write to storage and then call ``settle_fields``.
        """
        fields = {key: value for key, value in fields.items() if key in NOTE_FIELDS}
        self._write_seq += 1
        pending = self._optimistic.setdefault(note_id, {})
        for field, value in fields.items():
            pending[field] = PendingField(seq=self._write_seq, value=value)

        notes = self.notes_by_notebook.get(notebook_id)
        if notes is None:
            return None
        for i, note in enumerate(notes):
            if note.id == note_id:
                updated = note.merged(fields, utc_now())
                notes.pop(i)
                notes.insert(0, updated)
                return updated
        return None

    @property
    def write_seq(self) -> int:
        """Sequence number of the most recent optimistic edit."""
        return self._write_seq

    def settle_fields(self, note_id: str, fields: Iterable[str], seq: int) -> None:
        """
        Mark ``fields`` of ``note_id`` as written to storage.

        ``seq`` is the write sequence the written values were taken at; a
        field edited again after that stays unsettled.
        """
        pending = self._optimistic.get(note_id)
        if not pending:
            return
        for field in fields:
            entry = pending.get(field)
            if entry is not None and entry.seq <= seq and entry.settled is None:
                self._write_seq += 1
                entry.settled = self._write_seq

    def discard_fields(self, note_id: str, fields: Iterable[str]) -> None:
        """Forget local edits that will never be written; the next reload shows storage."""
        pending = self._optimistic.get(note_id)
        if not pending:
            return
        for field in fields:
            pending.pop(field, None)
        if not pending:
            del self._optimistic[note_id]

    def pending_fields(self, note_id: str) -> Set[str]:
        """Locally edited fields whose write has not settled yet."""
        pending = self._optimistic.get(note_id, {})
        return {field for field, entry in pending.items() if entry.settled is None}

    def begin_reload(self) -> int:
        """Token identifying the cache writes a reload starting now can see."""
        return self._write_seq

    def apply_notes(self, notebook_id: str, notes: List[Note], token: int) -> List[Note]:
        """Replace a notebook's cached notes with an authoritative read."""
        cached = {note.id: note for note in self.notes_by_notebook.get(notebook_id, [])}
        merged: List[Note] = []

        for note in notes:
            pending = self._optimistic.get(note.id)
            if not pending:
                merged.append(note)
                continue

            local_fields = {}
            for field, entry in list(pending.items()):
                if entry.settled is not None and entry.settled <= token:
                    # Written before this read started; storage has it
                    del pending[field]
                else:
                    local_fields[field] = entry.value
            if not pending:
                del self._optimistic[note.id]

            if local_fields:
                local = cached.get(note.id)
                stamp = max(note.updated_at, local.updated_at) if local else note.updated_at
                merged.append(note.merged(local_fields, stamp))
            else:
                merged.append(note)

        # Notes that left this notebook keep no local state behind
        returned = {note.id for note in notes}
        for note_id in cached.keys() - returned:
            self._optimistic.pop(note_id, None)

        merged.sort(key=lambda note: note.updated_at, reverse=True)
        self.notes_by_notebook[notebook_id] = merged
        return merged

    async def reload_notes(self, storage, notebook_id: str) -> List[Note]:
        token = self.begin_reload()
        notes = await storage.list_notes_by_notebook(notebook_id)
        return self.apply_notes(notebook_id, notes, token)

    async def reload_notebooks(self, storage) -> List[Notebook]:
        self.notebooks = await storage.list_notebooks()
        return self.notebooks

    def remove_note(self, note_id: str) -> None:
        self._optimistic.pop(note_id, None)
        for notebook_id, notes in self.notes_by_notebook.items():
            self.notes_by_notebook[notebook_id] = [note for note in notes if note.id != note_id]
        if self.active_note_id == note_id:
            self.set_active_note(None)

    def remove_notebook(self, notebook_id: str) -> None:
        for note in self.notes_by_notebook.pop(notebook_id, []):
            self._optimistic.pop(note.id, None)
        self.notebooks = [nb for nb in self.notebooks if nb.id != notebook_id]
        if self.active_notebook_id == notebook_id:
            self.set_active_notebook(None)

    # ==================== Notices ====================

    def push_notice(self, level: str, message: str) -> None:
        logger.debug("Notice (%s): %s", level, message)
        self._notices.append(Notice(level=level, message=message))

    def drain_notices(self) -> List[Notice]:
        notices, self._notices = self._notices, []
        return notices

    def clear(self) -> None:
        self.set_active_notebook(None)
        self.notebooks = []
        self.notes_by_notebook.clear()
        self._optimistic.clear()
