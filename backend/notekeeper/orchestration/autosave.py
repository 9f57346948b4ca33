"""Debounced autosave for the note being edited."""
import asyncio
import logging
from typing import Dict, Optional, Set, Tuple
from notekeeper.core import settings
from notekeeper.models import Note, NoteUpdate, NOTE_FIELDS
from notekeeper.state import AppState
from notekeeper.storage import StorageBackend

logger = logging.getLogger(__name__)

TimerKey = Tuple[str, str]  # (note_id, field)


class AutosaveCoordinator:
    """
    Coalesces field edits on the active note into partial writes:
    - One idle timer per (note, field); every edit restarts it
    - When a timer fires: write that field, then reload the notebook's notes
    - The ``saving`` flag stays up for ``indicator_min`` seconds after a write

    Timers for a note are cancelled when it stops being the active note,
    when it is deleted, and on ``close()``.
    """

    def __init__(
        self,
        storage: StorageBackend,
        state: AppState,
        delay: Optional[float] = None,
        indicator_min: Optional[float] = None,
    ):
        self.storage = storage
        self.state = state
        self.delay = settings.AUTOSAVE_DELAY if delay is None else delay
        self.indicator_min = settings.SAVING_INDICATOR_MIN if indicator_min is None else indicator_min

        self.note_id: Optional[str] = None
        self.notebook_id: Optional[str] = None
        self.values: Dict[str, str] = {}

        self.saving = False
        self._active_saves = 0
        self._hide_task: Optional[asyncio.Task] = None
        self._timers: Dict[TimerKey, asyncio.Task] = {}
        self._in_flight: Set[asyncio.Task] = set()

    # ==================== Editing surface ====================

    def attach(self, note: Note) -> None:
        """Start editing ``note``, dropping timers left by the previous one."""
        if note.id == self.note_id:
            # Already being edited; its unsaved values are newer than the row
            self.notebook_id = note.notebook_id
            return
        if self.note_id is not None:
            self.cancel_note(self.note_id)
        self.note_id = note.id
        self.notebook_id = note.notebook_id
        self.values = {"title": note.title, "content": note.content}

    def detach(self) -> None:
        """The editing surface went away; nothing may be written for it later."""
        if self.note_id is not None:
            self.cancel_note(self.note_id)
        self.note_id = None
        self.notebook_id = None
        self.values = {}

    def on_selection_changed(self, previous_note_id: Optional[str], new_note_id: Optional[str]) -> None:
        if previous_note_id is not None and previous_note_id == self.note_id:
            self.detach()

    def edit(self, field: str, value: str) -> None:
        """Record an edit and restart that field's idle timer."""
        if field not in NOTE_FIELDS:
            raise ValueError(f"Unknown note field: {field}")
        if self.note_id is None:
            return

        self.values[field] = value
        self.state.update_note_in_cache(self.notebook_id, self.note_id, {field: value})

        key = (self.note_id, field)
        timer = self._timers.pop(key, None)
        if timer is not None:
            timer.cancel()
        self._timers[key] = asyncio.create_task(
            self._save_after_idle(self.note_id, self.notebook_id, field, value, self.state.write_seq)
        )

    def edit_title(self, title: str) -> None:
        self.edit("title", title)

    def edit_content(self, content: str) -> None:
        self.edit("content", content)

    # ==================== Saving ====================

    def pending_fields(self, note_id: str) -> Set[str]:
        return {field for (timer_note, field) in self._timers if timer_note == note_id}

    async def _save_after_idle(self, note_id: str, notebook_id: str, field: str, value: str, seq: int):
        await asyncio.sleep(self.delay)

        # Past this point the write belongs to note_id regardless of navigation
        self._timers.pop((note_id, field), None)
        task = asyncio.current_task()
        self._in_flight.add(task)
        try:
            await self._persist(note_id, notebook_id, NoteUpdate.from_fields({field: value}), seq)
        finally:
            self._in_flight.discard(task)

    async def save_now(self) -> bool:
        """Manual save: flush both fields of the active note in one write."""
        if self.note_id is None:
            return False

        for field in NOTE_FIELDS:
            timer = self._timers.pop((self.note_id, field), None)
            if timer is not None:
                timer.cancel()

        update = NoteUpdate(title=self.values.get("title"), content=self.values.get("content"))
        saved = await self._persist(self.note_id, self.notebook_id, update, self.state.write_seq)
        if saved:
            self.state.push_notice("success", "Note saved")
        return saved

    async def _persist(self, note_id: str, notebook_id: str, update: NoteUpdate, seq: int) -> bool:
        self._show_indicator()
        saved = False
        try:
            await self.storage.update_note(note_id, update)
            self.state.settle_fields(note_id, update.fields(), seq)
            await self.state.reload_notes(self.storage, notebook_id)
            saved = True
        except Exception as e:
            logger.error("Error saving note %s (%s): %s", note_id, ", ".join(update.fields()), e)
            self.state.push_notice("error", f"Failed to save note: {e}")
        finally:
            self._hide_indicator(immediately=not saved)
        return saved

    # ==================== Saving indicator ====================

    def _show_indicator(self) -> None:
        self._active_saves += 1
        self.saving = True
        if self._hide_task is not None:
            self._hide_task.cancel()
            self._hide_task = None

    def _hide_indicator(self, immediately: bool = False) -> None:
        self._active_saves -= 1
        if self._active_saves > 0:
            return
        if immediately:
            self.saving = False
            return
        self._hide_task = asyncio.create_task(self._hide_after(self.indicator_min))

    async def _hide_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        if self._active_saves == 0:
            self.saving = False

    # ==================== Teardown ====================

    def cancel_note(self, note_id: str) -> int:
        """Cancel every pending timer for ``note_id``; returns how many."""
        keys = [key for key in self._timers if key[0] == note_id]
        for key in keys:
            self._timers.pop(key).cancel()
        self.state.discard_fields(note_id, [field for _, field in keys])
        if keys:
            logger.debug("Cancelled %d pending save(s) for note %s", len(keys), note_id)
        return len(keys)

    async def close(self) -> None:
        """Cancel all timers and wait for writes already issued."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()

        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)

        if self._hide_task is not None:
            self._hide_task.cancel()
            self._hide_task = None
        self.saving = False
        self.note_id = None
        self.notebook_id = None
        self.values = {}
