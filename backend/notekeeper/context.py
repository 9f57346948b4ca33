"""Application context: the one place the storage backend is chosen and owned."""
import logging
from typing import List, Optional
from notekeeper.core import Settings, settings as default_settings
from notekeeper.models import Notebook, Note, NotebookUpdate, NoteUpdate, DEFAULT_NOTE_TITLE
from notekeeper.orchestration import AutosaveCoordinator, SearchService
from notekeeper.state import AppState
from notekeeper.storage import StorageBackend, create_storage, is_local_only, LOCAL_ONLY_NOTICE

logger = logging.getLogger(__name__)


class AppContext:
    """
    Long-lived owner of the storage backend, the client cache, the autosave
    coordinator and the search service. Created at startup, closed at exit.
    """

    def __init__(self, settings: Optional[Settings] = None, storage: Optional[StorageBackend] = None):
        self.settings = settings or default_settings
        self.storage = storage
        self.state = AppState()
        self.autosave: Optional[AutosaveCoordinator] = None
        self.search: Optional[SearchService] = None

    async def start(self) -> "AppContext":
        if self.storage is None:
            self.storage = create_storage(self.settings)

        self.autosave = AutosaveCoordinator(
            self.storage,
            self.state,
            delay=self.settings.AUTOSAVE_DELAY,
            indicator_min=self.settings.SAVING_INDICATOR_MIN,
        )
        self.search = SearchService(self.storage, self.state, delay=self.settings.SEARCH_DELAY)
        self.state.add_selection_listener(self.autosave.on_selection_changed)

        if self.local_only:
            logger.info(LOCAL_ONLY_NOTICE)
            self.state.push_notice("info", LOCAL_ONLY_NOTICE)

        await self.state.reload_notebooks(self.storage)
        return self

    async def close(self) -> None:
        if self.search is not None:
            self.search.close()
        if self.autosave is not None:
            await self.autosave.close()
        if self.storage is not None:
            await self.storage.close()
        self.state.clear()

    async def __aenter__(self) -> "AppContext":
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def local_only(self) -> bool:
        return self.storage is not None and is_local_only(self.storage)

    # ==================== Navigation ====================

    async def open_notebook(self, notebook_id: Optional[str]) -> List[Note]:
        self.state.set_active_notebook(notebook_id)
        if notebook_id is None:
            return []
        return await self.state.reload_notes(self.storage, notebook_id)

    async def open_note(self, note_id: str) -> Optional[Note]:
        note = await self.storage.get_note(note_id)
        if note is None:
            return None

        if self.state.active_notebook_id != note.notebook_id:
            await self.open_notebook(note.notebook_id)
        self.state.set_active_note(note.id)
        self.autosave.attach(note)
        return note

    def close_note(self) -> None:
        self.state.set_active_note(None)
        self.autosave.detach()

    # ==================== Writes ====================

    async def create_notebook(self, name: str) -> Notebook:
        notebook = await self.storage.create_notebook(name)
        await self.state.reload_notebooks(self.storage)
        self.state.bump_refresh()
        return notebook

    async def update_notebook(self, notebook_id: str, update: NotebookUpdate) -> None:
        await self.storage.update_notebook(notebook_id, update)
        await self.state.reload_notebooks(self.storage)

    async def delete_notebook(self, notebook_id: str) -> None:
        for note in self.state.get_notes(notebook_id):
            self.autosave.cancel_note(note.id)
        if self.autosave.notebook_id == notebook_id:
            self.autosave.detach()

        await self.storage.delete_notebook(notebook_id)
        self.state.remove_notebook(notebook_id)
        await self.state.reload_notebooks(self.storage)
        self.state.bump_refresh()

    async def create_note(self, notebook_id: str, title: str = DEFAULT_NOTE_TITLE,
                          content: Optional[str] = None) -> Note:
        note = await self.storage.create_note(notebook_id, title, content)
        await self.state.reload_notes(self.storage, notebook_id)
        self.state.bump_refresh()
        return note

    async def update_note(self, note_id: str, update: NoteUpdate) -> None:
        cached = self.state.find_note(note_id)
        await self.storage.update_note(note_id, update)

        notebook_ids = {nid for nid in (cached.notebook_id if cached else None, update.notebook_id) if nid}
        for notebook_id in notebook_ids:
            await self.state.reload_notes(self.storage, notebook_id)

    async def delete_note(self, note_id: str) -> None:
        self.autosave.cancel_note(note_id)
        if self.autosave.note_id == note_id:
            self.autosave.detach()

        await self.storage.delete_note(note_id)
        self.state.remove_note(note_id)
        self.state.bump_refresh()
