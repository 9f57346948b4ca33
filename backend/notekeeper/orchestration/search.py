"""Debounced note search over the active backend."""
import asyncio
import logging
from typing import List, Optional
from notekeeper.core import settings
from notekeeper.models import Note
from notekeeper.state import AppState
from notekeeper.storage import StorageBackend

logger = logging.getLogger(__name__)


class SearchService:
    """Search surface state: query, results, and the pending dispatch."""

    def __init__(self, storage: StorageBackend, state: AppState, delay: Optional[float] = None):
        self.storage = storage
        self.state = state
        self.delay = settings.SEARCH_DELAY if delay is None else delay

        self.is_open = False
        self.query = ""
        self.results: List[Note] = []
        self.loading = False
        self._pending: Optional[asyncio.Task] = None

    def open(self) -> None:
        self.is_open = True

    def close(self) -> None:
        self.is_open = False
        self.set_query("")

    def set_query(self, query: str) -> None:
        """Update the query; dispatch once it has been idle for ``delay``."""
        self.query = query
        self._cancel_pending()

        if not query.strip():
            self.results = []
            self.loading = False
            return

        self._pending = asyncio.create_task(self._search_after_idle(query))

    async def _search_after_idle(self, query: str) -> None:
        await asyncio.sleep(self.delay)
        self.loading = True
        try:
            self.results = await self.storage.search_notes(query)
        except Exception as e:
            logger.error("Search error for %r: %s", query, e)
            self.state.push_notice("error", f"Search failed: {e}")
            self.results = []
        finally:
            self.loading = False

    async def settle(self) -> List[Note]:
        """Wait for the pending dispatch, if any, and return the results."""
        if self._pending is not None:
            await asyncio.gather(self._pending, return_exceptions=True)
        return self.results

    async def search(self, query: str) -> List[Note]:
        """Undebounced dispatch."""
        if not query.strip():
            return []
        return await self.storage.search_notes(query)

    def select_result(self, note: Note) -> None:
        """Jump to a result: select its notebook and note, close the surface."""
        self.state.set_active_notebook(note.notebook_id)
        self.state.set_active_note(note.id)
        self.close()

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None
