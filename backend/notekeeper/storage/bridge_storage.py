from datetime import datetime, timezone
from typing import List, Optional
from notekeeper.bridge.types import Channel, NotebookRecord, NoteRecord
from notekeeper.models import Notebook, Note, NotebookUpdate, NoteUpdate
from .base import StorageBackend, validate_notebook_name, validate_note_title, validate_note_update


def from_ms(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


def record_to_notebook(data: dict) -> Notebook:
    record = NotebookRecord(**data)
    return Notebook(
        id=record.id,
        name=record.name,
        created_at=from_ms(record.created_at),
        updated_at=from_ms(record.updated_at),
    )


def record_to_note(data: dict) -> Note:
    record = NoteRecord(**data)
    return Note(
        id=record.id,
        notebook_id=record.notebook_id,
        title=record.title,
        content=record.content,
        created_at=from_ms(record.created_at),
        updated_at=from_ms(record.updated_at),
    )


class BridgeStorage(StorageBackend):
    """Desktop storage: every call crosses the bridge to the host process.

    ``bridge`` is anything with ``async invoke(channel, **args)`` and
    ``async stop()``; in production a started ``BridgeManager``.
    """

    kind = "desktop"

    def __init__(self, bridge):
        self.bridge = bridge

    # ==================== Notebook Operations ====================

    async def create_notebook(self, name: str) -> Notebook:
        validate_notebook_name(name)
        return record_to_notebook(await self.bridge.invoke(Channel.CREATE_NOTEBOOK, name=name))

    async def list_notebooks(self) -> List[Notebook]:
        records = await self.bridge.invoke(Channel.GET_ALL_NOTEBOOKS)
        return [record_to_notebook(record) for record in records]

    async def get_notebook(self, notebook_id: str) -> Optional[Notebook]:
        record = await self.bridge.invoke(Channel.GET_NOTEBOOK, id=notebook_id)
        return record_to_notebook(record) if record else None

    async def update_notebook(self, notebook_id: str, update: NotebookUpdate) -> None:
        if update.name is not None:
            validate_notebook_name(update.name)
        await self.bridge.invoke(Channel.UPDATE_NOTEBOOK, id=notebook_id, **update.fields())

    async def delete_notebook(self, notebook_id: str) -> None:
        await self.bridge.invoke(Channel.DELETE_NOTEBOOK, id=notebook_id)

    # ==================== Note Operations ====================

    async def create_note(self, notebook_id: str, title: str, content: Optional[str] = None) -> Note:
        validate_note_title(title)
        record = await self.bridge.invoke(
            Channel.CREATE_NOTE, notebook_id=notebook_id, title=title, content=content
        )
        return record_to_note(record)

    async def list_notes_by_notebook(self, notebook_id: str) -> List[Note]:
        records = await self.bridge.invoke(Channel.GET_NOTES_BY_NOTEBOOK, notebook_id=notebook_id)
        return [record_to_note(record) for record in records]

    async def get_note(self, note_id: str) -> Optional[Note]:
        record = await self.bridge.invoke(Channel.GET_NOTE, id=note_id)
        return record_to_note(record) if record else None

    async def update_note(self, note_id: str, update: NoteUpdate) -> None:
        validate_note_update(update)
        await self.bridge.invoke(Channel.UPDATE_NOTE, id=note_id, **update.fields())

    async def delete_note(self, note_id: str) -> None:
        await self.bridge.invoke(Channel.DELETE_NOTE, id=note_id)

    async def search_notes(self, query: str) -> List[Note]:
        if not query:
            return []
        records = await self.bridge.invoke(Channel.SEARCH_NOTES, query=query)
        return [record_to_note(record) for record in records]

    async def get_storage_path(self) -> Optional[str]:
        return await self.bridge.invoke(Channel.GET_PATH)

    async def close(self) -> None:
        await self.bridge.stop()
