"""Tests for the application context wiring."""

import asyncio
import pytest
from notekeeper.context import AppContext
from notekeeper.models import NoteUpdate, NotebookUpdate
from notekeeper.storage import LOCAL_ONLY_NOTICE, BridgeStorage, LocalStorage
from tests.test_utils import LoopbackBridge, make_settings


def fast_settings():
    return make_settings(AUTOSAVE_DELAY=0.05, SAVING_INDICATOR_MIN=0.01, SEARCH_DELAY=0.02)


@pytest.mark.asyncio
async def test_local_only_notice_on_start():
    async with AppContext(fast_settings()) as ctx:
        assert ctx.local_only
        assert isinstance(ctx.storage, LocalStorage)
        notices = ctx.state.drain_notices()
        assert [n.message for n in notices] == [LOCAL_ONLY_NOTICE]


@pytest.mark.asyncio
async def test_desktop_backend_is_not_local_only():
    async with AppContext(fast_settings(), storage=BridgeStorage(LoopbackBridge())) as ctx:
        assert not ctx.local_only
        assert ctx.state.drain_notices() == []


@pytest.mark.asyncio
async def test_create_flow_refreshes_cache():
    async with AppContext(fast_settings()) as ctx:
        notebook = await ctx.create_notebook("Work")
        assert [nb.id for nb in ctx.state.notebooks] == [notebook.id]

        note = await ctx.create_note(notebook.id)
        assert note.title == "Untitled Note"
        assert [n.id for n in ctx.state.get_notes(notebook.id)] == [note.id]
        assert ctx.state.refresh_counter == 2


@pytest.mark.asyncio
async def test_open_note_attaches_autosave():
    async with AppContext(fast_settings()) as ctx:
        notebook = await ctx.create_notebook("Work")
        note = await ctx.create_note(notebook.id, "T", "C")

        opened = await ctx.open_note(note.id)
        assert opened.id == note.id
        assert ctx.state.active_notebook_id == notebook.id
        assert ctx.state.active_note_id == note.id

        ctx.autosave.edit_content("typed")
        await asyncio.sleep(0.15)
        assert (await ctx.storage.get_note(note.id)).content == "typed"

        assert await ctx.open_note("missing") is None


@pytest.mark.asyncio
async def test_delete_notebook_cancels_pending_saves():
    async with AppContext(fast_settings()) as ctx:
        notebook = await ctx.create_notebook("Work")
        note = await ctx.create_note(notebook.id, "T", "C")
        await ctx.open_notebook(notebook.id)
        await ctx.open_note(note.id)

        ctx.autosave.edit_content("lost")
        await ctx.delete_notebook(notebook.id)
        await asyncio.sleep(0.15)

        assert ctx.state.notebooks == []
        assert ctx.state.active_notebook_id is None
        assert await ctx.storage.get_note(note.id) is None
        assert all(n.level != "error" for n in ctx.state.drain_notices())


@pytest.mark.asyncio
async def test_move_note_refreshes_both_notebooks():
    async with AppContext(fast_settings()) as ctx:
        source = await ctx.create_notebook("Source")
        target = await ctx.create_notebook("Target")
        note = await ctx.create_note(source.id, "Moving")

        await ctx.update_note(note.id, NoteUpdate(notebook_id=target.id))

        assert ctx.state.get_notes(source.id) == []
        assert [n.id for n in ctx.state.get_notes(target.id)] == [note.id]


@pytest.mark.asyncio
async def test_rename_notebook_updates_cache():
    async with AppContext(fast_settings()) as ctx:
        notebook = await ctx.create_notebook("Work")

        await ctx.update_notebook(notebook.id, NotebookUpdate(name="Job"))

        assert [nb.name for nb in ctx.state.notebooks] == ["Job"]


@pytest.mark.asyncio
async def test_delete_active_note_detaches_editor():
    async with AppContext(fast_settings()) as ctx:
        notebook = await ctx.create_notebook("Work")
        note = await ctx.create_note(notebook.id)
        await ctx.open_note(note.id)

        await ctx.delete_note(note.id)

        assert ctx.state.active_note_id is None
        assert ctx.autosave.note_id is None
        assert ctx.state.get_notes(notebook.id) == []


@pytest.mark.asyncio
async def test_reopening_active_note_keeps_unsaved_edit():
    async with AppContext(fast_settings()) as ctx:
        notebook = await ctx.create_notebook("Work")
        note = await ctx.create_note(notebook.id, "T", "C")
        await ctx.open_note(note.id)

        ctx.autosave.edit_title("typed")
        await ctx.open_note(note.id)
        assert await ctx.autosave.save_now()

        assert (await ctx.storage.get_note(note.id)).title == "typed"
