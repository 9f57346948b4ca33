"""
Behaviour every storage backend must share.

Runs against the local store and the desktop bridge (in-process host,
in-memory SQLite). The cloud backend is covered with fakes in
test_cloud_storage.py.
"""

import asyncio
import pytest
from notekeeper.core.errors import InvalidInputError
from notekeeper.models import NotebookUpdate, NoteUpdate


@pytest.mark.asyncio
async def test_create_and_list_notebook(storage):
    notebook = await storage.create_notebook("Work")

    assert notebook.id
    assert notebook.name == "Work"
    assert notebook.created_at == notebook.updated_at

    notebooks = await storage.list_notebooks()
    assert [nb.id for nb in notebooks] == [notebook.id]
    assert notebooks[0].name == "Work"


@pytest.mark.asyncio
async def test_ids_are_unique(storage):
    first = await storage.create_notebook("Same")
    second = await storage.create_notebook("Same")
    assert first.id != second.id


@pytest.mark.asyncio
async def test_create_notebook_rejects_empty_name(storage):
    with pytest.raises(InvalidInputError):
        await storage.create_notebook("")
    with pytest.raises(InvalidInputError):
        await storage.create_notebook("   ")

    assert await storage.list_notebooks() == []


@pytest.mark.asyncio
async def test_missing_rows_are_none(storage):
    assert await storage.get_notebook("does-not-exist") is None
    assert await storage.get_note("does-not-exist") is None
    assert await storage.list_notes_by_notebook("does-not-exist") == []


@pytest.mark.asyncio
async def test_create_note_defaults_content(storage, notebook):
    note = await storage.create_note(notebook.id, "Untitled Note")

    assert note.notebook_id == notebook.id
    assert note.title == "Untitled Note"
    assert note.content == ""

    fetched = await storage.get_note(note.id)
    assert fetched is not None
    assert fetched.content == ""


@pytest.mark.asyncio
async def test_partial_update_leaves_other_fields(storage, notebook):
    """Updating only content keeps the title (and vice versa)."""
    note = await storage.create_note(notebook.id, "T", "C")

    await storage.update_note(note.id, NoteUpdate(content="C2"))
    updated = await storage.get_note(note.id)
    assert updated.title == "T"
    assert updated.content == "C2"
    assert updated.updated_at > note.updated_at

    await storage.update_note(note.id, NoteUpdate(title="T2"))
    updated_again = await storage.get_note(note.id)
    assert updated_again.title == "T2"
    assert updated_again.content == "C2"
    assert updated_again.updated_at > updated.updated_at
    assert updated_again.created_at == note.created_at


@pytest.mark.asyncio
async def test_empty_content_is_written(storage, notebook):
    """An empty string is a value, not "no change"."""
    note = await storage.create_note(notebook.id, "T", "something")

    await storage.update_note(note.id, NoteUpdate(content=""))

    assert (await storage.get_note(note.id)).content == ""


@pytest.mark.asyncio
async def test_update_notebook_name(storage, notebook):
    await storage.update_notebook(notebook.id, NotebookUpdate(name="Personal"))

    renamed = await storage.get_notebook(notebook.id)
    assert renamed.name == "Personal"
    assert renamed.updated_at > notebook.updated_at

    with pytest.raises(InvalidInputError):
        await storage.update_notebook(notebook.id, NotebookUpdate(name=""))
    assert (await storage.get_notebook(notebook.id)).name == "Personal"


@pytest.mark.asyncio
async def test_update_missing_rows_is_noop(storage):
    await storage.update_notebook("missing", NotebookUpdate(name="x"))
    await storage.update_note("missing", NoteUpdate(title="x"))
    await storage.delete_note("missing")
    await storage.delete_notebook("missing")

    assert await storage.list_notebooks() == []


@pytest.mark.asyncio
async def test_lists_are_most_recent_first(storage, notebook):
    older = await storage.create_note(notebook.id, "A")
    newer = await storage.create_note(notebook.id, "B")
    await asyncio.sleep(0.01)

    await storage.update_note(older.id, NoteUpdate(content="touched"))

    notes = await storage.list_notes_by_notebook(notebook.id)
    assert [n.id for n in notes] == [older.id, newer.id]
    assert notes[0].updated_at >= notes[1].updated_at

    other = await storage.create_notebook("Other")
    await asyncio.sleep(0.01)
    await storage.update_notebook(notebook.id, NotebookUpdate(name="Work 2"))
    assert [nb.id for nb in await storage.list_notebooks()] == [notebook.id, other.id]


@pytest.mark.asyncio
async def test_move_note_between_notebooks(storage, notebook):
    other = await storage.create_notebook("Other")
    note = await storage.create_note(notebook.id, "Moving", "body")

    await storage.update_note(note.id, NoteUpdate(notebook_id=other.id))

    assert await storage.list_notes_by_notebook(notebook.id) == []
    moved = await storage.list_notes_by_notebook(other.id)
    assert [n.id for n in moved] == [note.id]
    assert moved[0].title == "Moving"


@pytest.mark.asyncio
async def test_move_note_rejects_empty_notebook_id(storage, notebook):
    note = await storage.create_note(notebook.id, "Stay")

    with pytest.raises(InvalidInputError):
        await storage.update_note(note.id, NoteUpdate(notebook_id=" "))

    assert (await storage.get_note(note.id)).notebook_id == notebook.id


@pytest.mark.asyncio
async def test_delete_note(storage, notebook):
    keep = await storage.create_note(notebook.id, "Keep")
    drop = await storage.create_note(notebook.id, "Drop")

    await storage.delete_note(drop.id)

    assert await storage.get_note(drop.id) is None
    assert [n.id for n in await storage.list_notes_by_notebook(notebook.id)] == [keep.id]


@pytest.mark.asyncio
async def test_delete_notebook_cascades(storage):
    """Deleting a notebook removes exactly its notes."""
    work = await storage.create_notebook("Work")
    home = await storage.create_notebook("Home")
    work_notes = [await storage.create_note(work.id, f"W{i}") for i in range(3)]
    home_note = await storage.create_note(home.id, "H")

    await storage.delete_notebook(work.id)

    assert await storage.get_notebook(work.id) is None
    assert await storage.list_notes_by_notebook(work.id) == []
    for note in work_notes:
        assert await storage.get_note(note.id) is None

    assert await storage.get_note(home_note.id) is not None
    assert [nb.id for nb in await storage.list_notebooks()] == [home.id]


@pytest.mark.asyncio
async def test_search_is_case_insensitive_over_title_and_content(storage, notebook):
    by_title = await storage.create_note(notebook.id, "Grocery List", "eggs")
    by_content = await storage.create_note(notebook.id, "Errands", "buy GROCERIES")
    await storage.create_note(notebook.id, "Unrelated", "nothing here")

    results = await storage.search_notes("grocer")

    assert {n.id for n in results} == {by_title.id, by_content.id}

    accented = await storage.create_note(notebook.id, "École", "rentrée")
    assert [n.id for n in await storage.search_notes("école")] == [accented.id]
    assert [n.id for n in await storage.search_notes("RENTRÉE")] == [accented.id]


@pytest.mark.asyncio
async def test_search_spans_notebooks_most_recent_first(storage, notebook):
    other = await storage.create_notebook("Other")
    first = await storage.create_note(notebook.id, "alpha one")
    second = await storage.create_note(other.id, "alpha two")
    await asyncio.sleep(0.01)
    await storage.update_note(first.id, NoteUpdate(content="edited"))

    results = await storage.search_notes("ALPHA")

    assert [n.id for n in results] == [first.id, second.id]


@pytest.mark.asyncio
async def test_search_empty_query_returns_nothing(storage, notebook):
    await storage.create_note(notebook.id, "Anything", "at all")

    assert await storage.search_notes("") == []


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(storage, notebook):
    percent = await storage.create_note(notebook.id, "Discount 50% off")
    await storage.create_note(notebook.id, "Discount 50 dollars")
    underscore = await storage.create_note(notebook.id, "snake_case")
    await storage.create_note(notebook.id, "snakeXcase")

    assert [n.id for n in await storage.search_notes("50%")] == [percent.id]
    assert [n.id for n in await storage.search_notes("e_c")] == [underscore.id]


@pytest.mark.asyncio
async def test_default_image_upload_inlines_data_url(storage):
    url = await storage.upload_image(b"\x89PNG", "diagram.png")

    assert url.startswith("data:image/png;base64,")
    await storage.delete_image(url)


# ==================== End-to-end scenarios ====================


@pytest.mark.asyncio
async def test_new_note_lists_with_empty_content(storage):
    work = await storage.create_notebook("Work")
    await storage.create_note(work.id, "Untitled Note", "")

    [note] = await storage.list_notes_by_notebook(work.id)

    assert note.content == ""
    assert note.title == "Untitled Note"


@pytest.mark.asyncio
async def test_content_update_restamps(storage, notebook):
    note = await storage.create_note(notebook.id, "Untitled Note")

    await storage.update_note(note.id, NoteUpdate(content="<p>Hello</p>"))

    fetched = await storage.get_note(note.id)
    assert fetched.content == "<p>Hello</p>"
    assert fetched.updated_at > fetched.created_at


@pytest.mark.asyncio
async def test_deleted_notebook_disappears_with_notes(storage):
    notebook = await storage.create_notebook("Doomed")
    await storage.create_note(notebook.id, "one")
    await storage.create_note(notebook.id, "two")

    await storage.delete_notebook(notebook.id)

    assert notebook.id not in [nb.id for nb in await storage.list_notebooks()]
    assert await storage.list_notes_by_notebook(notebook.id) == []


@pytest.mark.asyncio
async def test_search_matches_raw_content(storage, notebook):
    note = await storage.create_note(notebook.id, "Greeting", "<p>Hello World</p>")

    assert note.id in [n.id for n in await storage.search_notes("hello")]
    assert await storage.search_notes("xyz") == []
