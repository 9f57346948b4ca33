from fastapi import APIRouter, HTTPException, Depends
from notekeeper.context import AppContext
from notekeeper.models import NotebookUpdate
from notekeeper.schemas import (
    CreateNotebookRequest, UpdateNotebookRequest,
    NotebookResponse, ListNotebooksResponse,
    CreateNoteRequest, NoteResponse, ListNotesResponse
)
from notekeeper.api.deps import get_context

router = APIRouter()


async def _require_notebook(context: AppContext, notebook_id: str):
    notebook = await context.storage.get_notebook(notebook_id)
    if notebook is None:
        raise HTTPException(
            status_code=404,
            detail=f"Notebook '{notebook_id}' not found. It may have been deleted."
        )
    return notebook


@router.post("/", response_model=NotebookResponse)
async def create_notebook(
    request_body: CreateNotebookRequest,
    context: AppContext = Depends(get_context)
):
    """Create a new, empty notebook"""
    notebook = await context.create_notebook(request_body.name)
    return NotebookResponse.from_model(notebook)


@router.get("/", response_model=ListNotebooksResponse)
async def list_notebooks(context: AppContext = Depends(get_context)):
    """List all notebooks, most recently updated first"""
    notebooks = await context.storage.list_notebooks()
    return ListNotebooksResponse(notebooks=[NotebookResponse.from_model(nb) for nb in notebooks])


@router.get("/{notebook_id}", response_model=NotebookResponse)
async def get_notebook(notebook_id: str, context: AppContext = Depends(get_context)):
    """Get a specific notebook"""
    notebook = await _require_notebook(context, notebook_id)
    return NotebookResponse.from_model(notebook)


@router.patch("/{notebook_id}")
async def update_notebook(
    notebook_id: str,
    request_body: UpdateNotebookRequest,
    context: AppContext = Depends(get_context)
):
    """Rename a notebook"""
    await _require_notebook(context, notebook_id)
    await context.update_notebook(notebook_id, NotebookUpdate(name=request_body.name))
    return {"status": "ok"}


@router.delete("/{notebook_id}")
async def delete_notebook(notebook_id: str, context: AppContext = Depends(get_context)):
    """Delete a notebook and every note in it"""
    await context.delete_notebook(notebook_id)
    return {"status": "ok"}


@router.get("/{notebook_id}/notes", response_model=ListNotesResponse)
async def list_notes(notebook_id: str, context: AppContext = Depends(get_context)):
    """List a notebook's notes, most recently updated first"""
    notes = await context.storage.list_notes_by_notebook(notebook_id)
    return ListNotesResponse(notes=[NoteResponse.from_model(note) for note in notes])


@router.post("/{notebook_id}/notes", response_model=NoteResponse)
async def create_note(
    notebook_id: str,
    request_body: CreateNoteRequest,
    context: AppContext = Depends(get_context)
):
    """Create a note in a notebook"""
    await _require_notebook(context, notebook_id)
    note = await context.create_note(notebook_id, request_body.title, request_body.content)
    return NoteResponse.from_model(note)
