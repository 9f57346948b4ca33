from fastapi import APIRouter, HTTPException, Depends
from notekeeper.context import AppContext
from notekeeper.models import NoteUpdate
from notekeeper.schemas import UpdateNoteRequest, NoteResponse
from notekeeper.api.deps import get_context

router = APIRouter()


@router.get("/{note_id}", response_model=NoteResponse)
async def get_note(note_id: str, context: AppContext = Depends(get_context)):
    """Get a specific note"""
    note = await context.storage.get_note(note_id)
    if note is None:
        raise HTTPException(status_code=404, detail=f"Note '{note_id}' not found")
    return NoteResponse.from_model(note)


@router.patch("/{note_id}")
async def update_note(
    note_id: str,
    request_body: UpdateNoteRequest,
    context: AppContext = Depends(get_context)
):
    """Update only the fields present in the request body"""
    if await context.storage.get_note(note_id) is None:
        raise HTTPException(status_code=404, detail=f"Note '{note_id}' not found")
    if request_body.notebook_id is not None and await context.storage.get_notebook(request_body.notebook_id) is None:
        raise HTTPException(status_code=404, detail=f"Notebook '{request_body.notebook_id}' not found")

    await context.update_note(note_id, NoteUpdate(
        title=request_body.title,
        content=request_body.content,
        notebook_id=request_body.notebook_id,
    ))
    return {"status": "ok"}


@router.delete("/{note_id}")
async def delete_note(note_id: str, context: AppContext = Depends(get_context)):
    """Delete a note"""
    await context.delete_note(note_id)
    return {"status": "ok"}
