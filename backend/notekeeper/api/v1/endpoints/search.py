from fastapi import APIRouter, Depends, Query
from notekeeper.context import AppContext
from notekeeper.schemas import NoteResponse, ListNotesResponse
from notekeeper.api.deps import get_context

router = APIRouter()


@router.get("/search", response_model=ListNotesResponse)
async def search_notes(
    q: str = Query("", description="Matched against title and content, case-insensitively"),
    context: AppContext = Depends(get_context)
):
    """Search notes across all notebooks"""
    notes = await context.search.search(q)
    return ListNotesResponse(notes=[NoteResponse.from_model(note) for note in notes])
