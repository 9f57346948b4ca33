"""Type definitions for the desktop bridge IPC."""
import uuid
from enum import Enum
from typing import Any, Literal
from pydantic import BaseModel, ConfigDict, Field
from notekeeper.core.errors import StorageError, InvalidInputError, TransactionError


class Channel(str, Enum):
    """The fixed set of calls the host process answers."""
    CREATE_NOTEBOOK = "db:createNotebook"
    GET_ALL_NOTEBOOKS = "db:getAllNotebooks"
    GET_NOTEBOOK = "db:getNotebook"
    UPDATE_NOTEBOOK = "db:updateNotebook"
    DELETE_NOTEBOOK = "db:deleteNotebook"
    CREATE_NOTE = "db:createNote"
    GET_NOTES_BY_NOTEBOOK = "db:getNotesByNotebook"
    GET_NOTE = "db:getNote"
    UPDATE_NOTE = "db:updateNote"
    DELETE_NOTE = "db:deleteNote"
    SEARCH_NOTES = "db:searchNotes"
    GET_PATH = "db:getPath"          # Diagnostic: database file location


class _Args(BaseModel):
    model_config = ConfigDict(extra="forbid")


class NoArgs(_Args):
    pass


class IdArgs(_Args):
    id: str


class CreateNotebookArgs(_Args):
    name: str


class UpdateNotebookArgs(_Args):
    id: str
    name: str | None = None


class CreateNoteArgs(_Args):
    notebook_id: str
    title: str
    content: str | None = None


class NotebookIdArgs(_Args):
    notebook_id: str


class UpdateNoteArgs(_Args):
    id: str
    title: str | None = None
    content: str | None = None
    notebook_id: str | None = None


class SearchArgs(_Args):
    query: str


CHANNEL_ARGS: dict[Channel, type[_Args]] = {
    Channel.CREATE_NOTEBOOK: CreateNotebookArgs,
    Channel.GET_ALL_NOTEBOOKS: NoArgs,
    Channel.GET_NOTEBOOK: IdArgs,
    Channel.UPDATE_NOTEBOOK: UpdateNotebookArgs,
    Channel.DELETE_NOTEBOOK: IdArgs,
    Channel.CREATE_NOTE: CreateNoteArgs,
    Channel.GET_NOTES_BY_NOTEBOOK: NotebookIdArgs,
    Channel.GET_NOTE: IdArgs,
    Channel.UPDATE_NOTE: UpdateNoteArgs,
    Channel.DELETE_NOTE: IdArgs,
    Channel.SEARCH_NOTES: SearchArgs,
    Channel.GET_PATH: NoArgs,
}


class NotebookRecord(BaseModel):
    """Notebook row as it crosses the bridge (epoch milliseconds)."""
    id: str
    name: str
    created_at: int
    updated_at: int


class NoteRecord(BaseModel):
    """Note row as it crosses the bridge (epoch milliseconds)."""
    id: str
    notebook_id: str
    title: str
    content: str
    created_at: int
    updated_at: int


class BridgeRequest(BaseModel):
    """A single named call from the client to the host."""
    type: Literal["call"] = "call"
    request_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    channel: Channel
    args: dict[str, Any] = Field(default_factory=dict)


class BridgeResponse(BaseModel):
    """Result of a call, matched to its request by request_id."""
    type: Literal["response"] = "response"
    request_id: str
    ok: bool
    result: Any = None
    error: str | None = None
    error_type: str | None = None


class ShutdownRequest(BaseModel):
    """Request to shut down the host process."""
    type: Literal["shutdown"] = "shutdown"


_ERROR_TYPES: dict[str, type[StorageError]] = {
    "InvalidInputError": InvalidInputError,
    "TransactionError": TransactionError,
}


def raise_for_response(response: BridgeResponse) -> Any:
    """Return the call result, or re-raise the host's failure on this side."""
    if response.ok:
        return response.result
    error_cls = _ERROR_TYPES.get(response.error_type or "", StorageError)
    if error_cls is StorageError:
        raise StorageError(f"{response.error_type}: {response.error}")
    raise error_cls(response.error)
