"""Desktop host process: owns the SQLite database and answers bridge calls."""
import logging
import sqlite3
import time
import uuid
from multiprocessing import Queue
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
from pydantic import ValidationError
from notekeeper.core.errors import StorageError, TransactionError
from notekeeper.core.validation import (
    validate_notebook_name,
    validate_note_title,
    validate_notebook_ref,
    escape_like,
)
from .types import (
    Channel,
    CHANNEL_ARGS,
    BridgeRequest,
    BridgeResponse,
    CreateNotebookArgs,
    CreateNoteArgs,
    IdArgs,
    NoArgs,
    NotebookIdArgs,
    SearchArgs,
    UpdateNotebookArgs,
    UpdateNoteArgs,
)

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS notebooks (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    created_at INTEGER NOT NULL,
    updated_at INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS notes (
    id TEXT PRIMARY KEY,
    notebook_id TEXT NOT NULL,
    title TEXT NOT NULL,
    content TEXT NOT NULL,
    created_at INTEGER NOT NULL,
    updated_at INTEGER NOT NULL,
    FOREIGN KEY (notebook_id) REFERENCES notebooks(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_notes_notebook_id ON notes(notebook_id);
CREATE INDEX IF NOT EXISTS idx_notes_updated_at ON notes(updated_at);
CREATE INDEX IF NOT EXISTS idx_notebooks_updated_at ON notebooks(updated_at);
"""


def now_ms() -> int:
    return int(time.time() * 1000)


class BridgeHost:
    """
    Serves bridge calls against one SQLite connection.

    Every statement is parameterized. The connection runs in autocommit
    mode; the cascade delete opens its own explicit transaction.
    """

    def __init__(self, db_path: str):
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self.conn = sqlite3.connect(self.db_path, isolation_level=None)
        self.conn.row_factory = sqlite3.Row
        self.conn.create_function("fold", 1, str.casefold, deterministic=True)
        self.conn.execute("PRAGMA foreign_keys = ON")
        self.conn.executescript(SCHEMA)

        self._handlers: Dict[Channel, Callable[[Any], Any]] = {
            Channel.CREATE_NOTEBOOK: self.create_notebook,
            Channel.GET_ALL_NOTEBOOKS: self.get_all_notebooks,
            Channel.GET_NOTEBOOK: self.get_notebook,
            Channel.UPDATE_NOTEBOOK: self.update_notebook,
            Channel.DELETE_NOTEBOOK: self.delete_notebook,
            Channel.CREATE_NOTE: self.create_note,
            Channel.GET_NOTES_BY_NOTEBOOK: self.get_notes_by_notebook,
            Channel.GET_NOTE: self.get_note,
            Channel.UPDATE_NOTE: self.update_note,
            Channel.DELETE_NOTE: self.delete_note,
            Channel.SEARCH_NOTES: self.search_notes,
            Channel.GET_PATH: self.get_path,
        }

    def close(self) -> None:
        self.conn.close()

    def handle(self, request_data: dict) -> dict:
        """Validate and dispatch one request, always producing a response."""
        request_id = str(request_data.get("request_id", ""))
        try:
            request = BridgeRequest(**request_data)
            args = CHANNEL_ARGS[request.channel](**request.args)
        except ValidationError as e:
            logger.warning("[Bridge] Invalid request %s: %s", request_id, e)
            return BridgeResponse(
                request_id=request_id, ok=False, error=str(e), error_type="InvalidInputError"
            ).model_dump()

        try:
            result = self._handlers[request.channel](args)
        except StorageError as e:
            return BridgeResponse(
                request_id=request_id, ok=False, error=str(e), error_type=type(e).__name__
            ).model_dump()
        except sqlite3.Error as e:
            logger.error("[Bridge] %s failed: %s", request.channel.value, e)
            return BridgeResponse(
                request_id=request_id, ok=False, error=str(e), error_type=type(e).__name__
            ).model_dump()

        return BridgeResponse(request_id=request_id, ok=True, result=result).model_dump()

    # ==================== Notebook Operations ====================

    def create_notebook(self, args: CreateNotebookArgs) -> dict:
        validate_notebook_name(args.name)
        now = now_ms()
        notebook = {"id": str(uuid.uuid4()), "name": args.name, "created_at": now, "updated_at": now}
        self.conn.execute(
            "INSERT INTO notebooks (id, name, created_at, updated_at) VALUES (?, ?, ?, ?)",
            (notebook["id"], notebook["name"], notebook["created_at"], notebook["updated_at"]),
        )
        return notebook

    def get_all_notebooks(self, args: NoArgs) -> List[dict]:
        rows = self.conn.execute("SELECT * FROM notebooks ORDER BY updated_at DESC").fetchall()
        return [dict(row) for row in rows]

    def get_notebook(self, args: IdArgs) -> Optional[dict]:
        row = self.conn.execute("SELECT * FROM notebooks WHERE id = ?", (args.id,)).fetchone()
        return dict(row) if row else None

    def update_notebook(self, args: UpdateNotebookArgs) -> None:
        if args.name is not None:
            validate_notebook_name(args.name)
        self.conn.execute(
            "UPDATE notebooks SET name = COALESCE(?, name), updated_at = MAX(?, updated_at + 1) "
            "WHERE id = ?",
            (args.name, now_ms(), args.id),
        )

    def delete_notebook(self, args: IdArgs) -> None:
        self.conn.execute("BEGIN")
        try:
            self.conn.execute("DELETE FROM notes WHERE notebook_id = ?", (args.id,))
            self.conn.execute("DELETE FROM notebooks WHERE id = ?", (args.id,))
            self.conn.execute("COMMIT")
        except sqlite3.Error as e:
            self.conn.execute("ROLLBACK")
            logger.error("[Bridge] Cascade delete of notebook %s rolled back: %s", args.id, e)
            raise TransactionError(f"Failed to delete notebook {args.id}: {e}") from e

    # ==================== Note Operations ====================

    def create_note(self, args: CreateNoteArgs) -> dict:
        validate_note_title(args.title)
        now = now_ms()
        note = {
            "id": str(uuid.uuid4()),
            "notebook_id": args.notebook_id,
            "title": args.title,
            "content": args.content or "",
            "created_at": now,
            "updated_at": now,
        }
        self.conn.execute(
            "INSERT INTO notes (id, notebook_id, title, content, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (note["id"], note["notebook_id"], note["title"], note["content"],
             note["created_at"], note["updated_at"]),
        )
        return note

    def get_notes_by_notebook(self, args: NotebookIdArgs) -> List[dict]:
        rows = self.conn.execute(
            "SELECT * FROM notes WHERE notebook_id = ? ORDER BY updated_at DESC",
            (args.notebook_id,),
        ).fetchall()
        return [dict(row) for row in rows]

    def get_note(self, args: IdArgs) -> Optional[dict]:
        row = self.conn.execute("SELECT * FROM notes WHERE id = ?", (args.id,)).fetchone()
        return dict(row) if row else None

    def update_note(self, args: UpdateNoteArgs) -> None:
        validate_notebook_ref(args.notebook_id)
        self.conn.execute(
            "UPDATE notes SET title = COALESCE(?, title), content = COALESCE(?, content), "
            "notebook_id = COALESCE(?, notebook_id), updated_at = MAX(?, updated_at + 1) "
            "WHERE id = ?",
            (args.title, args.content, args.notebook_id, now_ms(), args.id),
        )

    def delete_note(self, args: IdArgs) -> None:
        self.conn.execute("DELETE FROM notes WHERE id = ?", (args.id,))

    def search_notes(self, args: SearchArgs) -> List[dict]:
        if not args.query:
            return []
        pattern = f"%{escape_like(args.query.casefold())}%"
        rows = self.conn.execute(
            "SELECT * FROM notes WHERE fold(title) LIKE ? ESCAPE '\\' "
            "OR fold(content) LIKE ? ESCAPE '\\' ORDER BY updated_at DESC",
            (pattern, pattern),
        ).fetchall()
        return [dict(row) for row in rows]

    def get_path(self, args: NoArgs) -> str:
        return self.db_path


def bridge_main(input_queue: Queue, output_queue: Queue, db_path: str):
    """
    Main loop for the host process.

    Runs in a separate process and answers one request at a time.
    """
    host = BridgeHost(db_path)
    logger.info("[Bridge] Started (database: %s)", db_path)

    try:
        while True:
            # Wait for request (blocking)
            request_data = input_queue.get()

            if request_data.get('type') == 'shutdown':
                logger.info("[Bridge] Shutting down")
                break

            output_queue.put(host.handle(request_data))
    finally:
        host.close()


__all__ = ["BridgeHost", "bridge_main", "SCHEMA"]
