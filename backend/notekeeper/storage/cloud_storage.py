"""
Cloud storage layer: notebooks and notes in PostgreSQL, images in S3.

Timestamps are stored as fixed-width ISO-8601 UTC text, so ordering by
the column is chronological.
"""
import asyncio
import logging
import mimetypes
import uuid
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Any, List, Optional
from urllib.parse import urlparse

import aioboto3
import asyncpg

from notekeeper.core import settings
from notekeeper.core.errors import BackendUnavailableError, TransactionError
from notekeeper.models import Notebook, Note, NotebookUpdate, NoteUpdate, utc_now
from .base import (
    StorageBackend,
    validate_notebook_name,
    validate_note_title,
    validate_note_update,
    is_data_url,
    escape_like,
)

logger = logging.getLogger(__name__)

CLOUD_SCHEMA = """
CREATE TABLE IF NOT EXISTS notebooks (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS notes (
    id TEXT PRIMARY KEY,
    notebook_id TEXT NOT NULL REFERENCES notebooks(id) ON DELETE CASCADE,
    title TEXT NOT NULL,
    content TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_notes_notebook_id ON notes(notebook_id);
CREATE INDEX IF NOT EXISTS idx_notes_updated_at ON notes(updated_at);
CREATE INDEX IF NOT EXISTS idx_notebooks_updated_at ON notebooks(updated_at);
"""


def encode_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def decode_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def row_to_notebook(row: Any) -> Notebook:
    return Notebook(
        id=row["id"],
        name=row["name"],
        created_at=decode_timestamp(row["created_at"]),
        updated_at=decode_timestamp(row["updated_at"]),
    )


def row_to_note(row: Any) -> Note:
    return Note(
        id=row["id"],
        notebook_id=row["notebook_id"],
        title=row["title"],
        content=row["content"],
        created_at=decode_timestamp(row["created_at"]),
        updated_at=decode_timestamp(row["updated_at"]),
    )


class CloudStorage(StorageBackend):
    """Relational cloud storage with an S3 bucket for note images."""

    kind = "cloud"

    def __init__(
        self,
        dsn: str = None,
        access_key: str = None,
        bucket: str = None,
        region: str = None,
        image_base_url: str = None,
        pool=None,
        session=None,
    ):
        self.dsn = dsn or settings.CLOUD_DATABASE_URL
        self.access_key = access_key or settings.CLOUD_ACCESS_KEY
        if not self.dsn or not self.access_key:
            raise BackendUnavailableError("NOTEKEEPER_CLOUD_URL and NOTEKEEPER_CLOUD_KEY must both be set")

        self.bucket = bucket or settings.IMAGE_BUCKET
        self.region = region or settings.AWS_REGION
        self.image_base_url = image_base_url or settings.IMAGE_BASE_URL
        self.session = session or aioboto3.Session()
        self._pool = pool
        self._pool_lock = asyncio.Lock()

    async def _get_pool(self):
        async with self._pool_lock:
            if self._pool is None:
                self._pool = await asyncpg.create_pool(
                    self.dsn, password=self.access_key, min_size=1, max_size=5
                )
        return self._pool

    async def create_schema(self) -> None:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            await conn.execute(CLOUD_SCHEMA)

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    # ==================== Notebook Operations ====================

    async def create_notebook(self, name: str) -> Notebook:
        validate_notebook_name(name)
        now = encode_timestamp(utc_now())
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                "INSERT INTO notebooks (id, name, created_at, updated_at) "
                "VALUES ($1, $2, $3, $3) RETURNING *",
                str(uuid.uuid4()), name, now,
            )
        if row is None:
            raise RuntimeError("Failed to create notebook")
        return row_to_notebook(row)

    async def list_notebooks(self) -> List[Notebook]:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch("SELECT * FROM notebooks ORDER BY updated_at DESC")
        return [row_to_notebook(row) for row in rows]

    async def get_notebook(self, notebook_id: str) -> Optional[Notebook]:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            row = await conn.fetchrow("SELECT * FROM notebooks WHERE id = $1", notebook_id)
        return row_to_notebook(row) if row is not None else None

    async def update_notebook(self, notebook_id: str, update: NotebookUpdate) -> None:
        fields = update.fields()
        if "name" in fields:
            validate_notebook_name(fields["name"])
        await self._update_row("notebooks", notebook_id, fields)

    async def delete_notebook(self, notebook_id: str) -> None:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            try:
                async with conn.transaction():
                    await conn.execute("DELETE FROM notes WHERE notebook_id = $1", notebook_id)
                    await conn.execute("DELETE FROM notebooks WHERE id = $1", notebook_id)
            except asyncpg.PostgresError as e:
                logger.error("Cascade delete of notebook %s rolled back: %s", notebook_id, e)
                raise TransactionError(f"Failed to delete notebook {notebook_id}: {e}") from e

    # ==================== Note Operations ====================

    async def create_note(self, notebook_id: str, title: str, content: Optional[str] = None) -> Note:
        validate_note_title(title)
        now = encode_timestamp(utc_now())
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                "INSERT INTO notes (id, notebook_id, title, content, created_at, updated_at) "
                "VALUES ($1, $2, $3, $4, $5, $5) RETURNING *",
                str(uuid.uuid4()), notebook_id, title, content or "", now,
            )
        if row is None:
            raise RuntimeError("Failed to create note")
        return row_to_note(row)

    async def list_notes_by_notebook(self, notebook_id: str) -> List[Note]:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT * FROM notes WHERE notebook_id = $1 ORDER BY updated_at DESC",
                notebook_id,
            )
        return [row_to_note(row) for row in rows]

    async def get_note(self, note_id: str) -> Optional[Note]:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            row = await conn.fetchrow("SELECT * FROM notes WHERE id = $1", note_id)
        return row_to_note(row) if row is not None else None

    async def update_note(self, note_id: str, update: NoteUpdate) -> None:
        validate_note_update(update)
        await self._update_row("notes", note_id, update.fields())

    async def delete_note(self, note_id: str) -> None:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            await conn.execute("DELETE FROM notes WHERE id = $1", note_id)

    async def search_notes(self, query: str) -> List[Note]:
        if not query:
            return []
        pattern = f"%{escape_like(query)}%"
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT * FROM notes WHERE title ILIKE $1 OR content ILIKE $1 "
                "ORDER BY updated_at DESC",
                pattern,
            )
        return [row_to_note(row) for row in rows]

    async def _update_row(self, table: str, row_id: str, fields: dict) -> None:
        """Set only the supplied columns, plus a fresh updated_at."""
        assignments = []
        params: List[Any] = []
        for column, value in fields.items():
            params.append(value)
            assignments.append(f"{column} = ${len(params)}")

        params.append(encode_timestamp(utc_now()))
        assignments.append(f"updated_at = GREATEST(${len(params)}, updated_at)")
        params.append(row_id)

        pool = await self._get_pool()
        async with pool.acquire() as conn:
            await conn.execute(
                f"UPDATE {table} SET {', '.join(assignments)} WHERE id = ${len(params)}",
                *params,
            )

    # ==================== Image Operations ====================

    def public_url(self, key: str) -> str:
        if self.image_base_url:
            return f"{self.image_base_url.rstrip('/')}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    async def upload_image(self, data: bytes, filename: str) -> str:
        key = f"{uuid.uuid4()}{PurePosixPath(filename).suffix}"
        content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
        logger.info("Uploading image %s (%d bytes) as %s", filename, len(data), key)

        async with self.session.client('s3', region_name=self.region) as s3:
            await s3.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                CacheControl="max-age=3600",
            )

        return self.public_url(key)

    async def delete_image(self, url: str) -> None:
        if is_data_url(url):
            return
        key = urlparse(url).path.rsplit("/", 1)[-1]

        async with self.session.client('s3', region_name=self.region) as s3:
            await s3.delete_object(Bucket=self.bucket, Key=key)
