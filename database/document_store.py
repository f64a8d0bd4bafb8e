"""Document store on top of the SQLite pool.

Provides the narrow document-database contract the services rely on:
get by id, equality query, create with generated id, atomic numeric
increment, enumeration of a collection, merge update and cascade delete.
Documents are JSON objects; enumeration is ordered by ascending document id.
"""

from __future__ import annotations

import json
import re
import secrets
import sqlite3
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Optional

import aiosqlite

from core import get_logger
from core.constants import DatabaseDefaults
from core.exceptions import TransientStoreError
from database.connection import SQLitePool, get_db_pool
from utils.performance import PerformanceMonitor

logger = get_logger(__name__)
_monitor = PerformanceMonitor()

_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")


@dataclass(slots=True)
class Document:
    id: str
    data: Dict[str, Any]


def generate_document_id(length: int = DatabaseDefaults.AUTO_ID_LENGTH) -> str:
    """Random alphanumeric id in the style of Firestore auto-ids."""
    alphabet = DatabaseDefaults.AUTO_ID_ALPHABET
    return "".join(secrets.choice(alphabet) for _ in range(length))


def _json_path(field: str) -> str:
    if not _FIELD_RE.match(field):
        raise ValueError(f"Invalid document field name: {field!r}")
    return f"$.{field}"


class DocumentStore:
    """Async document store; every failure surfaces as TransientStoreError."""

    def __init__(self, pool: Optional[SQLitePool] = None) -> None:
        self._pool = pool

    @property
    def pool(self) -> SQLitePool:
        return self._pool or get_db_pool()

    @asynccontextmanager
    async def _connection(self, operation: str) -> AsyncIterator[aiosqlite.Connection]:
        try:
            with _monitor.track_operation(operation):
                async with self.pool.connection() as conn:
                    try:
                        yield conn
                    except Exception:
                        await conn.rollback()
                        raise
        except sqlite3.Error as e:
            logger.error(f"Document store {operation} failed: {e}")
            raise TransientStoreError(f"{operation} failed: {e}") from e

    async def create(
        self,
        collection: str,
        data: Dict[str, Any],
        doc_id: Optional[str] = None,
    ) -> str:
        """Insert a document and return its id (generated when omitted)."""
        doc_id = doc_id or generate_document_id()
        async with self._connection("create") as conn:
            await conn.execute(
                "INSERT INTO documents (collection, doc_id, data) VALUES (?, ?, ?)",
                (collection, doc_id, json.dumps(data, ensure_ascii=False)),
            )
            await conn.commit()
        return doc_id

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        async with self._connection("get") as conn:
            cursor = await conn.execute(
                "SELECT doc_id, data FROM documents WHERE collection=? AND doc_id=?",
                (collection, doc_id),
            )
            row = await cursor.fetchone()
        return Document(id=row[0], data=json.loads(row[1])) if row else None

    async def query_eq(self, collection: str, field: str, value: Any) -> List[Document]:
        """Documents whose ``field`` equals ``value`` exactly."""
        path = _json_path(field)
        async with self._connection("query") as conn:
            cursor = await conn.execute(
                f"SELECT doc_id, data FROM documents "
                f"WHERE collection=? AND json_extract(data, '{path}') = ? "
                f"ORDER BY doc_id",
                (collection, value),
            )
            rows = await cursor.fetchall()
        return [Document(id=row[0], data=json.loads(row[1])) for row in rows]

    async def list_all(self, collection: str) -> List[Document]:
        async with self._connection("list") as conn:
            cursor = await conn.execute(
                "SELECT doc_id, data FROM documents WHERE collection=? ORDER BY doc_id",
                (collection,),
            )
            rows = await cursor.fetchall()
        return [Document(id=row[0], data=json.loads(row[1])) for row in rows]

    async def count(self, collection: str) -> int:
        async with self._connection("count") as conn:
            cursor = await conn.execute(
                "SELECT COUNT(*) FROM documents WHERE collection=?",
                (collection,),
            )
            row = await cursor.fetchone()
        return row[0]

    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> bool:
        """Merge ``fields`` into a document (JSON merge patch).

        Nested objects are merged key by key. Returns False when the
        document does not exist.
        """
        async with self._connection("update") as conn:
            cursor = await conn.execute(
                "UPDATE documents SET data=json_patch(data, ?), updated_at=CURRENT_TIMESTAMP "
                "WHERE collection=? AND doc_id=?",
                (json.dumps(fields, ensure_ascii=False), collection, doc_id),
            )
            await conn.commit()
        return cursor.rowcount > 0

    async def increment(self, collection: str, doc_id: str, field: str, amount: int = 1) -> bool:
        """Atomically add ``amount`` to a numeric field.

        A single UPDATE statement, so concurrent increments never lose
        updates. A missing field counts as 0. Returns False when the
        document does not exist.
        """
        path = _json_path(field)
        async with self._connection("increment") as conn:
            cursor = await conn.execute(
                f"UPDATE documents "
                f"SET data=json_set(data, '{path}', COALESCE(json_extract(data, '{path}'), 0) + ?), "
                f"updated_at=CURRENT_TIMESTAMP "
                f"WHERE collection=? AND doc_id=?",
                (amount, collection, doc_id),
            )
            await conn.commit()
        return cursor.rowcount > 0

    async def delete(self, collection: str, doc_id: str) -> bool:
        async with self._connection("delete") as conn:
            cursor = await conn.execute(
                "DELETE FROM documents WHERE collection=? AND doc_id=?",
                (collection, doc_id),
            )
            await conn.commit()
        return cursor.rowcount > 0

    async def delete_tree(self, collection: str, doc_id: str) -> int:
        """Delete a document together with all of its sub-collections."""
        prefix = f"{collection}/{doc_id}/"
        async with self._connection("delete_tree") as conn:
            await conn.execute("BEGIN")
            try:
                children = await conn.execute(
                    "DELETE FROM documents WHERE substr(collection, 1, ?) = ?",
                    (len(prefix), prefix),
                )
                parent = await conn.execute(
                    "DELETE FROM documents WHERE collection=? AND doc_id=?",
                    (collection, doc_id),
                )
            except Exception:
                await conn.rollback()
                raise
            else:
                await conn.commit()
        return children.rowcount + parent.rowcount
