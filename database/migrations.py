"""Database schema migrations."""

from __future__ import annotations

from core import get_logger

from .connection import SQLitePool

logger = get_logger(__name__)


# Documents live in one table keyed by (collection path, id). Sub-collections
# use slash-separated paths such as ``campaigns/<id>/leads``.
SCHEMA_SQL: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS documents (
        collection TEXT NOT NULL,
        doc_id TEXT NOT NULL,
        data TEXT NOT NULL DEFAULT '{}',
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        PRIMARY KEY (collection, doc_id)
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_documents_collection ON documents(collection, created_at);",
    # Equality lookups used by the duplicate guard and owner listings
    """
    CREATE INDEX IF NOT EXISTS idx_documents_phone
    ON documents(collection, json_extract(data, '$.phone'));
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_documents_owner
    ON documents(collection, json_extract(data, '$.owner_id'));
    """,
)


async def run_migrations(pool: SQLitePool) -> None:
    """Apply the schema; every statement is idempotent."""
    async with pool.connection() as conn:
        for statement in SCHEMA_SQL:
            await conn.execute(statement)
        await conn.commit()
    logger.info(f"Applied {len(SCHEMA_SQL)} schema statements")
