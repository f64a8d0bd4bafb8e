"""Database package public API."""

from .connection import SQLitePool, close_db_pool, get_db_pool, init_db_pool
from .document_store import Document, DocumentStore, generate_document_id
from .migrations import run_migrations
from .repositories import CampaignRepository, DrawRunRepository, ParticipantRepository

__all__ = [
    "SQLitePool",
    "close_db_pool",
    "get_db_pool",
    "init_db_pool",
    "run_migrations",
    "Document",
    "DocumentStore",
    "generate_document_id",
    "CampaignRepository",
    "DrawRunRepository",
    "ParticipantRepository",
]
