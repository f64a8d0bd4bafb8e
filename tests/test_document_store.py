"""Tests for the SQLite-backed document store."""

import asyncio

import pytest

from core.exceptions import TransientStoreError
from database.document_store import DocumentStore, _json_path, generate_document_id


def test_generated_ids_are_alphanumeric():
    doc_id = generate_document_id()
    assert len(doc_id) == 20
    assert doc_id.isalnum()


@pytest.mark.asyncio
async def test_create_and_get(store):
    doc_id = await store.create("things", {"name": "שלום", "count": 1})
    doc = await store.get("things", doc_id)
    assert doc.id == doc_id
    assert doc.data == {"name": "שלום", "count": 1}
    assert await store.get("things", "missing") is None


@pytest.mark.asyncio
async def test_enumeration_is_ordered_by_id(store):
    for doc_id in ("c", "a", "b"):
        await store.create("things", {"v": doc_id}, doc_id=doc_id)
    assert [d.id for d in await store.list_all("things")] == ["a", "b", "c"]
    assert await store.count("things") == 3


@pytest.mark.asyncio
async def test_query_eq_matches_exactly(store):
    await store.create("people", {"phone": "0501234567"}, doc_id="p2")
    await store.create("people", {"phone": "0501234567"}, doc_id="p1")
    await store.create("people", {"phone": "050123456"}, doc_id="p3")
    matches = await store.query_eq("people", "phone", "0501234567")
    assert [d.id for d in matches] == ["p1", "p2"]


@pytest.mark.asyncio
async def test_update_merges_nested_fields(store):
    doc_id = await store.create("things", {"flags": {"a": False, "b": False}, "title": "x"})
    assert await store.update("things", doc_id, {"flags": {"a": True}})
    doc = await store.get("things", doc_id)
    assert doc.data == {"flags": {"a": True, "b": False}, "title": "x"}
    assert not await store.update("things", "missing", {"title": "y"})


@pytest.mark.asyncio
async def test_increment_treats_missing_field_as_zero(store):
    doc_id = await store.create("things", {})
    assert await store.increment("things", doc_id, "tickets", 2)
    assert (await store.get("things", doc_id)).data["tickets"] == 2
    assert not await store.increment("things", "missing", "tickets")


@pytest.mark.asyncio
async def test_concurrent_increments_are_not_lost(store):
    doc_id = await store.create("things", {"tickets": 1})
    await asyncio.gather(*(store.increment("things", doc_id, "tickets") for _ in range(25)))
    assert (await store.get("things", doc_id)).data["tickets"] == 26


@pytest.mark.asyncio
async def test_delete_tree_removes_subcollections(store):
    await store.create("campaigns", {"title": "a"}, doc_id="c1")
    await store.create("campaigns", {"title": "b"}, doc_id="c10")
    await store.create("campaigns/c1/leads", {"phone": "1"})
    await store.create("campaigns/c1/draw_runs", {})
    await store.create("campaigns/c10/leads", {"phone": "2"})

    removed = await store.delete_tree("campaigns", "c1")

    assert removed == 3
    assert await store.get("campaigns", "c1") is None
    assert await store.count("campaigns/c1/leads") == 0
    assert await store.count("campaigns/c10/leads") == 1


def test_invalid_field_names_are_rejected():
    assert _json_path("tasks_completed.saved_contact") == "$.tasks_completed.saved_contact"
    with pytest.raises(ValueError):
        _json_path("tickets'); DROP TABLE documents; --")


@pytest.mark.asyncio
async def test_sqlite_failures_surface_as_transient(config):
    from database.connection import SQLitePool

    # Pool without migrations: the documents table does not exist
    bare = SQLitePool(config.database_path + ".bare", pool_size=1)
    await bare.init_pool()
    try:
        with pytest.raises(TransientStoreError):
            await DocumentStore(bare).get("things", "x")
    finally:
        await bare.close()


@pytest.mark.asyncio
async def test_failed_write_releases_the_write_lock(config, pool):
    from database.connection import SQLitePool

    small = SQLitePool(config.database_path, pool_size=2, busy_timeout_ms=300)
    await small.init_pool()
    store = DocumentStore(small)
    try:
        await store.create("things", {"count": 0}, doc_id="dup")
        with pytest.raises(TransientStoreError):
            await store.create("things", {"count": 0}, doc_id="dup")

        results = [await store.increment("things", "dup", "count") for _ in range(4)]

        assert results == [True, True, True, True]
        assert (await store.get("things", "dup")).data["count"] == 4
    finally:
        await small.close()
