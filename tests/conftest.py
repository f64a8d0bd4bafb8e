"""Pytest configuration and fixtures."""

import asyncio
import random
import threading
from datetime import timedelta

import pytest

from config import Config
from database.connection import SQLitePool
from database.document_store import DocumentStore
from database.migrations import run_migrations
from database.models import utcnow
from database.repositories import CampaignRepository, DrawRunRepository, ParticipantRepository
from services.registry import build_services


def make_config(**overrides) -> Config:
    """Deterministic configuration that ignores the process environment."""
    values = dict(
        environment="testing",
        debug=False,
        web_host="127.0.0.1",
        web_port=5000,
        secret_key="test-secret",
        admin_username="admin",
        admin_password="secret",
        database_path=":memory:",
        db_pool_size=3,
        db_busy_timeout=5000,
        log_folder="logs",
        public_base_url="https://lottery.example",
        referral_prefix_length=6,
        leaderboard_size=5,
        weighted_additional_winners=False,
        campaign_cache_ttl=60,
        enable_whatsapp=False,
        green_api_url=None,
        green_api_instance_id=None,
        green_api_token=None,
    )
    values.update(overrides)
    return Config(**values)


@pytest.fixture
def config(tmp_path):
    return make_config(database_path=str(tmp_path / "test_lottery.sqlite"))


@pytest.fixture
async def pool(config):
    """Migrated SQLite pool in a temporary directory."""
    db_pool = SQLitePool(config.database_path, pool_size=config.db_pool_size, busy_timeout_ms=5000)
    await db_pool.init_pool()
    await run_migrations(db_pool)
    yield db_pool
    await db_pool.close()


@pytest.fixture
def store(pool):
    return DocumentStore(pool)


@pytest.fixture
def campaign_repo(store):
    return CampaignRepository(store)


@pytest.fixture
def participant_repo(store):
    return ParticipantRepository(store)


@pytest.fixture
def draw_run_repo(store):
    return DrawRunRepository(store)


@pytest.fixture
def services(config, store):
    return build_services(config, store, rng=random.Random(1234))


@pytest.fixture
async def campaign(services):
    """Open campaign ending in a week."""
    return await services.campaigns.create_campaign(
        "manager-1",
        {
            "title": "Summer Giveaway",
            "end_date": (utcnow() + timedelta(days=7)).isoformat(),
            "contact_phone_number": "050-123-4567",
            "contact_vcard_name": "Lottery Desk",
        },
    )


@pytest.fixture
def background_loop():
    """Event loop on a worker thread, registered as the main loop.

    Flask views block on ``run_coroutine_sync``, so the loop that owns the
    database pool must run somewhere other than the test thread.
    """
    from services.async_runner import set_main_loop

    loop = asyncio.new_event_loop()
    thread = threading.Thread(target=loop.run_forever, daemon=True)
    thread.start()
    set_main_loop(loop)
    yield loop
    set_main_loop(None)
    loop.call_soon_threadsafe(loop.stop)
    thread.join(timeout=5)
    loop.close()
