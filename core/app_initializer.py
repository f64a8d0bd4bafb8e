"""Application initialization orchestrator."""

from __future__ import annotations

import asyncio
import os
from contextlib import suppress
from pathlib import Path
from typing import Optional

from aiohttp import web as aiohttp_web
from aiohttp_wsgi import WSGIHandler

from config import Config, load_config
from core.logger import get_logger
from database import close_db_pool, init_db_pool, run_migrations
from services.registry import LotteryServices, init_services

logger = get_logger(__name__)


class ApplicationInitializer:
    """Orchestrates application initialization and lifecycle."""

    def __init__(self, config: Optional[Config] = None):
        self.config = config or load_config()
        self.db_pool = None
        self.services: Optional[LotteryServices] = None
        self.web_runner = None

    async def initialize(self) -> None:
        """Initialize all application components."""
        await self._init_database()
        self.services = init_services(self.config)
        logger.info("✅ Services initialized")
        await self._init_web_server()

    async def run(self) -> None:
        """Serve until cancelled."""
        try:
            logger.info("⚡ Web server running...")
            while True:
                await asyncio.sleep(3600)
        except (KeyboardInterrupt, asyncio.CancelledError):
            logger.info("Shutting down...")
        finally:
            await self.cleanup()

    async def cleanup(self) -> None:
        """Cleanup resources."""
        with suppress(Exception):
            if self.web_runner:
                await self.web_runner.cleanup()
        with suppress(Exception):
            await close_db_pool()

    async def _init_database(self) -> None:
        """Initialize database pool and run migrations."""
        Path(self.config.database_path).parent.mkdir(parents=True, exist_ok=True)
        self.db_pool = await init_db_pool(
            database_path=self.config.database_path,
            pool_size=self.config.db_pool_size,
            busy_timeout_ms=self.config.db_busy_timeout,
        )
        await run_migrations(self.db_pool)
        logger.info("✅ Database initialized")

    async def _init_web_server(self) -> None:
        """Serve the Flask app through aiohttp on the main loop."""
        from web import create_app

        flask_app = create_app(self.config, self.services)

        # Create WSGI handler for Flask app
        wsgi_handler = WSGIHandler(flask_app)

        aio_app = aiohttp_web.Application()
        aio_app.router.add_route("*", "/{path_info:.*}", wsgi_handler)

        self.web_runner = aiohttp_web.AppRunner(aio_app)
        await self.web_runner.setup()

        # Bind to PORT env var if present (Render/Heroku)
        effective_port = int(os.getenv("PORT", str(self.config.web_port)))
        effective_host = "0.0.0.0" if os.getenv("PORT") else self.config.web_host

        site = aiohttp_web.TCPSite(self.web_runner, effective_host, effective_port)
        await site.start()

        logger.info(f"🚀 Web server started on http://{effective_host}:{effective_port}")
        logger.info(f"🔗 Public base URL: {self.config.public_base_url}")
