"""Run coroutines on the main asyncio loop from Flask's worker threads."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Optional, TypeVar


_loop: Optional[asyncio.AbstractEventLoop] = None
T = TypeVar("T")

# Upper bound for a single request's store work
DEFAULT_TIMEOUT = 30.0


def set_main_loop(loop: Optional[asyncio.AbstractEventLoop]) -> None:
    global _loop
    _loop = loop


def get_main_loop() -> Optional[asyncio.AbstractEventLoop]:
    return _loop


def run_coroutine_sync(coro: Awaitable[T], timeout: Optional[float] = DEFAULT_TIMEOUT) -> T:
    """Block the calling thread until ``coro`` finishes on the main loop.

    The database pool is bound to the main loop, so every service call made
    from a WSGI thread goes through here.
    """
    if _loop is None:
        if asyncio.iscoroutine(coro):
            coro.close()
        raise RuntimeError("Asyncio loop is not initialized")
    future = asyncio.run_coroutine_threadsafe(coro, _loop)
    return future.result(timeout)

