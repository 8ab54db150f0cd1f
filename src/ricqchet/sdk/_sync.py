"""Background thread event loop for the client's sync wrappers.

Provides _run_sync() which bridges async coroutines into synchronous
calling contexts without "event loop already running" errors.

Every coroutine runs on one long-lived loop in a daemon thread rather
than a fresh ``asyncio.run()`` loop per call: the pooled
``httpx.AsyncClient`` is bound to the loop it was first used on, so
consecutive ``publish_sync()`` calls must share it.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Coroutine, TypeVar

T = TypeVar("T")

_loop: asyncio.AbstractEventLoop | None = None
_thread: threading.Thread | None = None
_lock = threading.Lock()


def _get_loop() -> asyncio.AbstractEventLoop:
    """Get or create a background event loop running in a daemon thread."""
    global _loop, _thread
    with _lock:
        if _loop is None or _loop.is_closed():
            _loop = asyncio.new_event_loop()
            _thread = threading.Thread(
                target=_loop.run_forever, name="ricqchet-sync", daemon=True
            )
            _thread.start()
    return _loop


def _run_sync(coro: Coroutine[..., ..., T]) -> T:
    """Run an async coroutine from synchronous code and return its result.

    Works both with and without a running loop in the calling thread
    (plain scripts, Jupyter, sync views inside an async server).
    """
    bg_loop = _get_loop()
    try:
        running = asyncio.get_running_loop()
    except RuntimeError:
        running = None

    if running is bg_loop:
        coro.close()
        raise RuntimeError(
            "Sync wrappers cannot be called from coroutines on the Ricqchet "
            "background loop; await the async method instead."
        )

    future = asyncio.run_coroutine_threadsafe(coro, bg_loop)
    return future.result()
