"""Bridge between synchronous click command bodies and asyncio."""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Coroutine, TypeVar

T = TypeVar("T")


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Drive *coro* to completion and return its result.

    Inside an already running loop (an embedding application, an async
    test) the coroutine gets a fresh loop on a worker thread instead.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="robolive-run") as pool:
        return pool.submit(asyncio.run, coro).result()
