"""Bounded fan-out helper for embedding calls.

``throttled_gather`` behaves like ``asyncio.gather`` but caps how many of
the supplied coroutines run at the same time.  Results keep the input
order, which lets the ingestion pipeline embed chunks in parallel while
re-associating each vector with its chunk ordinal.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Coroutine, TypeVar

_T = TypeVar("_T")


async def throttled_gather(
    coros: list[Coroutine[object, object, _T]],
    limit: int = 4,
) -> list[_T]:
    """Run coroutines with at most *limit* in flight.

    Parameters
    ----------
    coros:
        Coroutine objects to execute.
    limit:
        Maximum concurrency.  Values below 1 are treated as 1.

    Returns
    -------
    list
        Results in the same order as *coros*.

    The first failure propagates.  Every other task is cancelled and
    awaited, and coroutines that never got a semaphore slot are closed.
    """
    semaphore = asyncio.Semaphore(max(1, limit))

    async def _wrapped(coro: Coroutine[object, object, _T]) -> _T:
        async with semaphore:
            return await coro

    tasks = [asyncio.ensure_future(_wrapped(c)) for c in coros]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        # Cancelled while waiting for the semaphore: never awaited.
        for coro in coros:
            if inspect.getcoroutinestate(coro) == inspect.CORO_CREATED:
                coro.close()
        raise
