"""Bounded concurrency for coroutines.

This module provides:
- throttled_map: Run a coroutine function over items, at most N at a time

asyncio.Semaphore wakes waiters in FIFO order, so items start in input
order and results are returned in input order.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def throttled_map(
    func: Callable[[T], Awaitable[R]],
    items: Iterable[T],
    limit: int = 1,
) -> list[R]:
    """Await func(item) for every item with at most limit running at once.

    Args:
        func: Coroutine function applied to each item.
        items: Items in the order they should start.
        limit: Maximum concurrent calls (values below 1 mean 1).

    Returns:
        Results in input order.

    Raises:
        Exception: The first exception raised by func. Items that have
            not finished yet are cancelled.
    """
    semaphore = asyncio.Semaphore(max(1, limit))

    async def run(item: T) -> R:
        async with semaphore:
            return await func(item)

    tasks = [asyncio.ensure_future(run(item)) for item in items]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        raise
