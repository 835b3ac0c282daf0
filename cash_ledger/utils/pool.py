"""
Bounded-concurrency fan-out.

Record inference hits the document store several times per record, so
we never run more than a fixed number of inferences at once.
"""

import asyncio
from typing import Awaitable, Callable, Iterable, Optional, TypeVar

T = TypeVar("T")
U = TypeVar("U")


async def map_bounded(
    items: Iterable[T],
    limit: int,
    fn: Callable[[T], Awaitable[U]],
    on_item_done: Optional[Callable[[], None]] = None,
) -> list[U]:
    """
    Apply an async function to every item with at most `limit` in flight.

    Results keep the input order. The first exception raised by `fn`
    propagates to the caller.
    """
    if limit < 1:
        raise ValueError("limit must be at least 1")

    semaphore = asyncio.Semaphore(limit)

    async def run(item: T) -> U:
        async with semaphore:
            result = await fn(item)
        if on_item_done:
            on_item_done()
        return result

    return list(await asyncio.gather(*(run(item) for item in items)))
