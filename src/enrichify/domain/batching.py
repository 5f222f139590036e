"""Bounded-concurrency fan-out over ordered inputs."""

from __future__ import annotations

import asyncio
from itertools import islice
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Hashable, Iterable, Sequence

DEFAULT_CONCURRENCY = 10


def chunked[T](items: Iterable[T], size: int) -> list[list[T]]:
    """Split ``items`` into consecutive lists of at most ``size`` elements."""

    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    iterator = iter(items)
    chunks: list[list[T]] = []
    while chunk := list(islice(iterator, size)):
        chunks.append(chunk)
    return chunks


def unique_in_order[H: Hashable](items: Iterable[H]) -> list[H]:
    """Drop repeated items, keeping the first occurrence of each."""

    return list(dict.fromkeys(items))


async def run_batched[T, R](
    inputs: Sequence[T],
    operation: Callable[[T, int], Awaitable[R]],
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> list[R]:
    """Run ``operation`` over ``inputs`` in groups of ``concurrency``.

    Groups run one after another and every member of a group runs concurrently,
    so at most ``concurrency`` operations are pending at any time. ``operation``
    receives each item together with its index in ``inputs``. Results come back
    in input order regardless of completion order.

    The first failure is re-raised as-is: the rest of its group is cancelled and
    later groups never start.
    """

    if concurrency < 1:
        raise ValueError(f"Concurrency must be positive, got {concurrency}")

    results: list[R] = []
    for group_index, group in enumerate(chunked(inputs, concurrency)):
        offset = group_index * concurrency
        tasks = [
            asyncio.ensure_future(operation(item, offset + position))
            for position, item in enumerate(group)
        ]
        try:
            results.extend(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
    return results
