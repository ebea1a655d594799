"""Batched fan-out for model calls.

Every concurrent stage (sentiment, relevance, topic assignment,
recommendations) processes its items in fixed-size batches: all calls in a
batch run concurrently with asyncio.gather, and each batch completes before
the next one starts. Results come back in input order.

Workers are expected to handle their own failures and return a fallback
value; an exception escaping a worker fails the whole gather.

Key Functions:
    chunked: split a sequence into consecutive batches
    gather_in_batches: run an async worker over items, batch by batch
"""

import asyncio
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

import structlog


T = TypeVar("T")
R = TypeVar("R")

logger = structlog.get_logger()


def chunked(items: Sequence[T], batch_size: int) -> List[List[T]]:
    """Split items into consecutive batches of at most batch_size.

    Examples:
        >>> chunked([1, 2, 3, 4, 5], 2)
        [[1, 2], [3, 4], [5]]
        >>> chunked([], 3)
        []
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    return [list(items[i:i + batch_size]) for i in range(0, len(items), batch_size)]


async def gather_in_batches(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    batch_size: int,
    stage: Optional[str] = None,
) -> List[R]:
    """Run worker over items with at most batch_size calls in flight.

    Args:
        items: Items to process
        worker: Async callable producing one result per item
        batch_size: Number of concurrent calls per batch
        stage: Stage name for progress logging (optional)

    Returns:
        Results in the same order as items

    Example:
        >>> results = await gather_in_batches(mentions, analyze_one, batch_size=5)
        >>> # 12 items run as batches of [5, 5, 2]
    """
    batches = chunked(items, batch_size)
    results: List[R] = []

    for batch_idx, batch in enumerate(batches):
        batch_results = await asyncio.gather(*(worker(item) for item in batch))
        results.extend(batch_results)

        if stage:
            logger.debug(
                "batch_completed",
                stage=stage,
                batch_number=batch_idx + 1,
                total_batches=len(batches),
                completed=len(results),
                total_items=len(items),
            )

    return results
