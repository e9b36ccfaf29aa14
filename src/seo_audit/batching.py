"""Bounded-concurrency batch runner for network probes."""

import asyncio
import logging
from typing import Awaitable, Callable, Sequence, TypeVar

from seo_audit.constants import DEFAULT_PROBE_BATCH_SIZE, DEFAULT_PROBE_BATCH_DELAY_SECONDS

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_in_batches(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[None]],
    batch_size: int = DEFAULT_PROBE_BATCH_SIZE,
    delay: float = DEFAULT_PROBE_BATCH_DELAY_SECONDS,
) -> None:
    """Run worker over items, batch_size at a time, pausing between batches.

    Workers record their outcome on the item itself; an exception escaping a
    worker is logged and does not stop the remaining probes.
    """
    batch_size = max(1, batch_size)

    for start in range(0, len(items), batch_size):
        batch = items[start:start + batch_size]
        results = await asyncio.gather(
            *(worker(item) for item in batch), return_exceptions=True
        )
        for item, result in zip(batch, results):
            if isinstance(result, Exception):
                logger.warning(f"Probe failed for {item!r}: {result}")

        if start + batch_size < len(items) and delay > 0:
            await asyncio.sleep(delay)
