"""Chunked batch processing that yields to the event loop between chunks."""

import asyncio
import logging
from typing import Awaitable, Callable, Generic, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_BATCH_SIZE = 15


class ChunkedBatch(Generic[T]):
    """A batch processed ``batch_size`` items per ``step()``, in input order.

    ``on_complete`` fires exactly once, at the end of the step that processes
    the final item (or on the first step of an empty batch).
    """

    def __init__(
        self,
        items: Sequence[T],
        process: Callable[[T], object],
        on_complete: Callable[[], object] | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._items = list(items)
        self._process = process
        self._on_complete = on_complete
        self.batch_size = batch_size
        self._index = 0
        self._completed = False
        self.ticks = 0

    def remaining(self) -> int:
        return len(self._items) - self._index

    def done(self) -> bool:
        return self._completed

    def step(self) -> int:
        """Process the next chunk; returns the number of items processed."""
        if self._completed:
            return 0
        self.ticks += 1
        end = min(self._index + self.batch_size, len(self._items))
        start = self._index
        while self._index < end:
            item = self._items[self._index]
            # Advance before processing so a failing item is not retried
            self._index += 1
            self._process(item)
        if self._index >= len(self._items):
            self._completed = True
            if self._on_complete is not None:
                self._on_complete()
        return end - start


async def _next_tick() -> None:
    await asyncio.sleep(0)


async def run_batch(
    batch: ChunkedBatch,
    yield_: Callable[[], Awaitable[None]] = _next_tick,
) -> int:
    """Drive ``batch`` to completion, awaiting ``yield_`` between steps.

    Returns the number of steps taken. No yield happens after the last step.
    """
    batch.step()
    while not batch.done():
        await yield_()
        batch.step()
    return batch.ticks
