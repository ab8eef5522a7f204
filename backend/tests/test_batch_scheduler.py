"""Tests for chunked batch processing."""

import pytest

from subway_motion.core.batch_scheduler import ChunkedBatch, run_batch


def test_steps_process_chunks_in_order():
    processed = []
    completions = []
    batch = ChunkedBatch(list(range(37)), processed.append, lambda: completions.append(1), batch_size=15)

    assert batch.remaining() == 37
    assert batch.step() == 15
    assert batch.step() == 15
    assert not batch.done()
    assert completions == []
    assert batch.step() == 7

    assert batch.done()
    assert batch.remaining() == 0
    assert batch.ticks == 3
    assert completions == [1]
    assert processed == list(range(37))


def test_step_after_done_is_noop():
    completions = []
    batch = ChunkedBatch([1, 2], lambda _: None, lambda: completions.append(1), batch_size=15)
    batch.step()
    assert batch.step() == 0
    assert completions == [1]


@pytest.mark.asyncio
async def test_run_batch_yields_between_ticks():
    processed = []
    completions = []
    yields = []

    async def record_yield():
        yields.append(len(processed))

    batch = ChunkedBatch(list(range(37)), processed.append, lambda: completions.append(1), batch_size=15)
    ticks = await run_batch(batch, record_yield)

    assert ticks == 3
    assert yields == [15, 30]
    assert processed == list(range(37))
    assert completions == [1]


@pytest.mark.asyncio
async def test_empty_batch_completes_without_yield():
    completions = []
    yields = []

    async def record_yield():
        yields.append(1)

    batch = ChunkedBatch([], lambda _: None, lambda: completions.append(1))
    await run_batch(batch, record_yield)

    assert completions == [1]
    assert yields == []
    assert batch.done()


@pytest.mark.asyncio
async def test_default_yield_uses_event_loop():
    processed = []
    batch = ChunkedBatch(list(range(40)), processed.append, batch_size=15)
    assert await run_batch(batch) == 3
    assert processed == list(range(40))


def test_failing_item_is_not_retried():
    seen = []

    def process(item):
        seen.append(item)
        if item == 2:
            raise RuntimeError("boom")

    batch = ChunkedBatch([1, 2, 3], process, batch_size=15)
    with pytest.raises(RuntimeError):
        batch.step()
    assert batch.remaining() == 1
    assert not batch.done()


def test_batch_size_must_be_positive():
    with pytest.raises(ValueError):
        ChunkedBatch([1], lambda _: None, batch_size=0)
