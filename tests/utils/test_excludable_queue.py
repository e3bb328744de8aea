import asyncio

import pytest

from utils.excludable_queue import ExcludableQueue


@pytest.mark.asyncio
async def test_clear_with_sync_callback() -> None:
    q = ExcludableQueue[str]()
    await q.put("item1")
    called = []

    def sync_callback(item) -> None:
        called.append(item)

    removed = await q.clear(callback=sync_callback)
    assert called == ["item1"]
    assert removed == 1
    assert q.empty()


@pytest.mark.asyncio
async def test_clear_with_async_callback() -> None:
    q = ExcludableQueue[str]()
    await q.put("item2")
    called = []

    async def async_callback(item) -> None:
        called.append(item)

    await q.clear(callback=async_callback)
    assert called == ["item2"]
    assert q.empty()


@pytest.mark.asyncio
async def test_clear_continues_after_callback_error() -> None:
    q = ExcludableQueue[str]()
    for item in ("bad", "good"):
        await q.put(item)
    called = []

    def callback(item) -> None:
        if item == "bad":
            msg = "boom"
            raise RuntimeError(msg)
        called.append(item)

    removed = await q.clear(callback=callback)
    assert removed == 2
    assert called == ["good"]


@pytest.mark.asyncio
async def test_clear_marks_items_done() -> None:
    q = ExcludableQueue[str]()
    await q.put("item3")

    await q.clear()
    await asyncio.wait_for(q.join(), timeout=1.0)


@pytest.mark.asyncio
async def test_items_keep_fifo_order() -> None:
    q = ExcludableQueue[int]()
    for item in range(3):
        await q.put(item)

    assert [q.get_nowait() for _ in range(3)] == [0, 1, 2]
