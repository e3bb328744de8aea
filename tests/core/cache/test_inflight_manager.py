"""Tests for InFlightManager."""

from __future__ import annotations

import asyncio

import pytest

from core.cache.inflight_manager import InFlightManager
from models.analysis_models import AnalysisResult, TranslationPayload


@pytest.fixture
async def inflight_manager() -> InFlightManager:
    """Create and initialize InFlightManager."""
    manager = InFlightManager()
    await manager.component_load()
    return manager


def _result(text: str = "Hello") -> AnalysisResult:
    return AnalysisResult(confidence=0.9, provider_id="deepl", translation=TranslationPayload(text=text))


@pytest.mark.asyncio
async def test_mark_inflight_start_returns_none_when_not_initialized() -> None:
    """mark_inflight_start should no-op before component initialization."""
    manager = InFlightManager()

    result: AnalysisResult | None = await manager.mark_inflight_start("key")

    assert result is None
    assert manager.pending_count == 0


@pytest.mark.asyncio
async def test_follower_receives_producer_result(inflight_manager: InFlightManager) -> None:
    """A follower should get the result stored by the producer."""
    key = "shared-key"

    assert await inflight_manager.mark_inflight_start(key) is None
    waiter: asyncio.Task[AnalysisResult | None] = asyncio.create_task(inflight_manager.mark_inflight_start(key))
    await asyncio.sleep(0)

    await inflight_manager.store_inflight_result(key, _result())

    assert await waiter == _result()
    assert inflight_manager.pending_count == 0


@pytest.mark.asyncio
async def test_mark_inflight_start_timeout_does_not_cancel_shared_future(
    inflight_manager: InFlightManager, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Wait timeout should not cancel the producer-owned shared future."""
    key = "timeout-key"
    monkeypatch.setattr(InFlightManager, "INFLIGHT_TIMEOUT_SEC", 0.01)

    assert await inflight_manager.mark_inflight_start(key) is None
    shared_future: asyncio.Future[AnalysisResult] = inflight_manager._inflight[key]  # noqa: SLF001

    with pytest.raises(TimeoutError):
        await inflight_manager.mark_inflight_start(key)

    assert shared_future.cancelled() is False


@pytest.mark.asyncio
async def test_explicit_wait_timeout_overrides_default(
    inflight_manager: InFlightManager, monkeypatch: pytest.MonkeyPatch
) -> None:
    """A per-call wait should replace the class default in both directions."""
    key = "budget-key"
    monkeypatch.setattr(InFlightManager, "INFLIGHT_TIMEOUT_SEC", 0.01)

    assert await inflight_manager.mark_inflight_start(key) is None
    waiter: asyncio.Task[AnalysisResult | None] = asyncio.create_task(
        inflight_manager.mark_inflight_start(key, timeout_sec=1.0)
    )
    await asyncio.sleep(0.05)
    assert waiter.done() is False

    await inflight_manager.store_inflight_result(key, _result())
    assert await waiter == _result()

    assert await inflight_manager.mark_inflight_start(key) is None
    with pytest.raises(TimeoutError):
        await inflight_manager.mark_inflight_start(key, timeout_sec=0.01)


@pytest.mark.asyncio
async def test_cancelled_shared_future_surfaces_as_timeout(inflight_manager: InFlightManager) -> None:
    """Cancelled shared future should be converted to TimeoutError for callers."""
    key = "cancel-key"

    assert await inflight_manager.mark_inflight_start(key) is None
    waiter: asyncio.Task[AnalysisResult | None] = asyncio.create_task(inflight_manager.mark_inflight_start(key))
    await asyncio.sleep(0)

    inflight_manager._inflight[key].cancel()  # noqa: SLF001

    with pytest.raises(TimeoutError):
        await waiter


@pytest.mark.asyncio
async def test_store_inflight_exception_propagates_to_waiter(inflight_manager: InFlightManager) -> None:
    """Stored inflight exception should propagate to waiting callers."""
    key = "exception-key"

    assert await inflight_manager.mark_inflight_start(key) is None
    waiter: asyncio.Task[AnalysisResult | None] = asyncio.create_task(inflight_manager.mark_inflight_start(key))
    await asyncio.sleep(0)

    await inflight_manager.store_inflight_exception(key, RuntimeError("analysis failed"))

    with pytest.raises(RuntimeError, match="analysis failed"):
        await waiter


@pytest.mark.asyncio
async def test_teardown_cancels_pending(inflight_manager: InFlightManager) -> None:
    """Teardown should cancel every pending future."""
    assert await inflight_manager.mark_inflight_start("k") is None
    shared_future: asyncio.Future[AnalysisResult] = inflight_manager._inflight["k"]  # noqa: SLF001

    await inflight_manager.component_teardown()

    assert shared_future.cancelled() is True
    assert inflight_manager.pending_count == 0
