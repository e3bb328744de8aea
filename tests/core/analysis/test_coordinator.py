"""Tests for RequestCoordinator."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, cast

import pytest

from config.loader import Config
from core.analysis.coordinator import CoordinationPattern, RequestCoordinator
from core.analysis.errors import InvalidInputError
from models.analysis_models import AnalysisRequest, AnalysisResult, Operation, TranslationPayload

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from core.analysis.orchestrator import FallbackOrchestrator
    from models.analysis_models import BatchItemOutcome


class FakeOrchestrator:
    """Records requests and echoes their text back after an optional delay."""

    def __init__(self, delay_sec: float = 0.0) -> None:
        self.delay_sec: float = delay_sec
        self.requests: list[AnalysisRequest] = []
        self.events: list[str] = []

    async def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        self.requests.append(request)
        self.events.append(f"start:{request.input_text}")
        if len(request.input_text.strip()) < 2:
            msg = "too short"
            raise InvalidInputError(msg)
        await asyncio.sleep(self.delay_sec)
        self.events.append(f"end:{request.input_text}")
        return AnalysisResult(confidence=0.9, provider_id="fake", translation=TranslationPayload(text=request.input_text))


@pytest.fixture
def config() -> Config:
    config = Config()
    config.COORDINATOR.DEBOUNCE_MS = 200
    config.COORDINATOR.SERIAL_SPACING_MS = 10
    return config


@pytest.fixture
def orchestrator() -> FakeOrchestrator:
    return FakeOrchestrator()


@pytest.fixture
async def coordinator(config: Config, orchestrator: FakeOrchestrator) -> AsyncGenerator[RequestCoordinator]:
    request_coordinator = RequestCoordinator(config, cast("FallbackOrchestrator", orchestrator))
    yield request_coordinator
    await request_coordinator.close()


def _request(text: str, subject: str = "user-1", *, src: str | None = "fr", tgt: str | None = "en") -> AnalysisRequest:
    return AnalysisRequest(
        operation=Operation.TRANSLATE, input_text=text, subject_id=subject, source_language=src, target_language=tgt
    )


@pytest.mark.asyncio
async def test_direct_submit_calls_orchestrator(coordinator: RequestCoordinator, orchestrator: FakeOrchestrator) -> None:
    result: AnalysisResult = await coordinator.submit(_request("Bonjour"))

    assert result.translation is not None
    assert result.translation.text == "Bonjour"
    assert len(orchestrator.requests) == 1


@pytest.mark.asyncio
async def test_burst_of_debounced_calls_runs_only_the_last(
    coordinator: RequestCoordinator, orchestrator: FakeOrchestrator
) -> None:
    """Five calls within 100 ms should reach the orchestrator once, with the last parameters."""
    futures: list[asyncio.Future[AnalysisResult]] = []
    for index in range(5):
        futures.append(coordinator.submit_debounced(_request(f"draft {index}")))
        await asyncio.sleep(0.02)

    await asyncio.wait(futures, timeout=2.0)

    assert [request.input_text for request in orchestrator.requests] == ["draft 4"]
    assert all(future.cancelled() for future in futures[:4])
    assert futures[4].result().translation == TranslationPayload(text="draft 4")
    assert coordinator.current_generation("user-1") == 5


@pytest.mark.asyncio
async def test_debounce_is_per_subject(coordinator: RequestCoordinator, orchestrator: FakeOrchestrator) -> None:
    first = coordinator.submit_debounced(_request("from alice", "alice"))
    second = coordinator.submit_debounced(_request("from bob", "bob"))

    await asyncio.wait([first, second], timeout=2.0)

    assert sorted(request.input_text for request in orchestrator.requests) == ["from alice", "from bob"]


@pytest.mark.asyncio
async def test_result_of_superseded_running_call_is_discarded(config: Config) -> None:
    """A call already running when superseded should not resolve its future with a stale result."""
    orchestrator = FakeOrchestrator(delay_sec=0.2)
    config.COORDINATOR.DEBOUNCE_MS = 10
    coordinator = RequestCoordinator(config, cast("FallbackOrchestrator", orchestrator))
    try:
        first = coordinator.submit_debounced(_request("old draft"))
        await asyncio.sleep(0.05)
        assert orchestrator.events == ["start:old draft"]

        second = coordinator.submit_debounced(_request("new draft"))
        await asyncio.wait([second], timeout=2.0)
        await asyncio.sleep(0.2)

        assert first.cancelled() is True
        assert second.result().translation == TranslationPayload(text="new draft")
    finally:
        await coordinator.close()


@pytest.mark.asyncio
async def test_debounced_error_reaches_caller(coordinator: RequestCoordinator) -> None:
    future = coordinator.submit_debounced(_request("x"))

    with pytest.raises(InvalidInputError):
        await future


@pytest.mark.asyncio
async def test_serialized_calls_run_in_submission_order(config: Config) -> None:
    """Three calls for one subject should run one at a time in order."""
    orchestrator = FakeOrchestrator(delay_sec=0.02)
    coordinator = RequestCoordinator(config, cast("FallbackOrchestrator", orchestrator))
    try:
        tasks = [
            asyncio.create_task(coordinator.submit(_request(text), CoordinationPattern.SERIALIZED))
            for text in ("one", "two", "three")
        ]
        results: list[AnalysisResult] = await asyncio.gather(*tasks)
    finally:
        await coordinator.close()

    assert [result.translation.text for result in results if result.translation] == ["one", "two", "three"]
    assert orchestrator.events == ["start:one", "end:one", "start:two", "end:two", "start:three", "end:three"]


@pytest.mark.asyncio
async def test_serialized_failure_does_not_block_queue(coordinator: RequestCoordinator) -> None:
    failing = asyncio.create_task(coordinator.submit_serialized(_request("x")))
    following = asyncio.create_task(coordinator.submit_serialized(_request("still runs")))

    with pytest.raises(InvalidInputError):
        await failing
    result: AnalysisResult = await following

    assert result.translation == TranslationPayload(text="still runs")


@pytest.mark.asyncio
async def test_subjects_are_serialized_independently(config: Config) -> None:
    orchestrator = FakeOrchestrator(delay_sec=0.05)
    coordinator = RequestCoordinator(config, cast("FallbackOrchestrator", orchestrator))
    try:
        await asyncio.gather(
            coordinator.submit_serialized(_request("alice", "alice")),
            coordinator.submit_serialized(_request("bob", "bob")),
        )
    finally:
        await coordinator.close()

    assert orchestrator.events[:2] == ["start:alice", "start:bob"]


@pytest.mark.asyncio
async def test_batch_keeps_original_order_and_isolates_failures(
    coordinator: RequestCoordinator, orchestrator: FakeOrchestrator
) -> None:
    requests: list[AnalysisRequest] = [
        _request("Bonjour", tgt="en"),
        _request("Hallo", src="de", tgt="fr"),
        _request("x", tgt="en"),
        _request("Merci", tgt="en"),
    ]

    outcomes: list[BatchItemOutcome] = await coordinator.submit_batch(requests)

    assert [outcome.index for outcome in outcomes] == [0, 1, 2, 3]
    assert [outcome.input_text for outcome in outcomes] == ["Bonjour", "Hallo", "x", "Merci"]
    assert [outcome.ok for outcome in outcomes] == [True, True, False, True]
    assert isinstance(outcomes[2].error, InvalidInputError)
    assert outcomes[3].result is not None
    assert outcomes[3].result.translation == TranslationPayload(text="Merci")
    assert len(orchestrator.requests) == 4


@pytest.mark.asyncio
async def test_close_cancels_pending_debounce(coordinator: RequestCoordinator, orchestrator: FakeOrchestrator) -> None:
    future = coordinator.submit_debounced(_request("never sent"))

    await coordinator.close()
    await asyncio.sleep(0.25)

    assert future.cancelled() is True
    assert orchestrator.requests == []
