# ruff: noqa: BLE001
"""Request coordination in front of the orchestrator.

Three call patterns are offered:

- Debounced: only the last call of a burst per subject reaches the orchestrator. Calls superseded
  while still waiting are cancelled; calls superseded while already running have their result
  discarded, tracked with a per-subject generation counter.
- Serialized: calls for one subject run one at a time in submission order, with a short spacing
  between drained items. Every queued call eventually runs.
- Batch: calls are grouped by language pair and fanned out concurrently. Outcomes are settled
  individually and returned in the caller's order.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from models.analysis_models import AnalysisResult, BatchItemOutcome
from utils.excludable_queue import ExcludableQueue
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Sequence

    from config.loader import Config
    from core.analysis.orchestrator import FallbackOrchestrator
    from models.analysis_models import AnalysisRequest

__all__: list[str] = ["CoordinationPattern", "RequestCoordinator"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

type _QueueItem = tuple[AnalysisRequest, asyncio.Future[AnalysisResult]]


class CoordinationPattern(StrEnum):
    DIRECT = "direct"
    DEBOUNCED = "debounced"
    SERIALIZED = "serialized"


@dataclass
class _DebouncedCall:
    generation: int
    future: asyncio.Future[AnalysisResult]
    task: asyncio.Task[None] | None = None
    started: bool = False


class RequestCoordinator:
    """Debounces, serializes and batches requests for the orchestrator.

    Args:
        config (Config): Application configuration.
        orchestrator (FallbackOrchestrator): Orchestrator every call is eventually handed to.
    """

    def __init__(self, config: Config, orchestrator: FallbackOrchestrator) -> None:
        self.orchestrator: FallbackOrchestrator = orchestrator
        self._debounce_sec: float = config.COORDINATOR.DEBOUNCE_MS / 1000
        self._spacing_sec: float = config.COORDINATOR.SERIAL_SPACING_MS / 1000
        self._generations: dict[str, int] = {}
        self._debounced: dict[str, _DebouncedCall] = {}
        self._queues: dict[str, ExcludableQueue[_QueueItem]] = {}
        self._workers: dict[str, asyncio.Task[None]] = {}

    def current_generation(self, subject_id: str) -> int:
        return self._generations.get(subject_id, 0)

    async def submit(
        self,
        request: AnalysisRequest,
        pattern: CoordinationPattern = CoordinationPattern.DIRECT,
    ) -> AnalysisResult:
        """Run a request through the chosen call pattern.

        Args:
            request (AnalysisRequest): The request.
            pattern (CoordinationPattern): How the call is coordinated.

        Returns:
            AnalysisResult: The orchestrator's result.

        Raises:
            InvalidInputError: If the request fails validation.
            asyncio.CancelledError: If a debounced call is superseded.
        """
        match pattern:
            case CoordinationPattern.DEBOUNCED:
                return await self.submit_debounced(request)
            case CoordinationPattern.SERIALIZED:
                return await self.submit_serialized(request)
            case _:
                return await self.orchestrator.analyze(request)

    def submit_debounced(self, request: AnalysisRequest) -> asyncio.Future[AnalysisResult]:
        """Schedule a trailing-debounced call for the request's subject.

        Must be called from a running event loop.

        Args:
            request (AnalysisRequest): The request. Its ``subject_id`` defines the debounce group.

        Returns:
            asyncio.Future[AnalysisResult]: Resolved with the result, or cancelled when superseded.
        """
        subject: str = request.subject_id
        generation: int = self._generations.get(subject, 0) + 1
        self._generations[subject] = generation

        previous: _DebouncedCall | None = self._debounced.pop(subject, None)
        if previous is not None:
            if not previous.started and previous.task is not None:
                previous.task.cancel()
            if not previous.future.done():
                previous.future.cancel()
            logger.debug("Superseded debounced call for subject '%s' (generation %d)", subject, previous.generation)

        loop: asyncio.AbstractEventLoop = asyncio.get_running_loop()
        call = _DebouncedCall(generation=generation, future=loop.create_future())
        call.task = loop.create_task(self._run_debounced(request, call))
        self._debounced[subject] = call
        return call.future

    async def _run_debounced(self, request: AnalysisRequest, call: _DebouncedCall) -> None:
        subject: str = request.subject_id
        await asyncio.sleep(self._debounce_sec)
        # Past this point the call is abandoned rather than cancelled when superseded.
        call.started = True
        try:
            result: AnalysisResult = await self.orchestrator.analyze(request)
        except Exception as err:
            if self._generations.get(subject) == call.generation and not call.future.done():
                call.future.set_exception(err)
            return
        finally:
            if self._debounced.get(subject) is call:
                del self._debounced[subject]

        if self._generations.get(subject) != call.generation:
            logger.debug("Discarding result of superseded call for subject '%s' (generation %d)", subject, call.generation)
            return
        if not call.future.done():
            call.future.set_result(result)

    async def submit_serialized(self, request: AnalysisRequest) -> AnalysisResult:
        """Run the request after every earlier serialized call for the same subject.

        Args:
            request (AnalysisRequest): The request. Its ``subject_id`` defines the queue.

        Returns:
            AnalysisResult: The orchestrator's result.

        Raises:
            InvalidInputError: If the request fails validation.
        """
        subject: str = request.subject_id
        queue: ExcludableQueue[_QueueItem] | None = self._queues.get(subject)
        if queue is None:
            queue = ExcludableQueue()
            self._queues[subject] = queue

        future: asyncio.Future[AnalysisResult] = asyncio.get_running_loop().create_future()
        await queue.put((request, future))

        worker: asyncio.Task[None] | None = self._workers.get(subject)
        if worker is None or worker.done():
            self._workers[subject] = asyncio.create_task(self._drain(subject, queue))

        return await future

    async def _drain(self, subject: str, queue: ExcludableQueue[_QueueItem]) -> None:
        first: bool = True
        try:
            while not queue.empty():
                request, future = queue.get_nowait()
                try:
                    if not first:
                        await asyncio.sleep(self._spacing_sec)
                    first = False
                    if future.done():
                        continue
                    try:
                        result: AnalysisResult = await self.orchestrator.analyze(request)
                    except Exception as err:
                        if not future.done():
                            future.set_exception(err)
                    else:
                        if not future.done():
                            future.set_result(result)
                finally:
                    queue.task_done()
        finally:
            if self._workers.get(subject) is asyncio.current_task():
                del self._workers[subject]
            if queue.empty() and self._queues.get(subject) is queue:
                del self._queues[subject]
        logger.debug("Serialized queue drained for subject '%s'", subject)

    async def submit_batch(self, requests: Sequence[AnalysisRequest]) -> list[BatchItemOutcome]:
        """Analyze a set of requests concurrently, grouped by language pair.

        One item's failure never fails the batch.

        Args:
            requests (Sequence[AnalysisRequest]): Requests in the caller's order.

        Returns:
            list[BatchItemOutcome]: One outcome per request, at the request's original index.
        """
        groups: defaultdict[tuple[str, str], list[int]] = defaultdict(list)
        for index, request in enumerate(requests):
            groups[request.language_pair].append(index)

        outcomes: list[BatchItemOutcome | None] = [None] * len(requests)

        async def run_group(pair: tuple[str, str], indexes: list[int]) -> None:
            logger.debug("Batch group %s -> %s: %d items", pair[0] or "auto", pair[1] or "-", len(indexes))
            settled: list[AnalysisResult | BaseException] = await asyncio.gather(
                *(self.orchestrator.analyze(requests[index]) for index in indexes),
                return_exceptions=True,
            )
            for index, item in zip(indexes, settled, strict=True):
                outcome = BatchItemOutcome(index=index, input_text=requests[index].input_text)
                if isinstance(item, AnalysisResult):
                    outcome.result = item
                elif isinstance(item, Exception):
                    logger.warning("Batch item %d failed: %s", index, item)
                    outcome.error = item
                else:
                    raise item
                outcomes[index] = outcome

        await asyncio.gather(*(run_group(pair, indexes) for pair, indexes in groups.items()))
        return [outcome for outcome in outcomes if outcome is not None]

    async def close(self) -> None:
        """Cancel pending debounce timers and discard queued serialized calls."""
        for call in self._debounced.values():
            if call.task is not None and not call.task.done():
                call.task.cancel()
            if not call.future.done():
                call.future.cancel()
        self._debounced.clear()

        def cancel_future(item: _QueueItem) -> None:
            _, future = item
            if not future.done():
                future.cancel()

        for queue in list(self._queues.values()):
            await queue.clear(cancel_future)
        for worker in list(self._workers.values()):
            worker.cancel()
        await asyncio.gather(*self._workers.values(), return_exceptions=True)
        self._workers.clear()
        self._queues.clear()
        logger.info("RequestCoordinator closed")
