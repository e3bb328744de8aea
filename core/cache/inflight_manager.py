from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, ClassVar

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from models.analysis_models import AnalysisResult


__all__: list[str] = ["InFlightManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class InFlightManager:
    """Coalesces concurrent identical analysis requests.

    The first caller for a cache key becomes the producer and runs the provider walk. Later callers
    with the same key wait for the producer's result instead of issuing their own provider calls.

    Attributes:
        INFLIGHT_TIMEOUT_SEC (float): How long a follower waits before giving up on the producer.
    """

    INFLIGHT_TIMEOUT_SEC: ClassVar[float] = 10.0

    def __init__(self) -> None:
        self._inflight: dict[str, asyncio.Future[AnalysisResult]] = {}
        self._lock: asyncio.Lock = asyncio.Lock()
        self._is_initialized: bool = False

    @property
    def pending_count(self) -> int:
        return len(self._inflight)

    async def component_load(self) -> None:
        self._is_initialized = True
        logger.info("InFlightManager initialized successfully")

    async def component_teardown(self) -> None:
        """Cancel pending futures and clear in-flight state."""
        self._is_initialized = False
        async with self._lock:
            for fut in self._inflight.values():
                if not fut.done():
                    fut.cancel()
            self._inflight.clear()
        logger.info("InFlightManager torn down and in-flight state cleared")

    async def mark_inflight_start(self, cache_key: str, timeout_sec: float | None = None) -> AnalysisResult | None:
        """Register the caller as producer, or wait for the current producer.

        Args:
            cache_key (str): Cache key of the request.
            timeout_sec (float | None): How long a follower waits. None uses ``INFLIGHT_TIMEOUT_SEC``.

        Returns:
            AnalysisResult | None: The producer's result when another request is already in flight,
            or None if the caller was registered as producer.

        Raises:
            TimeoutError: If waiting for the producer times out or the producer's future is cancelled.
            Exception: Whatever the producer stored with ``store_inflight_exception``.
        """
        if not self._is_initialized or not cache_key:
            return None

        async with self._lock:
            if cache_key not in self._inflight:
                loop: asyncio.AbstractEventLoop = asyncio.get_running_loop()
                fut: asyncio.Future[AnalysisResult] = loop.create_future()
                self._inflight[cache_key] = fut
                logger.debug("Marked in-flight start for key: %s", cache_key[:16])
                return None
            fut = self._inflight[cache_key]
            logger.debug("In-flight analysis detected for key: %s", cache_key[:16])

        wait_sec: float = self.INFLIGHT_TIMEOUT_SEC if timeout_sec is None else timeout_sec
        try:
            result: AnalysisResult = await asyncio.wait_for(asyncio.shield(fut), timeout=wait_sec)
            logger.debug("Received in-flight analysis result for key: %s", cache_key[:16])
        except (TimeoutError, asyncio.CancelledError):
            logger.warning("In-flight analysis abandoned for key: %s", cache_key[:16])
            async with self._lock:
                if self._inflight.get(cache_key) is fut:
                    self._inflight.pop(cache_key, None)
            msg: str = f"In-flight analysis timed out for key: {cache_key[:16]}"
            raise TimeoutError(msg) from None
        else:
            return result

    async def store_inflight_result(self, cache_key: str, result: AnalysisResult) -> None:
        """Complete the producer's future with a result.

        Args:
            cache_key (str): Cache key of the request.
            result (AnalysisResult): Result handed to every waiting follower.
        """
        if not cache_key:
            return

        async with self._lock:
            fut: asyncio.Future[AnalysisResult] | None = self._inflight.pop(cache_key, None)
            if fut and not fut.done():
                fut.set_result(result)
                logger.debug("Set in-flight analysis result for key: %s", cache_key[:16])

    async def store_inflight_exception(self, cache_key: str, exc: BaseException) -> None:
        """Complete the producer's future with an exception.

        Args:
            cache_key (str): Cache key of the request.
            exc (BaseException): Exception raised to every waiting follower.
        """
        if not cache_key:
            return

        async with self._lock:
            fut: asyncio.Future[AnalysisResult] | None = self._inflight.pop(cache_key, None)
            if fut and not fut.done():
                fut.set_exception(exc)
                # Followers may all have timed out already.
                fut.exception()
                logger.debug("Set in-flight analysis exception for key: %s", cache_key[:16])
