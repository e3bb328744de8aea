from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Awaitable, Callable

__all__: list[str] = ["ExcludableQueue"]

T = TypeVar("T")

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class ExcludableQueue(asyncio.Queue[Any], Generic[T]):
    """FIFO queue whose ``put`` and ``clear`` never interleave.

    Used for per-subject request queues: ``clear`` drains pending items and hands each one to
    a callback so that waiting callers can be released when the queue is discarded.
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._lock = asyncio.Lock()

    async def put(self, item: T) -> None:
        """Add an item, waiting for a running ``clear`` to finish first.

        Args:
            item (T): The item to add to the queue.
        """
        async with self._lock:
            await super().put(item)

    async def clear(self, callback: Callable[[T], None] | Callable[[T], Awaitable[None]] | None = None) -> int:
        """Remove every pending item, applying ``callback`` to each.

        Callback errors are logged and do not stop the drain. Each removed item is marked done so
        that ``join`` does not hang on discarded work.

        Args:
            callback (Callable[[T], None] | Callable[[T], Awaitable[None]] | None):
                Sync or async function applied to every removed item.

        Returns:
            int: Number of removed items.
        """
        removed: int = 0
        async with self._lock:
            while not self.empty():
                try:
                    item: T = self.get_nowait()
                except asyncio.QueueEmpty:
                    break
                removed += 1
                self.task_done()
                if callback is None:
                    continue
                try:
                    result: Awaitable[None] | None = callback(item)
                    if asyncio.iscoroutine(result):
                        await result
                except Exception as err:  # noqa: BLE001
                    logger.error("Callback error for item %r: %r", item, err)
        logger.debug("Queue cleared (%d items)", removed)
        return removed
