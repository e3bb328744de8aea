"""Per-provider fixed-window rate limiting with adaptive cooldown.

Windows reset in full once their duration has elapsed, so a burst straddling a window boundary can
admit up to twice the limit within one window length. Calls are never queued: a refused call makes
the orchestrator move on to the next provider.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from models.provider_models import RateLimitWindow
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable, Mapping

__all__: list[str] = ["RateLimiter"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

COOLDOWN_LOG_INTERVAL_SEC: float = 5.0


@dataclass
class _Cooldown:
    error_count: int = 0
    last_error: float = 0.0
    until: float = 0.0
    last_log: float = 0.0


class RateLimiter:
    """Admits provider calls against per-provider fixed windows.

    Args:
        limits (Mapping[str, int]): Maximum admitted calls per window, keyed by provider id.
            Providers without an entry are always admitted.
        window_ms (int): Window length in milliseconds.
        clock (Callable[[], float]): Monotonic clock in seconds, injectable for tests.
        adaptive_cooldown (bool): Whether ``register_rate_limit`` blocks the provider temporarily.
        base_cooldown_sec (float): First cooldown period after an upstream rate-limit report.
        max_cooldown_sec (float): Upper bound of the exponential cooldown.
        cooldown_reset_sec (float): Quiet period after which the back-off counter restarts.
    """

    def __init__(
        self,
        limits: Mapping[str, int],
        window_ms: int,
        clock: Callable[[], float] = time.monotonic,
        *,
        adaptive_cooldown: bool = True,
        base_cooldown_sec: float = 1.0,
        max_cooldown_sec: float = 30.0,
        cooldown_reset_sec: float = 60.0,
    ) -> None:
        self._limits: dict[str, int] = dict(limits)
        self._window_ms: int = window_ms
        self._clock: Callable[[], float] = clock
        self._adaptive_cooldown: bool = adaptive_cooldown
        self._base_cooldown_sec: float = base_cooldown_sec
        self._max_cooldown_sec: float = max_cooldown_sec
        self._cooldown_reset_sec: float = cooldown_reset_sec
        self._windows: dict[str, RateLimitWindow] = {}
        self._cooldowns: dict[str, _Cooldown] = {}

    def try_admit(self, provider_id: str) -> bool:
        """Admit one call to ``provider_id`` if its window and cooldown allow it.

        Args:
            provider_id (str): Provider to call.

        Returns:
            bool: True if the call was admitted and counted, False otherwise.
        """
        now: float = self._clock()
        if self._cooling_down(provider_id, now):
            return False

        limit: int | None = self._limits.get(provider_id)
        if limit is None:
            return True

        window: RateLimitWindow | None = self._windows.get(provider_id)
        if window is None or (now - window.window_started_at) * 1000 > window.window_duration_ms:
            window = RateLimitWindow(
                provider_id=provider_id,
                window_started_at=now,
                request_count=0,
                limit=limit,
                window_duration_ms=self._window_ms,
            )
            self._windows[provider_id] = window

        if window.request_count >= window.limit:
            logger.debug("Rate limit window exhausted for '%s' (%d/%d)", provider_id, window.request_count, limit)
            return False

        window.request_count += 1
        return True

    def register_rate_limit(self, provider_id: str) -> float:
        """Record an upstream rate-limit report and extend the provider's cooldown.

        The cooldown doubles with each report, starting at the base period, capped at the maximum, and
        restarts from the base after a quiet period.

        Args:
            provider_id (str): Provider that reported rate limiting.

        Returns:
            float: Cooldown period applied, in seconds. 0 when adaptive cooldown is disabled.
        """
        if not self._adaptive_cooldown:
            return 0.0

        now: float = self._clock()
        state: _Cooldown = self._cooldowns.setdefault(provider_id, _Cooldown())
        if now - state.last_error > self._cooldown_reset_sec:
            state.error_count = 0

        state.error_count += 1
        state.last_error = now

        backoff: float = self._base_cooldown_sec * (2 ** (state.error_count - 1))
        backoff = min(backoff, self._max_cooldown_sec)
        state.until = max(state.until, now + backoff)
        logger.warning("Provider '%s' rate limited upstream, cooling down for %.1f sec", provider_id, backoff)
        return backoff

    def window(self, provider_id: str) -> RateLimitWindow | None:
        return self._windows.get(provider_id)

    def snapshot(self) -> dict[str, int]:
        """Return the admitted call count of each provider's current window.

        Returns:
            dict[str, int]: Counts keyed by provider id. Expired windows report 0.
        """
        now: float = self._clock()
        return {
            provider_id: 0 if (now - window.window_started_at) * 1000 > window.window_duration_ms else window.request_count
            for provider_id, window in self._windows.items()
        }

    def _cooling_down(self, provider_id: str, now: float) -> bool:
        state: _Cooldown | None = self._cooldowns.get(provider_id)
        if state is None or now >= state.until:
            return False
        if now - state.last_log >= COOLDOWN_LOG_INTERVAL_SEC:
            logger.warning("Provider '%s' temporarily throttled (%.1f sec remaining)", provider_id, state.until - now)
            state.last_log = now
        return True
