"""Fixed-window counters kept in a dict guarded by a lock.

Counters live in this process only: with N workers each scope effectively
allows N times its limit.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from openai_extension.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitConfig,
    RateLimitResult,
)


@dataclass
class _WindowState:
    window_start: float
    count: int


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Fixed window per scope key.

    A window opens with the first request seen for a key and lasts
    ``window_seconds``. It is only replaced when a request arrives after it
    has expired; nothing is reset proactively.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._windows: dict[str, _WindowState] = {}

    def _get_or_reset_state(self, key: str, now: float, window_seconds: int) -> _WindowState:
        """Return the live window of ``key``, opening a new one when expired."""
        state = self._windows.get(key)
        if state is None or now - state.window_start >= window_seconds:
            state = _WindowState(window_start=now, count=0)
            self._windows[key] = state
        return state

    def consume(
        self,
        scope_key: str,
        config: RateLimitConfig,
        now: float | None = None,
    ) -> RateLimitResult:
        """Consume one unit of budget for ``scope_key``.

        Raises:
            ValueError: If scope_key is empty.
        """
        if not scope_key:
            raise ValueError("scope_key must be a non-empty string")

        if now is None:
            now = self._clock()

        if not config.enabled:
            return RateLimitResult(
                allowed=True,
                limit=config.limit,
                remaining=config.limit,
                reset_at=int(now),
                retry_after_seconds=None,
            )

        with self._lock:
            state = self._get_or_reset_state(scope_key, now, config.window_seconds)
            reset_at = state.window_start + config.window_seconds

            if state.count < config.limit:
                state.count += 1
                return RateLimitResult(
                    allowed=True,
                    limit=config.limit,
                    remaining=config.limit - state.count,
                    reset_at=int(reset_at),
                    retry_after_seconds=None,
                )

            return RateLimitResult(
                allowed=False,
                limit=config.limit,
                remaining=0,
                reset_at=int(reset_at),
                retry_after_seconds=max(0, int(math.ceil(reset_at - now))),
            )

    def reset(self, scope_key: str | None = None) -> None:
        with self._lock:
            if scope_key is None:
                self._windows.clear()
            else:
                self._windows.pop(scope_key, None)

    def count(self, scope_key: str) -> int:
        """Return the units used in the current window of ``scope_key``."""
        with self._lock:
            state = self._windows.get(scope_key)
            return state.count if state else 0
