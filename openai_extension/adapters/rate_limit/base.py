"""Rate limiter interfaces.

The provider depends on this abstraction (not the concrete implementation)
so counters can move to a shared store (e.g., Redis) when several processes
must enforce one budget.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

USER_SCOPE_PREFIX = "user:"
GLOBAL_SCOPE_KEY = "global"


def user_scope_key(user_id: int | str) -> str:
    """Return the counter key of a single user."""
    return f"{USER_SCOPE_PREFIX}{user_id}"


@dataclass(frozen=True)
class RateLimitConfig:
    """Settings of one rate limit scope.

    Attributes:
        enabled: When False every request is allowed and nothing is counted.
        limit: Requests allowed per window (0 denies everything when enabled).
        window_seconds: Length of the fixed window.
    """

    enabled: bool = False
    limit: int = 0
    window_seconds: int = 3600

    def __post_init__(self) -> None:
        if self.limit < 0:
            raise ValueError("limit must be >= 0")
        if self.window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of one ``consume`` call.

    ``remaining`` is 0 on denial; ``reset_at`` is the epoch second the current
    window closes and ``retry_after_seconds`` is only set when denied.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters keyed by scope."""

    @abstractmethod
    def consume(
        self,
        scope_key: str,
        config: RateLimitConfig,
        now: float | None = None,
    ) -> RateLimitResult:
        """Check the budget of ``scope_key`` and take one unit when allowed.

        The check, the window reset and the increment must be atomic with
        respect to other callers using the same key.

        Args:
            scope_key: Counter identity (``user:<id>`` or ``global``).
            config: Settings of the scope.
            now: UNIX time in seconds; the limiter clock is used when omitted.

        Returns:
            The decision and the state of the window after it.
        """
        raise NotImplementedError

    @abstractmethod
    def reset(self, scope_key: str | None = None) -> None:
        """Forget the counter of ``scope_key`` (or every counter)."""
        raise NotImplementedError

    def allow(
        self,
        scope_key: str,
        config: RateLimitConfig,
        now: float | None = None,
    ) -> bool:
        """Boolean shortcut over :meth:`consume`."""
        return self.consume(scope_key, config, now).allowed
