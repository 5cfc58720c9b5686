"""Unit tests for in-memory rate limiter adapter."""

from unittest.mock import Mock

import pytest

from openai_extension.adapters.rate_limit.base import (
    GLOBAL_SCOPE_KEY,
    RateLimitConfig,
    user_scope_key,
)
from openai_extension.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter


def enabled(limit: int, window_seconds: int = 60) -> RateLimitConfig:
    return RateLimitConfig(enabled=True, limit=limit, window_seconds=window_seconds)


def test_allows_up_to_limit_in_same_window() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(clock=clock)
    config = enabled(3)

    assert limiter.consume("k", config).allowed is True
    assert limiter.consume("k", config).allowed is True
    result = limiter.consume("k", config)
    assert result.allowed is True
    assert result.remaining == 0


def test_blocks_when_over_limit() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(clock=clock)
    config = enabled(2)

    assert limiter.consume("k", config).allowed is True
    assert limiter.consume("k", config).allowed is True

    blocked = limiter.consume("k", config)
    assert blocked.allowed is False
    assert blocked.remaining == 0
    assert blocked.retry_after_seconds == 60
    assert blocked.reset_at == 1060


def test_denied_requests_do_not_count() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(clock=clock)
    config = enabled(1)

    limiter.consume("k", config)
    limiter.consume("k", config)
    limiter.consume("k", config)

    assert limiter.count("k") == 1


def test_resets_on_new_window() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(clock=clock)
    config = enabled(1, window_seconds=10)

    assert limiter.consume("k", config).allowed is True
    assert limiter.consume("k", config).allowed is False

    clock.return_value = 1009.9
    assert limiter.consume("k", config).allowed is False

    clock.return_value = 1010.0
    assert limiter.consume("k", config).allowed is True


def test_window_is_anchored_at_first_request() -> None:
    clock = Mock(return_value=1005.0)
    limiter = InMemoryFixedWindowRateLimiter(clock=clock)
    config = enabled(1, window_seconds=10)

    first = limiter.consume("k", config)
    assert first.reset_at == 1015


def test_explicit_now_overrides_clock() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(clock=clock)
    config = enabled(1, window_seconds=10)

    assert limiter.consume("k", config, now=500.0).allowed is True
    assert limiter.consume("k", config, now=505.0).allowed is False
    assert limiter.consume("k", config, now=510.0).allowed is True
    clock.assert_not_called()


def test_isolated_by_key() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(clock=clock)
    config = enabled(1)

    assert limiter.consume(user_scope_key(1), config).allowed is True
    assert limiter.consume(user_scope_key(1), config).allowed is False

    assert limiter.consume(user_scope_key(2), config).allowed is True
    assert limiter.consume(GLOBAL_SCOPE_KEY, config).allowed is True


def test_disabled_config_always_allows_without_counting() -> None:
    limiter = InMemoryFixedWindowRateLimiter(clock=Mock(return_value=1000.0))
    config = RateLimitConfig(enabled=False, limit=0)

    for _ in range(5):
        assert limiter.consume("k", config).allowed is True

    assert limiter.count("k") == 0


def test_zero_limit_denies_every_request() -> None:
    limiter = InMemoryFixedWindowRateLimiter(clock=Mock(return_value=1000.0))

    assert limiter.consume("k", enabled(0)).allowed is False


def test_reset_single_key_and_all() -> None:
    limiter = InMemoryFixedWindowRateLimiter(clock=Mock(return_value=1000.0))
    config = enabled(1)

    limiter.consume("a", config)
    limiter.consume("b", config)

    limiter.reset("a")
    assert limiter.allow("a", config) is True
    assert limiter.allow("b", config) is False

    limiter.reset()
    assert limiter.allow("b", config) is True


def test_user_scope_key_format() -> None:
    assert user_scope_key(42) == "user:42"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"enabled": True, "limit": -1, "window_seconds": 60},
        {"enabled": True, "limit": 1, "window_seconds": 0},
    ],
)
def test_invalid_config_args(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        RateLimitConfig(**kwargs)


def test_invalid_consume_args() -> None:
    limiter = InMemoryFixedWindowRateLimiter()

    with pytest.raises(ValueError):
        limiter.consume("", enabled(1))
