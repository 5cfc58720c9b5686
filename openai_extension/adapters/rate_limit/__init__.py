"""Rate limiting adapters.

This package provides a small abstraction layer so the provider can start
with an in-memory limiter and later migrate to Redis or another shared store
without changing the processing pipeline.
"""

from openai_extension.adapters.rate_limit.base import (
    GLOBAL_SCOPE_KEY,
    AbstractRateLimiter,
    RateLimitConfig,
    RateLimitResult,
    user_scope_key,
)
from openai_extension.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

__all__ = [
    "GLOBAL_SCOPE_KEY",
    "AbstractRateLimiter",
    "InMemoryFixedWindowRateLimiter",
    "RateLimitConfig",
    "RateLimitResult",
    "user_scope_key",
]
