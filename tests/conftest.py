"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before anything imports the settings module,
so the global ``settings`` reflect the test environment.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"

os.environ.setdefault("OPENAI_API_KEY", "sk-test-123")
os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from unittest.mock import Mock  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402

from openai_extension.adapters.http.transport import HttpxTransport  # noqa: E402
from openai_extension.adapters.rate_limit.base import RateLimitConfig  # noqa: E402
from openai_extension.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter  # noqa: E402
from openai_extension.adapters.storage.in_memory import InMemoryArtifactStore  # noqa: E402
from openai_extension.services.provider import Provider, ProviderConfig  # noqa: E402


class RecordingHandler:
    """Callable for ``httpx.MockTransport`` that replays canned responses.

    Responses are returned in order; the last one repeats. An exception
    instance in the list is raised instead of answering.
    """

    def __init__(self, *responses: httpx.Response | Exception) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests), len(self.responses)) - 1
        response = self.responses[index]
        if isinstance(response, Exception):
            raise response
        # Fresh copy per call; httpx binds a response to a single request.
        return httpx.Response(response.status_code, headers=response.headers, content=response.content)


@pytest.fixture
def clock() -> Mock:
    return Mock(return_value=1_700_000_000.0)


@pytest.fixture
def store() -> InMemoryArtifactStore:
    return InMemoryArtifactStore()


@pytest.fixture
def limiter(clock: Mock) -> InMemoryFixedWindowRateLimiter:
    return InMemoryFixedWindowRateLimiter(clock=clock)


@pytest.fixture
def make_provider(clock: Mock, store: InMemoryArtifactStore, limiter: InMemoryFixedWindowRateLimiter):
    """Factory building a Provider around an ``httpx.MockTransport``.

    Usage:
        provider, handler = make_provider(httpx.Response(200, content=b"..."))
    """

    def _make(
        *responses: httpx.Response | Exception,
        user_limit: RateLimitConfig | None = None,
        global_limit: RateLimitConfig | None = None,
        **config_overrides,
    ) -> tuple[Provider, RecordingHandler]:
        handler = RecordingHandler(*(responses or (httpx.Response(200, content=b"audio"),)))
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        config = ProviderConfig(
            api_key=config_overrides.pop("api_key", "sk-test"),
            user_rate_limit=user_limit or RateLimitConfig(),
            global_rate_limit=global_limit or RateLimitConfig(),
            **config_overrides,
        )
        provider = Provider(
            config,
            rate_limiter=limiter,
            store=store,
            transport=HttpxTransport(client),
            clock=clock,
        )
        return provider, handler

    return _make
