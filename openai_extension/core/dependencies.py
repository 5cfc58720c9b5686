"""Process-wide wiring of the provider and its collaborators.

This is the only place that reads the global ``settings``; everything below
it receives explicit configuration. Instances are cached in-module so rate
limit counters and stored artifacts survive across requests. If the
configuration changes (primarily in tests), the provider is rebuilt while
the limiter and store keep their state.
"""

from __future__ import annotations

import logging

from openai_extension.adapters.http.transport import AbstractTransport, HttpxTransport
from openai_extension.adapters.rate_limit.base import AbstractRateLimiter
from openai_extension.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from openai_extension.adapters.storage.base import AbstractArtifactStore
from openai_extension.adapters.storage.filesystem import FilesystemArtifactStore
from openai_extension.adapters.storage.in_memory import InMemoryArtifactStore
from openai_extension.core.config import StorageSettings, settings
from openai_extension.core.errors import ConfigurationAppError
from openai_extension.services.provider import Provider, ProviderConfig

logger = logging.getLogger(__name__)

_limiter: AbstractRateLimiter | None = None
_store: AbstractArtifactStore | None = None
_transport: AbstractTransport | None = None
_provider: Provider | None = None
_provider_config: ProviderConfig | None = None


def build_artifact_store(storage_settings: StorageSettings) -> AbstractArtifactStore:
    """Instantiate the artifact store selected by configuration.

    Raises:
        ConfigurationAppError: If the backend name is unknown.
    """
    backend = storage_settings.backend.lower()

    if backend == "memory":
        return InMemoryArtifactStore()
    if backend == "filesystem":
        return FilesystemArtifactStore(storage_settings.root)

    raise ConfigurationAppError(
        code="unknown_storage_backend",
        message=f"Unknown storage backend: '{backend}'. Supported backends: memory, filesystem",
    )


def get_rate_limiter() -> AbstractRateLimiter:
    global _limiter
    if _limiter is None:
        _limiter = InMemoryFixedWindowRateLimiter()
    return _limiter


def get_artifact_store() -> AbstractArtifactStore:
    global _store
    if _store is None:
        _store = build_artifact_store(settings.storage)
    return _store


def get_transport() -> AbstractTransport:
    global _transport
    if _transport is None:
        _transport = HttpxTransport()
    return _transport


def get_provider() -> Provider:
    """Return the process-wide provider, rebuilt when settings change."""
    global _provider, _provider_config

    config = ProviderConfig.from_settings(settings)
    if _provider is None or _provider_config != config:
        _provider = Provider(
            config,
            rate_limiter=get_rate_limiter(),
            store=get_artifact_store(),
            transport=get_transport(),
        )
        _provider_config = config
        logger.info(
            "provider.initialized",
            extra={
                "configured": _provider.is_provider_configured(),
                "actions": [kind.value for kind in _provider.get_action_list()],
                "user_rate_limit": config.user_rate_limit.enabled,
                "global_rate_limit": config.global_rate_limit.enabled,
            },
        )

    return _provider


def reset_dependencies() -> None:
    """Drop cached instances (tests)."""
    global _limiter, _store, _transport, _provider, _provider_config
    _limiter = None
    _store = None
    _transport = None
    _provider = None
    _provider_config = None
