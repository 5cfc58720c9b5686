"""OpenAI provider: configuration, action catalogue, rate limits, routing."""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Mapping

from openai_extension.actions.definitions import FieldDefinition, SettingDefinition
from openai_extension.actions.models import Action, ActionFailure, ActionKind, ActionResult, RequestPayload
from openai_extension.actions.registry import ADAPTERS, get_adapter
from openai_extension.adapters.http.transport import AbstractTransport
from openai_extension.adapters.rate_limit.base import (
    GLOBAL_SCOPE_KEY,
    AbstractRateLimiter,
    RateLimitConfig,
    user_scope_key,
)
from openai_extension.adapters.storage.base import AbstractArtifactStore
from openai_extension.core.config import Settings
from openai_extension.services.processor import ActionProcessor

logger = logging.getLogger(__name__)

RATE_LIMIT_ERROR_CODE = 429
USER_RATE_LIMIT_MESSAGE = "User rate limit exceeded"
GLOBAL_RATE_LIMIT_MESSAGE = "Global rate limit exceeded"


@dataclass(frozen=True)
class ProviderConfig:
    """Everything the provider needs, passed in explicitly.

    Attributes:
        api_key: OpenAI API key.
        org_id: Optional OpenAI organization id.
        site_identifier: Salt for hashed user ids.
        timeout_seconds: Bound for one outbound call.
        user_rate_limit: Per-user scope settings.
        global_rate_limit: Global scope settings.
        actions: Per-action settings; adapter defaults are used when missing.
    """

    api_key: str | None = None
    org_id: str | None = None
    site_identifier: str = "openai-extension"
    timeout_seconds: float = 30.0
    user_rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    global_rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    actions: Mapping[ActionKind, Any] = field(default_factory=dict)

    @classmethod
    def from_settings(cls, settings: Settings) -> ProviderConfig:
        limits = settings.rate_limit
        return cls(
            api_key=settings.openai.api_key,
            org_id=settings.openai.org_id,
            site_identifier=settings.openai.site_identifier,
            timeout_seconds=settings.openai.timeout_seconds,
            user_rate_limit=RateLimitConfig(
                enabled=limits.user_enabled,
                limit=limits.user_limit,
                window_seconds=limits.window_seconds,
            ),
            global_rate_limit=RateLimitConfig(
                enabled=limits.global_enabled,
                limit=limits.global_limit,
                window_seconds=limits.window_seconds,
            ),
            actions={
                ActionKind.CONVERT_TEXT_TO_SPEECH: settings.tts,
                ActionKind.GENERATE_IMAGE: settings.image,
            },
        )


class Provider:
    """Facade in front of the action processors.

    Holds the collaborators shared by all actions: the rate limiter (shared
    counters), the artifact store, the outbound transport and the clock.
    """

    def __init__(
        self,
        config: ProviderConfig,
        *,
        rate_limiter: AbstractRateLimiter,
        store: AbstractArtifactStore,
        transport: AbstractTransport,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config
        self.rate_limiter = rate_limiter
        self.store = store
        self.transport = transport
        self.clock = clock

    def get_action_list(self) -> list[ActionKind]:
        return list(ADAPTERS)

    def is_provider_configured(self) -> bool:
        """True when the minimal credentials (an API key) are present."""
        return bool(self.config.api_key)

    def action_config(self, kind: ActionKind) -> Any:
        config = self.config.actions.get(kind)
        return config if config is not None else get_adapter(kind).default_config()

    def get_action_settings(self, kind: ActionKind) -> tuple[SettingDefinition, ...]:
        return get_adapter(kind).settings_definitions()

    def get_request_definition(self, kind: ActionKind) -> dict[str, FieldDefinition]:
        return get_adapter(kind).request_definition()

    def generate_userid(self, user_id: int | str) -> str:
        """Hash a user id so the provider never sees the real one (64 hex chars)."""
        return hashlib.sha256(f"{self.config.site_identifier}{user_id}".encode("utf-8")).hexdigest()

    def add_authentication_headers(self, payload: RequestPayload) -> RequestPayload:
        headers = {"Authorization": f"Bearer {self.config.api_key or ''}"}
        if self.config.org_id:
            headers["OpenAI-Organization"] = self.config.org_id
        return payload.with_headers(headers)

    def is_request_allowed(self, action: Action, now: float | None = None) -> Literal[True] | ActionFailure:
        """Consume rate limit budget for ``action``.

        The user scope is checked first; a denial there returns immediately
        without touching the global scope.

        Returns:
            True when allowed, otherwise the 429 failure of the denying scope.
        """
        if now is None:
            now = self.clock()

        scopes = (
            (user_scope_key(action.user_id), self.config.user_rate_limit, USER_RATE_LIMIT_MESSAGE, "user"),
            (GLOBAL_SCOPE_KEY, self.config.global_rate_limit, GLOBAL_RATE_LIMIT_MESSAGE, "global"),
        )
        for scope_key, scope_config, message, scope in scopes:
            result = self.rate_limiter.consume(scope_key, scope_config, now)
            if result.allowed:
                continue

            logger.warning(
                "rate_limit.exceeded",
                extra={
                    "scope": scope,
                    "action": action.name,
                    "user_id": action.user_id,
                    "limit": result.limit,
                    "window_s": scope_config.window_seconds,
                    "retry_after_s": result.retry_after_seconds,
                },
            )
            return ActionFailure(
                action_name=action.name,
                error_code=RATE_LIMIT_ERROR_CODE,
                error_message=message,
            )

        return True

    def create_processor(self, action: Action) -> ActionProcessor:
        """Return a processor for ``action``.

        Raises:
            ConfigurationAppError: If the action kind is not supported.
        """
        return ActionProcessor(self, action, get_adapter(action.kind))

    async def process_action(self, action: Action) -> ActionResult:
        return await self.create_processor(action).process()
