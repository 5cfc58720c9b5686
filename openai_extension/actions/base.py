"""Contract shared by the per-action request adapters."""

from __future__ import annotations

import json
import secrets
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Generic, Mapping, TypeVar

from openai_extension.actions.definitions import (
    ACTION_SETTINGS,
    REQUEST_DEFINITIONS,
    FieldDefinition,
    SettingDefinition,
)
from openai_extension.actions.models import (
    Action,
    ActionFailure,
    ActionKind,
    ApiPayload,
    HttpResponse,
    RequestPayload,
)
from openai_extension.adapters.storage.base import ArtifactLocation, StoredArtifact
from openai_extension.core.errors import ConfigurationAppError

ConfigT = TypeVar("ConfigT")


def unused_item_id() -> int:
    """Random positive item id; every artifact gets an address of its own."""
    return secrets.randbelow(999_999_999) + 1


def json_request(url: str, payload: Mapping[str, Any]) -> RequestPayload:
    """Build a JSON ``POST`` request."""
    return RequestPayload(
        method="POST",
        url=url,
        headers={"Content-Type": "application/json"},
        body=json.dumps(payload).encode("utf-8"),
    )


class ActionAdapter(ABC, Generic[ConfigT]):
    """Maps one action kind to the provider wire format and back.

    Subclasses are stateless; one instance per kind lives in the registry of
    ``openai_extension.actions``.
    """

    kind: ClassVar[ActionKind]
    filename_prefix: ClassVar[str]

    @abstractmethod
    def default_config(self) -> ConfigT:
        """Return the built-in settings of this action (no environment lookup)."""

    def model_name(self, config: ConfigT) -> str:
        return config.model  # type: ignore[attr-defined]

    def endpoint(self, config: ConfigT) -> str:
        return config.endpoint  # type: ignore[attr-defined]

    @abstractmethod
    def build_request(self, action: Action, config: ConfigT, *, user_hash: str) -> RequestPayload:
        """Build the outbound request for ``action``.

        Raises:
            ConfigurationAppError: If the action cannot form a valid request.
        """

    @abstractmethod
    def classify_response(
        self,
        response: HttpResponse,
        action: Action,
        config: ConfigT,
    ) -> ApiPayload | ActionFailure:
        """Classify the provider response for ``action``."""

    @abstractmethod
    def artifact_location(self, action: Action) -> ArtifactLocation:
        """Where the produced artifact is stored."""

    def success_extras(self, payload: ApiPayload, artifact: StoredArtifact) -> dict[str, Any]:
        """Action-specific fields added to a success result."""
        return {}

    def settings_definitions(self) -> tuple[SettingDefinition, ...]:
        return ACTION_SETTINGS[self.kind]

    def request_definition(self) -> dict[str, FieldDefinition]:
        return REQUEST_DEFINITIONS[self.kind]

    def require(self, action: Action, name: str) -> Any:
        """Return a mandatory action parameter."""
        value = action.get(name)
        if value is None:
            raise ConfigurationAppError(
                code="missing_parameter",
                message=f"Action {action.name} requires the '{name}' parameter",
                details={"action": action.name, "parameter": name},
            )
        return value
