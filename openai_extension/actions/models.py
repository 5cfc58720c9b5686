"""Value types flowing through the action pipeline.

An ``Action`` goes in, a request payload is built from it, an HTTP response
comes back, and exactly one of ``ActionSuccess`` / ``ActionFailure`` comes
out.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Union


class ActionKind(str, Enum):
    """Operations the provider knows how to run."""

    CONVERT_TEXT_TO_SPEECH = "convert_text_to_speech"
    GENERATE_IMAGE = "generate_image"


@dataclass(frozen=True)
class Action:
    """One immutable request from a caller.

    Attributes:
        kind: Which operation to run.
        user_id: User the request is made for (rate limited per user).
        context_id: Context owning the produced artifact.
        parameters: Named parameters (``text``, ``voice``, ``prompt``, ...).
    """

    kind: ActionKind
    user_id: int
    context_id: int
    parameters: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", ActionKind(self.kind))
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))

    @property
    def name(self) -> str:
        return self.kind.value

    def get(self, name: str, default: Any = None) -> Any:
        """Return a parameter, treating None and empty strings as missing."""
        value = self.parameters.get(name)
        if value is None or value == "":
            return default
        return value


@dataclass(frozen=True)
class RequestPayload:
    """Provider wire request: opaque to the processor beyond being sendable."""

    method: str
    url: str
    headers: Mapping[str, str]
    body: bytes

    def json(self) -> Any:
        return json.loads(self.body)

    def with_headers(self, extra: Mapping[str, str]) -> RequestPayload:
        return RequestPayload(
            method=self.method,
            url=self.url,
            headers={**self.headers, **extra},
            body=self.body,
        )


@dataclass(frozen=True)
class HttpResponse:
    """Raw provider response as seen by the classifier."""

    status_code: int
    headers: Mapping[str, str]
    body: bytes

    def header(self, name: str) -> str:
        """Case-insensitive header lookup; empty string when absent."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return ""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class ApiPayload:
    """Successfully classified provider output, not yet persisted."""

    content: bytes
    mimetype: str
    extension: str
    extra: Mapping[str, Any] = field(default_factory=dict)

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class ActionSuccess:
    """Persisted artifact produced by an action."""

    action_name: str
    mimetype: str
    filename: str
    artifact_id: str
    artifact_size: int
    extra: Mapping[str, Any] = field(default_factory=dict)

    success = True

    def as_response(self) -> dict[str, Any]:
        return {
            "success": True,
            "actionname": self.action_name,
            "mimetype": self.mimetype,
            "filename": self.filename,
            "filesize": self.artifact_size,
            "artifact_id": self.artifact_id,
            **self.extra,
        }


@dataclass(frozen=True)
class ActionFailure:
    """Expected, non-exceptional failure of an action."""

    action_name: str
    error_code: int
    error_message: str

    success = False

    def as_response(self) -> dict[str, Any]:
        return {
            "success": False,
            "actionname": self.action_name,
            "errorcode": self.error_code,
            "errormessage": self.error_message,
        }


ActionResult = Union[ActionSuccess, ActionFailure]
