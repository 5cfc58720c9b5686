"""Exceptions raised by the provider, its adapters and the HTTP layer.

Rate limit denials and upstream HTTP errors are *not* exceptions: they are
returned as failure results by the action processor. Only conditions that
must abort the current call (bad configuration, auth) or that the processor
converts at its boundary (transport, storage) are raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Optional context attached to an error; shared key names keep logs greppable."""

    code: str
    message: str
    hint: str
    http_status: int
    action: str
    parameter: str
    value: str
    artifact_id: str
    filename: str
    timeout_s: float
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error.

    Attributes:
        code: Machine-readable code such as ``missing_parameter``.
        message: Text shown to callers.
        details: Extra context for logs and error bodies.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)


class ConfigurationAppError(AppError):
    """Raised when an action cannot be turned into a valid provider request."""


class AuthenticationAppError(AppError):
    """Raised when an X-API-Key is missing, unknown or cannot be checked."""


class TransportAppError(AppError):
    """Raised when the provider could not be reached (network, timeout)."""

    @property
    def http_status(self) -> int:
        if self.details and "http_status" in self.details:
            return int(self.details["http_status"])
        return 502


class StorageAppError(AppError):
    """Raised when the artifact store cannot persist or find an artifact."""
