"""Outbound HTTP transport used to reach the provider."""

from openai_extension.adapters.http.transport import AbstractTransport, HttpxTransport

__all__ = ["AbstractTransport", "HttpxTransport"]
