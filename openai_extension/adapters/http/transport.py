"""Send a built request and hand back the raw response.

The transport never interprets status codes; any response, 2xx or not, is
returned as-is for classification. Only failing to get a response at all
(unusable URL, network error, timeout) raises ``TransportAppError``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import httpx

from openai_extension.actions.models import HttpResponse, RequestPayload
from openai_extension.core.errors import TransportAppError

logger = logging.getLogger(__name__)

TIMEOUT_STATUS = 504
UNREACHABLE_STATUS = 502


class AbstractTransport(ABC):
    """Interface for the single outbound call of an action."""

    @abstractmethod
    async def send(self, payload: RequestPayload, *, timeout: float) -> HttpResponse:
        """Send ``payload`` and return the response.

        Args:
            payload: Fully built request (authentication headers included).
            timeout: Upper bound for the whole exchange in seconds.

        Raises:
            TransportAppError: If no response could be obtained.
        """
        raise NotImplementedError


class HttpxTransport(AbstractTransport):
    """Transport backed by ``httpx.AsyncClient``.

    A client may be injected (shared connection pool, ``httpx.MockTransport``
    in tests); otherwise a short-lived client is opened per call.
    """

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._client = client

    async def _request(self, client: httpx.AsyncClient, payload: RequestPayload, timeout: float) -> httpx.Response:
        return await client.request(
            payload.method,
            payload.url,
            headers=dict(payload.headers),
            content=payload.body,
            timeout=httpx.Timeout(timeout),
        )

    async def send(self, payload: RequestPayload, *, timeout: float) -> HttpResponse:
        try:
            if self._client is not None:
                response = await self._request(self._client, payload, timeout)
            else:
                async with httpx.AsyncClient() as client:
                    response = await self._request(client, payload, timeout)
        except httpx.TimeoutException as exc:
            logger.warning(
                "transport.timeout",
                extra={"url": payload.url, "timeout_s": timeout, "error_type": type(exc).__name__},
            )
            raise TransportAppError(
                code="provider_timeout",
                message="Request to provider timed out",
                details={"http_status": TIMEOUT_STATUS, "timeout_s": timeout},
            ) from exc
        except httpx.InvalidURL as exc:
            logger.error(
                "transport.invalid_url",
                extra={"url": payload.url, "error_msg": str(exc)},
            )
            raise TransportAppError(
                code="provider_url_invalid",
                message=f"Invalid provider endpoint: {exc}",
                details={"http_status": UNREACHABLE_STATUS},
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning(
                "transport.error",
                extra={"url": payload.url, "error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            raise TransportAppError(
                code="provider_unreachable",
                message=f"Could not reach provider: {exc}",
                details={"http_status": UNREACHABLE_STATUS},
            ) from exc

        return HttpResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=response.content,
        )
