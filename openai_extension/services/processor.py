"""Action processor: one action in, one result out.

Stages, run once and in order by ``process()``::

    IDLE -> RATE_LIMIT_CHECK -> DENIED
                             -> BUILDING_REQUEST -> AWAITING_RESPONSE -> CLASSIFYING
                                -> PERSISTING_ARTIFACT -> DONE
                                -> DONE (failure result)

Each stage is also a public method so it can be exercised on its own.
Everything except a ``ConfigurationAppError`` from request building ends as
an ``ActionSuccess`` or ``ActionFailure``.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import TYPE_CHECKING

from openai_extension.actions.base import ActionAdapter
from openai_extension.actions.models import (
    Action,
    ActionFailure,
    ActionResult,
    ActionSuccess,
    ApiPayload,
    HttpResponse,
    RequestPayload,
)
from openai_extension.actions.registry import get_adapter
from openai_extension.core.errors import ConfigurationAppError, StorageAppError, TransportAppError

if TYPE_CHECKING:
    from openai_extension.services.provider import Provider

logger = logging.getLogger(__name__)

STORAGE_ERROR_CODE = 500


class ProcessorState(str, Enum):
    IDLE = "idle"
    RATE_LIMIT_CHECK = "rate_limit_check"
    DENIED = "denied"
    BUILDING_REQUEST = "building_request"
    AWAITING_RESPONSE = "awaiting_response"
    CLASSIFYING = "classifying"
    PERSISTING_ARTIFACT = "persisting_artifact"
    DONE = "done"


def build_filename(prefix: str, timestamp: float, extension: str) -> str:
    """``<prefix>-<unix seconds>.<extension>``."""
    return f"{prefix}-{int(timestamp)}.{extension}"


class ActionProcessor:
    """Runs a single action against the provider.

    Attributes:
        provider: Provider supplying configuration, limiter, transport and store.
        action: The action to run.
        adapter: Request adapter selected by the action kind.
        state: Current pipeline stage.
    """

    def __init__(self, provider: Provider, action: Action, adapter: ActionAdapter | None = None) -> None:
        self.provider = provider
        self.action = action
        self.adapter = adapter or get_adapter(action.kind)
        self.config = provider.action_config(action.kind)
        self.state = ProcessorState.IDLE

    def _transition(self, state: ProcessorState) -> None:
        logger.debug(
            "action.state",
            extra={"action": self.action.name, "from_state": self.state.value, "to_state": state.value},
        )
        self.state = state

    def check_rate_limit(self, now: float | None = None) -> ActionFailure | None:
        """Return the denial when a rate limit scope is exhausted."""
        allowed = self.provider.is_request_allowed(self.action, now=now)
        return None if allowed is True else allowed

    def build_request(self) -> RequestPayload:
        """Build the authenticated provider request.

        Raises:
            ConfigurationAppError: If the action cannot form a valid request.
        """
        user_hash = self.provider.generate_userid(self.action.user_id)
        try:
            payload = self.adapter.build_request(self.action, self.config, user_hash=user_hash)
        except ConfigurationAppError as exc:
            logger.error(
                "action.configuration_error",
                extra={"action": self.action.name, "error_code": exc.code, "error_message": exc.message},
            )
            raise
        return self.provider.add_authentication_headers(payload)

    async def send_request(self, payload: RequestPayload) -> HttpResponse | ActionFailure:
        """Perform the outbound call, turning transport errors into failures."""
        timeout = self.provider.config.timeout_seconds
        logger.debug(
            "action.request_sent",
            extra={"action": self.action.name, "url": payload.url, "timeout_s": timeout},
        )
        start = time.perf_counter()
        try:
            response = await self.provider.transport.send(payload, timeout=timeout)
        except TransportAppError as exc:
            return ActionFailure(
                action_name=self.action.name,
                error_code=exc.http_status,
                error_message=exc.message,
            )

        logger.info(
            "action.response_received",
            extra={
                "action": self.action.name,
                "status_code": response.status_code,
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                "response_bytes": len(response.body),
            },
        )
        return response

    def classify(self, response: HttpResponse) -> ApiPayload | ActionFailure:
        return self.adapter.classify_response(response, self.action, self.config)

    def persist(self, payload: ApiPayload, now: float | None = None) -> ActionSuccess | ActionFailure:
        """Store the artifact and assemble the success result."""
        timestamp = self.provider.clock() if now is None else now
        filename = build_filename(self.adapter.filename_prefix, timestamp, payload.extension)
        location = self.adapter.artifact_location(self.action)

        try:
            artifact = self.provider.store.create(
                context_id=location.context_id,
                component=location.component,
                area=location.area,
                item_id=location.item_id,
                path=location.path,
                filename=filename,
                content=payload.content,
                mimetype=payload.mimetype,
            )
        except StorageAppError as exc:
            logger.error(
                "action.storage_failed",
                extra={"action": self.action.name, "error_code": exc.code, "artifact_name": filename},
            )
            return ActionFailure(
                action_name=self.action.name,
                error_code=STORAGE_ERROR_CODE,
                error_message=exc.message,
            )

        return ActionSuccess(
            action_name=self.action.name,
            mimetype=payload.mimetype,
            filename=filename,
            artifact_id=artifact.id,
            artifact_size=artifact.size,
            extra=self.adapter.success_extras(payload, artifact),
        )

    def _finish(self, result: ActionResult) -> ActionResult:
        self._transition(ProcessorState.DONE)
        if isinstance(result, ActionFailure):
            logger.warning(
                "action.failed",
                extra={
                    "action": self.action.name,
                    "user_id": self.action.user_id,
                    "error_code": result.error_code,
                    "error_message": result.error_message,
                },
            )
        else:
            logger.info(
                "action.completed",
                extra={
                    "action": self.action.name,
                    "user_id": self.action.user_id,
                    "artifact_id": result.artifact_id,
                    "artifact_size": result.artifact_size,
                    "mimetype": result.mimetype,
                },
            )
        return result

    async def process(self) -> ActionResult:
        """Run every stage once.

        Raises:
            ConfigurationAppError: If the request cannot be built.
            RuntimeError: If called more than once.
        """
        if self.state is not ProcessorState.IDLE:
            raise RuntimeError("ActionProcessor.process() can only run once")

        now = self.provider.clock()
        logger.info(
            "action.started",
            extra={"action": self.action.name, "user_id": self.action.user_id, "context_id": self.action.context_id},
        )

        self._transition(ProcessorState.RATE_LIMIT_CHECK)
        denial = self.check_rate_limit(now)
        if denial is not None:
            self._transition(ProcessorState.DENIED)
            return denial

        self._transition(ProcessorState.BUILDING_REQUEST)
        payload = self.build_request()

        self._transition(ProcessorState.AWAITING_RESPONSE)
        response = await self.send_request(payload)
        if isinstance(response, ActionFailure):
            return self._finish(response)

        self._transition(ProcessorState.CLASSIFYING)
        classified = self.classify(response)
        if isinstance(classified, ActionFailure):
            return self._finish(classified)

        self._transition(ProcessorState.PERSISTING_ARTIFACT)
        return self._finish(self.persist(classified, now))
