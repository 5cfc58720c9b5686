"""Turn raw provider responses into success payloads or failure results.

Two success dialects exist:

- audio: the body *is* the artifact; the mimetype comes from ``Content-Type``
  or, when absent, from the requested format;
- base64 image: the body is JSON carrying ``data[0].b64_json`` and an
  ``output_format``; headers are never inspected.

Error responses share one path for both dialects.
"""

from __future__ import annotations

import base64
import binascii
import json
from http import HTTPStatus
from typing import Any

from openai_extension.actions.models import ActionFailure, ApiPayload, HttpResponse

DEFAULT_MIMETYPE = "application/octet-stream"

FORMAT_MIMETYPES: dict[str, str] = {
    "mp3": "audio/mp3",
    "opus": "audio/opus",
    "aac": "audio/aac",
    "flac": "audio/flac",
    "wav": "audio/wav",
    "pcm": "audio/vnd.wave",
}

MIMETYPE_EXTENSIONS: dict[str, str] = {
    "audio/mp3": "mp3",
    "audio/opus": "opus",
    "audio/aac": "aac",
    "audio/flac": "flac",
    "audio/wav": "wav",
    "audio/vnd.wave": "wav",
}

IMAGE_MIMETYPES: dict[str, str] = {
    "png": "image/png",
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
    "webp": "image/webp",
}

# Statuses the provider commonly sends without a useful body.
BODILESS_STATUSES = frozenset({500, 503})

MALFORMED_RESPONSE_CODE = 502


def is_success_status(status: int) -> bool:
    return 200 <= status < 300


def guess_mimetype(response_format: str) -> str:
    """Map an audio format name to its mimetype."""
    return FORMAT_MIMETYPES.get(response_format.lower(), DEFAULT_MIMETYPE)


def extension_from_mimetype_or_format(mimetype: str, fallback_format: str) -> str:
    """Reverse-map a mimetype to an extension, else use the requested format.

    Parameters such as ``; charset=...`` are ignored for the lookup.
    """
    media_type = mimetype.split(";", 1)[0].strip().lower()
    return MIMETYPE_EXTENSIONS.get(media_type, fallback_format.lower())


def status_phrase(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return f"HTTP {status}"


def _extract_error_message(body: str) -> str | None:
    try:
        data: Any = json.loads(body)
    except (json.JSONDecodeError, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    error = data.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    return None


def classify_error(response: HttpResponse, action_name: str) -> ActionFailure:
    """Build the failure result for a non-2xx response.

    500/503 and empty bodies use the standard status phrase; otherwise the
    nested ``error.message`` of a JSON body is used, falling back to the raw
    body text.
    """
    status = response.status_code
    body = response.text.strip()

    if status in BODILESS_STATUSES or not body:
        message = status_phrase(status)
    else:
        message = _extract_error_message(body) or body

    return ActionFailure(action_name=action_name, error_code=status, error_message=message)


def _malformed(action_name: str, reason: str) -> ActionFailure:
    return ActionFailure(
        action_name=action_name,
        error_code=MALFORMED_RESPONSE_CODE,
        error_message=f"Invalid response from provider: {reason}",
    )


def classify(
    response: HttpResponse,
    action_name: str,
    requested_format: str,
) -> ApiPayload | ActionFailure:
    """Classify a response of the raw-binary (audio) dialect.

    Args:
        response: Provider response.
        action_name: Name reported in failure results.
        requested_format: Format asked for; used when the header is missing
            and as the extension fallback.

    Returns:
        ApiPayload with the audio bytes, or ActionFailure.
    """
    if not is_success_status(response.status_code):
        return classify_error(response, action_name)

    if not response.body:
        return _malformed(action_name, "empty body")

    header_mimetype = response.header("Content-Type").strip()
    mimetype = header_mimetype or guess_mimetype(requested_format)

    return ApiPayload(
        content=response.body,
        mimetype=mimetype,
        extension=extension_from_mimetype_or_format(mimetype, requested_format),
    )


def classify_image(response: HttpResponse, action_name: str) -> ApiPayload | ActionFailure:
    """Classify a response of the base64-image dialect.

    Returns:
        ApiPayload with decoded image bytes and ``revisedprompt`` in extras,
        or ActionFailure.
    """
    if not is_success_status(response.status_code):
        return classify_error(response, action_name)

    try:
        data = json.loads(response.body)
        item = data["data"][0]
        encoded = item["b64_json"]
    except (json.JSONDecodeError, ValueError, TypeError, KeyError, IndexError):
        return _malformed(action_name, "missing data[0].b64_json")

    try:
        content = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError, TypeError):
        return _malformed(action_name, "b64_json is not valid base64")

    if not content:
        return _malformed(action_name, "empty image")

    output_format = str(data.get("output_format") or "png").lower()

    return ApiPayload(
        content=content,
        mimetype=IMAGE_MIMETYPES.get(output_format, DEFAULT_MIMETYPE),
        extension=output_format,
        extra={"revisedprompt": item.get("revised_prompt")},
    )
