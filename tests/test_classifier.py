"""Tests for provider response classification."""

from __future__ import annotations

import base64
import json

import pytest

from openai_extension.actions.models import ActionFailure, ApiPayload, HttpResponse
from openai_extension.services.classifier import (
    classify,
    classify_error,
    classify_image,
    extension_from_mimetype_or_format,
    guess_mimetype,
    status_phrase,
)

TTS = "convert_text_to_speech"
IMAGE = "generate_image"


def response(status: int, body: bytes = b"", **headers: str) -> HttpResponse:
    return HttpResponse(
        status_code=status,
        headers={k.replace("_", "-"): v for k, v in headers.items()},
        body=body,
    )


def image_body(content: bytes = b"\x89PNG-bytes", **fields) -> bytes:
    item = {"b64_json": base64.b64encode(content).decode("ascii")}
    item.update(fields.pop("item", {}))
    return json.dumps({"created": 1, "data": [item], **fields}).encode("utf-8")


class TestHelpers:
    @pytest.mark.parametrize(
        ("fmt", "expected"),
        [("mp3", "audio/mp3"), ("wav", "audio/wav"), ("pcm", "audio/vnd.wave"), ("xyz", "application/octet-stream")],
    )
    def test_guess_mimetype(self, fmt: str, expected: str) -> None:
        assert guess_mimetype(fmt) == expected

    def test_extension_from_known_mimetype(self) -> None:
        assert extension_from_mimetype_or_format("audio/flac", "mp3") == "flac"

    def test_extension_ignores_mimetype_parameters(self) -> None:
        assert extension_from_mimetype_or_format("audio/wav; codecs=1", "mp3") == "wav"

    def test_extension_falls_back_to_requested_format(self) -> None:
        assert extension_from_mimetype_or_format("audio/mpeg", "mp3") == "mp3"

    def test_status_phrase(self) -> None:
        assert status_phrase(503) == "Service Unavailable"
        assert status_phrase(599) == "HTTP 599"


class TestClassifyError:
    def test_json_error_message_is_used(self) -> None:
        body = json.dumps({"error": {"message": "Incorrect API key provided", "type": "invalid_request_error"}})
        failure = classify_error(response(401, body.encode()), TTS)

        assert failure == ActionFailure(action_name=TTS, error_code=401, error_message="Incorrect API key provided")

    def test_plain_text_body_is_used_verbatim(self) -> None:
        failure = classify_error(response(400, b"bad things"), TTS)

        assert failure.error_code == 400
        assert failure.error_message == "bad things"

    def test_json_without_error_message_falls_back_to_body(self) -> None:
        failure = classify_error(response(422, b'{"detail": "nope"}'), TTS)

        assert failure.error_message == '{"detail": "nope"}'

    @pytest.mark.parametrize(("status", "phrase"), [(500, "Internal Server Error"), (503, "Service Unavailable")])
    def test_server_errors_use_status_phrase(self, status: int, phrase: str) -> None:
        failure = classify_error(response(status, b'{"error": {"message": "ignored"}}'), IMAGE)

        assert failure.error_message == phrase

    def test_empty_body_uses_status_phrase(self) -> None:
        assert classify_error(response(429), TTS).error_message == "Too Many Requests"


class TestClassifyAudio:
    def test_success_uses_content_type_header(self) -> None:
        result = classify(response(200, b"ID3audio", content_type="audio/mpeg"), TTS, "mp3")

        assert isinstance(result, ApiPayload)
        assert result.content == b"ID3audio"
        assert result.mimetype == "audio/mpeg"
        assert result.extension == "mp3"
        assert result.size == 8

    def test_header_is_case_insensitive(self) -> None:
        result = classify(
            HttpResponse(status_code=200, headers={"content-type": "audio/flac"}, body=b"fLaC"), TTS, "mp3"
        )

        assert result.mimetype == "audio/flac"
        assert result.extension == "flac"

    def test_missing_header_guesses_from_format(self) -> None:
        result = classify(response(200, b"RIFF"), TTS, "wav")

        assert result.mimetype == "audio/wav"
        assert result.extension == "wav"

    def test_empty_success_body_is_malformed(self) -> None:
        result = classify(response(200, b"", content_type="audio/mpeg"), TTS, "mp3")

        assert isinstance(result, ActionFailure)
        assert result.error_code == 502
        assert result.error_message.startswith("Invalid response from provider")

    def test_error_status_delegates_to_error_path(self) -> None:
        result = classify(response(401, b'{"error": {"message": "bad key"}}'), TTS, "mp3")

        assert result == ActionFailure(action_name=TTS, error_code=401, error_message="bad key")


class TestClassifyImage:
    def test_success_decodes_base64(self) -> None:
        result = classify_image(
            response(200, image_body(output_format="png", item={"revised_prompt": "a red cat"})), IMAGE
        )

        assert isinstance(result, ApiPayload)
        assert result.content == b"\x89PNG-bytes"
        assert result.mimetype == "image/png"
        assert result.extension == "png"
        assert result.extra == {"revisedprompt": "a red cat"}

    def test_output_format_defaults_to_png(self) -> None:
        result = classify_image(response(200, image_body()), IMAGE)

        assert result.extension == "png"
        assert result.extra == {"revisedprompt": None}

    def test_other_output_formats(self) -> None:
        result = classify_image(response(200, image_body(output_format="webp")), IMAGE)

        assert result.mimetype == "image/webp"
        assert result.extension == "webp"

    def test_headers_are_ignored(self) -> None:
        result = classify_image(response(200, image_body(), content_type="text/plain"), IMAGE)

        assert result.mimetype == "image/png"

    @pytest.mark.parametrize(
        "body",
        [b"not json", b"{}", b'{"data": []}', b'{"data": [{"url": "http://x"}]}', b'{"data": [{"b64_json": "@@@"}]}'],
    )
    def test_malformed_bodies(self, body: bytes) -> None:
        result = classify_image(response(200, body), IMAGE)

        assert isinstance(result, ActionFailure)
        assert result.error_code == 502

    def test_error_status(self) -> None:
        body = json.dumps({"error": {"message": "Your request was rejected by the safety system."}}).encode()
        result = classify_image(response(400, body), IMAGE)

        assert result == ActionFailure(
            action_name=IMAGE,
            error_code=400,
            error_message="Your request was rejected by the safety system.",
        )
