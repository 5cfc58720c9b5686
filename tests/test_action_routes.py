"""Tests for the action, artifact and provider routes.

The provider dependency is overridden with one built around
``httpx.MockTransport``; no request leaves the process.

All /v1/* endpoints require the X-API-Key header (keys come from
APP_API_KEYS set in conftest.py).
"""

from __future__ import annotations

import base64

import httpx
import pytest
from fastapi.testclient import TestClient

from openai_extension.adapters.rate_limit.base import RateLimitConfig
from openai_extension.core.dependencies import get_artifact_store, get_provider
from openai_extension.main import app


@pytest.fixture
def valid_api_key_headers() -> dict[str, str]:
    return {"X-API-Key": "test-api-key-123"}


@pytest.fixture
def client_for(make_provider, store):
    """Return a factory binding the app to a provider answering with ``responses``."""

    def _client(*responses: httpx.Response | Exception, **kwargs):
        provider, handler = make_provider(*responses, **kwargs)
        app.dependency_overrides[get_provider] = lambda: provider
        app.dependency_overrides[get_artifact_store] = lambda: store
        return TestClient(app), handler

    yield _client
    app.dependency_overrides.clear()


def audio_response() -> httpx.Response:
    return httpx.Response(200, content=b"ID3-audio", headers={"Content-Type": "audio/mpeg"})


class TestAuthentication:
    def test_missing_api_key_is_forbidden(self, client_for) -> None:
        client, handler = client_for(audio_response())

        response = client.post("/v1/actions/convert-text-to-speech", json={"user_id": 1, "text": "hi"})

        assert response.status_code == 403
        assert handler.requests == []

    def test_wrong_api_key_is_forbidden(self, client_for) -> None:
        client, _ = client_for(audio_response())

        response = client.get("/v1/provider", headers={"X-API-Key": "nope"})

        assert response.status_code == 403

    def test_health_needs_no_key(self) -> None:
        response = TestClient(app).get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestTextToSpeechRoute:
    def test_success_then_download(self, client_for, valid_api_key_headers) -> None:
        client, handler = client_for(audio_response())

        response = client.post(
            "/v1/actions/convert-text-to-speech",
            json={"user_id": 1, "context_id": 9, "text": "Hello", "voice": "echo"},
            headers=valid_api_key_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["actionname"] == "convert_text_to_speech"
        assert data["mimetype"] == "audio/mpeg"
        assert data["filesize"] == len(b"ID3-audio")
        assert data["filename"].startswith("openai-tts-")
        assert "errorcode" not in data

        download = client.get(f"/v1/artifacts/{data['artifact_id']}", headers=valid_api_key_headers)
        assert download.status_code == 200
        assert download.content == b"ID3-audio"
        assert download.headers["content-type"].startswith("audio/mpeg")
        assert data["filename"] in download.headers["content-disposition"]

    def test_rate_limited_user_gets_429(self, client_for, valid_api_key_headers) -> None:
        client, handler = client_for(
            audio_response(),
            user_limit=RateLimitConfig(enabled=True, limit=1, window_seconds=3600),
        )
        body = {"user_id": 1, "text": "Hello"}

        first = client.post("/v1/actions/convert-text-to-speech", json=body, headers=valid_api_key_headers)
        second = client.post("/v1/actions/convert-text-to-speech", json=body, headers=valid_api_key_headers)

        assert first.status_code == 200
        assert second.status_code == 429
        assert second.json() == {
            "success": False,
            "actionname": "convert_text_to_speech",
            "errorcode": 429,
            "errormessage": "User rate limit exceeded",
        }
        assert len(handler.requests) == 1

    def test_upstream_error_status_is_propagated(self, client_for, valid_api_key_headers) -> None:
        client, _ = client_for(httpx.Response(401, json={"error": {"message": "Incorrect API key provided"}}))

        response = client.post(
            "/v1/actions/convert-text-to-speech",
            json={"user_id": 1, "text": "Hello"},
            headers=valid_api_key_headers,
        )

        assert response.status_code == 401
        assert response.json()["errormessage"] == "Incorrect API key provided"

    def test_empty_text_is_rejected_by_validation(self, client_for, valid_api_key_headers) -> None:
        client, handler = client_for(audio_response())

        response = client.post(
            "/v1/actions/convert-text-to-speech",
            json={"user_id": 1, "text": ""},
            headers=valid_api_key_headers,
        )

        assert response.status_code == 422
        assert handler.requests == []

    def test_unconfigured_provider_is_unavailable(self, client_for, valid_api_key_headers) -> None:
        client, handler = client_for(audio_response(), api_key=None)

        response = client.post(
            "/v1/actions/convert-text-to-speech",
            json={"user_id": 1, "text": "Hello"},
            headers=valid_api_key_headers,
        )

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "provider_not_configured"
        assert handler.requests == []


class TestGenerateImageRoute:
    def test_success_includes_draft_fields(self, client_for, valid_api_key_headers) -> None:
        encoded = base64.b64encode(b"\x89PNG").decode("ascii")
        client, _ = client_for(
            httpx.Response(200, json={"data": [{"b64_json": encoded, "revised_prompt": "a cat, painted"}]})
        )

        response = client.post(
            "/v1/actions/generate-image",
            json={"user_id": 4, "prompt": "a cat", "aspect_ratio": "portrait", "quality": "hd"},
            headers=valid_api_key_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["mimetype"] == "image/png"
        assert data["draftfile"] == data["artifact_id"]
        assert data["revisedprompt"] == "a cat, painted"

    def test_invalid_aspect_ratio_is_bad_request(self, client_for, valid_api_key_headers) -> None:
        client, handler = client_for(httpx.Response(200))

        response = client.post(
            "/v1/actions/generate-image",
            json={"user_id": 4, "prompt": "a cat", "aspect_ratio": "panorama"},
            headers=valid_api_key_headers,
        )

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "invalid_aspect_ratio"
        assert error["message"] == "Invalid aspect ratio: panorama"
        assert handler.requests == []


class TestArtifactAndProviderRoutes:
    def test_unknown_artifact_is_404(self, client_for, valid_api_key_headers) -> None:
        client, _ = client_for()

        response = client.get(f"/v1/artifacts/{'0' * 40}", headers=valid_api_key_headers)

        assert response.status_code == 404

    def test_provider_info(self, client_for, valid_api_key_headers) -> None:
        client, _ = client_for()

        response = client.get("/v1/provider", headers=valid_api_key_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["configured"] is True
        names = [action["name"] for action in data["actions"]]
        assert names == ["convert_text_to_speech", "generate_image"]
        tts = data["actions"][0]
        assert tts["request_fields"]["input"]["required"] is True
        voice = next(s for s in tts["settings"] if s["name"] == "voice")
        assert "nova" in voice["choices"]
