"""convert_text_to_speech: raw audio returned in the response body."""

from __future__ import annotations

from typing import Any

from openai_extension.actions.base import ActionAdapter, json_request, unused_item_id
from openai_extension.actions.models import (
    Action,
    ActionFailure,
    ActionKind,
    ApiPayload,
    HttpResponse,
    RequestPayload,
)
from openai_extension.adapters.storage.base import ArtifactLocation
from openai_extension.core.config import TextToSpeechSettings
from openai_extension.services.classifier import classify

COMPONENT = "openai_extension"
AUDIO_AREA = "generatedaudio"


class TextToSpeechAdapter(ActionAdapter[TextToSpeechSettings]):
    kind = ActionKind.CONVERT_TEXT_TO_SPEECH
    filename_prefix = "openai-tts"

    def default_config(self) -> TextToSpeechSettings:
        return TextToSpeechSettings.model_construct()

    def voice(self, action: Action, config: TextToSpeechSettings) -> str:
        return action.get("voice", config.voice)

    def response_format(self, action: Action, config: TextToSpeechSettings) -> str:
        return action.get("format", config.format)

    def build_request(
        self,
        action: Action,
        config: TextToSpeechSettings,
        *,
        user_hash: str,
    ) -> RequestPayload:
        payload: dict[str, Any] = {
            "model": self.model_name(config),
            "voice": self.voice(action, config),
            "input": str(self.require(action, "text")),
            "format": self.response_format(action, config),
        }
        instructions = action.get("instructions", config.system_instruction)
        if instructions:
            payload["instructions"] = instructions
        return json_request(self.endpoint(config), payload)

    def classify_response(
        self,
        response: HttpResponse,
        action: Action,
        config: TextToSpeechSettings,
    ) -> ApiPayload | ActionFailure:
        return classify(response, action.name, self.response_format(action, config))

    def artifact_location(self, action: Action) -> ArtifactLocation:
        return ArtifactLocation(
            context_id=action.context_id,
            component=COMPONENT,
            area=AUDIO_AREA,
            item_id=unused_item_id(),
            path="/",
        )
