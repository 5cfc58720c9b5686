"""Declarative metadata: which settings each action exposes and which fields
a request for it accepts. Pure data, consumed by admin/UI layers and the
``/v1/provider`` endpoint.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from openai_extension.actions.models import ActionKind
from openai_extension.core.config import TTS_FORMATS, TTS_VOICES


@dataclass(frozen=True)
class SettingDefinition:
    """One configurable per-action setting."""

    name: str
    label: str
    description: str = ""
    default: str = ""
    required: bool = False
    choices: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class FieldDefinition:
    """One field accepted in an action request."""

    type: str
    label: str
    required: bool = False


ACTION_SETTINGS: dict[ActionKind, tuple[SettingDefinition, ...]] = {
    ActionKind.CONVERT_TEXT_TO_SPEECH: (
        SettingDefinition(
            name="model",
            label="TTS model",
            description="Model used to synthesize speech from text (e.g., gpt-4o-mini-tts).",
            default="gpt-4o-mini-tts",
            required=True,
        ),
        SettingDefinition(
            name="endpoint",
            label="Endpoint",
            description="Endpoint for the OpenAI TTS API.",
            default="https://api.openai.com/v1/audio/speech",
            required=True,
        ),
        SettingDefinition(
            name="voice",
            label="Voice (choose from OpenAI voices)",
            description="Voice used when the request does not pick one.",
            default="alloy",
            choices=TTS_VOICES,
        ),
        SettingDefinition(
            name="format",
            label="Audio response format",
            description='Audio format for the response, such as "mp3", "wav" or "flac".',
            default="mp3",
            choices=TTS_FORMATS,
        ),
        SettingDefinition(
            name="system_instruction",
            label="System instruction",
            description=(
                "Instruction guiding the TTS model, such as "
                '"Read this text aloud in a clear and engaging manner."'
            ),
        ),
    ),
    ActionKind.GENERATE_IMAGE: (
        SettingDefinition(
            name="model",
            label="Image model",
            description="Model used to generate images (e.g., gpt-image-1).",
            default="gpt-image-1",
            required=True,
        ),
        SettingDefinition(
            name="endpoint",
            label="Endpoint",
            description="Endpoint for the OpenAI image generation API.",
            default="https://api.openai.com/v1/images/generations",
            required=True,
        ),
    ),
}


REQUEST_DEFINITIONS: dict[ActionKind, dict[str, FieldDefinition]] = {
    ActionKind.CONVERT_TEXT_TO_SPEECH: {
        "input": FieldDefinition(type="text", label="Text to speak", required=True),
        "model": FieldDefinition(type="text", label="TTS model to use"),
        "voice": FieldDefinition(type="text", label="Voice to use"),
        "instructions": FieldDefinition(type="text", label="Additional instructions for the TTS model"),
        "response_format": FieldDefinition(type="text", label="Response format"),
        "speed": FieldDefinition(type="text", label="Speed of the generated audio"),
        "stream_format": FieldDefinition(type="text", label="Stream format"),
    },
    ActionKind.GENERATE_IMAGE: {
        "prompt": FieldDefinition(type="text", label="Image description", required=True),
        "model": FieldDefinition(type="text", label="Image model to use"),
        "n": FieldDefinition(type="int", label="Number of images"),
        "quality": FieldDefinition(type="text", label="Image quality"),
        "size": FieldDefinition(type="text", label="Image size"),
        "user": FieldDefinition(type="text", label="Hashed end-user id"),
    },
}
