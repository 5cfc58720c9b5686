"""Adapter registry: the processor dispatches on ``ActionKind`` only."""

from __future__ import annotations

from openai_extension.actions.base import ActionAdapter
from openai_extension.actions.generate_image import ImageGenerationAdapter
from openai_extension.actions.models import ActionKind
from openai_extension.actions.text_to_speech import TextToSpeechAdapter
from openai_extension.core.errors import ConfigurationAppError

ADAPTERS: dict[ActionKind, ActionAdapter] = {
    ActionKind.CONVERT_TEXT_TO_SPEECH: TextToSpeechAdapter(),
    ActionKind.GENERATE_IMAGE: ImageGenerationAdapter(),
}


def get_adapter(kind: ActionKind) -> ActionAdapter:
    """Return the adapter registered for ``kind``.

    Raises:
        ConfigurationAppError: If no adapter handles ``kind``.
    """
    try:
        return ADAPTERS[kind]
    except KeyError:
        raise ConfigurationAppError(
            code="unsupported_action",
            message=f"Unsupported action: {kind}",
            details={"action": str(kind)},
        ) from None
