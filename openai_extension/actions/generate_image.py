"""generate_image with base64 (b64_json) responses.

Newer image models always answer with base64 data instead of a URL, take a
``size`` instead of an aspect ratio, and name their quality tiers
low/medium/high where callers still speak standard/hd/auto.
"""

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
from openai_extension.adapters.storage.base import ArtifactLocation, StoredArtifact
from openai_extension.core.config import ImageSettings
from openai_extension.core.errors import ConfigurationAppError
from openai_extension.services.classifier import classify_image

# Only one image per request is supported.
NUMBER_OF_IMAGES = 1

ASPECT_RATIO_SIZES: dict[str, str] = {
    "square": "1024x1024",
    "landscape": "1536x1024",
    "portrait": "1024x1536",
}

QUALITY_TIERS: dict[str, str] = {
    "standard": "low",
    "hd": "high",
}
DEFAULT_QUALITY = "medium"

DRAFT_COMPONENT = "user"
DRAFT_AREA = "draft"


def aspect_ratio_to_size(ratio: str | None) -> str:
    """Convert an aspect ratio to an image size the API accepts.

    Raises:
        ConfigurationAppError: For any ratio other than square/landscape/portrait.
    """
    try:
        return ASPECT_RATIO_SIZES[ratio]  # type: ignore[index]
    except KeyError:
        raise ConfigurationAppError(
            code="invalid_aspect_ratio",
            message=f"Invalid aspect ratio: {ratio}",
            details={"parameter": "aspect_ratio", "value": str(ratio)},
        ) from None


def map_quality(quality: str | None) -> str:
    """standard→low, hd→high, anything else (auto included)→medium."""
    return QUALITY_TIERS.get(quality or "", DEFAULT_QUALITY)


class ImageGenerationAdapter(ActionAdapter[ImageSettings]):
    kind = ActionKind.GENERATE_IMAGE
    filename_prefix = "openai-image"

    def default_config(self) -> ImageSettings:
        return ImageSettings.model_construct()

    def build_request(
        self,
        action: Action,
        config: ImageSettings,
        *,
        user_hash: str,
    ) -> RequestPayload:
        payload: dict[str, Any] = {
            "prompt": str(self.require(action, "prompt")),
            "model": self.model_name(config),
            "n": NUMBER_OF_IMAGES,
            "quality": map_quality(action.get("quality")),
            "size": aspect_ratio_to_size(action.get("aspect_ratio")),
            "user": user_hash,
        }
        return json_request(self.endpoint(config), payload)

    def classify_response(
        self,
        response: HttpResponse,
        action: Action,
        config: ImageSettings,
    ) -> ApiPayload | ActionFailure:
        return classify_image(response, action.name)

    def artifact_location(self, action: Action) -> ArtifactLocation:
        # Drafts stay in the requesting context rather than a per-user area;
        # a fresh item lets callers move them elsewhere.
        return ArtifactLocation(
            context_id=action.context_id,
            component=DRAFT_COMPONENT,
            area=DRAFT_AREA,
            item_id=unused_item_id(),
            path="/",
        )

    def success_extras(self, payload: ApiPayload, artifact: StoredArtifact) -> dict[str, Any]:
        return {
            "draftfile": artifact.id,
            "sourceurl": None,
            "revisedprompt": payload.extra.get("revisedprompt"),
        }
