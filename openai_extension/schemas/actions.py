"""Pydantic schemas for the action endpoints."""

from typing import Any

from pydantic import BaseModel, Field

from openai_extension.actions.models import Action, ActionKind, ActionResult


class ActionRequestBase(BaseModel):
    """Fields shared by every action request."""

    user_id: int = Field(..., ge=0, description="User the action runs for (rate limited per user).")
    context_id: int = Field(1, ge=0, description="Context that will own the generated artifact.")


class TextToSpeechRequest(ActionRequestBase):
    """Request body of POST /v1/actions/convert-text-to-speech."""

    text: str = Field(..., min_length=1, description="Text to read aloud.")
    voice: str | None = Field(None, description="Voice; the configured default is used when omitted.")
    format: str | None = Field(None, description="Audio format; the configured default is used when omitted.")
    instructions: str | None = Field(None, description="Extra reading instructions for the model.")

    def to_action(self) -> Action:
        return Action(
            kind=ActionKind.CONVERT_TEXT_TO_SPEECH,
            user_id=self.user_id,
            context_id=self.context_id,
            parameters=self.model_dump(include={"text", "voice", "format", "instructions"}),
        )


class GenerateImageRequest(ActionRequestBase):
    """Request body of POST /v1/actions/generate-image."""

    prompt: str = Field(..., min_length=1, description="Description of the image to generate.")
    aspect_ratio: str = Field("square", description="square, landscape or portrait.")
    quality: str = Field("auto", description="standard, hd or auto.")

    def to_action(self) -> Action:
        return Action(
            kind=ActionKind.GENERATE_IMAGE,
            user_id=self.user_id,
            context_id=self.context_id,
            parameters=self.model_dump(include={"prompt", "aspect_ratio", "quality"}),
        )


class ActionResponse(BaseModel):
    """Uniform result record; success and failure fields are mutually exclusive."""

    success: bool
    actionname: str
    mimetype: str | None = None
    filename: str | None = None
    filesize: int | None = None
    artifact_id: str | None = None
    draftfile: str | None = None
    sourceurl: str | None = None
    revisedprompt: str | None = None
    errorcode: int | None = None
    errormessage: str | None = None

    @classmethod
    def from_result(cls, result: ActionResult) -> "ActionResponse":
        return cls.model_validate(result.as_response())


class SettingDefinitionSchema(BaseModel):
    name: str
    label: str
    description: str = ""
    default: str = ""
    required: bool = False
    choices: dict[str, str] = Field(default_factory=dict)


class ProviderActionInfo(BaseModel):
    name: str
    settings: list[SettingDefinitionSchema]
    request_fields: dict[str, dict[str, Any]]


class ProviderInfo(BaseModel):
    """Response of GET /v1/provider."""

    configured: bool
    actions: list[ProviderActionInfo]
