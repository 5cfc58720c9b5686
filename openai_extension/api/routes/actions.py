from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import JSONResponse

from openai_extension.actions.models import Action, ActionKind
from openai_extension.adapters.storage.base import AbstractArtifactStore
from openai_extension.core.auth import verify_api_key
from openai_extension.core.dependencies import get_artifact_store, get_provider
from openai_extension.core.errors import ConfigurationAppError
from openai_extension.schemas.actions import (
    ActionResponse,
    GenerateImageRequest,
    ProviderActionInfo,
    ProviderInfo,
    SettingDefinitionSchema,
    TextToSpeechRequest,
)
from openai_extension.services.provider import Provider

router = APIRouter(dependencies=[Depends(verify_api_key)])


async def _run(provider: Provider, action: Action) -> JSONResponse:
    """Process ``action`` and render its result.

    Successes answer 200; failures answer with their error code so callers
    can tell a 429 denial from an upstream 401 without parsing the body.
    """
    if not provider.is_provider_configured():
        raise ConfigurationAppError(
            code="provider_not_configured",
            message="The OpenAI provider has no API key configured",
            details={"hint": "Set OPENAI_API_KEY"},
        )

    result = await provider.process_action(action)
    body = ActionResponse.from_result(result).model_dump(exclude_none=True)
    status_code = 200 if result.success else result.error_code
    return JSONResponse(status_code=status_code, content=body)


@router.post(
    "/actions/convert-text-to-speech",
    response_model=ActionResponse,
    tags=["Actions"],
)
async def convert_text_to_speech(
    request: TextToSpeechRequest,
    provider: Provider = Depends(get_provider),
) -> JSONResponse:
    """Convert text to speech and store the audio as an artifact.

    Returns:
        The uniform result record (``success``, ``mimetype``, ``filename``,
        ``filesize``, ``artifact_id`` or ``errorcode``, ``errormessage``).
    """
    return await _run(provider, request.to_action())


@router.post(
    "/actions/generate-image",
    response_model=ActionResponse,
    tags=["Actions"],
)
async def generate_image(
    request: GenerateImageRequest,
    provider: Provider = Depends(get_provider),
) -> JSONResponse:
    """Generate an image and store it as a draft artifact."""
    return await _run(provider, request.to_action())


@router.get("/artifacts/{artifact_id}", tags=["Artifacts"])
def download_artifact(
    artifact_id: str,
    store: AbstractArtifactStore = Depends(get_artifact_store),
) -> Response:
    """Return the bytes of a stored artifact with its mimetype."""
    artifact = store.get(artifact_id)
    if artifact is None:
        raise HTTPException(status_code=404, detail="Artifact not found")

    return Response(
        content=store.read(artifact_id),
        media_type=artifact.mimetype,
        headers={"Content-Disposition": f'inline; filename="{artifact.filename}"'},
    )


@router.get("/provider", response_model=ProviderInfo, tags=["Provider"])
def provider_info(provider: Provider = Depends(get_provider)) -> ProviderInfo:
    """Report whether the provider is usable and what each action accepts."""
    actions: list[ProviderActionInfo] = []
    for kind in provider.get_action_list():
        adapter_fields = provider.get_request_definition(kind)
        actions.append(
            ProviderActionInfo(
                name=ActionKind(kind).value,
                settings=[
                    SettingDefinitionSchema.model_validate(definition, from_attributes=True)
                    for definition in provider.get_action_settings(kind)
                ],
                request_fields={
                    name: {"type": f.type, "label": f.label, "required": f.required}
                    for name, f in adapter_fields.items()
                },
            )
        )

    return ProviderInfo(configured=provider.is_provider_configured(), actions=actions)
