"""Settings for the OpenAI provider, read from the environment.

Each concern has its own ``BaseSettings`` section with an env prefix
(``OPENAI_``, ``RATE_LIMIT_``, ``TTS_``, ``IMAGE_``, ``STORAGE_``, ``LOG_``,
``APP_``). Before any section is built, ``.env.<APP_ENV>`` from the project
root is loaded into the process environment when present; its values
override variables that were already exported.

Only the application wiring reads the global ``settings`` instance. The
provider core receives an explicit ``ProviderConfig`` built from it (see
``openai_extension.services.provider``).
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import AnyHttpUrl, Field, TypeAdapter, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_ENV = os.getenv("APP_ENV", "development")

PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILES = {name: f".env.{name}" for name in ("development", "testing", "staging", "production")}


def env_file_for(app_env: str) -> Path | None:
    """Return the dotenv file of ``app_env`` if it exists (unknown envs use development)."""
    path = PROJECT_ROOT / ENV_FILES.get(app_env, ENV_FILES["development"])
    return path if path.is_file() else None


# Nested BaseSettings do not inherit env_file, so the file goes into os.environ.
_env_file = env_file_for(APP_ENV)
if _env_file is not None:
    load_dotenv(_env_file, override=True)


TTS_VOICES: dict[str, str] = {
    "alloy": "Alloy",
    "ash": "Ash",
    "ballad": "Ballad",
    "coral": "Coral",
    "echo": "Echo",
    "fable": "Fable",
    "nova": "Nova",
    "onyx": "Onyx",
    "sage": "Sage",
    "shimmer": "Shimmer",
}

TTS_FORMATS: dict[str, str] = {
    "mp3": "mp3",
    "wav": "wav",
    "flac": "flac",
    "ogg": "ogg",
}

_http_url = TypeAdapter(AnyHttpUrl)


def check_endpoint(value: str) -> str:
    """Reject endpoints that are not absolute http(s) URLs; the string is kept as given."""
    try:
        _http_url.validate_python(value)
    except ValidationError:
        raise ValueError(f"endpoint must be an absolute http(s) URL, got {value!r}") from None
    return value


class OpenAISettings(BaseSettings):
    """Credentials and transport options for the OpenAI API."""

    api_key: str | None = Field(
        None,
        description="OpenAI API key; the provider is unconfigured without it",
    )
    org_id: str | None = Field(
        None,
        description="Optional organization id sent as OpenAI-Organization",
    )
    timeout_seconds: float = Field(
        30.0,
        description="Upper bound for one outbound request in seconds",
        gt=0,
    )
    site_identifier: str = Field(
        "openai-extension",
        description="Salt mixed into hashed user ids sent to the provider",
    )

    model_config = SettingsConfigDict(
        env_prefix="OPENAI_",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Per-user and global rate limits guarding outbound calls."""

    user_enabled: bool = Field(
        False,
        description="Enable the per-user rate limit",
    )
    user_limit: int = Field(
        10,
        description="Requests allowed per user and window",
        ge=0,
    )
    global_enabled: bool = Field(
        False,
        description="Enable the global (all users) rate limit",
    )
    global_limit: int = Field(
        100,
        description="Requests allowed for all users together per window",
        ge=0,
    )
    window_seconds: int = Field(
        3600,
        description="Fixed window size in seconds",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )


class TextToSpeechSettings(BaseSettings):
    """Settings of the convert_text_to_speech action."""

    model: str = Field(
        "gpt-4o-mini-tts",
        description="Model used to synthesize speech from text",
    )
    endpoint: str = Field(
        "https://api.openai.com/v1/audio/speech",
        description="Endpoint for the OpenAI TTS API",
    )
    voice: str = Field(
        "alloy",
        description="Default voice when the action does not pick one",
    )
    format: str = Field(
        "mp3",
        description="Default audio format when the action does not pick one",
    )
    system_instruction: str = Field(
        "",
        description="Instruction guiding how the text is read aloud",
    )

    model_config = SettingsConfigDict(
        env_prefix="TTS_",
        case_sensitive=False,
    )

    @field_validator("endpoint")
    @classmethod
    def _check_endpoint(cls, value: str) -> str:
        return check_endpoint(value)

    @field_validator("voice")
    @classmethod
    def _check_voice(cls, value: str) -> str:
        if value not in TTS_VOICES:
            raise ValueError(f"voice must be one of: {', '.join(TTS_VOICES)}")
        return value

    @field_validator("format")
    @classmethod
    def _check_format(cls, value: str) -> str:
        if value not in TTS_FORMATS:
            raise ValueError(f"format must be one of: {', '.join(TTS_FORMATS)}")
        return value


class ImageSettings(BaseSettings):
    """Settings of the generate_image action."""

    model: str = Field(
        "gpt-image-1",
        description="Model used to generate images",
    )
    endpoint: str = Field(
        "https://api.openai.com/v1/images/generations",
        description="Endpoint for the OpenAI image generation API",
    )

    model_config = SettingsConfigDict(
        env_prefix="IMAGE_",
        case_sensitive=False,
    )

    @field_validator("endpoint")
    @classmethod
    def _check_endpoint(cls, value: str) -> str:
        return check_endpoint(value)


class StorageSettings(BaseSettings):
    """Artifact store selection."""

    backend: str = Field(
        "memory",
        description="Artifact store backend: memory or filesystem",
    )
    root: str = Field(
        "var/artifacts",
        description="Root directory used by the filesystem backend",
    )

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(0, description="Rotate log file after this many bytes (0 disables)")
    backup_count: int = Field(5, description="Number of rotated log files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header carrying the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """HTTP surface options (debug mode and X-API-Key authentication)."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    api_key_required: bool = Field(
        True,
        description="Whether API key authentication is required",
    )
    api_keys: str | None = Field(
        None,
        description="Comma-separated list of valid API keys for authentication",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


def _build_openai_settings() -> OpenAISettings:
    # Fields come from the environment; type checkers read them as required args.
    return OpenAISettings()  # type: ignore[call-arg]


def _build_rate_limit_settings() -> RateLimitSettings:
    return RateLimitSettings()  # type: ignore[call-arg]


def _build_tts_settings() -> TextToSpeechSettings:
    return TextToSpeechSettings()  # type: ignore[call-arg]


def _build_image_settings() -> ImageSettings:
    return ImageSettings()  # type: ignore[call-arg]


def _build_storage_settings() -> StorageSettings:
    return StorageSettings()  # type: ignore[call-arg]


def _build_log_settings() -> LogSettings:
    return LogSettings()  # type: ignore[call-arg]


def _build_app_settings() -> AppSettings:
    return AppSettings()  # type: ignore[call-arg]


class Settings(BaseSettings):
    """All settings sections; invalid values fail at import time."""

    app_env: str = APP_ENV
    openai: OpenAISettings = Field(default_factory=_build_openai_settings)
    rate_limit: RateLimitSettings = Field(default_factory=_build_rate_limit_settings)
    tts: TextToSpeechSettings = Field(default_factory=_build_tts_settings)
    image: ImageSettings = Field(default_factory=_build_image_settings)
    storage: StorageSettings = Field(default_factory=_build_storage_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
