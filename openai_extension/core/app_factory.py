"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers).
"""

from __future__ import annotations

from fastapi import FastAPI

from openai_extension.api.routes import actions_router, health_router
from openai_extension.core.config import settings
from openai_extension.core.exception_handlers import setup_exception_handlers
from openai_extension.core.logging import configure_logging
from openai_extension.core.middleware import request_id_middleware
from openai_extension.core.openapi import apply_openapi_customizations


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="OpenAI Extension Provider",
        description=(
            "Runs text-to-speech and image generation actions against the "
            "OpenAI API with per-user and global rate limits, stores the "
            "generated audio/images as artifacts and returns a uniform "
            "success/error record. Requires X-API-Key."
        ),
        version="0.1.0",
        debug=settings.app.debug,
    )

    app.middleware("http")(request_id_middleware)
    setup_exception_handlers(app)

    app.include_router(actions_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
