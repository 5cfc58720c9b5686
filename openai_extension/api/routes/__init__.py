from __future__ import annotations

from openai_extension.api.routes.actions import router as actions_router
from openai_extension.api.routes.health import router as health_router

__all__ = ["actions_router", "health_router"]
