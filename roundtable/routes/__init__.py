"""FastAPI API endpoints under /api.

Endpoint groups: settings (health, settings, check-connection, models),
characters (built-in + custom), discussions (CRUD plus the live room:
open, messages, mention, reset, status).
"""

from fastapi import APIRouter

from .characters import router as characters_router
from .discussions import router as discussions_router
from .settings import router as settings_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(characters_router)
router.include_router(discussions_router)
