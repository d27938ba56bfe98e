"""Health check, settings, connection check, and model listing endpoints."""

from fastapi import APIRouter, HTTPException, Request
from pydantic import ValidationError

from roundtable import llm
from roundtable.models import ModelProvider

from .models import CheckConnectionBody

router = APIRouter()


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.post("/check-connection")
async def check_connection(body: CheckConnectionBody):
    """Quick reachability check against a model backend."""
    return {"ok": await llm.check_connection(body.binding)}


@router.get("/models")
async def list_models(provider: ModelProvider = "ollama", endpoint: str = ""):
    """Models available for a provider."""
    return {"models": await llm.list_models(provider, endpoint)}


@router.get("/settings")
async def get_settings(request: Request):
    """Get scheduler settings."""
    return request.app.state.storage.get_config()


@router.patch("/settings")
async def update_settings(request: Request, body: dict):
    """Update scheduler settings (partial merge). Applies to rooms opened afterwards."""
    try:
        return request.app.state.storage.update_config(body)
    except ValidationError as e:
        raise HTTPException(422, str(e))
