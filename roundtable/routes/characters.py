"""Character listing and custom character endpoints."""

from fastapi import APIRouter, HTTPException, Request

from roundtable.characters import builtin_characters, new_custom_character

from .models import CreateCharacter

router = APIRouter()


@router.get("/characters")
async def list_characters(request: Request):
    """Built-in scripted characters followed by custom ones."""
    storage = request.app.state.storage
    return builtin_characters() + storage.get_custom_characters()


@router.post("/characters", status_code=201)
async def create_character(request: Request, body: CreateCharacter):
    """Create a custom generative character."""
    storage = request.app.state.storage
    char = new_custom_character(
        body.name, body.binding, description=body.description, tag=body.tag,
    )
    storage.save_custom_character(char)
    return char


@router.delete("/characters/{character_id}")
async def delete_character(request: Request, character_id: str):
    """Delete a custom character. Rosters that include it keep their copy."""
    if not request.app.state.storage.delete_custom_character(character_id):
        raise HTTPException(404, "Character not found")
    return {"ok": True}
