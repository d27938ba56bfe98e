"""Discussion CRUD + live room endpoints (open, messages, mention, reset, status)."""

import uuid

from fastapi import APIRouter, HTTPException, Request

from roundtable.characters import get_builtin_character
from roundtable.models import Discussion
from roundtable.scheduler import Scheduler

from .models import CreateDiscussion, MentionBody, SendMessage

router = APIRouter()


def _room(request: Request, discussion_id: str) -> Scheduler:
    """Live scheduler for a discussion, opening it on first use."""
    rooms = request.app.state.rooms
    room = rooms.get(discussion_id)
    if room is not None:
        return room
    try:
        return rooms.open(discussion_id)
    except KeyError:
        raise HTTPException(404, "Discussion not found")


@router.get("/discussions")
async def list_discussions(request: Request):
    """List all discussions, newest first."""
    return request.app.state.storage.list_discussions()


@router.post("/discussions", status_code=201)
async def create_discussion(request: Request, body: CreateDiscussion):
    """Create a discussion with a fixed roster of built-in and/or custom characters."""
    storage = request.app.state.storage
    custom = {c.id: c for c in storage.get_custom_characters()}
    roster = []
    for pid in body.participant_ids:
        member = get_builtin_character(pid) or custom.get(pid)
        if member is None:
            raise HTTPException(400, f"Unknown character '{pid}'")
        roster.append(member)
    discussion = Discussion(
        id=uuid.uuid4().hex,
        name=body.name,
        topic=body.topic,
        type=body.type,
        roster=roster,
    )
    return storage.create_discussion(discussion)


@router.get("/discussions/{discussion_id}")
async def get_discussion(request: Request, discussion_id: str):
    """Get a single discussion by id."""
    discussion = request.app.state.storage.get_discussion(discussion_id)
    if discussion is None:
        raise HTTPException(404, "Discussion not found")
    return discussion


@router.delete("/discussions/{discussion_id}")
async def delete_discussion(request: Request, discussion_id: str):
    """Stop its room (if open) and delete a discussion with its log."""
    await request.app.state.rooms.close(discussion_id)
    if not request.app.state.storage.delete_discussion(discussion_id):
        raise HTTPException(404, "Discussion not found")
    return {"ok": True}


@router.post("/discussions/{discussion_id}/open")
async def open_discussion(request: Request, discussion_id: str):
    """Load a discussion and start its scheduler, or resume a live one."""
    try:
        room = request.app.state.rooms.open(discussion_id)
    except KeyError:
        raise HTTPException(404, "Discussion not found")
    return _status(room)


@router.get("/discussions/{discussion_id}/messages")
async def get_messages(request: Request, discussion_id: str):
    """The discussion's turn log."""
    return _room(request, discussion_id).turns


@router.post("/discussions/{discussion_id}/messages", status_code=201)
async def send_message(request: Request, discussion_id: str, body: SendMessage):
    """Send a user message; an @mention makes that guest answer next."""
    room = _room(request, discussion_id)
    try:
        return room.send(body.text)
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.post("/discussions/{discussion_id}/mention")
async def mention(request: Request, discussion_id: str, body: MentionBody):
    """Pre-fill a mention for a guest. Does not change who speaks next."""
    room = _room(request, discussion_id)
    try:
        return {"draft": room.mention(body.name)}
    except KeyError:
        raise HTTPException(404, "Participant not found")


@router.post("/discussions/{discussion_id}/reset")
async def reset(request: Request, discussion_id: str):
    """Clear the log and restart the discussion from the top."""
    room = _room(request, discussion_id)
    room.reset()
    return _status(room)


@router.get("/discussions/{discussion_id}/status")
async def status(request: Request, discussion_id: str):
    """Current phase and whether a guest is thinking."""
    return _status(_room(request, discussion_id))


def _status(room: Scheduler) -> dict:
    return {
        "phase": room.phase.value,
        "busy": room.busy,
        "running": room.running,
        "turns": len(room.log),
        "mention_hint": room.mention_hint,
    }
