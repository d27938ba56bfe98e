"""Core domain models.

Scheduler, resolver, responder and storage all operate on these types.
Pydantic is used for validation and serialisation at every data boundary.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

ParticipantKind = Literal["scripted", "generative"]

ModelProvider = Literal[
    "ollama",
    "openai",
    "deepseek",
    "moonshot",
    "zhipu",
    "bailian",
    "qwen",
]

DiscussionType = Literal["chat", "debate", "brainstorm", "interview", "opinion"]


class DiscussionMode(str, Enum):
    DEBATE = "debate"
    OPINION = "opinion"


class Phase(str, Enum):
    INTRO = "intro"
    ROUND_ROBIN = "round_robin"
    DEBATE = "debate"
    PIONEER = "pioneer"
    RATIONALIST = "rationalist"
    REALIST = "realist"
    CONVERGER = "converger"
    STATEMENTS = "statements"
    SUMMARY = "summary"


class RoleLabel(str, Enum):
    """Persona framing a speaker receives for a single turn."""

    OPENING = "opening"
    DEBATE = "debate"
    PIONEER = "pioneer"
    RATIONALIST = "rationalist"
    REALIST = "realist"
    CONVERGER = "converger"
    STATEMENT = "statement"


class ModelBinding(BaseModel):
    """How a generative participant reaches its chat model."""

    provider: ModelProvider = "ollama"
    model: str
    endpoint: str = ""  # empty → provider default
    api_key: str = ""
    temperature: float = 0.7
    system_prompt: str = ""


class Participant(BaseModel):
    """A roundtable guest, either phrase-table driven or model driven."""

    id: str
    name: str
    kind: ParticipantKind = "scripted"
    avatar: str = ""
    color: str = ""
    tag: str = ""
    phrases: list[str] = Field(default_factory=list)
    description: str = ""
    binding: ModelBinding | None = None  # required for generative, may be missing
    is_custom: bool = False
    created_at: float | None = None


# ---------------------------------------------------------------------------
# Speaker: tagged variant, never a bare string
# ---------------------------------------------------------------------------

SentinelRole = Literal["user", "system", "host"]


class SentinelSpeaker(BaseModel):
    kind: Literal["sentinel"] = "sentinel"
    role: SentinelRole


class ParticipantSpeaker(BaseModel):
    kind: Literal["participant"] = "participant"
    id: str
    name: str


Speaker = Annotated[
    Union[SentinelSpeaker, ParticipantSpeaker],
    Field(discriminator="kind"),
]

SENTINEL_NAMES: dict[str, str] = {"user": "User", "system": "System", "host": "Host"}


def speaker_for(participant: Participant) -> ParticipantSpeaker:
    return ParticipantSpeaker(id=participant.id, name=participant.name)


def speaker_name(speaker: SentinelSpeaker | ParticipantSpeaker) -> str:
    """Display name used when quoting a speaker to a model."""
    if isinstance(speaker, ParticipantSpeaker):
        return speaker.name
    return SENTINEL_NAMES[speaker.role]


def speaker_id(speaker: SentinelSpeaker | ParticipantSpeaker) -> str:
    """Stable identity: participant id, or the sentinel role name."""
    if isinstance(speaker, ParticipantSpeaker):
        return speaker.id
    return speaker.role


class Turn(BaseModel):
    """A single entry in a discussion's append-only log."""

    id: str
    speaker: Speaker
    text: str
    timestamp: float = Field(default_factory=time.time)
    role: RoleLabel | None = None  # framing the turn was produced under
    error: bool = False  # in-band error utterance


class Discussion(BaseModel):
    """Discussion metadata plus its fixed roster."""

    id: str
    name: str
    topic: str
    type: DiscussionType = "debate"
    roster: list[Participant] = Field(default_factory=list)
    created_at: float = Field(default_factory=time.time)

    @property
    def mode(self) -> DiscussionMode:
        if self.type == "opinion":
            return DiscussionMode.OPINION
        return DiscussionMode.DEBATE


class SessionState(BaseModel):
    """Scheduling state of one discussion.

    Only `phase` and `turn_counter` are persisted; `forced_speaker_id`,
    `busy` and `generation` live for the lifetime of a scheduler.
    """

    phase: Phase = Phase.INTRO
    turn_counter: int = 0
    forced_speaker_id: str | None = None
    busy: bool = False
    generation: int = 0  # bumped on reset; stale results carry an older token
