"""Response generator — one generative participant's turn.

Builds a bounded, role-tagged transcript from the discussion log, prepends a
single system entry (bound system prompt + role framing + output rules),
and awaits the chat model. Every failure becomes an in-band error utterance;
nothing raises past respond().
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass

from roundtable.llm import ChatMessage, ChatModel, LLMError
from roundtable.models import (
    ParticipantSpeaker,
    Participant,
    RoleLabel,
    SentinelSpeaker,
    Turn,
    speaker_name,
)
from roundtable.phrases import EMPTY_PHRASE
from roundtable.prompts import system_instruction

logger = logging.getLogger(__name__)

CONTEXT_WINDOW = 15
DEFAULT_TIMEOUT = 60.0


@dataclass(frozen=True)
class Reply:
    text: str
    error: bool = False


def build_transcript(
    participant: Participant, log: list[Turn], window: int = CONTEXT_WINDOW
) -> list[ChatMessage]:
    """Map the last `window` log entries to chat roles relative to `participant`.

    Own turns → assistant. Everyone else → user, prefixed with their display
    name so several voices can share the single user channel. System entries
    are passed through as user content without a prefix.
    """
    recent = log[-window:] if window > 0 else []
    messages: list[ChatMessage] = []
    for turn in recent:
        speaker = turn.speaker
        if isinstance(speaker, ParticipantSpeaker) and speaker.id == participant.id:
            messages.append(ChatMessage(role="assistant", content=turn.text))
        elif isinstance(speaker, SentinelSpeaker) and speaker.role == "system":
            messages.append(ChatMessage(role="user", content=turn.text))
        else:
            messages.append(ChatMessage(
                role="user", content=f"{speaker_name(speaker)}: {turn.text}",
            ))
    return messages


def clean_reply(participant: Participant, text: str) -> str:
    """Strip whitespace and a leading "Name:" self-label."""
    text = text.strip()
    prefix = re.compile(rf"^\s*{re.escape(participant.name)}\s*[:：]\s*", re.IGNORECASE)
    text = prefix.sub("", text, count=1).strip()
    return text or EMPTY_PHRASE


async def respond(
    participant: Participant,
    topic: str,
    log: list[Turn],
    role: RoleLabel,
    chat: ChatModel,
    *,
    window: int = CONTEXT_WINDOW,
    timeout: float | None = DEFAULT_TIMEOUT,
) -> Reply:
    """Generate `participant`'s next utterance. May suspend for a long time."""
    binding = participant.binding
    if binding is None:
        logger.warning("participant %s has no model binding", participant.id)
        return Reply(f"[unavailable] {participant.name} has no model configured.", error=True)

    transcript = [
        ChatMessage(role="system", content=system_instruction(role, topic, participant)),
        *build_transcript(participant, log, window),
    ]

    try:
        text = await asyncio.wait_for(chat(binding, transcript), timeout)
    except LLMError as e:
        logger.warning("generation failed participant=%s provider=%s: %s",
                       participant.id, binding.provider, e)
        return Reply(f"[{binding.provider} error] {e}", error=True)
    except asyncio.TimeoutError:
        logger.warning("generation timed out participant=%s provider=%s after %ss",
                       participant.id, binding.provider, timeout)
        return Reply(f"[{binding.provider} error] no reply within {timeout}s", error=True)

    return Reply(clean_reply(participant, text))
