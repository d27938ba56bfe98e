"""Handlebars prompt rendering for role instructions and host lines."""

from collections.abc import Callable
from typing import Any

import pybars

from roundtable.models import Discussion, DiscussionMode, Participant, RoleLabel


_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


# ── Role instruction table ───────────────────────────────
#
# Static, one entry per role-label. Context: topic, name, description.

_CHARACTER_BLOCK = "{{#if description}}\nYour character: {{{description}}}\n{{/if}}"

ROLE_TEMPLATES: dict[RoleLabel, str] = {
    RoleLabel.OPENING: (
        "You are {{{name}}}, a guest at a roundtable on \"{{{topic}}}\"."
        + _CHARACTER_BLOCK
        + "\nGive your opening position on the topic in two or three sentences."
    ),
    RoleLabel.DEBATE: (
        "You are {{{name}}}, debating \"{{{topic}}}\" with the other guests."
        + _CHARACTER_BLOCK
        + "\nRespond directly to what was just said. Agree, push back, or sharpen"
        " the point, and stay in character."
    ),
    RoleLabel.PIONEER: (
        "You are {{{name}}}, speaking first as the Pioneer on \"{{{topic}}}\"."
        + _CHARACTER_BLOCK
        + "\nMake a bold claim that creates tension. Take a side; do not hedge."
    ),
    RoleLabel.RATIONALIST: (
        "You are {{{name}}}, speaking as the Rationalist on \"{{{topic}}}\"."
        + _CHARACTER_BLOCK
        + "\nExpose the uncertainty and the logic gaps in what has been claimed"
        " so far. Ask what would have to be true."
    ),
    RoleLabel.REALIST: (
        "You are {{{name}}}, speaking as the Realist on \"{{{topic}}}\"."
        + _CHARACTER_BLOCK
        + "\nGround the discussion in practical cost: money, time, people, and"
        " what actually happens on Monday morning."
    ),
    RoleLabel.CONVERGER: (
        "You are {{{name}}}, speaking as the Converger on \"{{{topic}}}\"."
        + _CHARACTER_BLOCK
        + "\nName the single axis the guests really disagree on. Do not resolve it."
    ),
    RoleLabel.STATEMENT: (
        "You are {{{name}}}, closing the roundtable on \"{{{topic}}}\"."
        + _CHARACTER_BLOCK
        + "\nGive one memorable closing sentence."
    ),
}

OUTPUT_CONSTRAINTS = (
    "Reply in plain text only. Do not start with your name or any speaker"
    " label. Do not use markdown, lists, or other markup."
)

OPENING_TEMPLATES: dict[DiscussionMode, str] = {
    DiscussionMode.DEBATE: (
        "Welcome to the roundtable! Today's topic: {{{topic}}}."
        " Our guests: {{{guests}}}. Jump in any time."
    ),
    DiscussionMode.OPINION: (
        "Welcome to the roundtable! Today's question: {{{topic}}}."
        " Our guests ({{{guests}}}) will each take a different angle before"
        " closing statements."
    ),
}


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context))
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


def role_instruction(role: RoleLabel, topic: str, participant: Participant) -> str:
    """Render the persona framing for one turn."""
    return render_prompt(ROLE_TEMPLATES[role], {
        "topic": topic,
        "name": participant.name,
        "description": participant.description,
    })


def system_instruction(role: RoleLabel, topic: str, participant: Participant) -> str:
    """Full system entry: bound system prompt, role framing, output rules."""
    parts: list[str] = []
    if participant.binding and participant.binding.system_prompt:
        parts.append(participant.binding.system_prompt.strip())
    parts.append(role_instruction(role, topic, participant).strip())
    parts.append(OUTPUT_CONSTRAINTS)
    return "\n\n".join(parts)


def opening_line(discussion: Discussion) -> str:
    """The host's opening line, emitted at start and after every reset."""
    guests = ", ".join(p.name for p in discussion.roster) or "nobody yet"
    return render_prompt(OPENING_TEMPLATES[discussion.mode], {
        "topic": discussion.topic,
        "guests": guests,
    })
