"""Built-in scripted characters and custom character helpers.

Built-ins are scripted: they speak from fixed phrase tables. Custom
characters are generative and bound to a chat model; their definitions live
in storage and are re-applied to a roster whenever a discussion is loaded,
so edits take effect on the next load and never rewrite past turns.
"""

import time
import uuid

from roundtable.models import ModelBinding, Participant

_BUILTINS: list[Participant] = [
    Participant(
        id="musk",
        name="Elon Musk",
        tag="Tech Visionary",
        color="border-emerald-500",
        phrases=[
            "First principles thinking tells us that the essence of {topic} is...",
            "Hardcore! We need to discuss {topic} on Mars.",
            "AI is like a nuke, it must be open source! Regarding {topic}...",
            "This is critical for the future of consciousness.",
            "We need to make {topic} multi-planetary.",
            "Exactly. We need to iterate faster.",
            "The pace of innovation is everything.",
            "I think we are too slow here.",
            "Let that sink in.",
        ],
    ),
    Participant(
        id="einstein",
        name="Albert Einstein",
        tag="Physics God",
        color="border-sky-500",
        phrases=[
            "God does not play dice, but {topic} is indeed full of uncertainty.",
            "Imagination is more important than knowledge. Let me imagine a metaphor about {topic}...",
            "Relativity tells us that there is no absolute answer to {topic}.",
            "We cannot solve our problems with the same thinking we used when we created them.",
            "Time is an illusion, just like our understanding of {topic}.",
            "Everything should be made as simple as possible, but not simpler.",
            "The important thing is not to stop questioning.",
            "Logic will get you from A to B. Imagination will take you everywhere.",
        ],
    ),
    Participant(
        id="luxun",
        name="Lu Xun",
        tag="Soul of the Nation",
        color="border-rose-500",
        phrases=[
            "Hehe, {topic}? Has it always been like this? And is that right?",
            "I have always suspected {topic} with the worst malice.",
            "There was no road in the world, but when many people discussed {topic}, it became a road.",
            "Save the children... from {topic}!",
            "Silence! Silence! Unless we explode in silence, we shall perish in silence regarding {topic}.",
        ],
    ),
    Participant(
        id="kobe",
        name="Kobe Bryant",
        tag="Black Mamba",
        color="border-amber-500",
        phrases=[
            "4 AM in Los Angeles tells me that {topic} needs Mamba Mentality.",
            "If you are afraid of {topic}, you have already lost.",
            "Greatness needs daily effort, just like I practice shooting. Even for {topic}.",
            "Job's not finished. Is {topic} finished? I don't think so.",
        ],
    ),
]


def builtin_characters() -> list[Participant]:
    """Fresh copies of the built-in scripted characters."""
    return [c.model_copy(deep=True) for c in _BUILTINS]


def get_builtin_character(character_id: str) -> Participant | None:
    for char in _BUILTINS:
        if char.id == character_id:
            return char.model_copy(deep=True)
    return None


def new_custom_character(
    name: str,
    binding: ModelBinding | None,
    description: str = "",
    tag: str = "",
) -> Participant:
    """Create a generative character with a fresh id."""
    return Participant(
        id=f"custom-{uuid.uuid4().hex[:12]}",
        name=name,
        kind="generative",
        tag=tag,
        description=description,
        binding=binding,
        is_custom=True,
        created_at=time.time(),
    )


def refresh_roster(
    roster: list[Participant], definitions: list[Participant]
) -> list[Participant]:
    """Re-apply current binding + description of generative participants.

    Roster order and membership never change; participants without a matching
    definition are kept as stored.
    """
    by_id = {d.id: d for d in definitions}
    refreshed: list[Participant] = []
    for member in roster:
        current = by_id.get(member.id)
        if member.kind == "generative" and current is not None:
            member = member.model_copy(update={
                "binding": current.binding,
                "description": current.description,
            })
        refreshed.append(member)
    return refreshed
