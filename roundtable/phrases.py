"""Scripted utterances — pick a phrase template and fill in the topic."""

from __future__ import annotations

import random

from roundtable.models import Participant

TOPIC_PLACEHOLDER = "{topic}"
EMPTY_PHRASE = "..."


def generate_phrase(
    participant: Participant, topic: str, rng: random.Random | None = None
) -> str:
    """Return one of the participant's phrases with every {topic} replaced.

    Never fails: a participant without phrases says "...".
    """
    if not participant.phrases:
        return EMPTY_PHRASE
    template = (rng or random).choice(participant.phrases)
    return template.replace(TOPIC_PLACEHOLDER, topic)
