"""Turn resolver — who speaks next, and in which role.

Priority:
  1. Forced speaker (mention override) that is on the roster → that member,
     always in free-debate framing. The caller clears the override.
  2. Slot / round-robin phases → roster member at the phase's index.
  3. Random phases → uniform pick among everyone except the last speaker,
     unless that would leave nobody.
"""

from __future__ import annotations

import random
import re
from dataclasses import dataclass

from roundtable.models import (
    DiscussionMode,
    Participant,
    Phase,
    RoleLabel,
    Turn,
    speaker_id,
)
from roundtable.phases import rule_for


@dataclass(frozen=True)
class Resolution:
    participant: Participant
    role: RoleLabel
    forced: bool = False


def resolve_next_speaker(
    phase: Phase,
    roster: list[Participant],
    log: list[Turn],
    forced_speaker_id: str | None,
    *,
    mode: DiscussionMode = DiscussionMode.DEBATE,
    turn_counter: int = 0,
    rng: random.Random | None = None,
) -> Resolution | None:
    """Select the next speaker. Returns None when nobody should speak."""
    if not roster:
        return None

    if forced_speaker_id is not None:
        for member in roster:
            if member.id == forced_speaker_id:
                return Resolution(member, RoleLabel.DEBATE, forced=True)

    rule = rule_for(mode, phase)
    if rule.role is None:
        return None

    if rule.selection == "slot":
        return Resolution(roster[(rule.slot or 0) % len(roster)], rule.role)

    if rule.selection == "round_robin":
        return Resolution(roster[turn_counter % len(roster)], rule.role)

    last_id = speaker_id(log[-1].speaker) if log else None
    eligible = [m for m in roster if m.id != last_id] or list(roster)
    return Resolution((rng or random).choice(eligible), rule.role)


def detect_mention(text: str, roster: list[Participant]) -> str | None:
    """Id of the participant the text addresses, if any.

    "@Name" mentions win over bare names; among several, the earliest in the
    text wins, and at the same position the longer name does.
    """
    lowered = text.lower()
    for marker in ("@", ""):
        best: tuple[int, int, str] | None = None
        for member in roster:
            if not member.name:
                continue
            pattern = rf"(?<!\w){re.escape(marker + member.name.lower())}(?!\w)"
            match = re.search(pattern, lowered)
            if match is None:
                continue
            key = (match.start(), -len(member.name), member.id)
            if best is None or key < best:
                best = key
        if best is not None:
            return best[2]
    return None
