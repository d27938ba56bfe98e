"""Phase state machine.

Phases per mode (transition table in TRANSITIONS):

  debate   intro ──(no turn)──▶ round_robin ──(k turns)──▶ debate ⟲
  opinion  intro ──(no turn)──▶ pioneer ▶ rationalist ▶ realist ▶ converger
           ▶ statements ──(k turns)──▶ summary (terminal)

Each rule names the role-label the dispatched speaker plays and how the
speaker is selected:

  none         no turn; move straight to `next` (or idle when next is None)
  slot         fixed roster index, wrapped modulo roster size
  round_robin  roster[turn_counter]; `next` once every member has spoken
  random       resolver picks, excluding whoever spoke last

All functions here are pure: they take a SessionState and return a new one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from roundtable.models import DiscussionMode, Phase, RoleLabel, SessionState

Selection = Literal["none", "slot", "round_robin", "random"]


@dataclass(frozen=True)
class PhaseRule:
    role: RoleLabel | None
    selection: Selection
    next: Phase | None
    slot: int | None = None


TRANSITIONS: dict[DiscussionMode, dict[Phase, PhaseRule]] = {
    DiscussionMode.DEBATE: {
        Phase.INTRO: PhaseRule(None, "none", Phase.ROUND_ROBIN),
        Phase.ROUND_ROBIN: PhaseRule(RoleLabel.OPENING, "round_robin", Phase.DEBATE),
        Phase.DEBATE: PhaseRule(RoleLabel.DEBATE, "random", Phase.DEBATE),
    },
    DiscussionMode.OPINION: {
        Phase.INTRO: PhaseRule(None, "none", Phase.PIONEER),
        Phase.PIONEER: PhaseRule(RoleLabel.PIONEER, "slot", Phase.RATIONALIST, slot=0),
        Phase.RATIONALIST: PhaseRule(RoleLabel.RATIONALIST, "slot", Phase.REALIST, slot=1),
        Phase.REALIST: PhaseRule(RoleLabel.REALIST, "slot", Phase.CONVERGER, slot=2),
        Phase.CONVERGER: PhaseRule(RoleLabel.CONVERGER, "slot", Phase.STATEMENTS, slot=3),
        Phase.STATEMENTS: PhaseRule(RoleLabel.STATEMENT, "round_robin", Phase.SUMMARY),
        Phase.SUMMARY: PhaseRule(None, "none", None),
    },
}

# Phase a reset lands in; opinion mode does not revisit intro.
RESET_PHASE: dict[DiscussionMode, Phase] = {
    DiscussionMode.DEBATE: Phase.INTRO,
    DiscussionMode.OPINION: Phase.PIONEER,
}


def rule_for(mode: DiscussionMode, phase: Phase) -> PhaseRule:
    try:
        return TRANSITIONS[mode][phase]
    except KeyError:
        raise ValueError(f"Phase {phase.value!r} is not part of {mode.value} mode") from None


def initial_state() -> SessionState:
    return SessionState(phase=Phase.INTRO)


def needs_turn(state: SessionState, mode: DiscussionMode) -> bool:
    """True when the current phase dispatches a speaker (or a mention is pending)."""
    if state.forced_speaker_id is not None:
        return True
    return rule_for(mode, state.phase).selection != "none"


def is_terminal(state: SessionState, mode: DiscussionMode) -> bool:
    rule = rule_for(mode, state.phase)
    return rule.selection == "none" and rule.next is None


def is_idle(state: SessionState, mode: DiscussionMode) -> bool:
    """Terminal phase with nothing pending: autonomous scheduling stops."""
    return is_terminal(state, mode) and state.forced_speaker_id is None


def advance(state: SessionState, mode: DiscussionMode, roster_size: int) -> SessionState:
    """Apply the transition that follows one resolved (non-forced) turn.

    For zero-turn phases this is the unconditional move to `next`.
    """
    rule = rule_for(mode, state.phase)
    if rule.next is None:
        return state
    if rule.selection == "round_robin":
        counter = state.turn_counter + 1
        if counter >= roster_size:
            return state.model_copy(update={"phase": rule.next, "turn_counter": 0})
        return state.model_copy(update={"turn_counter": counter})
    if rule.next == state.phase:
        return state
    return state.model_copy(update={"phase": rule.next, "turn_counter": 0})


def after_user_turn(
    state: SessionState, mode: DiscussionMode, mentioned_id: str | None
) -> SessionState:
    """User interrupt: debate mode skips ahead to free debate; mentions force a reply."""
    update: dict = {}
    if mode is DiscussionMode.DEBATE and state.phase in (Phase.INTRO, Phase.ROUND_ROBIN):
        update["phase"] = Phase.DEBATE
        update["turn_counter"] = 0
    if mentioned_id is not None:
        update["forced_speaker_id"] = mentioned_id
    return state.model_copy(update=update)


def reset_state(state: SessionState, mode: DiscussionMode) -> SessionState:
    """Back to the start of the pipeline under a new generation token.

    `busy` is carried over: a generation still in flight keeps blocking new
    dispatches until it completes and is discarded.
    """
    return SessionState(
        phase=RESET_PHASE[mode],
        turn_counter=0,
        forced_speaker_id=None,
        busy=state.busy,
        generation=state.generation + 1,
    )
