"""Tests for the phase transition table and pure transitions."""

import pytest

from roundtable import phases
from roundtable.models import DiscussionMode, Phase, RoleLabel, SessionState

DEBATE = DiscussionMode.DEBATE
OPINION = DiscussionMode.OPINION


def _walk(state: SessionState, mode: DiscussionMode, roster_size: int, steps: int) -> list[Phase]:
    seen = [state.phase]
    for _ in range(steps):
        state = phases.advance(state, mode, roster_size)
        seen.append(state.phase)
    return seen


class TestTable:
    def test_intro_is_zero_turn_in_both_modes(self) -> None:
        for mode in DiscussionMode:
            assert phases.rule_for(mode, Phase.INTRO).selection == "none"

    def test_opinion_slots(self) -> None:
        slots = {
            Phase.PIONEER: (0, RoleLabel.PIONEER),
            Phase.RATIONALIST: (1, RoleLabel.RATIONALIST),
            Phase.REALIST: (2, RoleLabel.REALIST),
            Phase.CONVERGER: (3, RoleLabel.CONVERGER),
        }
        for phase, (slot, role) in slots.items():
            rule = phases.rule_for(OPINION, phase)
            assert rule.selection == "slot"
            assert rule.slot == slot
            assert rule.role == role

    def test_phase_outside_mode_rejected(self) -> None:
        with pytest.raises(ValueError, match="not part of debate mode"):
            phases.rule_for(DEBATE, Phase.PIONEER)


class TestDebateMode:
    def test_intro_to_round_robin_to_debate(self) -> None:
        seen = _walk(phases.initial_state(), DEBATE, roster_size=3, steps=5)
        assert seen == [
            Phase.INTRO,
            Phase.ROUND_ROBIN, Phase.ROUND_ROBIN, Phase.ROUND_ROBIN,
            Phase.DEBATE, Phase.DEBATE,
        ]

    def test_round_robin_counter_resets_on_exit(self) -> None:
        state = SessionState(phase=Phase.ROUND_ROBIN, turn_counter=1)
        state = phases.advance(state, DEBATE, roster_size=2)
        assert state.phase == Phase.DEBATE
        assert state.turn_counter == 0

    def test_debate_never_auto_advances(self) -> None:
        state = SessionState(phase=Phase.DEBATE)
        assert phases.advance(state, DEBATE, 4) == state
        assert not phases.is_terminal(state, DEBATE)

    @pytest.mark.parametrize("phase", [Phase.INTRO, Phase.ROUND_ROBIN])
    def test_user_interrupt_jumps_to_debate(self, phase: Phase) -> None:
        state = SessionState(phase=phase, turn_counter=1)
        state = phases.after_user_turn(state, DEBATE, None)
        assert state.phase == Phase.DEBATE
        assert state.turn_counter == 0

    def test_user_mention_sets_forced_speaker(self) -> None:
        state = phases.after_user_turn(SessionState(phase=Phase.DEBATE), DEBATE, "b")
        assert state.forced_speaker_id == "b"
        assert state.phase == Phase.DEBATE

    def test_reset_returns_to_intro(self) -> None:
        state = SessionState(phase=Phase.DEBATE, turn_counter=2, forced_speaker_id="a", generation=4)
        state = phases.reset_state(state, DEBATE)
        assert state.phase == Phase.INTRO
        assert state.turn_counter == 0
        assert state.forced_speaker_id is None
        assert state.generation == 5


class TestOpinionMode:
    @pytest.mark.parametrize("k", [1, 2, 3, 4])
    def test_reaches_summary_after_four_plus_k_turns(self, k: int) -> None:
        state = phases.advance(phases.initial_state(), OPINION, k)  # intro, zero-turn
        assert state.phase == Phase.PIONEER
        turns = 0
        order = [state.phase]
        while not phases.is_terminal(state, OPINION):
            assert phases.needs_turn(state, OPINION)
            state = phases.advance(state, OPINION, k)
            turns += 1
            if state.phase != order[-1]:
                order.append(state.phase)
        assert turns == 4 + k
        assert order == [
            Phase.PIONEER, Phase.RATIONALIST, Phase.REALIST,
            Phase.CONVERGER, Phase.STATEMENTS, Phase.SUMMARY,
        ]

    def test_summary_is_terminal_and_idle(self) -> None:
        state = SessionState(phase=Phase.SUMMARY)
        assert phases.is_terminal(state, OPINION)
        assert phases.is_idle(state, OPINION)
        assert phases.advance(state, OPINION, 3) == state

    def test_pending_mention_wakes_summary(self) -> None:
        state = SessionState(phase=Phase.SUMMARY, forced_speaker_id="a")
        assert phases.needs_turn(state, OPINION)
        assert not phases.is_idle(state, OPINION)

    def test_user_turn_keeps_phase(self) -> None:
        state = SessionState(phase=Phase.REALIST)
        after = phases.after_user_turn(state, OPINION, None)
        assert after.phase == Phase.REALIST
        assert after.forced_speaker_id is None

    def test_reset_lands_on_pioneer(self) -> None:
        state = SessionState(phase=Phase.RATIONALIST)
        assert phases.reset_state(state, OPINION).phase == Phase.PIONEER

    def test_reset_keeps_busy_flag(self) -> None:
        state = SessionState(phase=Phase.RATIONALIST, busy=True)
        assert phases.reset_state(state, OPINION).busy is True


def test_transitions_return_new_state():
    state = SessionState(phase=Phase.ROUND_ROBIN)
    after = phases.advance(state, DEBATE, 3)
    assert after is not state
    assert state.turn_counter == 0
