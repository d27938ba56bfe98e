"""Tests for the turn resolver and mention detection."""

import random

import pytest

from conftest import scripted
from roundtable.models import (
    DiscussionMode,
    ParticipantSpeaker,
    Phase,
    RoleLabel,
    SentinelSpeaker,
    Turn,
)
from roundtable.resolver import detect_mention, resolve_next_speaker

A, B, C, D = (scripted(x) for x in "abcd")
OPINION = DiscussionMode.OPINION


def _said_by(p) -> list[Turn]:
    return [Turn(id="1", speaker=ParticipantSpeaker(id=p.id, name=p.name), text="x")]


class TestForcedSpeaker:
    def test_forced_wins_with_debate_role(self) -> None:
        res = resolve_next_speaker(Phase.ROUND_ROBIN, [A, B, C], [], "c", turn_counter=0)
        assert res.participant.id == "c"
        assert res.role == RoleLabel.DEBATE
        assert res.forced is True

    def test_forced_overrides_pipeline_role(self) -> None:
        res = resolve_next_speaker(Phase.PIONEER, [A, B], [], "b", mode=OPINION)
        assert res.participant.id == "b"
        assert res.role == RoleLabel.DEBATE

    def test_forced_may_repeat_last_speaker(self) -> None:
        res = resolve_next_speaker(Phase.DEBATE, [A, B], _said_by(B), "b")
        assert res.participant.id == "b"

    def test_unknown_forced_id_falls_through(self) -> None:
        res = resolve_next_speaker(Phase.ROUND_ROBIN, [A, B], [], "zz", turn_counter=1)
        assert res.participant.id == "b"
        assert res.forced is False

    def test_forced_in_zero_turn_phase(self) -> None:
        res = resolve_next_speaker(Phase.SUMMARY, [A, B], [], "a", mode=OPINION)
        assert res.participant.id == "a"


class TestOrderedPhases:
    def test_round_robin_follows_counter(self) -> None:
        picks = [
            resolve_next_speaker(Phase.ROUND_ROBIN, [A, B, C], [], None, turn_counter=i).participant.id
            for i in range(3)
        ]
        assert picks == ["a", "b", "c"]

    def test_round_robin_role(self) -> None:
        res = resolve_next_speaker(Phase.ROUND_ROBIN, [A], [], None)
        assert res.role == RoleLabel.OPENING

    def test_statements_role(self) -> None:
        res = resolve_next_speaker(Phase.STATEMENTS, [A, B], [], None, mode=OPINION, turn_counter=1)
        assert res.participant.id == "b"
        assert res.role == RoleLabel.STATEMENT

    @pytest.mark.parametrize("phase,expected", [
        (Phase.PIONEER, "a"),
        (Phase.RATIONALIST, "b"),
        (Phase.REALIST, "c"),
        (Phase.CONVERGER, "d"),
    ])
    def test_named_roles_map_to_slots(self, phase: Phase, expected: str) -> None:
        res = resolve_next_speaker(phase, [A, B, C, D], [], None, mode=OPINION)
        assert res.participant.id == expected
        assert res.role.value == phase.value

    def test_converger_wraps_onto_pioneer_with_three(self) -> None:
        res = resolve_next_speaker(Phase.CONVERGER, [A, B, C], [], None, mode=OPINION)
        assert res.participant.id == "a"

    def test_zero_turn_phase_resolves_nobody(self) -> None:
        assert resolve_next_speaker(Phase.INTRO, [A, B], [], None) is None

    def test_empty_roster_resolves_nobody(self) -> None:
        assert resolve_next_speaker(Phase.DEBATE, [], [], "a") is None


class TestDebate:
    def test_never_repeats_last_speaker(self) -> None:
        rng = random.Random(3)
        roster = [A, B, C]
        log: list[Turn] = []
        last = None
        for _ in range(200):
            pick = resolve_next_speaker(Phase.DEBATE, roster, log, None, rng=rng).participant
            assert pick.id != last
            last = pick.id
            log = _said_by(pick)

    def test_two_members_alternate(self) -> None:
        res = resolve_next_speaker(Phase.DEBATE, [A, B], _said_by(A), None)
        assert res.participant.id == "b"
        assert res.role == RoleLabel.DEBATE

    def test_single_member_may_repeat(self) -> None:
        res = resolve_next_speaker(Phase.DEBATE, [A], _said_by(A), None)
        assert res.participant.id == "a"

    def test_user_last_excludes_nobody(self) -> None:
        rng = random.Random(0)
        log = [Turn(id="1", speaker=SentinelSpeaker(role="user"), text="hi")]
        seen = {
            resolve_next_speaker(Phase.DEBATE, [A, B], log, None, rng=rng).participant.id
            for _ in range(50)
        }
        assert seen == {"a", "b"}


class TestDetectMention:
    ROSTER = [scripted("musk", "Elon Musk"), scripted("kobe", "Kobe"), scripted("kb", "Kobe Bryant")]

    def test_at_mention(self) -> None:
        assert detect_mention("What do you think @Kobe?", [A, scripted("k", "Kobe")]) == "k"

    def test_case_insensitive(self) -> None:
        assert detect_mention("@elon musk thoughts?", self.ROSTER) == "musk"

    def test_longest_name_wins_at_same_position(self) -> None:
        assert detect_mention("@Kobe Bryant, go", self.ROSTER) == "kb"

    def test_earliest_mention_wins(self) -> None:
        assert detect_mention("@Kobe then @Elon Musk", self.ROSTER) == "kobe"

    def test_at_mention_beats_earlier_bare_name(self) -> None:
        assert detect_mention("Kobe said it, but @Elon Musk?", self.ROSTER) == "musk"

    def test_bare_name_used_without_at(self) -> None:
        assert detect_mention("I agree with Elon Musk", self.ROSTER) == "musk"

    def test_no_mention(self) -> None:
        assert detect_mention("Nice weather", self.ROSTER) is None

    def test_bare_name_needs_word_boundary(self) -> None:
        roster = [scripted("a", "Al"), scripted("k", "Kobe")]
        assert detect_mention("Kobeyashi always shows up", roster) is None
