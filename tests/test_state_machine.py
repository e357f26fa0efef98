"""Tests for the vote state machine."""

import itertools

import pytest

from votebot.errors import VoteStateError
from votebot.messages import t
from votebot.models import VoteKind, VoteState
from votebot.state_machine import VoteMechanics


def start(mechanics: VoteMechanics, topic: str = "fresh vote") -> None:
    result = mechanics.call_vote(topic, 30, 120)
    assert result.accepted


class TestCallVote:
    def test_initial_state_is_idle(self, mechanics):
        assert mechanics.state == VoteState.IDLE
        assert mechanics.topic == ""
        assert mechanics.ballots == {}
        assert mechanics.warned is False

    def test_call_vote_starts_running(self, mechanics, clock):
        result = mechanics.call_vote("fresh vote", 30, 120)

        assert result.accepted is True
        assert result.message == t("vote_started")
        assert mechanics.state == VoteState.RUNNING
        assert mechanics.topic == "fresh vote"
        assert mechanics.warn_at == clock.now + 30
        assert mechanics.end_at == clock.now + 120
        assert mechanics.warned is False

    def test_zero_deadlines_are_due_immediately(self, mechanics, clock):
        mechanics.call_vote("now", 0, 0)
        assert mechanics.warn_at == clock.now
        assert mechanics.end_at == clock.now

    def test_warn_after_end_is_accepted(self, mechanics):
        result = mechanics.call_vote("late warning", 200, 120)
        assert result.accepted
        assert mechanics.warn_at > mechanics.end_at

    def test_negative_deadline_rejected(self, mechanics):
        with pytest.raises(ValueError):
            mechanics.call_vote("bad", -1, 120)
        assert mechanics.state == VoteState.IDLE

    @pytest.mark.parametrize("stopping", [False, True])
    def test_call_vote_while_busy_changes_nothing(self, mechanics, clock, stopping):
        start(mechanics)
        mechanics.evaluate_vote("alice", "aye")
        mechanics.mark_warned()
        if stopping:
            mechanics.stop_vote("test")
        before = (
            mechanics.state,
            mechanics.topic,
            mechanics.ballots,
            mechanics.warn_at,
            mechanics.end_at,
            mechanics.warned,
        )

        clock.advance(10)
        result = mechanics.call_vote("another vote", 1, 2)

        assert result.accepted is False
        assert result.message == t("vote_running")
        after = (
            mechanics.state,
            mechanics.topic,
            mechanics.ballots,
            mechanics.warn_at,
            mechanics.end_at,
            mechanics.warned,
        )
        assert after == before


class TestEvaluateVote:
    def test_no_vote_running(self, mechanics):
        assert mechanics.evaluate_vote("alice", "aye") == t("no_vote_running").format("alice")
        assert mechanics.ballots == {}

    def test_counts_own_vote(self, mechanics):
        start(mechanics)
        assert mechanics.evaluate_vote("alice", " AyE ") == t("count_vote").format("alice", "AYE")
        assert mechanics.ballots == {"alice": VoteKind.AYE}

    def test_counts_proxy_vote_for_voter(self, mechanics):
        start(mechanics)
        response = mechanics.evaluate_vote("alice", "proxy mike no")

        assert response == t("count_proxy_vote").format("alice", "mike", "NAYE")
        assert mechanics.ballots == {"mike": VoteKind.NAYE}

    def test_proxy_keyword_is_case_insensitive(self, mechanics):
        start(mechanics)
        mechanics.evaluate_vote("alice", "PROXY mike aye")
        assert mechanics.ballots == {"mike": VoteKind.AYE}

    @pytest.mark.parametrize("text", ["proxy ", "proxy mike", "proxy mike aye now"])
    def test_malformed_proxy_vote(self, mechanics, text):
        start(mechanics)
        assert mechanics.evaluate_vote("alice", text) == t("invalid_proxy_vote").format("alice")
        assert mechanics.ballots == {}

    def test_proxy_with_unknown_value(self, mechanics):
        start(mechanics)
        response = mechanics.evaluate_vote("alice", "proxy mike maybe")
        assert response == t("vote_not_understood").format("alice")
        assert mechanics.ballots == {}

    def test_word_starting_with_proxy_is_a_plain_ballot(self, mechanics):
        start(mechanics)
        response = mechanics.evaluate_vote("alice", "proxying")
        assert response == t("vote_not_understood").format("alice")

    def test_unknown_vote(self, mechanics):
        start(mechanics)
        assert mechanics.evaluate_vote("malory", "evil") == t("vote_not_understood").format("malory")
        assert mechanics.ballots == {}

    def test_last_vote_wins(self, mechanics):
        start(mechanics)
        mechanics.evaluate_vote("debra", "abs")
        mechanics.evaluate_vote("debra", "ja")
        mechanics.evaluate_vote("bob", "no")
        mechanics.evaluate_vote("alice", "proxy bob yes")

        assert mechanics.ballots == {"debra": VoteKind.AYE, "bob": VoteKind.AYE}

    def test_voters_are_case_sensitive(self, mechanics):
        start(mechanics)
        mechanics.evaluate_vote("Alice", "aye")
        mechanics.evaluate_vote("alice", "no")
        assert len(mechanics.ballots) == 2

    def test_no_ballots_while_stopping(self, mechanics):
        start(mechanics)
        mechanics.stop_vote("test")
        assert mechanics.evaluate_vote("alice", "aye") == t("no_vote_running").format("alice")
        assert mechanics.ballots == {}

    def test_current_result_snapshot(self, mechanics):
        start(mechanics)
        assert mechanics.current_result() == "{}"
        mechanics.evaluate_vote("alice", "aye")
        mechanics.evaluate_vote("bob", "nay")
        assert mechanics.current_result() == "{alice=AYE, bob=NAYE}"


class TestStopAndClose:
    def test_stop_vote_from_idle_raises(self, mechanics):
        with pytest.raises(VoteStateError) as exc_info:
            mechanics.stop_vote("x")
        assert str(exc_info.value) == t("no_vote_running_private")
        assert mechanics.state == VoteState.IDLE

    def test_stop_vote_twice_raises(self, mechanics):
        start(mechanics)
        mechanics.stop_vote("alice")
        with pytest.raises(VoteStateError):
            mechanics.stop_vote("timeout")
        assert mechanics.state == VoteState.STOPPING

    def test_stop_vote_names_source(self, mechanics):
        start(mechanics, "budget")
        assert mechanics.stop_vote("timeout") == "Finishing vote on budget (stopped by timeout)."
        assert mechanics.state == VoteState.STOPPING
        assert mechanics.topic == "budget"

    def test_close_running_vote_raises(self, mechanics):
        start(mechanics)
        with pytest.raises(VoteStateError) as exc_info:
            mechanics.close_vote()
        assert str(exc_info.value) == t("cannot_close_running_vote")
        assert mechanics.state == VoteState.RUNNING

    def test_close_idle_raises(self, mechanics):
        with pytest.raises(VoteStateError):
            mechanics.close_vote()

    def test_close_without_ballots_reports_zero(self, mechanics):
        start(mechanics)
        mechanics.stop_vote("test")
        assert mechanics.close_vote() == ["AYE: 0", "NAYE: 0", "ABSTAIN: 0"]

    def test_full_cycle_resets_session(self, mechanics):
        start(mechanics)
        mechanics.evaluate_vote("alice", "aye")
        mechanics.mark_warned()
        mechanics.stop_vote("test")
        results = mechanics.close_vote()

        assert len(results) == len(VoteKind)
        for kind, line in zip(VoteKind, results):
            assert line.startswith(f"{kind.name}: ")
        assert mechanics.state == VoteState.IDLE
        assert mechanics.topic == ""
        assert mechanics.ballots == {}
        assert mechanics.warned is False
        assert mechanics.warn_at is None

        assert mechanics.call_vote("next", 1, 2).accepted

    def test_proxy_tally_scenario(self, mechanics):
        start(mechanics, "fresh vote")
        for actor, text in [
            ("alice", "AyE"),
            ("bob", "NaYe"),
            ("claire", "yes"),
            ("debra", "abs"),
            ("alice", "proxy mike no"),
            ("debra", "ja"),
            ("malory", "evil"),
        ]:
            mechanics.evaluate_vote(actor, text)

        mechanics.stop_vote("test")
        assert mechanics.close_vote() == ["AYE: 3", "NAYE: 2", "ABSTAIN: 0"]
        assert mechanics.topic == ""
        assert mechanics.state == VoteState.IDLE

    def test_results_independent_of_arrival_order(self, clock):
        ballots = [("alice", "aye"), ("bob", "no"), ("claire", "abs"), ("debra", "yes")]
        outcomes = set()
        for ordering in itertools.permutations(ballots):
            mechanics = VoteMechanics(clock=clock)
            start(mechanics)
            for voter, value in ordering:
                mechanics.evaluate_vote(voter, value)
            mechanics.stop_vote("test")
            outcomes.add(tuple(mechanics.close_vote()))

        assert outcomes == {("AYE: 2", "NAYE: 1", "ABSTAIN: 1")}


class TestWarnLatch:
    def test_mark_warned(self, mechanics):
        start(mechanics)
        assert mechanics.warned is False
        mechanics.mark_warned()
        assert mechanics.warned is True

    def test_mark_warned_without_vote_is_ignored(self, mechanics):
        mechanics.mark_warned()
        assert mechanics.warned is False
