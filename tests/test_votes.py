import random

import pytest

from educonnect.utils.error_handler import ValidationError
from educonnect.utils.votes import (
    apply_vote_toggle,
    is_new_upvote,
    net_votes,
    toggle_single_vote,
)


class TestApplyVoteToggle:

    def test_first_upvote(self):
        tally = apply_vote_toggle([], [], 'u1', 'up')

        assert tally.upvoted_by == ['u1']
        assert tally.downvoted_by == []
        assert tally.votes == 1

    def test_switch_from_downvote_to_upvote(self):
        tally = apply_vote_toggle([], ['u1'], 'u1', 'up')

        assert tally.upvoted_by == ['u1']
        assert tally.downvoted_by == []
        assert tally.votes == 1

    def test_retract_upvote(self):
        tally = apply_vote_toggle(['u1'], [], 'u1', 'up')

        assert tally.upvoted_by == []
        assert tally.downvoted_by == []
        assert tally.votes == 0

    def test_switch_from_upvote_to_downvote(self):
        tally = apply_vote_toggle(['u1', 'u2'], [], 'u1', 'down')

        assert tally.upvoted_by == ['u2']
        assert tally.downvoted_by == ['u1']
        assert tally.votes == 0

    def test_retract_downvote(self):
        tally = apply_vote_toggle([], ['u1', 'u2'], 'u2', 'down')

        assert tally.downvoted_by == ['u1']
        assert tally.votes == -1

    def test_other_voters_untouched(self):
        tally = apply_vote_toggle(['a', 'b'], ['c'], 'd', 'up')

        assert tally.upvoted_by == ['a', 'b', 'd']
        assert tally.downvoted_by == ['c']
        assert tally.votes == 2

    def test_inputs_not_mutated(self):
        up, down = ['u2'], ['u1']
        apply_vote_toggle(up, down, 'u1', 'up')

        assert up == ['u2']
        assert down == ['u1']

    def test_duplicates_collapsed(self):
        tally = apply_vote_toggle(['u2', 'u2'], [], 'u1', 'up')
        assert tally.upvoted_by == ['u2', 'u1']
        assert tally.votes == 2

    def test_missing_lists_treated_as_empty(self):
        tally = apply_vote_toggle(None, None, 'u1', 'down')
        assert tally.downvoted_by == ['u1']
        assert tally.votes == -1

    def test_invalid_direction(self):
        with pytest.raises(ValidationError, match='Invalid vote direction'):
            apply_vote_toggle([], [], 'u1', 'sideways')

    @pytest.mark.parametrize('direction', ['up', 'down'])
    def test_repeated_toggle_restores_original(self, direction):
        up, down = ['a', 'b'], ['c']
        once = apply_vote_toggle(up, down, 'u1', direction)
        twice = apply_vote_toggle(once.upvoted_by, once.downvoted_by, 'u1', direction)

        assert twice.upvoted_by == up
        assert twice.downvoted_by == down

    def test_random_sequences_keep_invariants(self):
        rng = random.Random(1234)
        users = ['u1', 'u2', 'u3', 'u4']
        up, down = [], []

        for _ in range(500):
            tally = apply_vote_toggle(up, down, rng.choice(users), rng.choice(['up', 'down']))
            up, down = tally.upvoted_by, tally.downvoted_by

            assert not set(up) & set(down)
            assert len(up) == len(set(up))
            assert len(down) == len(set(down))
            assert tally.votes == len(up) - len(down)


class TestHelpers:

    def test_net_votes(self):
        assert net_votes(['a', 'b'], ['c']) == 1

    def test_is_new_upvote(self):
        assert is_new_upvote([], 'u1', 'up') is True
        assert is_new_upvote(['u1'], 'u1', 'up') is False
        assert is_new_upvote([], 'u1', 'down') is False


class TestToggleSingleVote:

    def test_add_vote(self):
        assert toggle_single_vote([], 0, 'u1') == (['u1'], 1)

    def test_remove_vote(self):
        assert toggle_single_vote(['u1', 'u2'], 2, 'u1') == (['u2'], 1)

    def test_missing_fields(self):
        assert toggle_single_vote(None, None, 'u1') == (['u1'], 1)

    def test_toggle_twice_restores(self):
        voted_by, votes = toggle_single_vote(['x'], 1, 'u1')
        assert toggle_single_vote(voted_by, votes, 'u1') == (['x'], 1)
