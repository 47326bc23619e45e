"""
Vote rules for EduConnect questions and answers

Questions keep two mutually exclusive voter lists (upvotedBy / downvotedBy)
and a derived net count. Answers keep a single votedBy list treated as upvotes.
None of these helpers mutate their inputs.
"""

from collections import namedtuple

from educonnect.utils.error_handler import ValidationError

VOTE_UP = 'up'
VOTE_DOWN = 'down'
VOTE_DIRECTIONS = (VOTE_UP, VOTE_DOWN)

VoteTally = namedtuple('VoteTally', ['upvoted_by', 'downvoted_by', 'votes'])


def _unique(user_ids):
    # Firestore stores voters as arrays; keep first-vote order, drop duplicates
    seen = set()
    result = []
    for user_id in user_ids or []:
        if user_id not in seen:
            seen.add(user_id)
            result.append(user_id)
    return result


def net_votes(upvoted_by, downvoted_by):
    return len(upvoted_by) - len(downvoted_by)


def apply_vote_toggle(upvoted_by, downvoted_by, user_id, direction):
    """
    Toggle a user's vote in the given direction.

    Voting the same way twice retracts the vote; voting the other way
    switches polarity, so a user is never in both lists.
    """
    if direction not in VOTE_DIRECTIONS:
        raise ValidationError(f"Invalid vote direction: {direction}", field='direction')

    if direction == VOTE_UP:
        same, opposite = _unique(upvoted_by), _unique(downvoted_by)
    else:
        same, opposite = _unique(downvoted_by), _unique(upvoted_by)

    if user_id in same:
        same = [uid for uid in same if uid != user_id]
    else:
        same = same + [user_id]
        opposite = [uid for uid in opposite if uid != user_id]

    if direction == VOTE_UP:
        new_up, new_down = same, opposite
    else:
        new_up, new_down = opposite, same

    return VoteTally(new_up, new_down, net_votes(new_up, new_down))


def is_new_upvote(upvoted_by, user_id, direction):
    """True when the toggle adds an upvote rather than retracting one"""
    return direction == VOTE_UP and user_id not in (upvoted_by or [])


def toggle_single_vote(voted_by, votes, user_id):
    """
    Flip a user's membership in a single voter list, adjusting the count.
    Returns (new_voted_by, new_votes).
    """
    voted_by = _unique(voted_by)
    votes = votes or 0

    if user_id in voted_by:
        return [uid for uid in voted_by if uid != user_id], votes - 1

    return voted_by + [user_id], votes + 1
