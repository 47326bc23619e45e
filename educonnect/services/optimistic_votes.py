"""
Optimistic vote view for EduConnect questions

Holds one user's local copy of a question. A toggle is applied locally
straight away, then saved through VoteService. If the save fails the
question is re-read from Firestore and the error is raised again for the
caller to show. Only one vote per view can be in flight at a time.
"""

import copy
import logging
import threading

from educonnect.utils.error_handler import ValidationError, VoteInFlightError
from educonnect.utils.votes import VOTE_DIRECTIONS, apply_vote_toggle, toggle_single_vote

logger = logging.getLogger(__name__)

class OptimisticQuestionView:
    def __init__(self, vote_service, question_service, question_id, user_id):
        self.vote_service = vote_service
        self.question_service = question_service
        self.question_id = question_id
        self.user_id = user_id
        self.question = None
        self._confirmed = None
        self._in_flight = threading.Lock()

    def load(self):
        """Read the question from Firestore; this becomes the confirmed state"""
        question = self.question_service.get_question(self.question_id)
        self._confirm(question)
        return self.question

    @property
    def in_flight(self):
        return self._in_flight.locked()

    @property
    def upvoted_by(self):
        return self.question.get('upvotedBy', [])

    @property
    def downvoted_by(self):
        return self.question.get('downvotedBy', [])

    @property
    def votes(self):
        return self.question.get('votes', 0)

    @property
    def answers(self):
        return self.question.get('answers', [])

    @property
    def has_upvoted(self):
        return self.user_id in self.upvoted_by

    @property
    def has_downvoted(self):
        return self.user_id in self.downvoted_by

    def toggle_question_vote(self, direction):
        """
        Toggle this user's vote on the question
        """
        if direction not in VOTE_DIRECTIONS:
            raise ValidationError(f"Invalid vote direction: {direction}", field='direction')
        self._ensure_loaded()

        def apply_locally():
            # computed under the in-flight guard so it sees the last confirmed vote
            tally = apply_vote_toggle(self.upvoted_by, self.downvoted_by, self.user_id, direction)
            self.question['upvotedBy'] = tally.upvoted_by
            self.question['downvotedBy'] = tally.downvoted_by
            self.question['votes'] = tally.votes

        def confirm(result):
            self.question['upvotedBy'] = result['upvotedBy']
            self.question['downvotedBy'] = result['downvotedBy']
            self.question['votes'] = result['votes']

        return self._run(
            apply_locally,
            lambda: self.vote_service.vote_question(self.question_id, self.user_id, direction),
            confirm
        )

    def toggle_answer_vote(self, answer_id):
        """
        Toggle this user's vote on one of the question's answers
        """
        self._ensure_loaded()

        def apply_locally():
            for answer in self.answers:
                if answer.get('id') == answer_id:
                    voted_by, votes = toggle_single_vote(answer.get('votedBy', []), answer.get('votes', 0), self.user_id)
                    answer['votedBy'] = voted_by
                    answer['votes'] = votes

        def confirm(result):
            for answer in self.answers:
                if answer.get('id') == answer_id:
                    answer['votedBy'] = result['votedBy']
                    answer['votes'] = result['votes']

        return self._run(
            apply_locally,
            lambda: self.vote_service.vote_answer(self.question_id, answer_id, self.user_id),
            confirm
        )

    def _run(self, apply_locally, persist, confirm):
        if not self._in_flight.acquire(blocking=False):
            raise VoteInFlightError()

        try:
            apply_locally()
            try:
                result = persist()
            except Exception:
                self._revert()
                raise

            confirm(result)
            self._confirmed = copy.deepcopy(self.question)
            return result
        finally:
            self._in_flight.release()

    def _revert(self):
        try:
            self.load()
            logger.info(f"Reloaded question {self.question_id} after failed vote")
        except Exception as e:
            logger.error(f"Error reloading question {self.question_id}: {str(e)}")
            self.question = copy.deepcopy(self._confirmed)

    def _confirm(self, question):
        self.question = question
        self._confirmed = copy.deepcopy(question)

    def _ensure_loaded(self):
        if self.question is None:
            self.load()
