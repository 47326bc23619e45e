"""
Vote Service for EduConnect Platform
Persists question and answer votes and rewards question authors.

Each vote is written with a last_update_time precondition from the snapshot
it was computed from, so a concurrent vote on the same question fails with a
conflict instead of overwriting the other voter.
"""

import logging

from google.api_core.exceptions import FailedPrecondition

from educonnect.utils.error_handler import NotFoundError, VoteConflictError, WriteFailureError
from educonnect.utils.votes import apply_vote_toggle, is_new_upvote, toggle_single_vote

logger = logging.getLogger(__name__)

class VoteService:
    def __init__(self, db, user_service, notification_service):
        self.db = db
        self.user_service = user_service
        self.notification_service = notification_service
        self.questions_ref = db.collection('questions')

    def vote_question(self, question_id, user_id, direction):
        """
        Toggle a user's up/down vote on a question
        """
        question_doc = self._get_question_doc(question_id)
        question_data = question_doc.to_dict() or {}

        upvoted_by = question_data.get('upvotedBy', [])
        tally = apply_vote_toggle(
            upvoted_by,
            question_data.get('downvotedBy', []),
            user_id,
            direction
        )

        self._write_with_precondition(question_doc, {
            'upvotedBy': tally.upvoted_by,
            'downvotedBy': tally.downvoted_by,
            'votes': tally.votes,
        })

        logger.info(f"User {user_id} voted {direction} on question {question_id}, net votes: {tally.votes}")

        author_id = question_data.get('authorId')
        if is_new_upvote(upvoted_by, user_id, direction) and author_id and author_id != user_id:
            self._reward_author(author_id, user_id, question_id)

        return {
            'question_id': question_id,
            'upvotedBy': tally.upvoted_by,
            'downvotedBy': tally.downvoted_by,
            'votes': tally.votes,
            'status': 'updated'
        }

    def vote_answer(self, question_id, answer_id, user_id):
        """
        Toggle a user's vote on an answer embedded in a question
        """
        question_doc = self._get_question_doc(question_id)
        answers = (question_doc.to_dict() or {}).get('answers', [])

        updated_answers = []
        updated_answer = None
        for answer in answers:
            if answer.get('id') == answer_id:
                voted_by, votes = toggle_single_vote(answer.get('votedBy', []), answer.get('votes', 0), user_id)
                updated_answer = {**answer, 'votedBy': voted_by, 'votes': votes}
                updated_answers.append(updated_answer)
            else:
                updated_answers.append(answer)

        if updated_answer is None:
            raise NotFoundError(f"Answer not found: {answer_id}")

        self._write_with_precondition(question_doc, {'answers': updated_answers})

        logger.info(f"User {user_id} toggled vote on answer {answer_id}, votes: {updated_answer['votes']}")

        return {
            'question_id': question_id,
            'answer_id': answer_id,
            'votedBy': updated_answer['votedBy'],
            'votes': updated_answer['votes'],
            'status': 'updated'
        }

    def _get_question_doc(self, question_id):
        question_doc = self.questions_ref.document(question_id).get()
        if not question_doc.exists:
            raise NotFoundError(f"Question not found: {question_id}")
        return question_doc

    def _write_with_precondition(self, question_doc, update_data):
        option = None
        if getattr(question_doc, 'update_time', None) is not None:
            option = self.db.write_option(last_update_time=question_doc.update_time)

        try:
            question_doc.reference.update(update_data, option=option)
        except FailedPrecondition:
            logger.warning(f"Vote conflict on question {question_doc.id}")
            raise VoteConflictError("Question was updated by someone else, please vote again")
        except Exception as e:
            logger.error(f"Error saving vote on question {question_doc.id}: {str(e)}")
            raise WriteFailureError(f"Failed to save vote: {str(e)}")

    def _reward_author(self, author_id, voter_id, question_id):
        """
        Notify and reward the question author once the vote is saved.
        The vote stands even if this fails.
        """
        self.notification_service.create_notification(
            from_id=voter_id,
            to_id=author_id,
            notification_type='vote',
            question_id=question_id
        )

        try:
            self.user_service.award_activity(author_id, 'question_upvoted')
        except Exception as e:
            logger.error(f"Error rewarding author {author_id} for upvote on {question_id}: {str(e)}")
