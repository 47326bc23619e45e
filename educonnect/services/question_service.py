"""
Question Service for EduConnect Platform
Handles question reads, answer submission and accepted answers
"""

from datetime import datetime, timezone
import logging
import uuid

from firebase_admin import firestore
from google.api_core.exceptions import FailedPrecondition

from educonnect.utils.error_handler import (
    AuthorizationError, ConflictError, NotFoundError, ValidationError, WriteFailureError
)

logger = logging.getLogger(__name__)

class QuestionService:
    def __init__(self, db, user_service, notification_service):
        self.db = db
        self.user_service = user_service
        self.notification_service = notification_service
        self.questions_ref = db.collection('questions')
        self.users_ref = db.collection('users')

    def get_question(self, question_id):
        """
        Get a question with its embedded answers
        """
        return self._to_question(self._get_question_doc(question_id))

    def _get_question_doc(self, question_id):
        question_doc = self.questions_ref.document(question_id).get()
        if not question_doc.exists:
            raise NotFoundError(f"Question not found: {question_id}")
        return question_doc

    @staticmethod
    def _to_question(question_doc):
        question_data = question_doc.to_dict() or {}
        question_data['id'] = question_doc.id
        question_data.setdefault('upvotedBy', [])
        question_data.setdefault('downvotedBy', [])
        question_data.setdefault('votes', 0)
        question_data.setdefault('answers', [])
        return question_data

    def submit_answer(self, question_id, author_id, content):
        """
        Add an answer to a question and reward its author
        """
        content = (content or '').strip()
        if not content:
            raise ValidationError("Answer content cannot be empty", field='content')

        question = self.get_question(question_id)

        user_doc = self.users_ref.document(author_id).get()
        user_data = (user_doc.to_dict() or {}) if user_doc.exists else {}

        answer = {
            'id': uuid.uuid4().hex,
            'authorId': author_id,
            'authorName': user_data.get('name', 'User'),
            'authorAvatar': user_data.get('profilePicture', ''),
            'content': content,
            'votes': 0,
            'votedBy': [],
            'createdAt': datetime.now(timezone.utc),
            'isAccepted': False,
        }

        try:
            self.questions_ref.document(question_id).update({
                'answers': firestore.ArrayUnion([answer]),
                'updatedAt': datetime.now(timezone.utc),
            })
        except Exception as e:
            logger.error(f"Error submitting answer to {question_id}: {str(e)}")
            raise WriteFailureError(f"Failed to submit answer: {str(e)}")

        logger.info(f"User {author_id} answered question {question_id}")

        # The answer is saved; a failed award does not undo it
        try:
            self.user_service.award_activity(author_id, 'answer_submitted')
        except Exception as e:
            logger.error(f"Error rewarding {author_id} for answering {question_id}: {str(e)}")

        if question.get('authorId'):
            self.notification_service.create_notification(
                from_id=author_id,
                to_id=question['authorId'],
                notification_type='answer',
                question_id=question_id,
                answer_id=answer['id']
            )

        return answer

    def accept_answer(self, question_id, answer_id, user_id):
        """
        Mark an answer as accepted, or clear it if it already is.
        Only the question author can do this.
        """
        question_doc = self._get_question_doc(question_id)
        question = self._to_question(question_doc)

        if question.get('authorId') != user_id:
            raise AuthorizationError("Only the question author can accept an answer")

        answers = question['answers']
        target = next((a for a in answers if a.get('id') == answer_id), None)
        if target is None:
            raise NotFoundError(f"Answer not found: {answer_id}")

        is_currently_accepted = question.get('acceptedAnswerId') == answer_id
        accepted_answer_id = None if is_currently_accepted else answer_id

        updated_answers = [
            {**answer, 'isAccepted': answer.get('id') == accepted_answer_id}
            for answer in answers
        ]

        # answers is shared with answer votes; only write over the snapshot we read
        option = None
        if getattr(question_doc, 'update_time', None) is not None:
            option = self.db.write_option(last_update_time=question_doc.update_time)

        try:
            question_doc.reference.update({
                'answers': updated_answers,
                'acceptedAnswerId': accepted_answer_id,
            }, option=option)
        except FailedPrecondition:
            logger.warning(f"Conflict accepting answer {answer_id} on {question_id}")
            raise ConflictError("Question was updated by someone else, please try again")
        except Exception as e:
            logger.error(f"Error accepting answer {answer_id} on {question_id}: {str(e)}")
            raise WriteFailureError(f"Failed to accept answer: {str(e)}")

        logger.info(f"Question {question_id} accepted answer set to {accepted_answer_id}")

        if accepted_answer_id and target.get('authorId'):
            self.notification_service.create_notification(
                from_id=user_id,
                to_id=target['authorId'],
                notification_type='answer_accepted',
                question_id=question_id,
                answer_id=answer_id
            )

        return {
            'question_id': question_id,
            'acceptedAnswerId': accepted_answer_id,
            'answers': updated_answers
        }
