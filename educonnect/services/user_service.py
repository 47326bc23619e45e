"""
User Service for EduConnect Platform
Handles score awards, level progression and level progress summaries
"""

import logging

from educonnect.utils.error_handler import NotFoundError, ValidationError, WriteFailureError
from educonnect.utils.level_system import calculate_level, build_level_summary

logger = logging.getLogger(__name__)

# Points for each activity on the platform
ACTIVITY_POINTS = {
    'post_created': 1,
    'post_liked': 1,
    'comment_added': 3,
    'group_created': 10,
    'group_joined': 3,
    'question_asked': 7,
    'answer_submitted': 5,
    'question_upvoted': 2,
}

# post_liked and question_upvoted reward another user and are only awarded server-side
SELF_REPORTABLE_ACTIVITIES = frozenset([
    'post_created',
    'comment_added',
    'group_created',
    'group_joined',
    'question_asked',
])

class UserService:
    def __init__(self, db, notification_service):
        self.db = db
        self.notification_service = notification_service
        self.users_ref = db.collection('users')

    def award_points(self, user_id, points=1, reason=""):
        """
        Add points to a user, recompute their level and announce level ups.
        Returns True if the user reached a new level.
        """
        if not isinstance(points, int) or isinstance(points, bool):
            raise ValidationError("Points must be an integer", field='points')

        user_data = self._get_user_data(user_id)

        current_score = user_data.get('score', 0)
        current_level = user_data.get('level', 1)
        new_score = max(0, current_score + points)
        new_level = calculate_level(new_score)

        try:
            self.users_ref.document(user_id).update({
                'score': new_score,
                'level': new_level,
            })
        except Exception as e:
            logger.error(f"Error awarding {points} points to {user_id}: {str(e)}")
            raise WriteFailureError(f"Failed to award points: {str(e)}")

        logger.info(
            f"Awarded {points} points to {user_id} ({reason or 'unspecified'}), "
            f"score: {new_score}, level: {new_level}"
        )

        if new_level > current_level:
            logger.info(f"User {user_id} leveled up from {current_level} to {new_level}")
            self.notification_service.send_level_up_notification(user_id, new_level)
            return True

        return False

    def award_activity(self, user_id, activity):
        """
        Award the fixed points for a platform activity
        """
        if activity not in ACTIVITY_POINTS:
            raise ValidationError(f"Unknown activity: {activity}", field='activity')

        return self.award_points(user_id, ACTIVITY_POINTS[activity], reason=activity)

    def get_level_progress(self, user_id):
        """
        Get a user's score, level and progress towards the next level
        """
        user_data = self._get_user_data(user_id)

        score = user_data.get('score', 0)
        summary = build_level_summary(score, calculate_level(score))
        summary['user_id'] = user_id
        summary['name'] = user_data.get('name', '')

        return summary

    def set_score(self, user_id, score, reason=""):
        """
        Administrative score correction. No level up notification is sent.
        """
        if not isinstance(score, int) or isinstance(score, bool) or score < 0:
            raise ValidationError("Score must be a non-negative integer", field='score')

        user_data = self._get_user_data(user_id)
        new_level = calculate_level(score)

        try:
            self.users_ref.document(user_id).update({
                'score': score,
                'level': new_level,
            })
        except Exception as e:
            logger.error(f"Error correcting score for {user_id}: {str(e)}")
            raise WriteFailureError(f"Failed to update score: {str(e)}")

        logger.warning(
            f"Score for {user_id} corrected from {user_data.get('score', 0)} to {score} "
            f"({reason or 'no reason given'})"
        )

        summary = build_level_summary(score, new_level)
        summary['user_id'] = user_id
        summary['name'] = user_data.get('name', '')
        return summary

    def _get_user_data(self, user_id):
        user_doc = self.users_ref.document(user_id).get()
        if not user_doc.exists:
            raise NotFoundError(f"User not found: {user_id}")
        return user_doc.to_dict() or {}
