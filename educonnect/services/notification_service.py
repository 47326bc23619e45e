"""
Notification Service for EduConnect Platform
Writes inbox events to the notifications collection.

Notifications are fire-and-forget: failures are logged and never reach the
caller, and nothing the caller already wrote is rolled back.
"""

from datetime import datetime, timezone
import logging

from educonnect.utils.error_handler import NotificationError
from educonnect.utils.level_system import get_trophy_for_level, get_level_title

logger = logging.getLogger(__name__)

SYSTEM_SENDER = 'system'

MESSAGE_TEMPLATES = {
    'like': "{sender} liked your post ❤️",
    'question_like': "{sender} liked your question ❤️",
    'vote': "{sender} upvoted your question 👍",
    'comment': "{sender} commented on your post 💬",
    'answer': "{sender} answered your question 💡",
    'answer_accepted': "{sender} accepted your answer ✅",
    'group_join_request': '{sender} wants to join the group "{group_name}" 👥',
    'group_request_accepted': 'Your request to join "{group_name}" was accepted! ✅',
}

class NotificationService:
    def __init__(self, db, sender_name='EduConnect', executor=None):
        self.db = db
        self.sender_name = sender_name
        self.executor = executor
        self.notifications_ref = db.collection('notifications')
        self.users_ref = db.collection('users')

    def create_notification(self, from_id, to_id, notification_type, post_id=None,
                            question_id=None, answer_id=None, group_id=None, group_name=None):
        """
        Notify to_id about an action taken by from_id.
        Users acting on their own content are not notified.
        """
        if from_id == to_id and from_id != SYSTEM_SENDER:
            return

        self._dispatch(
            self._write_notification,
            from_id, to_id, notification_type,
            {
                'postId': post_id,
                'questionId': question_id,
                'answerId': answer_id,
                'groupId': group_id,
                'groupName': group_name,
            }
        )

    def send_level_up_notification(self, user_id, new_level):
        """
        Congratulate a user on reaching a new level
        """
        self._dispatch(self._write_level_up, user_id, new_level)

    def _dispatch(self, fn, *args):
        if self.executor is None:
            self._run_guarded(fn, *args)
            return

        future = self.executor.submit(self._run_guarded, fn, *args)
        future.add_done_callback(self._log_unexpected_failure)

    def _run_guarded(self, fn, *args):
        try:
            fn(*args)
        except Exception as e:
            error = NotificationError(f"Failed to send notification: {str(e)}")
            logger.error(error.message)

    @staticmethod
    def _log_unexpected_failure(future):
        exc = future.exception()
        if exc is not None:
            logger.error(f"Notification worker crashed: {str(exc)}")

    def _write_notification(self, from_id, to_id, notification_type, refs):
        sender_name, sender_avatar = self._get_sender(from_id)

        template_key = notification_type
        if notification_type == 'like' and refs.get('questionId'):
            template_key = 'question_like'

        template = MESSAGE_TEMPLATES.get(template_key, "{sender} interacted with your content")
        message = template.format(sender=sender_name, group_name=refs.get('groupName') or '')

        self.notifications_ref.add({
            'created_at': datetime.now(timezone.utc),
            'from': from_id,
            'fromName': sender_name,
            'fromAvatar': sender_avatar,
            'to': to_id,
            'message': message,
            'status': 'unread',
            'type': notification_type,
            **refs
        })

        logger.info(f"Sent {notification_type} notification from {from_id} to {to_id}")

    def _write_level_up(self, user_id, new_level):
        trophy = get_trophy_for_level(new_level)
        title = get_level_title(new_level)

        self.notifications_ref.add({
            'created_at': datetime.now(timezone.utc),
            'userId': user_id,
            'type': 'level_up',
            'from': user_id,
            'to': user_id,
            'fromName': self.sender_name,
            'fromAvatar': '',
            'message': f"🎉 Congratulations! You are now level {new_level} - {title} {trophy}",
            'status': 'unread',
            'data': {
                'level': new_level,
                'trophy': trophy,
                'title': title,
            },
        })

        logger.info(f"Sent level up notification to {user_id}: level {new_level}")

    def _get_sender(self, from_id):
        if from_id == SYSTEM_SENDER:
            return self.sender_name, ''

        user_doc = self.users_ref.document(from_id).get()
        user_data = user_doc.to_dict() if user_doc.exists else {}
        user_data = user_data or {}

        name = user_data.get('name') or user_data.get('email') or 'A user'
        return name, user_data.get('profilePicture', '')
