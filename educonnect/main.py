"""
EduConnect Backend - Student Q&A and Gamification API
Firebase Cloud Functions + Firestore Backend

Main entry point for the Flask API wrapped as a Firebase Function
"""

from concurrent.futures import ThreadPoolExecutor
import atexit
import logging

from flask import Flask, request, jsonify, current_app
from flask_cors import CORS
from firebase_functions import https_fn, options

from educonnect.config import Config, FunctionConfig
from educonnect.firebase_app import get_db
from educonnect.services.notification_service import NotificationService
from educonnect.services.question_service import QuestionService
from educonnect.services.user_service import UserService, SELF_REPORTABLE_ACTIVITIES
from educonnect.services.vote_service import VoteService
from educonnect.utils.auth_middleware import require_auth, require_admin, current_user_id
from educonnect.utils.error_handler import (
    EduConnectError, ValidationError, handle_error, validate_request_data, format_success_response
)
from educonnect.utils.votes import VOTE_DIRECTIONS

logger = logging.getLogger(__name__)


def create_app(db=None, config=None, executor=None):
    """
    Build the Flask app. Services share one Firestore client.
    """
    config = config or Config
    logging.basicConfig(level=config.LOG_LEVEL)

    app = Flask(__name__)
    app.config.from_object(config)
    CORS(app)

    if db is None:
        db = get_db(config)

    if executor is None and config.NOTIFICATION_WORKERS > 0:
        executor = ThreadPoolExecutor(max_workers=config.NOTIFICATION_WORKERS, thread_name_prefix='notifications')
        atexit.register(executor.shutdown, wait=True)

    notification_service = NotificationService(db, sender_name=config.NOTIFICATION_SENDER_NAME, executor=executor)
    user_service = UserService(db, notification_service)
    question_service = QuestionService(db, user_service, notification_service)
    vote_service = VoteService(db, user_service, notification_service)

    app.extensions['educonnect'] = {
        'notification_service': notification_service,
        'user_service': user_service,
        'question_service': question_service,
        'vote_service': vote_service,
    }

    register_routes(app)
    return app


def _service(name):
    return current_app.extensions['educonnect'][name]


def register_routes(app):

    @app.route('/health', methods=['GET'])
    def health_check():
        """Health check endpoint"""
        return jsonify({
            'status': 'healthy',
            'service': 'educonnect-backend',
            'version': '1.0.0'
        })

    # ============= USER ENDPOINTS =============

    @app.route('/users/<user_id>/progress', methods=['GET'])
    @require_auth
    def get_level_progress(user_id):
        """Get a user's level and progress to the next level"""
        try:
            progress = _service('user_service').get_level_progress(user_id)
            return jsonify(progress)
        except Exception as e:
            return handle_error(e)

    @app.route('/users/me/activity', methods=['POST'])
    @require_auth
    def report_activity():
        """Award points for an activity the current user performed"""
        try:
            data = request.get_json(silent=True)
            validate_request_data(data, ['activity'], {'activity': str})

            activity = data['activity']
            if activity not in SELF_REPORTABLE_ACTIVITIES:
                raise ValidationError(f"Activity cannot be reported: {activity}", field='activity')

            user_service = _service('user_service')
            leveled_up = user_service.award_activity(current_user_id(), activity)
            progress = user_service.get_level_progress(current_user_id())

            return jsonify(format_success_response({
                'leveled_up': leveled_up,
                'progress': progress
            }))
        except Exception as e:
            return handle_error(e)

    # ============= ADMIN ENDPOINTS =============

    @app.route('/admin/users/<user_id>/score', methods=['PUT'])
    @require_admin
    def correct_user_score(user_id):
        """Administrative score correction"""
        try:
            data = request.get_json(silent=True)
            validate_request_data(data, ['score'], {'score': int, 'reason': str})

            progress = _service('user_service').set_score(user_id, data['score'], data.get('reason', ''))
            return jsonify(format_success_response(progress, message='Score updated'))
        except Exception as e:
            return handle_error(e)

    # ============= QUESTION ENDPOINTS =============

    @app.route('/questions/<question_id>', methods=['GET'])
    @require_auth
    def get_question(question_id):
        try:
            question = _service('question_service').get_question(question_id)
            return jsonify(question)
        except Exception as e:
            return handle_error(e)

    @app.route('/questions/<question_id>/vote', methods=['POST'])
    @require_auth
    def vote_question(question_id):
        """Toggle the current user's up/down vote on a question"""
        try:
            data = request.get_json(silent=True)
            validate_request_data(data, ['direction'], {'direction': str})

            if data['direction'] not in VOTE_DIRECTIONS:
                raise ValidationError("Direction must be 'up' or 'down'", field='direction')

            result = _service('vote_service').vote_question(question_id, current_user_id(), data['direction'])
            return jsonify(result)
        except Exception as e:
            return handle_error(e)

    @app.route('/questions/<question_id>/answers', methods=['POST'])
    @require_auth
    def submit_answer(question_id):
        try:
            data = request.get_json(silent=True)
            validate_request_data(data, ['content'], {'content': str})

            answer = _service('question_service').submit_answer(question_id, current_user_id(), data['content'])
            return jsonify(answer), 201
        except Exception as e:
            return handle_error(e)

    @app.route('/questions/<question_id>/answers/<answer_id>/vote', methods=['POST'])
    @require_auth
    def vote_answer(question_id, answer_id):
        """Toggle the current user's vote on an answer"""
        try:
            result = _service('vote_service').vote_answer(question_id, answer_id, current_user_id())
            return jsonify(result)
        except Exception as e:
            return handle_error(e)

    @app.route('/questions/<question_id>/answers/<answer_id>/accept', methods=['POST'])
    @require_auth
    def accept_answer(question_id, answer_id):
        try:
            result = _service('question_service').accept_answer(question_id, answer_id, current_user_id())
            return jsonify(result)
        except Exception as e:
            return handle_error(e)

    # Error handlers
    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': 'Endpoint not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(EduConnectError)
    def educonnect_error(error):
        return handle_error(error)


_app = None


def get_app():
    """App used by the Cloud Function; notifications are sent inside the request"""
    global _app
    if _app is None:
        _app = create_app(config=FunctionConfig)
    return _app


# Firebase Cloud Function wrapper
@https_fn.on_request(
    cors=options.CorsOptions(
        cors_origins=["*"],
        cors_methods=["GET", "POST", "PUT", "OPTIONS"]
    )
)
def api(req):
    """Main Cloud Function entry point"""
    app = get_app()
    with app.request_context(req.environ):
        return app.full_dispatch_request()


# For local development
if __name__ == '__main__':
    create_app().run(debug=True, host='0.0.0.0', port=8080)
