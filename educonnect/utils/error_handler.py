"""
Error Handler for EduConnect Platform
Centralized error types and error responses
"""

from flask import jsonify
import logging
import traceback

logger = logging.getLogger(__name__)

class EduConnectError(Exception):
    """Base exception class for EduConnect platform"""
    def __init__(self, message, status_code=500, error_code=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code

class ValidationError(EduConnectError):
    """Raised when input validation fails"""
    def __init__(self, message, field=None):
        super().__init__(message, status_code=400, error_code='VALIDATION_ERROR')
        self.field = field

class AuthenticationError(EduConnectError):
    """Raised when authentication fails"""
    def __init__(self, message):
        super().__init__(message, status_code=401, error_code='AUTH_ERROR')

class AuthorizationError(EduConnectError):
    """Raised when user lacks required permissions"""
    def __init__(self, message):
        super().__init__(message, status_code=403, error_code='PERMISSION_ERROR')

class NotFoundError(EduConnectError):
    """Raised when a user, question or answer does not exist"""
    def __init__(self, message):
        super().__init__(message, status_code=404, error_code='NOT_FOUND')

class WriteFailureError(EduConnectError):
    """Raised when a Firestore write is rejected or times out"""
    def __init__(self, message, status_code=503, error_code='DATABASE_ERROR'):
        super().__init__(message, status_code=status_code, error_code=error_code)

class ConflictError(WriteFailureError):
    """Raised when the question changed between read and write"""
    def __init__(self, message, error_code='CONFLICT'):
        super().__init__(message, status_code=409, error_code=error_code)

class VoteConflictError(ConflictError):
    """Raised when a vote was computed from a stale question"""
    def __init__(self, message):
        super().__init__(message, error_code='VOTE_CONFLICT')

class VoteInFlightError(EduConnectError):
    """Raised when a vote is toggled while the previous one is still being written"""
    def __init__(self, message='A vote is already being saved'):
        super().__init__(message, status_code=429, error_code='VOTE_IN_FLIGHT')

class NotificationError(EduConnectError):
    """Notification delivery failed. Logged only, never returned to clients."""
    def __init__(self, message):
        super().__init__(message, status_code=500, error_code='NOTIFICATION_ERROR')

def handle_error(error):
    """
    Central error handler that converts exceptions to JSON responses
    """
    try:
        if isinstance(error, EduConnectError):
            logger.warning(f"EduConnect error: {error.message}")
            return jsonify({
                'error': error.message,
                'error_code': error.error_code,
                'status': 'error'
            }), error.status_code

        elif isinstance(error, ValueError):
            logger.warning(f"Validation error: {str(error)}")
            return jsonify({
                'error': str(error),
                'error_code': 'VALIDATION_ERROR',
                'status': 'error'
            }), 400

        elif isinstance(error, KeyError):
            logger.warning(f"Missing key error: {str(error)}")
            return jsonify({
                'error': f'Missing required field: {str(error)}',
                'error_code': 'MISSING_FIELD',
                'status': 'error'
            }), 400

        # Firebase / Google API errors
        elif 'firebase_admin' in str(type(error)) or 'google' in str(type(error)):
            logger.error(f"Firebase error: {str(error)}")
            return jsonify({
                'error': 'Service temporarily unavailable',
                'error_code': 'SERVICE_ERROR',
                'status': 'error'
            }), 503

        else:
            logger.error(f"Unhandled error: {str(error)}")
            logger.error(traceback.format_exc())

            return jsonify({
                'error': 'An unexpected error occurred',
                'error_code': 'INTERNAL_ERROR',
                'status': 'error'
            }), 500

    except Exception as e:
        logger.critical(f"Error in error handler: {str(e)}")
        return jsonify({
            'error': 'Critical system error',
            'error_code': 'CRITICAL_ERROR',
            'status': 'error'
        }), 500

def validate_request_data(data, required_fields, optional_fields=None):
    """
    Validate request data against required fields and optional field types
    """
    if not data:
        raise ValidationError("Request body cannot be empty")

    missing_fields = [
        field for field in required_fields
        if field not in data or data[field] is None
    ]

    if missing_fields:
        raise ValidationError(f"Missing required fields: {', '.join(missing_fields)}")

    if optional_fields:
        for field, expected_type in optional_fields.items():
            if field in data and data[field] is not None:
                if not isinstance(data[field], expected_type):
                    raise ValidationError(
                        f"Field '{field}' must be of type {expected_type.__name__}",
                        field=field
                    )

    return True

def format_success_response(data, message=None):
    """
    Format successful API response
    """
    response = {
        'status': 'success',
        'data': data
    }

    if message:
        response['message'] = message

    return response
