"""
Authentication Middleware for EduConnect Platform
Handles Firebase token validation and request authentication
"""

from functools import wraps
from flask import request, g
from firebase_admin import auth
import logging

from educonnect.utils.error_handler import AuthenticationError, AuthorizationError, handle_error

logger = logging.getLogger(__name__)

def _get_bearer_token():
    auth_header = request.headers.get('Authorization')
    if not auth_header:
        return None
    return auth_header.replace('Bearer ', '').strip() or None

def require_auth(f):
    """
    Decorator to require authentication for API endpoints.
    The decoded token is stored on flask.g.current_user.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _get_bearer_token()
        if not token:
            return handle_error(AuthenticationError('Authorization header required'))

        try:
            decoded_token = auth.verify_id_token(token)
        except auth.ExpiredIdTokenError:
            logger.warning("Expired token provided")
            return handle_error(AuthenticationError('Token expired'))
        except auth.RevokedIdTokenError:
            logger.warning("Revoked token provided")
            return handle_error(AuthenticationError('Token revoked'))
        except auth.InvalidIdTokenError:
            logger.warning("Invalid token provided")
            return handle_error(AuthenticationError('Invalid token'))
        except Exception as e:
            logger.error(f"Authentication error: {str(e)}")
            return handle_error(AuthenticationError('Authentication failed'))

        g.current_user = decoded_token
        return f(*args, **kwargs)

    return decorated_function

def require_admin(f):
    """
    Decorator to require admin privileges
    """
    @wraps(f)
    @require_auth
    def decorated_function(*args, **kwargs):
        decoded_token = g.current_user

        is_admin = decoded_token.get('admin', False)
        if not is_admin:
            custom_claims = decoded_token.get('custom_claims', {})
            is_admin = custom_claims.get('admin', False)

        if not is_admin:
            logger.warning(f"Non-admin user attempted admin action: {decoded_token.get('uid')}")
            return handle_error(AuthorizationError('Admin privileges required'))

        return f(*args, **kwargs)

    return decorated_function

def current_user_id():
    """uid of the authenticated user for this request"""
    return g.current_user['uid']
