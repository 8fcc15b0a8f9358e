"""Middleware for authentication and owner context."""
from functools import wraps

from flask import session, g, current_app

from kasir.database import get_session
from kasir.exceptions import AuthenticationError
from kasir.services.auth_service import get_active_user


def load_user():
    """
    Load the current user into g (Flask's per-request global).

    Called before each request. Sets g.user and g.user_id when the session
    cookie points at an active account; every service call is scoped by
    g.user_id.
    """
    g.user = None
    g.user_id = None

    user_id = session.get('user_id')
    if not user_id:
        return

    try:
        user = get_active_user(get_session(), user_id)
    except Exception as e:
        current_app.logger.error(f"Error in load_user: {e}")
        raise

    if user:
        g.user = user
        g.user_id = user.id
    else:
        session.pop('user_id', None)


def require_login(f):
    """
    Decorator: Require user to be logged in.

    Raises AuthenticationError (401 JSON) when there is no valid session.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('user') is None:
            raise AuthenticationError()
        return f(*args, **kwargs)
    return decorated_function
