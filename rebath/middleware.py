"""Middleware for authentication context."""
from functools import wraps

from flask import g, session

from rebath.database import get_session
from rebath.exceptions import Forbidden, Unauthenticated
from rebath.services.auth_service import get_active_profile


def load_user():
    """
    Load the current user into ``g.user`` (None when anonymous).

    Called before each request. A session pointing at a disabled or
    unapproved account is cleared.
    """
    g.user = None

    user_id = session.get('user_id')
    if not user_id:
        return

    user = get_active_profile(get_session(), user_id)
    if user is None:
        session.pop('user_id', None)
        return
    g.user = user


def require_login(f):
    """Decorator: reject anonymous requests with 401."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('user') is None:
            raise Unauthenticated()
        return f(*args, **kwargs)
    return decorated_function


def require_admin(f):
    """Decorator: only global admins. Implies ``require_login``."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('user') is None:
            raise Unauthenticated()
        if not g.user.is_admin:
            raise Forbidden('Administrator access required')
        return f(*args, **kwargs)
    return decorated_function
