"""Custom exceptions for the ReBath application.

Every failure that crosses the service boundary is one of the kinds below.
The app factory turns them into a JSON error body, so callers branch on the
``kind`` field instead of catching exceptions.
"""
import logging
from functools import wraps

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError

logger = logging.getLogger(__name__)


class RebathError(Exception):
    """Base exception for all application errors."""
    kind = 'Unknown'

    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['kind'] = self.kind
        rv['status'] = 'error'
        return rv


class Unauthenticated(RebathError):
    """No active user session."""
    kind = 'Unauthenticated'

    def __init__(self, message="User not authenticated", payload=None):
        super().__init__(message, 401, payload)


class Forbidden(RebathError):
    """Authenticated, but lacks permission for the target resource."""
    kind = 'Forbidden'

    def __init__(self, message="You do not have permission to perform this action", payload=None):
        super().__init__(message, 403, payload)


class NotFound(RebathError):
    """Referenced entity is absent."""
    kind = 'NotFound'

    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class ValidationError(RebathError):
    """Malformed input or an illegal state transition."""
    kind = 'ValidationError'

    def __init__(self, message, payload=None):
        super().__init__(message, 400, payload)


class BackendUnavailable(RebathError):
    """Database or object storage could not be reached."""
    kind = 'BackendUnavailable'

    def __init__(self, message="Service temporarily unavailable", payload=None):
        super().__init__(message, 503, payload)


class Unknown(RebathError):
    """Catch-all for unexpected failures; the message is always generic."""
    kind = 'Unknown'

    def __init__(self, message="An unexpected error occurred", payload=None):
        super().__init__(message, 500, payload)


def translate_db_errors(f):
    """
    Decorator for service functions: connectivity failures raised by the
    database driver become ``BackendUnavailable``.

    The first positional argument must be the SQLAlchemy session; it is rolled
    back before any error leaves the service.
    """
    @wraps(f)
    def wrapper(session, *args, **kwargs):
        try:
            return f(session, *args, **kwargs)
        except (RebathError, IntegrityError):
            session.rollback()
            raise
        except (OperationalError, DBAPIError) as e:
            session.rollback()
            logger.error(f"Database failure in {f.__name__}: {e}")
            raise BackendUnavailable() from e
    return wrapper
