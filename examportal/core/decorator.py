# examportal/core/decorator.py

import logging
from functools import wraps

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)


class DBException(Exception):
    kind = "database_error"

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(DBException):
    kind = "not_found"

    def __init__(self, message: str = "Not found"):
        super().__init__(message, 404)


class InvalidStateError(DBException):
    kind = "invalid_state"

    def __init__(self, message: str = "Invalid state"):
        super().__init__(message, 409)


class InvalidInputError(DBException):
    kind = "invalid_input"

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, 400)


class PermissionDeniedError(DBException):
    kind = "permission_denied"

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message, 403)


class StoreFailureError(DBException):
    kind = "store_failure"

    def __init__(self, message: str = "Database error occurred"):
        super().__init__(message, 500)


def db_exception(func):
    """
    Translate SQLAlchemy errors raised by a store call into the typed
    exceptions above. Nothing is retried here.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DBException:
            raise
        except IntegrityError as e:
            logger.warning(f"{func.__qualname__}: integrity error: {e.orig}")
            raise InvalidInputError("Conflicting or invalid reference") from e
        except SQLAlchemyError as e:
            logger.error(f"{func.__qualname__}: {type(e).__name__}: {e}")
            raise StoreFailureError() from e

    return wrapper
