"""
Error taxonomy for repository operations.

Repositories never wrap engine errors. The names below are aliases of the
SQLAlchemy exception classes that carry each category, so callers can write
``except NotFound`` without importing from ``sqlalchemy.exc`` directly.
"""

from sqlalchemy.exc import IntegrityError, NoResultFound, SQLAlchemyError

from genrepo.core.constants import ErrorKind

NotFound = NoResultFound
ConstraintViolation = IntegrityError
EngineError = SQLAlchemyError


def is_abnormal_termination(exc: BaseException) -> bool:
    """
    Check if an exception is a fault rather than an ordinary error.

    KeyboardInterrupt, SystemExit and GeneratorExit derive from
    BaseException only; anything deriving from Exception is an error.
    """
    return not isinstance(exc, Exception)


def classify_error(exc: BaseException) -> ErrorKind:
    """
    Name the category of an exception.

    Args:
        exc: Exception raised by a repository operation or a transaction callback

    Returns:
        The matching ErrorKind

    Example:
        try:
            repo.find_by_id(42)
        except EngineError as exc:
            if classify_error(exc) == ErrorKind.NOT_FOUND:
                ...
    """
    if is_abnormal_termination(exc):
        return ErrorKind.ABNORMAL_TERMINATION
    if isinstance(exc, NotFound):
        return ErrorKind.NOT_FOUND
    if isinstance(exc, ConstraintViolation):
        return ErrorKind.CONSTRAINT_VIOLATION
    if isinstance(exc, EngineError):
        return ErrorKind.ENGINE_ERROR
    return ErrorKind.APPLICATION_ERROR


__all__ = [
    "NotFound",
    "ConstraintViolation",
    "EngineError",
    "is_abnormal_termination",
    "classify_error",
]
