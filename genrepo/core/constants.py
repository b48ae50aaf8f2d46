"""
Package-wide constants.

Centralize magic strings and default values here.
"""

from enum import Enum


# ========================================
# Error Kinds
# ========================================

class ErrorKind(str, Enum):
    """
    Categories of failure a repository caller can observe.

    Usage:
        kind = classify_error(exc)
        if kind == ErrorKind.NOT_FOUND:
            ...
    """

    NOT_FOUND = "NOT_FOUND"
    """A single-row fetch matched zero rows."""

    CONSTRAINT_VIOLATION = "CONSTRAINT_VIOLATION"
    """An insert or update broke a uniqueness, foreign key or not-null constraint."""

    ENGINE_ERROR = "ENGINE_ERROR"
    """Any other failure surfaced by the database layer."""

    ABNORMAL_TERMINATION = "ABNORMAL_TERMINATION"
    """A non-Exception fault (KeyboardInterrupt, SystemExit, ...) ended a callback."""

    APPLICATION_ERROR = "APPLICATION_ERROR"
    """An ordinary exception raised by caller code."""


# ========================================
# Transaction Outcomes
# ========================================

class TransactionOutcome(str, Enum):
    """Terminal states of a transaction scope."""

    COMMITTED = "COMMITTED"
    ROLLED_BACK = "ROLLED_BACK"


# ========================================
# Query Defaults
# ========================================

# Used by bulk UPDATE/DELETE so that instances already loaded in the
# session reflect the statement's effect.
SYNCHRONIZE_SESSION = "auto"

DEFAULT_PAGE = 1
DEFAULT_PAGE_LIMIT = 20

# Session.info key counting the transaction() scopes open on a session.
TRANSACTION_DEPTH_KEY = "genrepo.transaction_depth"
