"""
genrepo
=======

Generic repository over SQLAlchemy models: CRUD, counting, pagination and
transaction scopes for any mapped class, shaped by composable query modifiers.

Usage:
    from genrepo import MainRepository, Pagination

    repo = MainRepository(Widget, session)
    widgets, max_page = repo.find_all_paginated(Pagination(page=1, limit=20))
"""

from genrepo.core.errors import ConstraintViolation, EngineError, NotFound, classify_error
from genrepo.repositories import MainRepository, Page, Pagination, QueryModifier, apply_modifiers

__all__ = [
    "MainRepository",
    "Page",
    "Pagination",
    "QueryModifier",
    "apply_modifiers",
    "NotFound",
    "ConstraintViolation",
    "EngineError",
    "classify_error",
]
