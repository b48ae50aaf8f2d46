"""
Data access layer (Repository pattern).

Repositories handle all database queries,
isolating business logic from SQL.
"""

from genrepo.repositories.main import MainRepository, QueryModifier, apply_modifiers
from genrepo.repositories.pagination import Page, Pagination, max_page_for

__all__ = [
    "MainRepository",
    "QueryModifier",
    "apply_modifiers",
    "Page",
    "Pagination",
    "max_page_for",
]
