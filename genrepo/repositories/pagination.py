"""
Pagination descriptor and paginated result type.
"""

from typing import Generic, List, NamedTuple, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from genrepo.core.constants import DEFAULT_PAGE, DEFAULT_PAGE_LIMIT

RecordT = TypeVar("RecordT")


class Pagination(BaseModel):
    """
    Which slice of a result set to fetch.

    Attributes:
        page: 1-based page number
        limit: Rows per page

    Both must be >= 1; pydantic raises ValidationError otherwise, so a zero
    limit never reaches the page-count division.

    Example:
        records, max_page = repo.find_all_paginated(Pagination(page=2, limit=10))
    """

    model_config = ConfigDict(frozen=True)

    page: int = Field(default=DEFAULT_PAGE, ge=1)
    limit: int = Field(default=DEFAULT_PAGE_LIMIT, ge=1)

    @property
    def offset(self) -> int:
        """Rows skipped before this page."""
        return (self.page - 1) * self.limit


class Page(NamedTuple, Generic[RecordT]):
    """One page of records plus the number of pages available."""

    records: List[RecordT]
    max_page: int


def max_page_for(count: int, limit: int) -> int:
    """Return ceil(count / limit) using integer arithmetic."""
    return -(-count // limit)
