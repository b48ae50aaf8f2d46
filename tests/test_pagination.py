"""
Tests for the Pagination descriptor and page-count helper.
"""

import pytest
from pydantic import ValidationError

from genrepo.core.constants import DEFAULT_PAGE, DEFAULT_PAGE_LIMIT
from genrepo.repositories import Page, Pagination, max_page_for


class TestPagination:
    """Tests for Pagination validation and offset math."""

    def test_defaults(self):
        pagination = Pagination()

        assert pagination.page == DEFAULT_PAGE
        assert pagination.limit == DEFAULT_PAGE_LIMIT

    @pytest.mark.parametrize(
        "page, limit, offset",
        [(1, 10, 0), (2, 10, 10), (3, 7, 14), (5, 1, 4)],
    )
    def test_offset(self, page, limit, offset):
        assert Pagination(page=page, limit=limit).offset == offset

    @pytest.mark.parametrize("field", ["page", "limit"])
    @pytest.mark.parametrize("value", [0, -1])
    def test_values_below_one_rejected(self, field, value):
        with pytest.raises(ValidationError):
            Pagination(**{field: value})

    def test_is_immutable(self):
        pagination = Pagination(page=1, limit=5)

        with pytest.raises(ValidationError):
            pagination.page = 2


class TestMaxPage:
    """Tests for ceil(count / limit)."""

    @pytest.mark.parametrize(
        "count, limit, expected",
        [(0, 5, 0), (1, 5, 1), (5, 5, 1), (6, 5, 2), (7, 3, 3), (100, 1, 100)],
    )
    def test_ceiling(self, count, limit, expected):
        assert max_page_for(count, limit) == expected


def test_page_unpacks_like_a_pair():
    page = Page(["a", "b"], 4)

    records, max_page = page

    assert records == ["a", "b"]
    assert max_page == 4
    assert page.records is records
