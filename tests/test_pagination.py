"""
Unit tests for pagination arithmetic.
"""

import pytest

from catalog_studio.errors import PageIndexError, ValidationError
from catalog_studio.pagination import clamp_page_index, page_items, total_pages


# items per page of every built-in template
PAGE_SIZES = [1, 2, 4, 6, 8, 9, 12]


def boundary_counts(k):
    """Selection sizes around the page boundaries for k items per page."""
    return [(0, 0), (1, 1), (k, 1), (k + 1, 2), (2 * k, 2), (2 * k + 1, 3)]


class TestTotalPages:
    """Test page counts for a selection size and template."""

    @pytest.mark.parametrize('count,per_page,expected', [
        (0, 4, 0),
        (1, 4, 1),
        (4, 4, 1),
        (5, 4, 2),
        (8, 4, 2),
        (9, 4, 3),
        (10, 4, 3),
        (1, 1, 1),
        (20, 12, 2),
    ])
    def test_ceiling(self, count, per_page, expected):
        """Test the page count is the ceiling of count over page size."""
        assert total_pages(count, per_page) == expected

    @pytest.mark.parametrize('per_page', PAGE_SIZES)
    def test_boundaries_for_every_template(self, per_page):
        """Test counts of 0, 1, k, k+1, 2k and 2k+1 items for each page size."""
        for count, expected in boundary_counts(per_page):
            assert total_pages(count, per_page) == expected, (count, per_page)

    def test_items_per_page_must_be_positive(self):
        """Test a zero page size is rejected."""
        with pytest.raises(ValidationError):
            total_pages(3, 0)


class TestPageItems:
    """Test slicing the selection into pages."""

    def test_full_and_partial_pages(self):
        """Test every page is full except possibly the last."""
        items = list(range(10))

        assert page_items(items, 0, 4) == [0, 1, 2, 3]
        assert page_items(items, 1, 4) == [4, 5, 6, 7]
        assert page_items(items, 2, 4) == [8, 9]

    def test_pages_partition_the_selection(self):
        """Test concatenating all pages yields the selection in order."""
        items = list(range(11))
        pages = [page_items(items, i, 3) for i in range(total_pages(11, 3))]

        assert [x for page in pages for x in page] == items

    @pytest.mark.parametrize('per_page', PAGE_SIZES)
    def test_page_lengths(self, per_page):
        """Test inner pages hold exactly k items and the last page N - k*(pages-1)."""
        for count, _ in boundary_counts(per_page)[1:]:
            items = list(range(count))
            pages = total_pages(count, per_page)
            lengths = [len(page_items(items, i, per_page)) for i in range(pages)]

            assert lengths[:-1] == [per_page] * (pages - 1)
            assert lengths[-1] == count - per_page * (pages - 1)
            assert 1 <= lengths[-1] <= per_page

    @pytest.mark.parametrize('index', [-1, 3])
    def test_out_of_range(self, index):
        """Test indexes outside the page range are rejected."""
        with pytest.raises(PageIndexError):
            page_items(list(range(10)), index, 4)

    def test_empty_selection_has_no_pages(self):
        """Test an empty selection has no page 0."""
        with pytest.raises(PageIndexError):
            page_items([], 0, 4)


class TestClamp:
    """Test clamping the previewed page into range."""

    def test_clamp(self):
        """Test indexes are pulled into 0..pages-1."""
        assert clamp_page_index(5, 3) == 2
        assert clamp_page_index(-1, 3) == 0
        assert clamp_page_index(1, 3) == 1

    def test_clamp_without_pages(self):
        """Test the index is 0 when there are no pages."""
        assert clamp_page_index(4, 0) == 0
