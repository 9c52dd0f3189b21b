"""
DevCamper Backend: Paginator Tests
====================================

What we test:
    ✅ skip = (page - 1) * limit
    ✅ previous link iff page > 1, next link iff page * limit < total
    ✅ Out-of-range pages are empty, not errors
    ✅ Serialized body omits `total` and absent links
"""

import pytest

from devcamper.query.pagination import PageLink, paginate


class TestPaginate:

    def test_last_partial_page(self):
        window = paginate(page=3, limit=5, total=12)

        assert window.skip == 10
        assert window.limit == 5
        assert window.pagination.next is None
        assert window.pagination.previous == PageLink(page=2, limit=5)
        assert window.pagination.total == 12

    def test_first_page_has_only_next(self):
        window = paginate(page=1, limit=5, total=12)
        assert window.skip == 0
        assert window.pagination.previous is None
        assert window.pagination.next == PageLink(page=2, limit=5)

    @pytest.mark.parametrize(
        "page,limit,total",
        [(1, 25, 0), (2, 5, 10), (2, 5, 11), (4, 3, 100), (7, 1, 7)],
    )
    def test_link_invariants(self, page, limit, total):
        window = paginate(page=page, limit=limit, total=total)
        assert window.skip == (page - 1) * limit
        assert (window.pagination.previous is not None) == (page > 1)
        assert (window.pagination.next is not None) == (page * limit < total)

    def test_page_past_the_end_is_empty_not_error(self):
        window = paginate(page=9, limit=5, total=12)
        assert window.skip == 45
        assert window.pagination.next is None
        assert window.pagination.previous == PageLink(page=8, limit=5)

    def test_clamps_page_and_limit(self):
        window = paginate(page=0, limit=500, total=3, max_limit=100)
        assert window.pagination.page == 1
        assert window.limit == 100

        window = paginate(page=-4, limit=0, total=3)
        assert window.pagination.page == 1
        assert window.limit == 1


class TestPaginationSerialization:

    def test_body_omits_total_and_absent_links(self):
        body = paginate(page=1, limit=25, total=0).pagination.model_dump()
        assert body == {"page": 1, "limit": 25}

    def test_body_keeps_present_links(self):
        body = paginate(page=2, limit=5, total=20).pagination.model_dump(mode="json")
        assert body == {
            "page": 2,
            "limit": 5,
            "previous": {"page": 1, "limit": 5},
            "next": {"page": 3, "limit": 5},
        }
