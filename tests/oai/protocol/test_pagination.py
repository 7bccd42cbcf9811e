import pytest

from digirepo.oai.protocol.pagination import Pagination
from digirepo.oai.store.base import Page


class TestPagination:
    def test_invalid(self):
        with pytest.raises(ValueError, match="Offset must be non-negative"):
            Pagination(-1, 10)
        with pytest.raises(ValueError, match="Page size must be positive"):
            Pagination(0, 0)

    def test_before_page_loaded(self):
        pagination = Pagination(0, 2)
        assert pagination.page_has_loaded is False
        assert pagination.has_next_page is True
        assert pagination.next_offset == 0

    @pytest.mark.parametrize(
        "offset, page_size, total, has_next, next_offset",
        [
            pytest.param(0, 2, 3, True, 2, id="first of two pages"),
            pytest.param(2, 1, 3, False, 3, id="last page"),
            pytest.param(0, 2, 2, False, 2, id="exactly one page"),
            pytest.param(0, 0, 0, False, 0, id="empty"),
            # The store returned fewer items than asked for, but the total
            # says there are more. Carry on from where this page ended.
            pytest.param(0, 1, 3, True, 1, id="short page"),
        ],
    )
    def test_page_loaded(
        self,
        offset: int,
        page_size: int,
        total: int,
        has_next: bool,
        next_offset: int,
    ):
        pagination = Pagination(offset, 2)
        pagination.page_loaded(Page(items=list(range(page_size)), total=total))

        assert pagination.page_has_loaded is True
        assert pagination.this_page_size == page_size
        assert pagination.total_size == total
        assert pagination.has_next_page is has_next
        assert pagination.next_offset == next_offset

    def test_visits_every_item_once(self):
        items = list(range(7))
        offset: int | None = 0
        seen = []
        pages = 0
        while offset is not None:
            pagination = Pagination(offset, 3)
            page = Page(
                items=items[pagination.offset : pagination.offset + pagination.size],
                total=len(items),
            )
            pagination.page_loaded(page)
            seen.extend(page.items)
            pages += 1
            offset = pagination.next_offset if pagination.has_next_page else None
        assert seen == items
        assert pages == 3
