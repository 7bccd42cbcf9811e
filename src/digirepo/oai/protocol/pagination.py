from __future__ import annotations

from digirepo.oai.store.base import Page


class Pagination:
    """Offset based paging through a result list whose total size the
    store reports alongside each page.
    """

    DEFAULT_SIZE = 100

    def __init__(self, offset: int = 0, size: int = DEFAULT_SIZE):
        """Constructor.

        :param offset: Start pulling entries from the result list at this index.
        :param size: Pull no more than this number of entries.
        """
        if offset < 0:
            raise ValueError(f"Offset must be non-negative, got {offset}")
        if size < 1:
            raise ValueError(f"Page size must be positive, got {size}")
        self.offset = offset
        self.size = size
        self.total_size: int | None = None
        self.this_page_size: int | None = None
        self.page_has_loaded = False

    def __repr__(self) -> str:
        return (
            f"<Pagination offset={self.offset} size={self.size} "
            f"total={self.total_size}>"
        )

    @property
    def has_next_page(self) -> bool:
        """Whether entries remain after this page.

        Only meaningful once a page has been loaded. A page that came back
        shorter than requested still has a next page if the total says so,
        which keeps us from silently dropping entries.
        """
        if not self.page_has_loaded:
            return True
        if self.total_size is None:
            return bool(self.this_page_size)
        return self.next_offset < self.total_size

    @property
    def next_offset(self) -> int:
        return self.offset + (self.this_page_size or 0)

    def page_loaded(self, page: Page[object]) -> None:
        """An actual page of results has been fetched. Keep the state we
        need to decide whether and where the list continues.
        """
        self.this_page_size = len(page.items)
        self.total_size = page.total
        self.page_has_loaded = True
