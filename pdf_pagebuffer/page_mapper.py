"""
page_mapper.py - Logical y to physical page resolution.

A logical page is one unbounded canvas that grows downward (toward negative
y). The mapper turns a logical y into a physical page and a y local to that
page, allocating page buffers on demand.
"""

import logging
from typing import List, NamedTuple

from .errors import PageStateError
from .page_buffer import PageBuffer

logger = logging.getLogger(__name__)


class PageBufferAndY(NamedTuple):
    """A physical page and a y coordinate on it."""
    page: PageBuffer
    y: float


class PageMapper:
    """
    Append-only list of page buffers plus the commit cursor.

    ``uncommitted_index`` is the index of the first page not yet written to
    the output document. It never decreases and never exceeds ``len(pages)``.
    """

    def __init__(self):
        self._pages: List[PageBuffer] = []
        self._uncommitted_index = 0

    @property
    def pages(self) -> List[PageBuffer]:
        """Read-only view of the page buffers."""
        return list(self._pages)

    @property
    def page_count(self) -> int:
        return len(self._pages)

    @property
    def uncommitted_index(self) -> int:
        return self._uncommitted_index

    def has_uncommitted(self) -> bool:
        return self._uncommitted_index < len(self._pages)

    def current_uncommitted(self) -> PageBuffer:
        return self._pages[self._uncommitted_index]

    def advance(self) -> None:
        """Mark the page at the cursor as committed."""
        if not self.has_uncommitted():
            raise PageStateError("No uncommitted page to advance past")
        self._uncommitted_index += 1

    def new_page(self) -> PageBuffer:
        """Append a page buffer numbered after the existing ones."""
        page = PageBuffer(len(self._pages) + 1)
        self._pages.append(page)
        logger.debug(f"Allocated page {page.page_num}")
        return page

    def resolve(
        self,
        y: float,
        print_area_height: float,
        page_bottom: float
    ) -> PageBufferAndY:
        """
        Find the page that ``y`` falls on, starting from the first uncommitted page.

        While y is below the bottom of the printable area, move it up by one
        printable height and step to the next page, creating pages that do
        not exist yet.

        Args:
            y: Logical y, any value (arbitrarily negative is fine)
            print_area_height: Printable height of one physical page
            page_bottom: Lowest printable y on a physical page

        Returns:
            PageBufferAndY with the page and the y adjusted for that page

        Raises:
            PageStateError: If no page has been created yet, or every page
                is already committed
        """
        if not self._pages:
            raise PageStateError(
                "Cannot resolve a page until one has been created by starting a logical page"
            )
        if not self.has_uncommitted():
            raise PageStateError(
                "All pages are committed; start a new logical page before drawing"
            )
        if print_area_height <= 0:
            raise ValueError(f"Print area height must be positive, got {print_area_height}")

        idx = self._uncommitted_index
        while y < page_bottom:
            y += print_area_height
            idx += 1
            if len(self._pages) <= idx:
                self.new_page()

        return PageBufferAndY(self._pages[idx], y)
