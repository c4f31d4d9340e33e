"""
pipeline.py - Flush buffered pages to the output document.

Pipeline, per uncommitted page:
1. Reuse the existing output page (overwrite mode) or add a new one
2. Open a content stream on it
3. Rotate the coordinate system for landscape pages
4. Set the color space, replay the page buffer, then the border items
5. Close the content stream (on every exit path)
6. Advance the commit cursor

Pages are flushed in order, each exactly once.
"""

import logging
import time
from dataclasses import dataclass

from .errors import PageStateError
from .logical_page import LogicalPage, Orientation
from .page_mapper import PageMapper
from .pdf_writer import PDFWriter

logger = logging.getLogger(__name__)


@dataclass
class FlushResult:
    """Result of flushing one logical page."""
    pages_committed: int = 0
    pages_reused: int = 0
    items_written: int = 0
    total_time: float = 0.0

    def summary(self) -> str:
        return (
            f"Pages: {self.pages_committed} ({self.pages_reused} reused) | "
            f"Items: {self.items_written} | "
            f"Time: {self.total_time:.3f}s"
        )


def flush_pages(
    mapper: PageMapper,
    writer: PDFWriter,
    logical_page: LogicalPage,
    overwrite_existing: bool = False,
    color_space: str = "DeviceRGB"
) -> FlushResult:
    """
    Write every uncommitted page buffer to the output document.

    Args:
        mapper: Page buffers and commit cursor
        writer: Output document
        logical_page: The group being ended; supplies page size, orientation
            and border items
        overwrite_existing: Draw over pages already in the output document
            instead of adding new ones, where they exist
        color_space: Stroking and non-stroking color space for every page

    Returns:
        FlushResult with statistics

    Raises:
        PageStateError: The next page was already written by a failed flush
        Any error from writing a page. Pages before the failing one stay
        committed; the failing page's content stream is closed first.
    """
    result = FlushResult()
    start = time.time()
    landscape = logical_page.orientation is Orientation.LANDSCAPE

    while mapper.has_uncommitted():
        idx = mapper.uncommitted_index
        page = mapper.current_uncommitted()
        if page.committed:
            # An earlier flush failed while writing this page
            raise PageStateError(f"Page {page.page_num} was already written")

        reuse = overwrite_existing and writer.page_count > idx

        if reuse:
            pdf_page = writer.get_page(idx)
            result.pages_reused += 1
        else:
            pdf_page = writer.add_page(
                logical_page.page_size,
                rotation=90 if landscape else 0
            )

        with writer.open_stream(pdf_page, append=reuse) as stream:
            if landscape:
                # Logical landscape space onto the portrait media box
                stream.concatenate_ctm(0, 1, -1, 0, logical_page.page_size[0], 0)

            stream.set_stroking_color_space(color_space)
            stream.set_nonstroking_color_space(color_space)

            page.commit(stream)
            logical_page.commit_border_items(stream)

        mapper.advance()
        result.pages_committed += 1
        result.items_written += len(page)

        logger.debug(
            f"Page {page.page_num}: {len(page)} items "
            f"({'reused' if reuse else 'new'}, {logical_page.orientation.value})"
        )

    result.total_time = time.time() - start
    logger.info(f"Flushed logical page: {result.summary()}")
    return result
