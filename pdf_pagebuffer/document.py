"""
document.py - The layout manager: one buffered output document.

Usage:
    with PdfLayoutManager() as mgr:
        lp = mgr.logical_page_start()          # landscape letter
        lp.put_text(40, 500, "Hello", TextStyle())
        lp.put_text(40, -2000, "Far below", TextStyle())   # third page
        lp.commit()

        lp = mgr.logical_page_start(Orientation.PORTRAIT)
        ...
        lp.commit()

        mgr.save("out.pdf")

Buffers and writes to an underlying document, so it is mutable and NOT
thread-safe. Use one manager per output document.
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple

from .errors import PageStateError
from .images import JPEG, PNG, ImageCache, ScaledImage
from .logical_page import DEFAULT_MARGIN, PAGE_SIZE_LETTER, LogicalPage, Orientation
from .page_buffer import PageBuffer
from .page_mapper import PageBufferAndY, PageMapper
from .pdf_writer import COLOR_SPACES, PDFWriter
from .pipeline import FlushResult, flush_pages

logger = logging.getLogger(__name__)


class PdfLayoutManager:
    """
    Buffers drawing for a PDF and writes pages when logical pages end.
    """

    def __init__(
        self,
        writer: Optional[PDFWriter] = None,
        color_space: str = "DeviceRGB",
        overwrite_existing: bool = False
    ):
        """
        Args:
            writer: Output document (a new empty one when None)
            color_space: "DeviceRGB" or "DeviceGray"
            overwrite_existing: Draw over the writer's existing pages, in
                order, before adding new ones
        """
        if color_space not in COLOR_SPACES:
            raise ValueError(f"Unsupported color space: {color_space}")

        self.writer = writer if writer is not None else PDFWriter()
        self.color_space = color_space
        self.overwrite_existing = overwrite_existing
        self.mapper = PageMapper()
        # Handles belong to this writer's document only
        self.image_cache = ImageCache({
            JPEG: self.writer.embed_jpeg,
            PNG: self.writer.embed_png,
        })
        self.flushes: List[FlushResult] = []
        self._open_page: Optional[LogicalPage] = None
        self._closed = False

    @classmethod
    def open(
        cls,
        path: Path,
        overwrite_existing: bool = False,
        color_space: str = "DeviceRGB"
    ) -> "PdfLayoutManager":
        """Manager adding to (or drawing over) an existing PDF."""
        return cls(PDFWriter.open(path), color_space=color_space,
                   overwrite_existing=overwrite_existing)

    def __enter__(self) -> "PdfLayoutManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False

    @property
    def pages(self) -> List[PageBuffer]:
        return self.mapper.pages

    def page(self, page_num: int) -> PageBuffer:
        """Page buffer by 1-based page number."""
        if not 1 <= page_num <= self.mapper.page_count:
            raise IndexError(f"No page {page_num} (have {self.mapper.page_count})")
        return self.mapper.pages[page_num - 1]

    def logical_page_start(
        self,
        orientation: Orientation = Orientation.LANDSCAPE,
        page_size: Tuple[float, float] = PAGE_SIZE_LETTER,
        margin: float = DEFAULT_MARGIN
    ) -> LogicalPage:
        """
        Start a logical page, which may be broken across any number of
        physical pages, all with the given orientation and size.
        """
        if self._closed:
            raise PageStateError("Document is closed")
        if self._open_page is not None:
            raise PageStateError("Commit the current logical page before starting another")

        lp = LogicalPage(self, orientation, page_size, margin)
        self.mapper.new_page()
        self._open_page = lp
        logger.debug(f"Started {lp} at page {self.mapper.page_count}")
        return lp

    def logical_page_end(self, lp: LogicalPage) -> int:
        """
        Write every page created since the previous logical page ended.

        This is the only drawing call that performs output; everything else
        is buffered until the pages are complete.

        Returns:
            Number of pages written
        """
        if lp is not self._open_page:
            raise PageStateError("Logical page is not the one currently open")

        result = flush_pages(
            self.mapper,
            self.writer,
            lp,
            overwrite_existing=self.overwrite_existing,
            color_space=self.color_space
        )
        self._open_page = None
        self.flushes.append(result)
        return result.pages_committed

    def appropriate_page(self, lp: LogicalPage, y: float) -> PageBufferAndY:
        """
        The page and adjusted y for logical ``y``.

        Any y may be used: the canvas keeps extending downward (negative)
        by adding pages.
        """
        return self.mapper.resolve(y, lp.print_area_height, lp.y_page_bottom)

    def ensure_cached(self, scaled: ScaledImage) -> object:
        return self.image_cache.ensure_cached(scaled)

    def save(self, output) -> None:
        """Write the finished document to a path or binary file object, and close it."""
        if self._open_page is not None or self.mapper.has_uncommitted():
            raise PageStateError("Commit the current logical page before saving")
        if self._closed:
            raise PageStateError("Document is closed")

        logger.info(
            f"Saving document: {self.mapper.page_count} buffered pages, "
            f"{len(self.image_cache)} embedded images"
        )
        self._closed = True
        self.writer.save(output)

    def close(self) -> None:
        """Release the underlying document without saving."""
        if self._closed:
            return
        self._closed = True
        self.writer.close()
