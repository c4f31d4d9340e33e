"""
logical_page.py - A group of physical pages drawn as one tall canvas.

A LogicalPage starts at the top of a fresh physical page. Anything drawn
below the printable area spills onto following pages, which are created as
needed. All pages of the group share orientation, size and margins, and are
written out together when the group is committed.
"""

import logging
from enum import Enum
from typing import List, Optional, Tuple

from .draw_commands import (
    DEFAULT_Z_INDEX,
    Color,
    DrawCommand,
    DrawLine,
    LineStyle,
    TextStyle,
    sort_key,
)
from .errors import PageStateError
from .images import ScaledJpeg, ScaledPng
from .page_mapper import PageBufferAndY

logger = logging.getLogger(__name__)

# Media box sizes in document units, portrait
PAGE_SIZE_LETTER = (612.0, 792.0)
PAGE_SIZE_A4 = (595.28, 841.89)

# Half an inch
DEFAULT_MARGIN = 37.0


class Orientation(Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


class LogicalPage:
    """
    Drawing surface for one logical page.

    Coordinates are PDF-style (origin at the lower left, y grows upward) on
    the first physical page and simply keep going below zero for the pages
    after it. Obtain one from PdfLayoutManager.logical_page_start().
    """

    def __init__(
        self,
        mgr,
        orientation: Orientation = Orientation.LANDSCAPE,
        page_size: Tuple[float, float] = PAGE_SIZE_LETTER,
        margin: float = DEFAULT_MARGIN
    ):
        width, height = page_size
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid page size: {page_size}")
        if margin < 0 or 2 * margin >= min(width, height):
            raise ValueError(f"Margin {margin} does not fit page size {page_size}")

        self.mgr = mgr
        self.orientation = orientation
        self.page_size = (float(width), float(height))
        self.margin = float(margin)
        self.committed = False
        self._border_items: List[DrawCommand] = []

    def __repr__(self) -> str:
        return (
            f"LogicalPage({self.orientation.value}, "
            f"{self.page_width:g}x{self.page_height:g}, committed={self.committed})"
        )

    def __enter__(self) -> "LogicalPage":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        # Only commit when the block finished cleanly
        if exc_type is None and not self.committed:
            self.commit()
        return False

    @property
    def page_width(self) -> float:
        """Width of the drawing surface, after orientation."""
        if self.orientation is Orientation.LANDSCAPE:
            return self.page_size[1]
        return self.page_size[0]

    @property
    def page_height(self) -> float:
        """Height of the drawing surface, after orientation."""
        if self.orientation is Orientation.LANDSCAPE:
            return self.page_size[0]
        return self.page_size[1]

    @property
    def y_page_top(self) -> float:
        return self.page_height - self.margin

    @property
    def y_page_bottom(self) -> float:
        return self.margin

    @property
    def print_area_height(self) -> float:
        return self.y_page_top - self.y_page_bottom

    @property
    def body_width(self) -> float:
        return self.page_width - 2 * self.margin

    def _check_open(self) -> None:
        if self.committed:
            raise PageStateError("Logical page is already committed")

    def appropriate_page(self, y: float) -> PageBufferAndY:
        """Physical page and local y for logical ``y``."""
        self._check_open()
        return self.mgr.appropriate_page(self, y)

    def put_rect(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        color: Color,
        z_index: Optional[float] = None
    ) -> "LogicalPage":
        """Fill a rectangle whose lower left corner is at (x, y)."""
        pby = self.appropriate_page(y)
        pby.page.fill_rect(x, pby.y, width, height, color, z_index)
        return self

    def put_text(
        self,
        x: float,
        y: float,
        text: str,
        style: TextStyle,
        z_index: Optional[float] = None
    ) -> "LogicalPage":
        """Draw one line of text with its baseline at y."""
        pby = self.appropriate_page(y)
        pby.page.draw_text(x, pby.y, text, style, z_index)
        return self

    def put_jpeg(self, x: float, y: float, scaled: ScaledJpeg, z_index: Optional[float] = None) -> "LogicalPage":
        """Draw a JPEG-family image with its lower left corner at (x, y)."""
        pby = self.appropriate_page(y)
        pby.page.draw_jpeg(x, pby.y, scaled, self.mgr.image_cache, z_index)
        return self

    def put_png(self, x: float, y: float, scaled: ScaledPng, z_index: Optional[float] = None) -> "LogicalPage":
        """Draw a lossless image with its lower left corner at (x, y)."""
        pby = self.appropriate_page(y)
        pby.page.draw_png(x, pby.y, scaled, self.mgr.image_cache, z_index)
        return self

    def put_line(
        self,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        style: LineStyle,
        z_index: Optional[float] = None
    ) -> "LogicalPage":
        """
        Draw a line. Vertical lines that cross page breaks are split into
        one segment per page; other lines must fit on one page.
        """
        if y1 < y2:
            x1, y1, x2, y2 = x2, y2, x1, y1

        top = self.appropriate_page(y1)
        bottom = self.appropriate_page(y2)
        if top.page is bottom.page:
            top.page.draw_line(x1, top.y, x2, bottom.y, style, z_index)
            return self

        if x1 != x2:
            raise ValueError(
                f"Only vertical lines can cross a page break: ({x1}, {y1}) -> ({x2}, {y2})"
            )

        logger.debug(
            f"Splitting line at x={x1} over pages {top.page.page_num}-{bottom.page.page_num}"
        )
        top.page.draw_line(x1, top.y, x1, self.y_page_bottom, style, z_index)
        for page_num in range(top.page.page_num + 1, bottom.page.page_num):
            self.mgr.page(page_num).draw_line(
                x1, self.y_page_top, x1, self.y_page_bottom, style, z_index
            )
        bottom.page.draw_line(x1, self.y_page_top, x1, bottom.y, style, z_index)
        return self

    def add_border_line(
        self,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        style: LineStyle,
        z_index: Optional[float] = None
    ) -> "LogicalPage":
        """
        Add a line drawn on every physical page of this logical page, in page
        coordinates, after that page's own content.
        """
        self._check_open()
        command = DrawLine(
            order=len(self._border_items),
            z_index=DEFAULT_Z_INDEX if z_index is None else float(z_index),
            x1=x1, y1=y1, x2=x2, y2=y2, style=style
        )
        self._border_items.append(command)
        self._border_items.sort(key=sort_key)
        return self

    def add_border(self, style: LineStyle) -> "LogicalPage":
        """Frame the printable area of every page."""
        left, right = self.margin, self.page_width - self.margin
        bottom, top = self.y_page_bottom, self.y_page_top
        for x1, y1, x2, y2 in (
            (left, top, right, top),
            (right, top, right, bottom),
            (right, bottom, left, bottom),
            (left, bottom, left, top),
        ):
            self.add_border_line(x1, y1, x2, y2, style)
        return self

    def commit_border_items(self, stream) -> None:
        for command in self._border_items:
            command.commit(stream)

    def commit(self) -> int:
        """
        End this logical page and write all of its pages to the document.

        Returns:
            Number of physical pages written
        """
        self._check_open()
        committed = self.mgr.logical_page_end(self)
        self.committed = True
        return committed
