"""
page_buffer.py - Drawing operations buffered for one physical page.

Commands are kept sorted by (z-index, insertion order) as they are appended,
so committing a page is a single in-order pass with no sort step.
"""

import logging
from bisect import insort
from functools import partial
from typing import Callable, List, Optional, Tuple

from .draw_commands import (
    DEFAULT_Z_INDEX,
    Color,
    DrawCommand,
    DrawImage,
    DrawLine,
    DrawText,
    FillRect,
    STANDARD_FONTS,
    LineStyle,
    TextStyle,
    sort_key,
)
from .errors import PageStateError

logger = logging.getLogger(__name__)

CommandFactory = Callable[..., DrawCommand]


class PageBuffer:
    """
    Ordered drawing operations for one physical page.

    Owned by a single document. Mutated only by appends until committed,
    then replayed exactly once.
    """

    def __init__(self, page_num: int):
        """
        Args:
            page_num: 1-based physical page number
        """
        self.page_num = page_num
        self.committed = False
        self._last_order = 0
        self._items: List[DrawCommand] = []

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"PageBuffer(page_num={self.page_num}, items={len(self._items)})"

    @property
    def items(self) -> Tuple[DrawCommand, ...]:
        """Commands in replay order."""
        return tuple(self._items)

    def append(
        self,
        factory: CommandFactory,
        z_index: Optional[float] = None
    ) -> DrawCommand:
        """
        Build a command with the next insertion order and insert it in replay order.

        Args:
            factory: Callable accepting ``order`` and ``z_index`` keyword
                arguments and returning a DrawCommand
            z_index: Stacking level, DEFAULT_Z_INDEX when None

        Returns:
            The appended command
        """
        if self.committed:
            raise PageStateError(f"Page {self.page_num} is already committed")

        if z_index is None:
            z_index = DEFAULT_Z_INDEX
        command = factory(order=self._last_order, z_index=float(z_index))
        self._last_order += 1
        insort(self._items, command, key=sort_key)
        return command

    def fill_rect(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        color: Color,
        z_index: Optional[float] = None
    ) -> DrawCommand:
        return self.append(
            partial(FillRect, x=x, y=y, width=width, height=height, color=color),
            z_index
        )

    def draw_line(
        self,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        style: LineStyle,
        z_index: Optional[float] = None
    ) -> DrawCommand:
        return self.append(
            partial(DrawLine, x1=x1, y1=y1, x2=x2, y2=y2, style=style),
            z_index
        )

    def draw_text(
        self,
        x: float,
        y: float,
        text: str,
        style: TextStyle,
        z_index: Optional[float] = None
    ) -> DrawCommand:
        if style.font not in STANDARD_FONTS:
            raise ValueError(f"Not a standard Type1 font: {style.font}")
        return self.append(
            partial(DrawText, x=x, y=y, text=text, style=style),
            z_index
        )

    def draw_jpeg(self, x: float, y: float, scaled, cache, z_index: Optional[float] = None) -> DrawCommand:
        """Draw a ScaledJpeg, embedding it through ``cache`` on first use."""
        return self._draw_image(x, y, scaled, cache.ensure_cached(scaled), z_index)

    def draw_png(self, x: float, y: float, scaled, cache, z_index: Optional[float] = None) -> DrawCommand:
        """Draw a ScaledPng, embedding it through ``cache`` on first use."""
        return self._draw_image(x, y, scaled, cache.ensure_cached(scaled), z_index)

    def _draw_image(self, x, y, scaled, handle, z_index) -> DrawCommand:
        width, height = scaled.dimensions()
        return self.append(
            partial(DrawImage, x=x, y=y, handle=handle, width=width, height=height),
            z_index
        )

    def commit(self, stream) -> None:
        """
        Replay every command onto ``stream`` in (z-index, insertion order).

        A page may be committed only once. If a primitive fails partway the
        page stays marked as committed and the error propagates.
        """
        if self.committed:
            raise PageStateError(f"Page {self.page_num} is already committed")
        self.committed = True

        for command in self._items:
            command.commit(stream)

        logger.debug(f"Committed page {self.page_num}: {len(self._items)} items")
