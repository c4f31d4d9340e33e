"""
draw_commands.py - Immutable drawing operations buffered for one page.

Supports:
- Filled rectangles
- Stroked lines
- Single-line text runs in a standard font
- Raster images already embedded in the output document

Every command carries its stacking metadata: a z-index (lower drawn first)
and an insertion order assigned by the page buffer. Together they form a
strict total order used for replay.
"""

from dataclasses import dataclass
from typing import Tuple

# Default stacking level. Commands with a lower z-index are drawn first.
DEFAULT_Z_INDEX = 0.0

# RGB components, 0-255
Color = Tuple[int, int, int]

BLACK: Color = (0, 0, 0)
WHITE: Color = (255, 255, 255)

# Base fonts every PDF reader provides, referenced by name without embedding
STANDARD_FONTS = frozenset({
    "Courier", "Courier-Bold", "Courier-Oblique", "Courier-BoldOblique",
    "Helvetica", "Helvetica-Bold", "Helvetica-Oblique", "Helvetica-BoldOblique",
    "Times-Roman", "Times-Bold", "Times-Italic", "Times-BoldItalic",
    "Symbol", "ZapfDingbats",
})


@dataclass(frozen=True)
class LineStyle:
    """Stroke color and width for lines."""
    color: Color = BLACK
    width: float = 1.0


@dataclass(frozen=True)
class TextStyle:
    """Font, size and color for text runs. Font is a standard Type1 base font name."""
    font: str = "Helvetica"
    font_size: float = 12.0
    text_color: Color = BLACK


@dataclass(frozen=True)
class DrawCommand:
    """Base class for one buffered drawing operation."""
    order: int
    z_index: float

    def commit(self, stream) -> None:
        raise NotImplementedError


@dataclass(frozen=True)
class FillRect(DrawCommand):
    x: float
    y: float
    width: float
    height: float
    color: Color

    def commit(self, stream) -> None:
        stream.set_nonstroking_color(self.color)
        stream.fill_rect(self.x, self.y, self.width, self.height)


@dataclass(frozen=True)
class DrawLine(DrawCommand):
    x1: float
    y1: float
    x2: float
    y2: float
    style: LineStyle

    def commit(self, stream) -> None:
        stream.set_stroking_color(self.style.color)
        stream.set_line_width(self.style.width)
        stream.draw_line(self.x1, self.y1, self.x2, self.y2)


@dataclass(frozen=True)
class DrawText(DrawCommand):
    x: float
    y: float
    text: str
    style: TextStyle

    def commit(self, stream) -> None:
        stream.begin_text()
        stream.set_nonstroking_color(self.style.text_color)
        stream.set_font(self.style.font, self.style.font_size)
        stream.move_text_position(self.x, self.y)
        stream.draw_string(self.text)
        stream.end_text()


@dataclass(frozen=True)
class DrawImage(DrawCommand):
    """Draws an embedded image handle, scaled to the image's display size."""
    x: float
    y: float
    handle: object
    width: float
    height: float

    def commit(self, stream) -> None:
        stream.draw_xobject(self.handle, self.x, self.y, self.width, self.height)


def sort_key(command: DrawCommand) -> Tuple[float, int]:
    """Replay order: z-index ascending, then insertion order ascending."""
    return (command.z_index, command.order)
