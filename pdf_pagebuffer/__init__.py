"""
PDF Page Buffer - buffered, page-breaking drawing onto PDF documents.

Callers draw on one unbounded downward canvas per logical page. Drawing
operations are buffered per physical page, replayed in z-order, and only
written to the underlying pikepdf document when a logical page ends.
"""

__version__ = "1.0.0"

from .document import PdfLayoutManager
from .draw_commands import DEFAULT_Z_INDEX, LineStyle, TextStyle
from .errors import ImageEmbeddingError, PageStateError
from .images import ScaledJpeg, ScaledPng
from .logical_page import LogicalPage, Orientation, PAGE_SIZE_A4, PAGE_SIZE_LETTER

__all__ = [
    "PdfLayoutManager",
    "LogicalPage",
    "Orientation",
    "PAGE_SIZE_LETTER",
    "PAGE_SIZE_A4",
    "DEFAULT_Z_INDEX",
    "LineStyle",
    "TextStyle",
    "ScaledJpeg",
    "ScaledPng",
    "PageStateError",
    "ImageEmbeddingError",
]
