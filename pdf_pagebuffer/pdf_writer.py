"""
pdf_writer.py - pikepdf-backed output document.

Supports:
- New documents, or existing documents whose pages can be drawn over
- JPEG images (DCTDecode) and lossless images (FlateDecode), with soft masks
- The 14 standard Type1 fonts, referenced by name (no embedding)
- Content streams built from primitive drawing operators
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pikepdf
from pikepdf import Pdf, Stream, Dictionary, Name

from .compression import (
    DEFAULT_JPEG_QUALITY,
    EncodedImage,
    ImageSource,
    compress_jpeg,
    compress_lossless,
)
from .draw_commands import STANDARD_FONTS, Color
from .errors import PageStateError

logger = logging.getLogger(__name__)

# Color space name -> number of color components
COLOR_SPACES = {
    "DeviceRGB": 3,
    "DeviceGray": 1,
}


def _num(value: float) -> str:
    """Format a number for a content stream."""
    text = f"{value:.4f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def escape_pdf_text(text: str) -> str:
    """
    Escape a string for a PDF string literal in WinAnsiEncoding.

    Characters outside the encoding become '?'. The result is meant to be
    written to the content stream as latin-1.
    """
    encoded = text.encode("cp1252", errors="replace").decode("latin-1")
    result = encoded.replace("\\", "\\\\")
    result = result.replace("(", "\\(")
    result = result.replace(")", "\\)")
    result = result.replace("\r", "\\r").replace("\n", "\\n")
    return result


class ImageHandle:
    """An image XObject embedded in one output document."""

    def __init__(self, xobject: pikepdf.Object, width: int, height: int, is_jpeg: bool):
        self.xobject = xobject
        self.width = width
        self.height = height
        self.is_jpeg = is_jpeg

    def __repr__(self) -> str:
        kind = "jpeg" if self.is_jpeg else "lossless"
        return f"ImageHandle({kind}, {self.width}x{self.height}, obj={self.xobject.objgen})"


class ContentStream:
    """
    Drawing context bound to one page.

    Operators are collected in memory and written to the page on close().
    Use as a context manager so the stream is closed on every exit path.
    """

    def __init__(self, writer: "PDFWriter", page: pikepdf.Page, append: bool = False):
        self._writer = writer
        self._page = page
        self._append = append
        self._ops: List[str] = []
        self._xobject_names: Dict[Tuple[int, int], Name] = {}
        self._font_names: Dict[str, Name] = {}
        self._stroking_components = 3
        self._nonstroking_components = 3
        self.closed = False

    def __enter__(self) -> "ContentStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False

    @property
    def operators(self) -> List[str]:
        return list(self._ops)

    def _emit(self, op: str) -> None:
        if self.closed:
            raise PageStateError("Content stream is closed")
        self._ops.append(op)

    def _color(self, color: Color, components: int) -> str:
        r, g, b = (c / 255.0 for c in color)
        if components == 1:
            # ITU-R BT.601 luma
            return _num(0.299 * r + 0.587 * g + 0.114 * b)
        return f"{_num(r)} {_num(g)} {_num(b)}"

    def set_stroking_color_space(self, name: str) -> None:
        if name not in COLOR_SPACES:
            raise ValueError(f"Unsupported color space: {name}")
        self._stroking_components = COLOR_SPACES[name]
        self._emit(f"/{name} CS")

    def set_nonstroking_color_space(self, name: str) -> None:
        if name not in COLOR_SPACES:
            raise ValueError(f"Unsupported color space: {name}")
        self._nonstroking_components = COLOR_SPACES[name]
        self._emit(f"/{name} cs")

    def set_stroking_color(self, color: Color) -> None:
        self._emit(f"{self._color(color, self._stroking_components)} SC")

    def set_nonstroking_color(self, color: Color) -> None:
        self._emit(f"{self._color(color, self._nonstroking_components)} sc")

    def set_line_width(self, width: float) -> None:
        self._emit(f"{_num(width)} w")

    def draw_line(self, x1: float, y1: float, x2: float, y2: float) -> None:
        self._emit(f"{_num(x1)} {_num(y1)} m {_num(x2)} {_num(y2)} l S")

    def fill_rect(self, x: float, y: float, width: float, height: float) -> None:
        self._emit(f"{_num(x)} {_num(y)} {_num(width)} {_num(height)} re f")

    def begin_text(self) -> None:
        self._emit("BT")

    def end_text(self) -> None:
        self._emit("ET")

    def set_font(self, font: str, size: float) -> None:
        name = self._font_names.get(font)
        if name is None:
            name = self._page.add_resource(
                self._writer.font_object(font), Name.Font, prefix="F"
            )
            self._font_names[font] = name
        self._emit(f"{name} {_num(size)} Tf")

    def move_text_position(self, x: float, y: float) -> None:
        self._emit(f"{_num(x)} {_num(y)} Td")

    def draw_string(self, text: str) -> None:
        self._emit(f"({escape_pdf_text(text)}) Tj")

    def draw_xobject(self, handle: ImageHandle, x: float, y: float, width: float, height: float) -> None:
        """Draw an embedded image with its lower left corner at (x, y)."""
        key = handle.xobject.objgen
        name = self._xobject_names.get(key)
        if name is None:
            name = self._page.add_resource(handle.xobject, Name.XObject, prefix="Im")
            self._xobject_names[key] = name
        self._emit(
            f"q {_num(width)} 0 0 {_num(height)} {_num(x)} {_num(y)} cm {name} Do Q"
        )

    def concatenate_ctm(self, a: float, b: float, c: float, d: float, e: float, f: float) -> None:
        self._emit(" ".join(_num(v) for v in (a, b, c, d, e, f)) + " cm")

    def close(self) -> None:
        """Write the collected operators to the page. Later calls do nothing."""
        if self.closed:
            return
        self.closed = True

        content = "\n".join(self._ops).encode("latin-1")
        if self._append and "/Contents" in self._page.obj:
            # Isolate the existing drawing state from ours
            self._page.contents_add(Stream(self._writer.pdf, b"q"), prepend=True)
            self._page.contents_add(Stream(self._writer.pdf, b"Q\n" + content))
        else:
            self._page.Contents = self._writer.pdf.make_indirect(
                Stream(self._writer.pdf, content)
            )

        logger.debug(f"Closed content stream: {len(self._ops)} operators, {len(content):,} bytes")


class PDFWriter:
    """
    Output document: pages, embedded images, fonts, and saving.
    """

    def __init__(self, pdf: Optional[Pdf] = None, jpeg_quality: int = DEFAULT_JPEG_QUALITY):
        """
        Initialize PDF writer.

        Args:
            pdf: Existing document to draw onto (a new one when None)
            jpeg_quality: Quality used when embedding JPEG-family images
        """
        self.pdf = pdf if pdf is not None else Pdf.new()
        self.jpeg_quality = jpeg_quality
        self.images_embedded = 0
        self._fonts: Dict[str, pikepdf.Object] = {}

    @classmethod
    def open(cls, path: Path, jpeg_quality: int = DEFAULT_JPEG_QUALITY) -> "PDFWriter":
        """Open an existing PDF to draw onto."""
        path = Path(path)
        writer = cls(Pdf.open(path), jpeg_quality=jpeg_quality)
        logger.debug(f"Opened {path}: {writer.page_count} existing pages")
        return writer

    @property
    def page_count(self) -> int:
        return len(self.pdf.pages)

    def get_page(self, index: int) -> pikepdf.Page:
        return self.pdf.pages[index]

    def add_page(self, page_size: Tuple[float, float], rotation: int = 0) -> pikepdf.Page:
        """Append a blank page with the given media box size and rotation."""
        self.pdf.add_blank_page(page_size=page_size)
        page = self.pdf.pages[-1]
        if rotation:
            page.Rotate = rotation
        return page

    def open_stream(self, page: pikepdf.Page, append: bool = False) -> ContentStream:
        """
        Open a drawing context on ``page``.

        Args:
            page: Page to draw on
            append: Keep the page's existing content and draw over it
        """
        return ContentStream(self, page, append=append)

    def font_object(self, font: str) -> pikepdf.Object:
        """Indirect font dictionary for a standard Type1 font, shared per document."""
        if font not in STANDARD_FONTS:
            raise ValueError(f"Not a standard Type1 font: {font}")
        obj = self._fonts.get(font)
        if obj is None:
            # Standard fonts need no embedding
            obj = self.pdf.make_indirect(Dictionary({
                '/Type': Name.Font,
                '/Subtype': Name.Type1,
                '/BaseFont': Name('/' + font),
                '/Encoding': Name.WinAnsiEncoding,
            }))
            self._fonts[font] = obj
        return obj

    def embed_jpeg(self, image: ImageSource) -> ImageHandle:
        """Embed an image with JPEG compression."""
        return self._embed(compress_jpeg(image, quality=self.jpeg_quality))

    def embed_png(self, image: ImageSource) -> ImageHandle:
        """Embed an image losslessly."""
        return self._embed(compress_lossless(image))

    def _embed(self, encoded: EncodedImage) -> ImageHandle:
        colorspace = Name.DeviceRGB if encoded.is_color else Name.DeviceGray

        image_dict = Dictionary({
            '/Type': Name.XObject,
            '/Subtype': Name.Image,
            '/Width': encoded.width,
            '/Height': encoded.height,
            '/ColorSpace': colorspace,
            '/BitsPerComponent': 8,
            '/Filter': Name.DCTDecode if encoded.is_jpeg else Name.FlateDecode,
        })

        if encoded.alpha_data is not None:
            mask_dict = Dictionary({
                '/Type': Name.XObject,
                '/Subtype': Name.Image,
                '/Width': encoded.width,
                '/Height': encoded.height,
                '/ColorSpace': Name.DeviceGray,
                '/BitsPerComponent': 8,
                '/Filter': Name.FlateDecode,
            })
            image_dict['/SMask'] = self.pdf.make_indirect(
                Stream(self.pdf, encoded.alpha_data, mask_dict)
            )

        xobject = self.pdf.make_indirect(Stream(self.pdf, encoded.image_data, image_dict))
        self.images_embedded += 1

        handle = ImageHandle(xobject, encoded.width, encoded.height, encoded.is_jpeg)
        logger.debug(f"Embedded {handle}: {encoded.total_size:,} bytes")
        return handle

    def save(self, output) -> None:
        """Save PDF to a path or binary file object, then close the document."""
        if isinstance(output, (str, Path)):
            output = Path(output)

        page_count = self.page_count
        try:
            self.pdf.save(
                output,
                compress_streams=True,
                object_stream_mode=pikepdf.ObjectStreamMode.generate
            )
        finally:
            self.close()

        logger.info(f"Saved {page_count} pages to {output}")

    def close(self) -> None:
        self.pdf.close()
