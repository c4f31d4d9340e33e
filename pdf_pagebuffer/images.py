"""
images.py - Scaled image references and the per-document image cache.

The same decoded image can be drawn at many places in a document. The
cache embeds it once per raster family and hands every draw site the same
handle, which keeps repeated logos and icons from bloating the output.
"""

import logging
from typing import Callable, Dict, Tuple

from .compression import ImageSource, image_size
from .errors import ImageEmbeddingError

logger = logging.getLogger(__name__)

# Unscaled PDF output shows roughly 72 document units per inch
DOC_UNITS_PER_INCH = 72.0

# Images without an explicit size are assumed to print at this resolution
ASSUMED_IMAGE_DPI = 300.0
IMAGE_SCALE = DOC_UNITS_PER_INCH / ASSUMED_IMAGE_DPI

JPEG = "jpeg"
PNG = "png"


class ScaledImage:
    """
    A decoded image and the document units it should be displayed at.

    Identity matters: two ScaledImages wrapping the same image object share
    one embedded copy in the output document.
    """

    family = ""

    def __init__(self, image: ImageSource, width: float = 0, height: float = 0):
        """
        Args:
            image: PIL image or numpy array
            width: Display width in document units (<= 0 to derive from pixels)
            height: Display height in document units (<= 0 to derive from pixels)
        """
        px_width, px_height = image_size(image)
        if width <= 0:
            width = px_width * IMAGE_SCALE
        if height <= 0:
            height = px_height * IMAGE_SCALE
        self.image = image
        self.width = float(width)
        self.height = float(height)

    def dimensions(self) -> Tuple[float, float]:
        return self.width, self.height

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.width:.1f}x{self.height:.1f})"


class ScaledJpeg(ScaledImage):
    """Image embedded with lossy JPEG compression."""
    family = JPEG


class ScaledPng(ScaledImage):
    """Image embedded losslessly."""
    family = PNG


class ImageCache:
    """
    Flyweight map from image identity to embedded handle, one map per family.

    Belongs to exactly one output document: handles refer to objects inside
    that document and are meaningless anywhere else. Entries are never
    evicted. Each entry keeps a reference to its source image so the
    identity key stays valid for the cache's lifetime.
    """

    def __init__(self, embedders: Dict[str, Callable[[ImageSource], object]]):
        """
        Args:
            embedders: Family name -> callable embedding an image into the
                output document and returning its handle
        """
        self._embedders = dict(embedders)
        self._maps: Dict[str, Dict[int, Tuple[ImageSource, object]]] = {
            family: {} for family in self._embedders
        }

    def __len__(self) -> int:
        return sum(len(m) for m in self._maps.values())

    def ensure_cached(self, scaled: ScaledImage) -> object:
        """
        Return the embedded handle for ``scaled.image``, embedding it on first use.

        Raises:
            ImageEmbeddingError: If embedding fails. Nothing is cached, so a
                later call with the same image tries again.
        """
        try:
            cache = self._maps[scaled.family]
        except KeyError:
            raise ValueError(f"No embedder for image family {scaled.family!r}") from None

        key = id(scaled.image)
        entry = cache.get(key)
        if entry is not None:
            return entry[1]

        try:
            handle = self._embedders[scaled.family](scaled.image)
        except Exception as e:
            raise ImageEmbeddingError(
                f"Could not embed {scaled.family} image: {e}"
            ) from e

        cache[key] = (scaled.image, handle)
        logger.debug(f"Embedded {scaled.family} image #{len(cache)}: {handle}")
        return handle
