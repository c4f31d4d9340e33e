"""
compression.py - Raster image encoding for PDF embedding.

Supports:
- JPEG for photographic images (DCTDecode)
- Lossless 8-bit pixel data for everything else (FlateDecode)

Images may be PIL images or numpy arrays (H x W, H x W x 3 or H x W x 4).
"""

import io
import logging
import zlib
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
from PIL import Image
import cv2

logger = logging.getLogger(__name__)

DEFAULT_JPEG_QUALITY = 85

# Saturation threshold for grayscale conversion
# Only store as grayscale if mean saturation is below this
GRAYSCALE_SATURATION_THRESHOLD = 10  # Out of 255

ImageSource = Union[Image.Image, np.ndarray]


@dataclass
class EncodedImage:
    """Encoded image data ready for PDF embedding."""
    image_data: bytes
    width: int
    height: int
    is_color: bool
    is_jpeg: bool
    alpha_data: Optional[bytes] = None  # Flate-compressed 8-bit soft mask

    @property
    def total_size(self) -> int:
        return len(self.image_data) + len(self.alpha_data or b"")


def to_array(image: ImageSource) -> np.ndarray:
    """Return the image as a uint8 numpy array (gray, RGB or RGBA)."""
    if isinstance(image, np.ndarray):
        array = image
    elif isinstance(image, Image.Image):
        if image.mode in ("RGBA", "LA", "PA") or "transparency" in image.info:
            array = np.asarray(image.convert("RGBA"))
        elif image.mode in ("L", "1", "I;16", "I", "F"):
            array = np.asarray(image.convert("L"))
        else:
            array = np.asarray(image.convert("RGB"))
    else:
        raise TypeError(f"Unsupported image type: {type(image).__name__}")

    if array.dtype != np.uint8:
        raise ValueError(f"Unsupported pixel type: {array.dtype} (expected uint8)")
    if array.ndim == 3 and array.shape[2] == 1:
        array = array[:, :, 0]
    if array.ndim not in (2, 3) or (array.ndim == 3 and array.shape[2] not in (3, 4)):
        raise ValueError(f"Unsupported image shape: {array.shape}")
    if array.shape[0] == 0 or array.shape[1] == 0:
        raise ValueError("Image has no pixels")
    return array


def image_size(image: ImageSource) -> tuple:
    """Pixel (width, height) of an image."""
    if isinstance(image, np.ndarray):
        return image.shape[1], image.shape[0]
    return image.size


def is_grayscale_image(image: np.ndarray) -> bool:
    """
    Check if image is effectively grayscale based on saturation.

    Only returns True if the entire image has very low saturation.
    """
    if len(image.shape) != 3 or image.shape[2] not in (3, 4):
        return True  # Already grayscale

    if image.shape[2] == 4:
        image = image[:, :, :3]

    # Convert to HSV and check saturation
    hsv = cv2.cvtColor(np.ascontiguousarray(image), cv2.COLOR_RGB2HSV)
    mean_saturation = np.mean(hsv[:, :, 1])

    is_gray = mean_saturation < GRAYSCALE_SATURATION_THRESHOLD
    logger.debug(f"Mean saturation: {mean_saturation:.1f}, is_grayscale: {is_gray}")

    return is_gray


def _split_color(array: np.ndarray):
    """Split into (color pixels, alpha or None, is_color)."""
    alpha = None
    if array.ndim == 3 and array.shape[2] == 4:
        alpha = array[:, :, 3]
        if np.all(alpha == 255):
            alpha = None
        array = array[:, :, :3]

    is_color = not is_grayscale_image(array)
    if array.ndim == 3 and not is_color:
        array = cv2.cvtColor(np.ascontiguousarray(array), cv2.COLOR_RGB2GRAY)
    return np.ascontiguousarray(array), alpha, is_color


def compress_jpeg(image: ImageSource, quality: int = DEFAULT_JPEG_QUALITY) -> EncodedImage:
    """
    Compress image as JPEG.

    JPEG carries no transparency; an alpha channel is kept as a separate
    soft mask.

    Args:
        image: PIL image or numpy array
        quality: JPEG quality (1-100, lower = smaller)

    Returns:
        EncodedImage with DCT data
    """
    pixels, alpha, is_color = _split_color(to_array(image))
    height, width = pixels.shape[:2]

    # 2-D arrays load as "L", 3-channel arrays as "RGB"
    img = Image.fromarray(pixels)

    buffer = io.BytesIO()
    img.save(
        buffer,
        format="JPEG",
        quality=quality,
        optimize=True,
        subsampling=2  # 4:2:0 chroma subsampling
    )

    encoded = EncodedImage(
        image_data=buffer.getvalue(),
        width=width,
        height=height,
        is_color=is_color,
        is_jpeg=True,
        alpha_data=zlib.compress(alpha.tobytes(), level=9) if alpha is not None else None
    )
    logger.debug(
        f"JPEG: {encoded.total_size:,} bytes | {width}x{height} | "
        f"color={is_color} | q={quality}"
    )
    return encoded


def compress_lossless(image: ImageSource) -> EncodedImage:
    """
    Compress image as lossless 8-bit samples with zlib.

    Args:
        image: PIL image or numpy array

    Returns:
        EncodedImage with Flate data
    """
    pixels, alpha, is_color = _split_color(to_array(image))
    height, width = pixels.shape[:2]

    encoded = EncodedImage(
        image_data=zlib.compress(pixels.tobytes(), level=9),
        width=width,
        height=height,
        is_color=is_color,
        is_jpeg=False,
        alpha_data=zlib.compress(alpha.tobytes(), level=9) if alpha is not None else None
    )
    logger.debug(
        f"Lossless: {encoded.total_size:,} bytes | {width}x{height} | color={is_color}"
    )
    return encoded
