"""
preprocessor.py

OpenCV-based size reduction applied to each page before it is sent
to the recognition service.

Pages larger than the configured bound are scaled down so the longer
side equals the bound, preserving aspect ratio, then re-encoded as
JPEG at the configured quality. The steps are deterministic: the same
page and parameters always yield the same bytes.
"""

import logging
from typing import Optional, Tuple, Union

import cv2
import numpy as np
from PIL import Image

from . import config

logger = logging.getLogger(__name__)


def prepare_page(
    image: Union[Image.Image, np.ndarray],
    max_dimension: Optional[int] = None,
    quality: Optional[float] = None,
) -> bytes:
    """
    Bound a page image's size and encode it for transmission.

    Args:
        image: Page as a PIL Image or a BGR/grayscale numpy array.
        max_dimension: Override config MAX_IMAGE_DIMENSION.
        quality: Override config IMAGE_QUALITY (0-1).

    Returns:
        JPEG-encoded bytes.
    """
    if max_dimension is None:
        max_dimension = config.MAX_IMAGE_DIMENSION
    if quality is None:
        quality = config.IMAGE_QUALITY

    result = to_bgr(image)
    result = downscale(result, max_dimension=max_dimension)
    return encode_jpeg(result, quality=quality)


def to_bgr(image: Union[Image.Image, np.ndarray]) -> np.ndarray:
    """Convert a PIL Image or numpy array into a 3-channel BGR array."""
    if isinstance(image, Image.Image):
        arr = np.array(image.convert("RGB"))
        # RGB to BGR for OpenCV
        return arr[:, :, ::-1].copy()

    if len(image.shape) == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if image.shape[2] == 1:
        return cv2.cvtColor(image[:, :, 0], cv2.COLOR_GRAY2BGR)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    return image


def scaled_size(width: int, height: int, max_dimension: int) -> Tuple[int, int]:
    """
    Compute the output size for a page.

    Unchanged when both sides fit; otherwise the longer side becomes
    ``max_dimension`` and the other keeps the aspect ratio.
    """
    longest = max(width, height)
    if longest <= max_dimension:
        return width, height

    scale = max_dimension / longest
    if width >= height:
        return max_dimension, max(1, round(height * scale))
    return max(1, round(width * scale)), max_dimension


def downscale(image: np.ndarray, max_dimension: int = 1600) -> np.ndarray:
    """Shrink an image so neither side exceeds ``max_dimension``."""
    h, w = image.shape[:2]
    new_w, new_h = scaled_size(w, h, max_dimension)

    if (new_w, new_h) == (w, h):
        return image

    logger.debug("Downscaling page from %dx%d to %dx%d", w, h, new_w, new_h)
    return cv2.resize(image, (new_w, new_h), interpolation=cv2.INTER_AREA)


def encode_jpeg(image: np.ndarray, quality: float = 0.85) -> bytes:
    """Encode a BGR array as JPEG. ``quality`` is a 0-1 factor."""
    jpeg_quality = int(round(min(max(quality, 0.0), 1.0) * 100))
    ok, buffer = cv2.imencode(".jpg", image, [cv2.IMWRITE_JPEG_QUALITY, jpeg_quality])
    if not ok:
        raise ValueError("JPEG encoding failed")
    return buffer.tobytes()
