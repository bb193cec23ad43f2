"""
rasterizer.py

Turns a source file into an ordered list of page images.

PDFs are rendered page by page with pdf2image (poppler). Any other
supported source is a single image and therefore a single page.
A document that cannot be opened fails as a whole: no partial page
list is ever returned.
"""

import io
import logging
from typing import List, Optional

from pdf2image import convert_from_bytes
from PIL import Image

from . import config
from .exceptions import RasterizationError
from .schemas import MediaKind, SourceFile

logger = logging.getLogger(__name__)


def rasterize_pdf(data: bytes, dpi: Optional[int] = None) -> List[Image.Image]:
    """
    Render every page of a PDF payload, in document order.

    Args:
        data: Raw PDF bytes.
        dpi: Override config TARGET_DPI.

    Returns:
        List of RGB PIL Images, one per page.

    Raises:
        RasterizationError: If the document cannot be converted.
    """
    if dpi is None:
        dpi = config.TARGET_DPI

    try:
        pil_images = convert_from_bytes(data, dpi=dpi)
    except Exception as e:
        raise RasterizationError(f"Failed to convert PDF: {e}") from e

    if not pil_images:
        raise RasterizationError("PDF produced no images")

    pages = []
    for i, pil_img in enumerate(pil_images):
        page = pil_img.convert("RGB")
        logger.debug("PDF page %d: %dx%d", i + 1, page.width, page.height)
        pages.append(page)
    return pages


def load_image(data: bytes) -> Image.Image:
    """Decode a single image payload into an RGB PIL Image."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return img.convert("RGB")
    except Exception as e:
        raise RasterizationError(f"Failed to decode image: {e}") from e


def load_pages(source: SourceFile, dpi: Optional[int] = None) -> List[Image.Image]:
    """
    Return the page images of a source, 1:1 with its pages.

    Raises:
        RasterizationError: If the source cannot be opened.
    """
    if source.kind == MediaKind.PDF:
        pages = rasterize_pdf(source.data, dpi=dpi)
    else:
        pages = [load_image(source.data)]

    logger.info("Loaded %d page(s) from %s", len(pages), source.name)
    return pages
