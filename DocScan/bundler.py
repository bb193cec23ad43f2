"""
bundler.py

Packages several exported documents into one zip archive.
"""

import io
import logging
import zipfile
from pathlib import Path
from typing import Iterable, Optional, Tuple, Union

from . import config
from .exceptions import ArchiveError

logger = logging.getLogger(__name__)


def document_name(source_name: str) -> str:
    """Name of the document exported for ``source_name``: extension swapped for .docx."""
    stem = Path(source_name).stem or "document"
    return stem + config.DOCUMENT_EXTENSION


def _unique_name(name: str, taken: set) -> str:
    if name not in taken:
        return name

    stem, suffix = Path(name).stem, Path(name).suffix
    n = 2
    while f"{stem} ({n}){suffix}" in taken:
        n += 1
    return f"{stem} ({n}){suffix}"


def bundle_documents(
    documents: Iterable[Tuple[str, bytes]],
    path: Optional[Union[str, Path]] = None,
) -> bytes:
    """
    Build a zip archive holding one document per (source name, bytes) pair.

    Entry names come from ``document_name``; clashes get a " (n)" suffix.

    Args:
        documents: Pairs of source display name and document bytes.
        path: If given, the archive is also written there.

    Returns:
        The archive as bytes.

    Raises:
        ArchiveError: If the archive cannot be assembled or saved.
    """
    buffer = io.BytesIO()
    taken: set = set()

    try:
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for source_name, data in documents:
                name = _unique_name(document_name(source_name), taken)
                taken.add(name)
                zf.writestr(name, data)
                logger.debug("Added %s to archive (%d bytes)", name, len(data))
    except (zipfile.BadZipFile, OSError, ValueError) as e:
        raise ArchiveError(f"Failed to build archive: {e}") from e

    archive = buffer.getvalue()
    logger.info("Built archive with %d document(s), %d bytes", len(taken), len(archive))

    if path is not None:
        try:
            Path(path).write_bytes(archive)
        except OSError as e:
            raise ArchiveError(f"Failed to save archive to {path}: {e}") from e

    return archive
