"""
utils.py

File I/O, validation and security checks for the DocScan package.

Handles:
- Source file loading and media kind detection
- File path sanitization against path traversal
- File size enforcement
- Directory expansion for folder-level batches
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

from . import config
from .exceptions import SourceFileError, SourceSecurityError
from .schemas import MediaKind, SourceFile

logger = logging.getLogger(__name__)


def sanitize_path(file_path: Union[str, Path]) -> Path:
    """
    Validate and sanitize a file path.

    Rejects paths containing '..', symlinks, or anything that is not
    an existing regular file.

    Args:
        file_path: Raw file path string or Path object.

    Returns:
        Resolved, sanitized Path object.

    Raises:
        SourceSecurityError: If path traversal is detected.
        SourceFileError: If file does not exist or is not readable.
    """
    raw = str(file_path)
    if ".." in Path(raw).parts:
        raise SourceSecurityError(f"Path traversal detected in: {raw}")

    if Path(raw).is_symlink():
        raise SourceSecurityError(f"Symlinks are not allowed: {raw}")

    path = Path(raw).resolve()

    if not path.exists():
        raise SourceFileError(f"File not found: {path}")

    if not path.is_file():
        raise SourceFileError(f"Not a regular file: {path}")

    return path


def media_kind_for(name: str) -> MediaKind:
    """Infer the media kind of a source from its file name."""
    ext = Path(name).suffix.lower()
    if ext in config.PDF_EXTENSIONS:
        return MediaKind.PDF
    if ext in config.IMAGE_EXTENSIONS:
        return MediaKind.IMAGE
    raise SourceFileError(
        f"Unsupported file extension '{ext}'. "
        f"Allowed: {config.ALLOWED_EXTENSIONS}"
    )


def validate_payload(name: str, size_bytes: int) -> None:
    """
    Enforce extension and size limits on a source payload.

    Raises:
        SourceFileError: If validation fails.
    """
    media_kind_for(name)

    if size_bytes == 0:
        raise SourceFileError(f"File is empty: {name}")

    size_mb = size_bytes / (1024 * 1024)
    if size_mb > config.MAX_FILE_SIZE_MB:
        raise SourceFileError(
            f"File too large: {size_mb:.1f}MB exceeds "
            f"limit of {config.MAX_FILE_SIZE_MB}MB"
        )


def source_from_bytes(data: bytes, name: str, kind: Optional[MediaKind] = None) -> SourceFile:
    """Build a validated SourceFile from an in-memory payload."""
    validate_payload(name, len(data))
    return SourceFile(data=data, kind=kind or media_kind_for(name), name=name)


def load_source(file_path: Union[str, Path]) -> SourceFile:
    """
    Load a source file from disk.

    Args:
        file_path: Path to an image or PDF file.

    Returns:
        SourceFile carrying the raw bytes and the file's display name.

    Raises:
        SourceFileError: If validation or reading fails.
        SourceSecurityError: If path validation fails.
    """
    path = sanitize_path(file_path)
    validate_payload(path.name, path.stat().st_size)

    try:
        data = path.read_bytes()
    except OSError as e:
        raise SourceFileError(f"Failed to read {path.name}: {e}") from e

    logger.info("Loaded file: %s (%d bytes)", path.name, len(data))
    return SourceFile(data=data, kind=media_kind_for(path.name), name=path.name)


def collect_sources(paths: Iterable[Union[str, Path]]) -> List[SourceFile]:
    """
    Load every supported file named by ``paths``.

    Directories are expanded to the supported files they directly
    contain, in name order. Files inside a directory that fail
    validation are logged and skipped; explicitly named files that
    fail validation raise.
    """
    sources: List[SourceFile] = []
    for entry in paths:
        path = Path(entry)
        if path.is_dir():
            for child in sorted(path.iterdir()):
                if not child.is_file() or child.suffix.lower() not in config.ALLOWED_EXTENSIONS:
                    continue
                try:
                    sources.append(load_source(child))
                except (SourceFileError, SourceSecurityError) as e:
                    logger.warning("Skipping %s: %s", child.name, e)
        else:
            sources.append(load_source(path))
    return sources
