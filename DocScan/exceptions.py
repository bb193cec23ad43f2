"""
exceptions.py

Error taxonomy for the DocScan pipeline.

Recognition errors carry a kind so the orchestrator can decide whether
to degrade a page or abort the rest of an item. Rasterization, export
and archive failures are kept distinct so callers can report them apart
from recognition problems.
"""

from enum import Enum


class DocScanError(Exception):
    """Base exception for the DocScan package."""

    pass


class SourceFileError(DocScanError):
    """Raised when file validation fails."""

    pass


class SourceSecurityError(DocScanError):
    """Raised when a security check fails (e.g., path traversal)."""

    pass


class RecognitionKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    QUOTA_EXCEEDED = "quota_exceeded"
    OTHER = "other"


class RecognitionError(DocScanError):
    """A single recognition call failed."""

    kind = RecognitionKind.OTHER

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RateLimitedError(RecognitionError):
    kind = RecognitionKind.RATE_LIMITED


class QuotaExceededError(RecognitionError):
    kind = RecognitionKind.QUOTA_EXCEEDED


class RecognitionFailure(RecognitionError):
    kind = RecognitionKind.OTHER


class RasterizationError(DocScanError):
    """A source document could not be turned into page images."""

    pass


class ExportError(DocScanError):
    """Building or saving an output document failed."""

    pass


class ArchiveError(DocScanError):
    """Assembling the batch archive failed."""

    pass
