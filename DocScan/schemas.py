"""
schemas.py

Pydantic models shared across the DocScan pipeline: source files,
queue items, per-page results, previews, parsed document elements
and run reports.
"""

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class MediaKind(str, Enum):
    IMAGE = "image"
    PDF = "pdf"


class ItemStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


# Allowed forward moves; Completed and Failed are terminal.
_TRANSITIONS = {
    ItemStatus.PENDING: {ItemStatus.PROCESSING},
    ItemStatus.PROCESSING: {ItemStatus.COMPLETED, ItemStatus.FAILED},
    ItemStatus.COMPLETED: set(),
    ItemStatus.FAILED: set(),
}


class SourceFile(BaseModel):
    """User-supplied document payload. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(repr=False)
    kind: MediaKind
    name: str


class QueuedItem(BaseModel):
    id: str
    source: SourceFile
    status: ItemStatus = ItemStatus.PENDING
    progress_note: Optional[str] = None
    aggregated_text: Optional[str] = None
    error_message: Optional[str] = None
    total_pages: int = 0
    failed_pages: List[int] = Field(default_factory=list)

    def transition(self, status: ItemStatus) -> None:
        """Move to ``status``, rejecting any backwards or repeated move."""
        if status not in _TRANSITIONS[self.status]:
            raise ValueError(
                f"Invalid status transition for item {self.id}: "
                f"{self.status.value} -> {status.value}"
            )
        self.status = status


class PageResult(BaseModel):
    page_index: int = Field(ge=1)
    text: str
    failed: bool = False


class PreviewEntry(BaseModel):
    id: str
    source_name: str
    page_number: Optional[int] = None
    image_data: bytes = Field(repr=False)
    extracted_text: str


class TableElement(BaseModel):
    kind: Literal["table"] = "table"
    rows: List[List[str]]


class HeaderElement(BaseModel):
    kind: Literal["header"] = "header"
    level: int = Field(ge=2)
    text: str


class ParagraphElement(BaseModel):
    kind: Literal["paragraph"] = "paragraph"
    text: str


ParsedElement = Annotated[
    Union[TableElement, HeaderElement, ParagraphElement],
    Field(discriminator="kind"),
]


class NoticeKind(str, Enum):
    # Recognition kinds plus page conversion failures.
    RATE_LIMITED = "rate_limited"
    QUOTA_EXCEEDED = "quota_exceeded"
    OTHER = "other"
    RASTERIZATION = "rasterization"


class RecognitionNotice(BaseModel):
    """One user-facing notification about a failed recognition or conversion."""

    kind: NoticeKind
    reason: str
    source_name: str
    page_number: Optional[int] = None


class DocumentResult(BaseModel):
    """Outcome of processing a single source in single-item mode."""

    source_name: str
    pages: List[PageResult]
    text: str
    total_pages: int
    failed_count: int
    failed_pages: List[int]


class BatchReport(BaseModel):
    total_items: int
    completed_items: int
    failed_items: int
    pending_items: int
    total_pages: int
    failed_pages: int
    cancelled: bool = False
