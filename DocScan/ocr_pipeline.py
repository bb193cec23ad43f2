"""
ocr_pipeline.py

Main orchestrator for the DocScan package.

Coordinates the per-page pipeline: rasterize -> preprocess -> recognize
-> aggregate. Pages are processed strictly one after another with a
fixed pause between them. Two entry points share the same page loop:

- process_document: one source, result returned directly. By default a
  rate-limit or quota error only fails the page it happened on.
- BatchOrchestrator: a queue of sources processed one at a time. By
  default a rate-limit or quota error abandons the rest of the current
  item, which is marked failed, and the run moves on to the next item.

The abort scope is configurable for both.
"""

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

from PIL import Image

from . import config
from .bundler import bundle_documents
from .engine import RecognitionGateway, get_gateway
from .exceptions import (
    ArchiveError,
    RasterizationError,
    RecognitionError,
    RecognitionFailure,
    RecognitionKind,
)
from .exporter import export_text
from .preprocessor import prepare_page
from .rasterizer import load_pages
from .schemas import (
    BatchReport,
    DocumentResult,
    ItemStatus,
    NoticeKind,
    PageResult,
    PreviewEntry,
    QueuedItem,
    RecognitionNotice,
    SourceFile,
)

logger = logging.getLogger(__name__)


class AbortScope(str, Enum):
    PAGE = "page"  # degrade the failing page, keep going
    ITEM = "item"  # stop the current item's remaining pages


NOTICE_REASONS = {
    NoticeKind.RATE_LIMITED: "Rate limit exceeded. Please wait a moment before trying again.",
    NoticeKind.QUOTA_EXCEEDED: "Recognition credits exhausted. Please add credits to continue.",
    NoticeKind.OTHER: "Recognition failed: {message}",
    NoticeKind.RASTERIZATION: "Could not read the document: {message}",
}


@dataclass
class ProcessingCallbacks:
    """Optional hooks the pipeline calls to report progress."""

    on_notice: Optional[Callable[[RecognitionNotice], None]] = None
    on_item_status: Optional[Callable[[QueuedItem], None]] = None
    on_page_complete: Optional[Callable[[str, PageResult], None]] = None
    on_preview: Optional[Callable[[PreviewEntry], None]] = None


class FixedIntervalThrottle:
    """Blocking pause of a fixed length between consecutive page calls."""

    def __init__(self, interval: Optional[float] = None, sleep: Callable[[float], None] = time.sleep):
        self.interval = config.INTER_PAGE_DELAY_SECONDS if interval is None else interval
        self._sleep = sleep

    def wait(self) -> None:
        if self.interval > 0:
            self._sleep(self.interval)


@dataclass
class PageRun:
    """Pages produced by one pass over a source."""

    results: List[PageResult] = field(default_factory=list)
    aborted_by: Optional[RecognitionError] = None
    cancelled: bool = False

    @property
    def failed_pages(self) -> List[int]:
        return [r.page_index for r in self.results if r.failed]


def notice_for(error: RecognitionError, source_name: str, page_number: Optional[int]) -> RecognitionNotice:
    """Build the user-facing notification for a recognition error."""
    kind = NoticeKind(error.kind.value)
    return RecognitionNotice(
        kind=kind,
        reason=NOTICE_REASONS[kind].format(message=error.message),
        source_name=source_name,
        page_number=page_number,
    )


def rasterization_notice(error: RasterizationError, source_name: str) -> RecognitionNotice:
    return RecognitionNotice(
        kind=NoticeKind.RASTERIZATION,
        reason=NOTICE_REASONS[NoticeKind.RASTERIZATION].format(message=error),
        source_name=source_name,
    )


def aggregate_pages(results: Iterable[PageResult]) -> str:
    """Join page texts with the page-break separator, in page order."""
    return config.PAGE_SEPARATOR.join(r.text for r in results)


def failed_page_text(page_index: int) -> str:
    return config.FAILED_PAGE_TEMPLATE.format(page=page_index)


def run_pages(
    source_name: str,
    pages: List[Image.Image],
    gateway: RecognitionGateway,
    abort_scope: AbortScope,
    throttle: FixedIntervalThrottle,
    callbacks: Optional[ProcessingCallbacks] = None,
    is_cancelled: Callable[[], bool] = lambda: False,
    on_progress: Optional[Callable[[int, int], None]] = None,
    preview_prefix: str = "",
) -> PageRun:
    """
    Recognize ``pages`` in order, one call per page.

    Args:
        source_name: Display name used in notices and previews.
        pages: Page images in document order.
        gateway: Recognition gateway to call.
        abort_scope: What a rate-limit or quota error stops.
        throttle: Pause applied before every page after the first.
        callbacks: Progress hooks.
        is_cancelled: Checked right before each page's call.
        on_progress: Called with (page, total) before each call.
        preview_prefix: Prefix for preview entry ids.

    Returns:
        PageRun with one PageResult per processed page.
    """
    callbacks = callbacks or ProcessingCallbacks()
    run = PageRun()
    total = len(pages)

    for index, image in enumerate(pages, start=1):
        if index > 1:
            throttle.wait()

        if is_cancelled():
            logger.info("Cancelled %s before page %d/%d", source_name, index, total)
            run.cancelled = True
            break

        logger.info("Processing %s page %d/%d", source_name, index, total)
        if on_progress:
            on_progress(index, total)

        encoded = b""
        try:
            encoded = prepare_page(image)
            text = gateway.recognize(encoded)
            result = PageResult(page_index=index, text=text)
        except (RecognitionError, ValueError) as e:
            error = e if isinstance(e, RecognitionError) else RecognitionFailure(str(e))
            notice = notice_for(error, source_name, index)
            logger.warning("%s page %d: %s (%s)", source_name, index, notice.reason, error.message)
            if callbacks.on_notice:
                callbacks.on_notice(notice)

            if error.kind != RecognitionKind.OTHER and abort_scope == AbortScope.ITEM:
                logger.warning("Abandoning remaining pages of %s", source_name)
                run.aborted_by = error
                break

            result = PageResult(page_index=index, text=failed_page_text(index), failed=True)

        run.results.append(result)
        if callbacks.on_page_complete:
            callbacks.on_page_complete(source_name, result)
        if callbacks.on_preview:
            callbacks.on_preview(
                PreviewEntry(
                    id=f"{preview_prefix}{index}",
                    source_name=source_name,
                    page_number=index if total > 1 else None,
                    image_data=encoded,
                    extracted_text=result.text,
                )
            )

    return run


def process_document(
    source: SourceFile,
    gateway: Optional[RecognitionGateway] = None,
    callbacks: Optional[ProcessingCallbacks] = None,
    abort_scope: Optional[Union[AbortScope, str]] = None,
    throttle: Optional[FixedIntervalThrottle] = None,
    dpi: Optional[int] = None,
) -> DocumentResult:
    """
    Process one source through the full pipeline.

    Args:
        source: Image or PDF to recognize.
        gateway: Defaults to the module-level gateway.
        callbacks: Progress hooks.
        abort_scope: Override config SINGLE_ABORT_SCOPE.
        throttle: Defaults to a FixedIntervalThrottle from config.
        dpi: Override config TARGET_DPI for PDFs.

    Returns:
        DocumentResult with the aggregated text and failure counts.

    Raises:
        RasterizationError: If the source cannot be converted to pages.
        RateLimitedError, QuotaExceededError: Only with the "item" abort scope.
    """
    gateway = gateway or get_gateway()
    scope = AbortScope(abort_scope or config.SINGLE_ABORT_SCOPE)
    throttle = throttle or FixedIntervalThrottle()

    logger.info("Processing document: %s", source.name)
    pages = load_pages(source, dpi=dpi)

    run = run_pages(
        source.name,
        pages,
        gateway,
        scope,
        throttle,
        callbacks=callbacks,
        preview_prefix=f"{uuid.uuid4().hex[:8]}-",
    )
    if run.aborted_by is not None:
        raise run.aborted_by

    failed = run.failed_pages
    text = aggregate_pages(run.results)
    if run.results and len(failed) == len(run.results):
        text = config.NO_TEXT_MESSAGE

    logger.info(
        "Document processed: %s, %d page(s), %d failed %s",
        source.name,
        len(run.results),
        len(failed),
        failed,
    )

    return DocumentResult(
        source_name=source.name,
        pages=run.results,
        text=text,
        total_pages=len(run.results),
        failed_count=len(failed),
        failed_pages=failed,
    )


class BatchOrchestrator:
    """
    Owns a queue of sources and processes it one item at a time.

    Callers read the queue and previews through snapshot methods and
    change it only through enqueue/remove/clear/cancel.
    """

    def __init__(
        self,
        gateway: Optional[RecognitionGateway] = None,
        callbacks: Optional[ProcessingCallbacks] = None,
        abort_scope: Optional[Union[AbortScope, str]] = None,
        throttle: Optional[FixedIntervalThrottle] = None,
        dpi: Optional[int] = None,
    ):
        self._gateway = gateway
        self.callbacks = callbacks or ProcessingCallbacks()
        self.abort_scope = AbortScope(abort_scope or config.BATCH_ABORT_SCOPE)
        self.throttle = throttle or FixedIntervalThrottle()
        self.dpi = dpi

        self._items: List[QueuedItem] = []
        self._previews: List[PreviewEntry] = []
        self._lock = threading.RLock()
        self._cancel = threading.Event()
        self._running = False

    @property
    def gateway(self) -> RecognitionGateway:
        if self._gateway is None:
            self._gateway = get_gateway()
        return self._gateway

    @property
    def running(self) -> bool:
        return self._running

    # -----------------------------
    # Queue management
    # -----------------------------

    def enqueue(self, sources: Iterable[SourceFile]) -> List[str]:
        """Append sources to the queue as Pending items. Returns their ids."""
        ids = []
        with self._lock:
            for source in sources:
                item = QueuedItem(id=uuid.uuid4().hex, source=source)
                self._items.append(item)
                ids.append(item.id)
        logger.info("Enqueued %d item(s)", len(ids))
        return ids

    def remove(self, item_id: str) -> bool:
        """
        Drop an item from the queue.

        Returns False when no such item exists. The item being processed
        cannot be removed.
        """
        with self._lock:
            for item in self._items:
                if item.id == item_id:
                    if item.status == ItemStatus.PROCESSING:
                        raise ValueError(f"Item {item_id} is being processed")
                    self._items.remove(item)
                    self._previews = [p for p in self._previews if not p.id.startswith(item_id)]
                    return True
        return False

    def clear(self) -> None:
        """Empty the queue and previews, stopping an active run at its next checkpoint."""
        with self._lock:
            if self._running:
                self.cancel()
            self._items = []
            self._previews = []
        logger.info("Queue cleared")

    def cancel(self) -> None:
        """Ask an active run to stop before its next page call."""
        self._cancel.set()

    # -----------------------------
    # Snapshots
    # -----------------------------

    def items(self) -> List[QueuedItem]:
        with self._lock:
            return [item.model_copy(deep=True) for item in self._items]

    def previews(self) -> List[PreviewEntry]:
        with self._lock:
            return list(self._previews)

    def completed_items(self) -> List[QueuedItem]:
        return [item for item in self.items() if item.status == ItemStatus.COMPLETED]

    def report(self) -> BatchReport:
        items = self.items()
        return BatchReport(
            total_items=len(items),
            completed_items=sum(1 for i in items if i.status == ItemStatus.COMPLETED),
            failed_items=sum(1 for i in items if i.status == ItemStatus.FAILED),
            pending_items=sum(1 for i in items if i.status == ItemStatus.PENDING),
            total_pages=sum(i.total_pages for i in items),
            failed_pages=sum(len(i.failed_pages) for i in items),
            cancelled=self._cancel.is_set(),
        )

    # -----------------------------
    # Processing
    # -----------------------------

    def run(self) -> BatchReport:
        """
        Process every Pending item in enqueue order.

        Returns:
            BatchReport with item and page counts for the whole queue.
        """
        with self._lock:
            if self._running:
                raise RuntimeError("A batch run is already active")
            self._running = True
            self._cancel.clear()

        try:
            while not self._cancel.is_set():
                item = self._next_pending()
                if item is None:
                    break
                self._process_item(item)
        finally:
            with self._lock:
                self._running = False

        report = self.report()
        logger.info(
            "Batch finished: %d/%d item(s) completed, %d failed, %d/%d page(s) failed",
            report.completed_items,
            report.total_items,
            report.failed_items,
            report.failed_pages,
            report.total_pages,
        )
        return report

    def export_archive(self, path: Optional[Union[str, Path]] = None) -> bytes:
        """
        Export every Completed item and bundle the documents into one zip.

        Raises:
            ArchiveError: If there is nothing to export or bundling fails.
            ExportError: If an item's document cannot be built.
        """
        completed = self.completed_items()
        if not completed:
            raise ArchiveError("No completed items to export")

        documents = [
            (item.source.name, export_text(item.aggregated_text or ""))
            for item in completed
        ]
        return bundle_documents(documents, path=path)

    def _next_pending(self) -> Optional[QueuedItem]:
        with self._lock:
            for item in self._items:
                if item.status == ItemStatus.PENDING:
                    return item
        return None

    def _set_status(self, item: QueuedItem, status: ItemStatus, note: Optional[str] = None) -> None:
        with self._lock:
            item.transition(status)
            item.progress_note = note
        if self.callbacks.on_item_status:
            self.callbacks.on_item_status(item.model_copy(deep=True))

    def _set_note(self, item: QueuedItem, note: str) -> None:
        with self._lock:
            item.progress_note = note

    def _add_preview(self, item: QueuedItem, entry: PreviewEntry) -> None:
        with self._lock:
            # Removed or cleared while its page was in flight.
            if not any(queued is item for queued in self._items):
                return
            self._previews.append(entry)
        if self.callbacks.on_preview:
            self.callbacks.on_preview(entry)

    def _process_item(self, item: QueuedItem) -> None:
        name = item.source.name
        self._set_status(item, ItemStatus.PROCESSING, note="Converting pages")

        try:
            pages = load_pages(item.source, dpi=self.dpi)
        except RasterizationError as e:
            logger.error("Failed to convert %s: %s", name, e)
            notice = rasterization_notice(e, name)
            with self._lock:
                item.error_message = notice.reason
            if self.callbacks.on_notice:
                self.callbacks.on_notice(notice)
            self._set_status(item, ItemStatus.FAILED)
            return

        with self._lock:
            item.total_pages = len(pages)

        hooks = ProcessingCallbacks(
            on_notice=self.callbacks.on_notice,
            on_page_complete=self.callbacks.on_page_complete,
            on_preview=lambda entry: self._add_preview(item, entry),
        )
        run = run_pages(
            name,
            pages,
            self.gateway,
            self.abort_scope,
            self.throttle,
            callbacks=hooks,
            is_cancelled=self._cancel.is_set,
            on_progress=lambda page, total: self._set_note(
                item, f"Processing page {page} of {total}"
            ),
            preview_prefix=f"{item.id}-",
        )

        with self._lock:
            item.failed_pages = run.failed_pages
            item.aggregated_text = aggregate_pages(run.results)

        if run.aborted_by is not None:
            with self._lock:
                item.error_message = notice_for(run.aborted_by, name, None).reason
            self._set_status(item, ItemStatus.FAILED)
        elif run.cancelled:
            with self._lock:
                item.error_message = config.CANCELLED_MESSAGE
            self._set_status(item, ItemStatus.FAILED)
        else:
            self._set_status(item, ItemStatus.COMPLETED)

        logger.info(
            "%s: %s, %d page(s), %d failed",
            name,
            item.status.value,
            len(run.results),
            len(run.failed_pages),
        )
