"""
DocScan

Extracts text from images and PDFs through an external recognition
service, then exports it as Word documents, optionally bundled into
a single zip archive.

Public API:
    process_document  - Process a single source (image or PDF)
    BatchOrchestrator - Queue and process many sources one at a time
    parse_document    - Split recognized text into tables/headers/paragraphs
    export_document   - Write parsed elements to .docx bytes
    bundle_documents  - Zip several exported documents together
    load_source       - Load and validate a source file from disk
"""

from .bundler import bundle_documents
from .exporter import export_document, export_text
from .ocr_pipeline import (
    AbortScope,
    BatchOrchestrator,
    FixedIntervalThrottle,
    ProcessingCallbacks,
    process_document,
)
from .schemas import DocumentResult, ParsedElement, QueuedItem, SourceFile
from .structurer import parse_document
from .utils import collect_sources, load_source

__all__ = [
    "process_document",
    "BatchOrchestrator",
    "AbortScope",
    "FixedIntervalThrottle",
    "ProcessingCallbacks",
    "parse_document",
    "export_document",
    "export_text",
    "bundle_documents",
    "load_source",
    "collect_sources",
    "DocumentResult",
    "ParsedElement",
    "QueuedItem",
    "SourceFile",
]
